# -*- coding: utf-8 -*-
"""
graphboot.correlation
==================================================

Residual data containers and the default correlation/threshold builder.

A structural covariance network is built across subjects: each column
of the residual matrix is one region, each row one subject, and the
edge weight between two regions is their inter-subject correlation.
The bootstrap resamples subjects (rows), so every replicate produces a
new correlation matrix and a new set of thresholded graphs:

    For b = 1, …, R:
        Sample n subjects with replacement
        R⁽ᵇ⁾ = corr(residuals[idx])
        A⁽ᵇ⁾(d) = R⁽ᵇ⁾ > τ(d)   for every density d

    where τ(d) keeps the round(d · E) strongest of the E = N(N−1)/2
    possible edges.

Classes
-------
ResidualDataset
    Residuals of one group (subjects × regions).
CorrelationMatrices
    Correlation matrix plus one boolean adjacency per density.

Functions
---------
as_dataset
    Coerce an array, DataFrame or ResidualDataset.
split_groups
    Split a long residual table by its group column.
corr_matrix
    Correlate and threshold at a list of densities.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .config import DEFAULT_GROUP_COL
from .errors import ConfigurationError


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class ResidualDataset:
    """
    Residualized observations of one group.

    Parameters
    ----------
    group : str
        Group identifier.
    values : np.ndarray (n_subjects, n_regions)
        Residuals (e.g. cortical thickness after regressing out age/sex).
    regions : list
        Region (column) labels.
    subjects : list
        Subject (row) labels.
    """

    group: str
    values: np.ndarray
    regions: list = field(default_factory=list)
    subjects: list = field(default_factory=list)

    def __post_init__(self):
        values = np.array(self.values, dtype=float)
        if values.ndim != 2:
            raise ConfigurationError(
                f"Group {self.group!r}: residuals must be 2-D, "
                f"got shape {values.shape}"
            )
        if values.shape[0] < 3 or values.shape[1] < 2:
            raise ConfigurationError(
                f"Group {self.group!r}: need at least 3 subjects and "
                f"2 regions, got {values.shape}"
            )
        values.setflags(write=False)
        self.values = values
        if not self.regions:
            self.regions = [f"R{j}" for j in range(values.shape[1])]
        if not self.subjects:
            self.subjects = list(range(values.shape[0]))

    @property
    def n_subjects(self) -> int:
        return self.values.shape[0]

    @property
    def n_regions(self) -> int:
        return self.values.shape[1]

    def take(self, indices: np.ndarray) -> np.ndarray:
        """Rows at ``indices`` (repeats allowed)."""
        return self.values[indices]


@dataclass
class CorrelationMatrices:
    """
    Output of the correlation/threshold builder.

    Parameters
    ----------
    R : np.ndarray (N, N)
        Correlation matrix.
    r_thresh : np.ndarray (N, N, D) bool
        Adjacency at each density (diagonal False).
    thresholds : np.ndarray (D,)
        Correlation value each density was thresholded at.
    densities : np.ndarray (D,)
    """

    R: np.ndarray
    r_thresh: np.ndarray
    thresholds: np.ndarray
    densities: np.ndarray


# =============================================================================
# INPUT COERCION
# =============================================================================

def as_dataset(group, data) -> ResidualDataset:
    """
    Coerce one group's residuals to a ResidualDataset.

    DataFrames contribute their numeric columns only, so an ID column
    can be left in place.
    """
    if isinstance(data, ResidualDataset):
        return data
    if isinstance(data, pd.DataFrame):
        numeric = data.select_dtypes(include="number")
        return ResidualDataset(
            group=group,
            values=numeric.to_numpy(dtype=float),
            regions=list(numeric.columns),
            subjects=list(data.index),
        )
    return ResidualDataset(group=group, values=np.asarray(data, dtype=float))


def split_groups(
    df: pd.DataFrame,
    group_col: str = DEFAULT_GROUP_COL,
    subject_col: Optional[str] = None,
) -> Dict[str, ResidualDataset]:
    """
    Split a long residual table into one dataset per group.

    Parameters
    ----------
    df : pd.DataFrame
        One row per subject; region columns numeric.
    group_col : str
        Column holding the group label.
    subject_col : str, optional
        Column holding subject IDs (used as row labels).

    Returns
    -------
    dict
        group → ResidualDataset, in order of first appearance.
    """
    if group_col not in df.columns:
        raise ConfigurationError(f"Column '{group_col}' not found")

    out = {}
    for grp, sub in df.groupby(group_col, sort=False):
        body = sub.drop(columns=[group_col])
        if subject_col is not None:
            body = body.set_index(subject_col)
        out[str(grp)] = as_dataset(str(grp), body)
    return out


# =============================================================================
# CORRELATION + THRESHOLDING
# =============================================================================

def corr_matrix(
    data: np.ndarray,
    densities: Sequence[float],
    method: str = "pearson",
) -> CorrelationMatrices:
    """
    Correlate regions across subjects and threshold at each density.

    Parameters
    ----------
    data : np.ndarray (n_subjects, n_regions)
    densities : sequence of float
        Target edge densities in (0, 1].
    method : {'pearson', 'spearman'}

    Returns
    -------
    CorrelationMatrices

    Raises
    ------
    ValueError
        If a region has zero variance in ``data`` (possible in a
        degenerate resample), which leaves the correlation undefined.
    """
    data = np.asarray(data, dtype=float)
    if np.any(np.ptp(data, axis=0) == 0):
        raise ValueError("Constant region in data; correlation undefined")

    if method == "pearson":
        r = np.corrcoef(data, rowvar=False)
    elif method == "spearman":
        r = stats.spearmanr(data).statistic
        if np.ndim(r) == 0:
            # two regions: scipy returns the scalar coefficient
            r = np.array([[1.0, r], [r, 1.0]])
    else:
        raise ValueError(f"Unknown correlation method: {method}")
    r = np.array(r, dtype=float)
    np.fill_diagonal(r, 0)

    N = r.shape[0]
    densities = np.asarray(densities, dtype=float)
    triu = np.triu_indices(N, k=1)
    upper = np.sort(r[triu])
    emax = len(upper)

    thresholds = np.empty(len(densities))
    r_thresh = np.zeros((N, N, len(densities)), dtype=bool)
    for k, d in enumerate(densities):
        n_keep = int(round(d * emax))
        thresholds[k] = upper[emax - n_keep - 1] if n_keep < emax else -np.inf
        adj = r > thresholds[k]
        np.fill_diagonal(adj, False)
        r_thresh[:, :, k] = adj

    return CorrelationMatrices(
        R=r,
        r_thresh=r_thresh,
        thresholds=thresholds,
        densities=densities,
    )
