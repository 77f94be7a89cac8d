# -*- coding: utf-8 -*-
"""
graphboot.summary
==================================================

Standard errors and normal-approximation confidence intervals.

For group g and density d::

    Observed = t0[d]
    se       = sd(t[:, d])            (ddof = 1)
    CI       = Observed ∓ z · se,     z = Φ⁻¹((1 + conf) / 2)

No bias correction is applied by default, so the interval is symmetric
around the observed value.  ``bias_correct=True`` reproduces
``boot.ci(type="norm")``, which shifts the interval by
mean(t[:, d]) − t0[d].
"""

from dataclasses import dataclass
from typing import Optional

import pandas as pd
from scipy import stats

from .config import DEFAULT_GROUP_COL
from .errors import AggregationError, ConfigurationError
from .measures import MEASURES


@dataclass
class BootstrapSummary:
    """
    Tabular summary of a BootstrapResult.

    Parameters
    ----------
    meas_full : str
        Long measure name.
    table : pd.DataFrame
        One row per (group, density): group column, 'density',
        'Observed', 'se', 'ci_low', 'ci_high'.
    conf : float
    R : int
    """

    meas_full: str
    table: pd.DataFrame
    conf: float
    R: int


def summarize(
    result,
    conf: Optional[float] = None,
    group_col: str = DEFAULT_GROUP_COL,
    bias_correct: bool = False,
) -> BootstrapSummary:
    """
    Observed values, standard errors and CIs per group and density.

    Parameters
    ----------
    result : BootstrapResult
    conf : float, optional
        Overrides ``result.conf``.
    group_col : str
        Name of the group column in the table.
    bias_correct : bool

    Returns
    -------
    BootstrapSummary
        Rows ordered by group (``result.groups``), then density.
    """
    conf = result.conf if conf is None else conf
    if not 0 < conf < 1:
        raise ConfigurationError(f"conf must lie in (0, 1), got {conf}")
    if result.R < 2:
        raise AggregationError(
            f"Standard errors need at least 2 replicates, got R={result.R}"
        )

    z = stats.norm.ppf((1 + conf) / 2)
    D = len(result.densities)

    frames = []
    for grp in result.groups:
        gb = result.boot[grp]
        if gb.t.shape[1] != D:
            raise AggregationError(
                f"Group {grp!r}: {gb.t.shape[1]} columns, expected {D}"
            )
        se = gb.t.std(axis=0, ddof=1)
        centre = gb.t0
        if bias_correct:
            centre = gb.t0 - (gb.t.mean(axis=0) - gb.t0)
        frames.append(pd.DataFrame({
            group_col: grp,
            "density": result.densities,
            "Observed": gb.t0,
            "se": se,
            "ci_low": centre - z * se,
            "ci_high": centre + z * se,
        }))

    table = pd.concat(frames, ignore_index=True)

    return BootstrapSummary(
        meas_full=MEASURES[result.measure].full_name,
        table=table,
        conf=conf,
        R=result.R,
    )
