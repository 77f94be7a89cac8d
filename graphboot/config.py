# -*- coding: utf-8 -*-
"""
graphboot.config
==================================================

Run configuration and argument validation.

Everything a bootstrap run needs besides the data lives in a single
``BootConfig``.  ``validate`` is called before any graph is built, so a
bad measure name or a non-positive number of replicates is reported
immediately.
"""

import numbers
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .errors import ConfigurationError


DEFAULT_GROUP_COL = "Group"

EXECUTION_BACKENDS = ("serial", "thread", "process")


@dataclass
class BootConfig:
    """
    Configuration for a global-measure bootstrap.

    Parameters
    ----------
    n_bootstrap : int
        Number of bootstrap replicates R per group.  1000 is standard.
    measure : str
        Global graph measure; see ``graphboot.measures.MEASURES``.
        The short names of brainGraph ('mod', 'E.global', ...) are
        accepted as aliases.
    conf : float
        Confidence level for the normal-approximation intervals.
    xfm_type : str
        Edge-weight transform used by 'global-efficiency-weighted'.
    seed : int
        Root seed.  Every group and replicate seed is derived from it.
    n_jobs : int, optional
        Number of workers.  Default: number of CPUs.
    backend : str
        Execution strategy: 'serial', 'thread' or 'process'.
    verbose : bool
    """
    n_bootstrap: int = 1000
    measure: str = "modularity"
    conf: float = 0.95
    xfm_type: str = "1/w"
    seed: int = 42
    n_jobs: Optional[int] = None
    backend: str = "thread"
    verbose: bool = True

    def validate(self, densities: Sequence[float]) -> np.ndarray:
        """
        Check every field and the density list.

        Resolves ``measure`` to its canonical name in place and returns
        the densities as a float array.

        Raises
        ------
        ConfigurationError
        """
        from .measures import resolve_measure, WEIGHT_TRANSFORMS

        if isinstance(self.n_bootstrap, bool) or not isinstance(
            self.n_bootstrap, numbers.Integral
        ):
            raise ConfigurationError(
                f"R must be an integer, got {self.n_bootstrap!r}"
            )
        if self.n_bootstrap <= 0:
            raise ConfigurationError(
                f"R must be positive, got {self.n_bootstrap}"
            )

        self.measure = resolve_measure(self.measure)

        if self.xfm_type not in WEIGHT_TRANSFORMS:
            raise ConfigurationError(
                f"Unknown weight transform '{self.xfm_type}'. "
                f"Choose from {list(WEIGHT_TRANSFORMS)}"
            )

        if not 0 < self.conf < 1:
            raise ConfigurationError(
                f"conf must lie in (0, 1), got {self.conf}"
            )

        if self.backend not in EXECUTION_BACKENDS:
            raise ConfigurationError(
                f"Unknown backend '{self.backend}'. "
                f"Choose from {list(EXECUTION_BACKENDS)}"
            )
        if self.n_jobs is not None and self.n_jobs < 1:
            raise ConfigurationError(f"n_jobs must be >= 1, got {self.n_jobs}")

        return validate_densities(densities)


def validate_densities(densities: Sequence[float]) -> np.ndarray:
    """Return densities as a 1-D float array, all in (0, 1]."""
    try:
        dens = np.asarray(densities, dtype=float).ravel()
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"Invalid densities: {densities!r}") from err
    if dens.size == 0:
        raise ConfigurationError("densities must not be empty")
    if not np.all(np.isfinite(dens)) or np.any(dens <= 0) or np.any(dens > 1):
        raise ConfigurationError(
            f"densities must lie in (0, 1], got {dens.tolist()}"
        )
    return dens
