# -*- coding: utf-8 -*-
"""
graphboot.core
==================================================

Core engine: bootstrap of global graph measures across densities.

Structural covariance networks have one graph per group, not one per
subject, so a group-level graph measure comes without a standard error.
This module estimates it by resampling subjects:

    For each group g:
        t0 = statistic(residuals_g)                    (D,)
        For b = 1, …, R:
            idx = sample n_g subjects with replacement
            t[b] = statistic(residuals_g[idx])         (D,)

    where statistic() correlates, thresholds at every density and
    reduces each graph to one scalar.

Every replicate draws from its own generator, spawned from the run seed
with ``np.random.SeedSequence``, and writes into its own row of the
pre-sized R × D matrix.  Results are therefore identical for any
backend and any number of workers.

Classes
-------
GroupBootstrap
    R × D replicate matrix and observed vector of one group.
BootstrapResult
    Complete result of a multi-group run.

Functions
---------
global_statistic
    Correlate, threshold and reduce one dataset to a (D,) vector.
bootstrap_group
    Run the bootstrap for one group.
bootstrap_global
    Validate, then run every group through one shared worker pool.

References
----------
- Efron & Tibshirani (1993). An Introduction to the Bootstrap.
  Chapman & Hall.
- Alexander-Bloch, Giedd & Bullmore (2013). Nat Rev Neurosci 14:322-336.
- Watson (2020). brainGraph, R package.
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .backends import (
    BackendName,
    ProgressCounter,
    WorkerPool,
    print_progress,
    require_dependencies,
)
from .config import BootConfig
from .correlation import ResidualDataset, as_dataset, corr_matrix, split_groups
from .errors import (
    AggregationError,
    ConfigurationError,
    DependencyMissingError,
    ReplicateComputationError,
)
from .measures import get_measure, graphs_from_corrs

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class GroupBootstrap:
    """
    Bootstrap distribution of one group.

    Parameters
    ----------
    group : str
    t0 : np.ndarray (D,)
        Statistic on the unresampled data.
    t : np.ndarray (R, D)
        Row b holds replicate b.
    R : int
    seed : int, optional
        Entropy of the group's seed sequence.
    """

    group: str
    t0: np.ndarray
    t: np.ndarray
    R: int
    seed: Optional[int] = None

    def __post_init__(self):
        t0 = np.array(self.t0, dtype=float)
        t = np.array(self.t, dtype=float)
        if t.ndim != 2 or t0.ndim != 1 or t.shape != (self.R, t0.shape[0]):
            raise AggregationError(
                f"Group {self.group!r}: replicate matrix {t.shape} does not "
                f"match R={self.R} and t0 of length {t0.shape}"
            )
        t0.setflags(write=False)
        t.setflags(write=False)
        object.__setattr__(self, "t0", t0)
        object.__setattr__(self, "t", t)

    @property
    def n_densities(self) -> int:
        return self.t0.shape[0]


@dataclass(frozen=True)
class BootstrapResult:
    """
    Complete result of the global-measure bootstrap.

    Parameters
    ----------
    measure : str
        Canonical measure name.
    densities : np.ndarray (D,)
    groups : list of str
        Group order, used for every downstream table.
    conf : float
        Confidence level for ``summary``.
    boot : dict
        group → GroupBootstrap.
    xfm_type : str
    seed : int, optional
    """

    measure: str
    densities: np.ndarray
    groups: list
    conf: float
    boot: Dict[str, GroupBootstrap] = field(repr=False)
    xfm_type: str = "1/w"
    seed: Optional[int] = None

    def __post_init__(self):
        densities = np.array(self.densities, dtype=float)
        densities.setflags(write=False)
        object.__setattr__(self, "densities", densities)

        if list(self.boot) != list(self.groups):
            raise AggregationError(
                f"Groups {list(self.groups)} do not match results {list(self.boot)}"
            )
        D = len(densities)
        Rs = {gb.R for gb in self.boot.values()}
        if len(Rs) > 1:
            raise AggregationError(f"Groups have different R: {sorted(Rs)}")
        for gb in self.boot.values():
            if gb.n_densities != D:
                raise AggregationError(
                    f"Group {gb.group!r} has {gb.n_densities} densities, expected {D}"
                )

    @property
    def R(self) -> int:
        return next(iter(self.boot.values())).R

    def summary(self, **kwargs):
        """Shortcut for ``graphboot.summary.summarize(self, **kwargs)``."""
        from .summary import summarize
        return summarize(self, **kwargs)


# =============================================================================
# STATISTIC
# =============================================================================

def global_statistic(
    data: np.ndarray,
    measure: str,
    densities: Sequence[float],
    xfm_type: str = "1/w",
    builder: Callable = corr_matrix,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Global graph measure at each density for one (resampled) dataset.

    Parameters
    ----------
    data : np.ndarray (n_subjects, n_regions)
    measure : str
        Registered measure name or alias.
    densities : sequence of float
    xfm_type : str
        Weight transform for 'global-efficiency-weighted'.
    builder : callable
        ``builder(data, densities)`` returning an object with ``R`` and
        ``r_thresh`` (see ``graphboot.correlation.CorrelationMatrices``).
    seed : int, optional
        Seed for community detection.

    Returns
    -------
    np.ndarray (D,)

    Raises
    ------
    ReplicateComputationError
        If the builder fails, a measure raises, or a value is not finite.
    """
    meas = get_measure(measure)
    try:
        corrs = builder(data, densities)
        graphs = graphs_from_corrs(corrs, weighted=meas.weighted)
    except (DependencyMissingError, AggregationError):
        raise
    except Exception as err:
        raise ReplicateComputationError(
            f"Correlation/threshold builder failed: {err!r}"
        ) from err

    if len(graphs) != len(densities):
        raise AggregationError(
            f"Builder returned {len(graphs)} graphs for {len(densities)} densities"
        )

    res = np.empty(len(densities))
    for k, (dens, g) in enumerate(zip(densities, graphs)):
        try:
            val = meas(g, seed=seed, xfm_type=xfm_type)
        except Exception as err:
            raise ReplicateComputationError(
                f"{meas.full_name} failed: {err}", density=float(dens),
            ) from err
        if not np.isfinite(val):
            raise ReplicateComputationError(
                f"{meas.full_name} is not finite ({val})", density=float(dens),
            )
        res[k] = val
    return res


# =============================================================================
# RESAMPLING DRIVER
# =============================================================================

def _stat_seed(rng: np.random.Generator) -> int:
    return int(rng.integers(0, 2**31 - 1))


def _run_replicate(task) -> np.ndarray:
    """One unit of work: resample rows, evaluate the statistic."""
    index, dataset, seed_seq, statistic = task
    rng = np.random.default_rng(seed_seq)
    n = dataset.n_subjects
    idx = rng.integers(0, n, size=n)
    try:
        return np.asarray(
            statistic(dataset.take(idx), seed=_stat_seed(rng)), dtype=float,
        )
    except ReplicateComputationError as err:
        raise ReplicateComputationError(
            err.message, replicate=index, density=err.density,
        ) from err
    except (DependencyMissingError, AggregationError):
        raise
    except Exception as err:
        raise ReplicateComputationError(
            f"Statistic failed: {err!r}", replicate=index,
        ) from err


def bootstrap_group(
    dataset,
    R: int,
    statistic: Callable,
    seed: int = 42,
    pool: Optional[WorkerPool] = None,
    progress: Optional[Callable] = None,
    backend: BackendName = "thread",
    n_jobs: Optional[int] = None,
) -> GroupBootstrap:
    """
    Bootstrap one group's residuals.

    Algorithm::

        children = SeedSequence(seed).spawn(R + 1)
        t0 = statistic(data, seed=from(children[0]))
        For b = 0, …, R−1 (in parallel):
            rng = default_rng(children[b + 1])
            idx = rng.integers(0, n, n)
            t[b] = statistic(data[idx], seed=from(rng))

    Parameters
    ----------
    dataset : ResidualDataset or array-like (n_subjects, n_regions)
    R : int
        Number of replicates.
    statistic : callable
        ``statistic(data, seed=...) -> (D,)``.  Must be picklable for the
        'process' backend.
    seed : int or np.random.SeedSequence
    pool : WorkerPool, optional
        Shared pool (already entered).  If None, a pool is created from
        ``backend`` and ``n_jobs`` for this call only.
    progress : callable, optional
        ``progress(done, R)``, called once per finished replicate.
    backend, n_jobs
        Used only when ``pool`` is None.

    Returns
    -------
    GroupBootstrap

    Raises
    ------
    ReplicateComputationError
        On the first failed replicate; nothing partial is returned.
    """
    if not isinstance(dataset, ResidualDataset):
        dataset = as_dataset("", dataset)
    if R <= 0:
        raise ConfigurationError(f"R must be positive, got {R}")

    seed_seq = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    children = seed_seq.spawn(R + 1)
    values = dataset.values

    t0 = np.asarray(
        statistic(values, seed=_stat_seed(np.random.default_rng(children[0]))),
        dtype=float,
    )
    D = t0.shape[0]
    logger.debug("Group %r: t0=%s", dataset.group, t0)

    tasks = [(b, dataset, children[b + 1], statistic) for b in range(R)]
    counter = ProgressCounter(R, observer=progress)

    if pool is None:
        with WorkerPool(backend, n_jobs) as own_pool:
            rows = own_pool.run(_run_replicate, tasks, progress=counter)
    else:
        rows = pool.run(_run_replicate, tasks, progress=counter)

    t = np.empty((R, D))
    for b, row in enumerate(rows):
        if row.shape != (D,):
            raise AggregationError(
                f"Replicate {b} returned shape {row.shape}, expected ({D},)"
            )
        t[b] = row

    return GroupBootstrap(
        group=dataset.group, t0=t0, t=t, R=R, seed=seed_seq.entropy,
    )


# =============================================================================
# GROUP ORCHESTRATOR
# =============================================================================

def _coerce_groups(resids, group_col: str) -> Dict[str, ResidualDataset]:
    if isinstance(resids, pd.DataFrame):
        return split_groups(resids, group_col=group_col)
    if isinstance(resids, Mapping):
        return {str(g): as_dataset(str(g), d) for g, d in resids.items()}
    raise ConfigurationError(
        "resids must be a mapping of group → data or a DataFrame "
        f"with a '{group_col}' column, got {type(resids).__name__}"
    )


def bootstrap_global(
    resids,
    densities: Sequence[float],
    R: int = 1000,
    measure: str = "modularity",
    conf: float = 0.95,
    xfm_type: str = "1/w",
    seed: int = 42,
    n_jobs: Optional[int] = None,
    backend: BackendName = "thread",
    builder: Optional[Callable] = None,
    groups: Optional[Sequence[str]] = None,
    group_col: str = "Group",
    progress: Optional[Callable] = None,
    verbose: bool = True,
) -> BootstrapResult:
    """
    Bootstrap a global graph measure for every group and density.

    Configuration and dependencies are checked before any graph is
    built.  Groups run one after another through one shared worker
    pool; replicates within a group run in parallel.

    Parameters
    ----------
    resids : mapping or pd.DataFrame
        group → residuals (array, DataFrame or ResidualDataset), or one
        long DataFrame with a ``group_col`` column.
    densities : sequence of float
        Graph densities in (0, 1].
    R : int
        Number of bootstrap replicates per group.
    measure : str
        See ``graphboot.measures.MEASURES``.  Default: 'modularity'.
    conf : float
        Confidence level stored for ``summary``.
    xfm_type : str
        Weight transform for weighted global efficiency.
    seed : int
    n_jobs : int, optional
        Pool size; default: number of CPUs.
    backend : {'serial', 'thread', 'process'}
    builder : callable, optional
        Correlation/threshold builder; default ``corr_matrix``.
    groups : sequence of str, optional
        Group order (and subset).  Default: order of ``resids``.
    group_col : str
        Group column when ``resids`` is a DataFrame.
    progress : callable, optional
        ``progress(done, R)`` per finished replicate.
    verbose : bool

    Returns
    -------
    BootstrapResult

    Raises
    ------
    ConfigurationError, DependencyMissingError
        Before any computation.
    ReplicateComputationError
        If a replicate fails; ``group`` names the failing group and
        ``completed`` holds the groups finished before it.
    """
    config = BootConfig(
        n_bootstrap=R, measure=measure, conf=conf, xfm_type=xfm_type,
        seed=seed, n_jobs=n_jobs, backend=backend, verbose=verbose,
    )
    dens = config.validate(densities)
    require_dependencies("networkx", "scipy")

    datasets = _coerce_groups(resids, group_col)
    if groups is not None:
        missing = [g for g in groups if str(g) not in datasets]
        if missing:
            raise ConfigurationError(f"Groups not found in residuals: {missing}")
        datasets = {str(g): datasets[str(g)] for g in groups}
    if not datasets:
        raise ConfigurationError("No groups to bootstrap")

    statistic = partial(
        global_statistic,
        measure=config.measure,
        densities=dens,
        xfm_type=config.xfm_type,
        builder=builder or corr_matrix,
    )
    if progress is None and verbose:
        progress = print_progress

    if verbose:
        print(f"  Bootstrap: {config.n_bootstrap} replicates × "
              f"{len(datasets)} groups × {len(dens)} densities")
        print(f"  Measure: {get_measure(config.measure).full_name}")
        print(f"  Backend: {config.backend}")

    group_seeds = np.random.SeedSequence(config.seed).spawn(len(datasets))
    boot: Dict[str, GroupBootstrap] = {}

    with WorkerPool(config.backend, config.n_jobs) as pool:
        for (grp, ds), grp_seed in zip(datasets.items(), group_seeds):
            logger.info("Bootstrapping group %r (%d subjects, %d regions)",
                        grp, ds.n_subjects, ds.n_regions)
            if verbose:
                print(f"  Group {grp}: {ds.n_subjects} subjects")
            try:
                boot[grp] = bootstrap_group(
                    ds, config.n_bootstrap, statistic,
                    seed=grp_seed, pool=pool, progress=progress,
                )
            except ReplicateComputationError as err:
                err.group = grp
                err.completed = dict(boot)
                logger.error("Bootstrap aborted for group %r: %s", grp, err)
                raise
            logger.info("Group %r done", grp)

    return BootstrapResult(
        measure=config.measure,
        densities=dens,
        groups=list(boot),
        conf=config.conf,
        boot=boot,
        xfm_type=config.xfm_type,
        seed=config.seed,
    )
