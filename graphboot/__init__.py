# -*- coding: utf-8 -*-
"""
graphboot
==============================

Bootstrap confidence intervals for global graph measures of structural
covariance networks.

A structural covariance network is estimated across subjects: one
correlation matrix, and therefore one graph, per group.  A group-level
measure such as modularity or global efficiency is then a single number
without a standard error.  This package estimates its sampling
uncertainty by resampling subjects:

    For each group, for b = 1, …, R:
        Sample n subjects with replacement from the residuals
        Rebuild the correlation matrix
        Threshold it at every density
        Recompute the global measure        → t[b, :]

    SE(d)  = sd(t[:, d])
    CI(d)  = t0(d) ∓ z · SE(d)   (normal approximation)

Modules
-------
config
    BootConfig: defaults and argument validation.
errors
    ConfigurationError, DependencyMissingError, ReplicateComputationError,
    AggregationError.
backends
    Worker pool (serial / thread / process), progress counter,
    dependency probing.
correlation
    ResidualDataset, group splitting, correlation + density thresholding.
measures
    Measure registry (modularity, efficiency, clustering, path length,
    assortativity, strength) and edge-weight transforms.
core
    Statistic function, resampling driver, group orchestrator.
summary
    Standard errors and normal-approximation CIs as a pandas table.
storage
    HDF5 I/O and TSV/JSON export.

Pipeline
--------
::

    from graphboot import bootstrap_global, split_groups

    resids = split_groups(resid_df, group_col="Group")
    result = bootstrap_global(
        resids, densities=[0.1, 0.15, 0.2],
        R=1000, measure="global-efficiency",
    )
    summary = result.summary()
    print(summary.table)

References
----------
- Efron & Tibshirani (1993). An Introduction to the Bootstrap.
  Chapman & Hall.
- Bernhardt et al. (2011). Cereb Cortex 21:2147-2157.
- Rubinov & Sporns (2010). NeuroImage 52:1059-1069.
"""

__version__ = "0.1.0"

# === errors ===
from .errors import (
    GraphBootError,
    ConfigurationError,
    DependencyMissingError,
    ReplicateComputationError,
    AggregationError,
)

# === config ===
from .config import BootConfig

# === backends ===
from .backends import (
    WorkerPool,
    ProgressCounter,
    available_dependencies,
    require_dependencies,
)

# === correlation ===
from .correlation import (
    ResidualDataset,
    CorrelationMatrices,
    split_groups,
    corr_matrix,
)

# === measures ===
from .measures import (
    MEASURES,
    WEIGHT_TRANSFORMS,
    get_measure,
    xfm_weights,
)

# === core ===
from .core import (
    GroupBootstrap,
    BootstrapResult,
    global_statistic,
    bootstrap_group,
    bootstrap_global,
)

# === summary ===
from .summary import (
    BootstrapSummary,
    summarize,
)

# === storage ===
from .storage import (
    save_bootstrap_result,
    load_bootstrap_result,
    export_summary,
)

__all__ = [
    # --- version ---
    "__version__",
    # --- errors ---
    "GraphBootError",
    "ConfigurationError",
    "DependencyMissingError",
    "ReplicateComputationError",
    "AggregationError",
    # --- config ---
    "BootConfig",
    # --- backends ---
    "WorkerPool",
    "ProgressCounter",
    "available_dependencies",
    "require_dependencies",
    # --- correlation ---
    "ResidualDataset",
    "CorrelationMatrices",
    "split_groups",
    "corr_matrix",
    # --- measures ---
    "MEASURES",
    "WEIGHT_TRANSFORMS",
    "get_measure",
    "xfm_weights",
    # --- core ---
    "GroupBootstrap",
    "BootstrapResult",
    "global_statistic",
    "bootstrap_group",
    "bootstrap_global",
    # --- summary ---
    "BootstrapSummary",
    "summarize",
    # --- storage ---
    "save_bootstrap_result",
    "load_bootstrap_result",
    "export_summary",
]
