# -*- coding: utf-8 -*-
"""
graphboot.errors
==================================================

Exception hierarchy for the bootstrap engine.

Configuration and dependency errors are raised before any resampling
starts.  Replicate errors abort the enclosing group: the bootstrap
distribution is never patched with NaN and a failed replicate is never
redrawn, since either would bias the distribution.

Classes
-------
GraphBootError
    Base class.
ConfigurationError
    Invalid measure, transform, R, densities, confidence level, backend.
DependencyMissingError
    A graph/statistics collaborator cannot be imported.
ReplicateComputationError
    The statistic failed for one replicate (or for the observed data).
AggregationError
    Replicate matrices do not have the expected shape.
"""

from typing import Dict, Optional


class GraphBootError(Exception):
    """Base class for all graphboot errors."""


class ConfigurationError(GraphBootError, ValueError):
    """Invalid argument; raised before any computation."""


class DependencyMissingError(GraphBootError, ImportError):
    """A required collaborator package is not installed."""


class ReplicateComputationError(GraphBootError, RuntimeError):
    """
    The statistic could not be computed for one replicate.

    Parameters
    ----------
    message : str
    replicate : int, optional
        Replicate index (0-based).  None when the failure happened on the
        observed (unresampled) data or before the driver saw it.
    density : float, optional
        Density at which the graph measure failed.  None when the
        correlation/threshold builder itself failed.
    group : str, optional
        Set by the group orchestrator.
    completed : dict, optional
        GroupBootstrap objects of the groups that finished before the
        failing one.  Set by the group orchestrator.
    """

    def __init__(
        self,
        message: str,
        replicate: Optional[int] = None,
        density: Optional[float] = None,
        group: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.replicate = replicate
        self.density = density
        self.group = group
        self.completed: Optional[Dict] = None

    def __reduce__(self):
        # Keep attributes when crossing a process pool boundary
        return (
            self.__class__,
            (self.message, self.replicate, self.density, self.group),
        )

    def __str__(self):
        where = []
        if self.group is not None:
            where.append(f"group={self.group!r}")
        if self.replicate is not None:
            where.append(f"replicate={self.replicate}")
        if self.density is not None:
            where.append(f"density={self.density:g}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class AggregationError(GraphBootError, RuntimeError):
    """Replicate results violate the R × D shape invariant."""
