# -*- coding: utf-8 -*-
"""
graphboot.backends
==================================================

Tiered execution backend: serial → threads → processes.

Provides a single worker-pool interface so the resampling driver never
has to know how replicates are executed.  Replicates are independent
units of work; the pool hands back results in submission order, so a
replicate's row in the R × D matrix depends only on its index.

Usage
-----
>>> from graphboot.backends import WorkerPool
>>> with WorkerPool("thread", n_jobs=4) as pool:
...     out = pool.run(func, tasks)

The module also probes the optional collaborator packages so missing
dependencies are reported before any resampling starts.
"""

import logging
import os
import threading
from concurrent.futures import (
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from typing import Callable, Dict, List, Literal, Optional, Sequence

from .errors import ConfigurationError, DependencyMissingError

logger = logging.getLogger(__name__)


# ── Backend registry ──────────────────────────────────────────────────

BackendName = Literal["serial", "thread", "process"]

_EXECUTORS = {
    "serial": None,
    "thread": ThreadPoolExecutor,
    "process": ProcessPoolExecutor,
}

_AVAILABLE = {}


def _probe(module: str) -> bool:
    try:
        __import__(module)
        return True
    except ImportError:
        return False


def available_dependencies() -> dict:
    """Return dict of collaborator package → bool availability."""
    if not _AVAILABLE:
        for name in ("numpy", "scipy", "networkx", "pandas", "h5py"):
            _AVAILABLE[name] = _probe(name)
    return dict(_AVAILABLE)


def require_dependencies(*names: str) -> None:
    """
    Raise DependencyMissingError unless every package is importable.

    Parameters
    ----------
    *names : str
        Import names, e.g. 'networkx', 'h5py'.
    """
    avail = available_dependencies()
    missing = [n for n in names if not avail.get(n, _probe(n))]
    if missing:
        raise DependencyMissingError(
            f"Must install {', '.join(repr(m) for m in missing)}."
        )


def default_n_jobs() -> int:
    return os.cpu_count() or 1


# ── Progress reporting ────────────────────────────────────────────────

class ProgressCounter:
    """
    Thread-safe completion counter with an optional observer.

    The observer is called as ``observer(done, total)`` after every
    increment.  It is advisory only: if it raises, the error is logged
    and the observer is detached; counting continues.

    Usage
    -----
    >>> counter = ProgressCounter(total=1000, observer=print_progress)
    >>> counter.increment()
    1
    """

    def __init__(self, total: int, observer: Optional[Callable] = None):
        self.total = total
        self.observer = observer
        self._done = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._done += 1
            done = self._done
        observer = self.observer
        if observer is not None:
            try:
                observer(done, self.total)
            except Exception as err:
                logger.warning("Progress observer failed, detaching: %s", err)
                self.observer = None
        return done

    @property
    def count(self) -> int:
        with self._lock:
            return self._done


def print_progress(done: int, total: int) -> None:
    """Print ``done/total`` roughly every tenth of the run."""
    if done % max(1, total // 10) == 0 or done == total:
        print(f"    {done}/{total} ({done / total * 100:.0f}%)")


# ── Worker pool ───────────────────────────────────────────────────────

class WorkerPool:
    """
    Fixed-size pool executing independent units of work.

    Parameters
    ----------
    backend : {'serial', 'thread', 'process'}
        'serial' runs in the calling thread (debugging, tiny R).
        'thread' suits statistics that release the GIL.
        'process' needs picklable work functions and arguments.
    n_jobs : int, optional
        Pool size.  Default: number of CPUs.

    The pool can be entered once and reused for several ``run`` calls,
    which is how the group orchestrator bounds peak concurrency.
    """

    def __init__(self, backend: BackendName = "thread", n_jobs: Optional[int] = None):
        if backend not in _EXECUTORS:
            raise ConfigurationError(
                f"Unknown backend '{backend}'. Choose from {list(_EXECUTORS)}"
            )
        if n_jobs is not None and n_jobs < 1:
            raise ConfigurationError(f"n_jobs must be >= 1, got {n_jobs}")
        self.backend = backend
        self.n_jobs = n_jobs or default_n_jobs()
        self._executor = None

    def __enter__(self):
        executor_cls = _EXECUTORS[self.backend]
        if executor_cls is not None and self.n_jobs > 1:
            self._executor = executor_cls(max_workers=self.n_jobs)
            logger.debug("Started %s pool with %d workers", self.backend, self.n_jobs)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def run(
        self,
        func: Callable,
        tasks: Sequence,
        progress: Optional[ProgressCounter] = None,
    ) -> List:
        """
        Apply ``func`` to every task; return results in task order.

        The first failing task stops the run: pending tasks are cancelled
        and the exception propagates.  No partial list is returned.
        """
        results: List = [None] * len(tasks)

        if self._executor is None:
            for i, task in enumerate(tasks):
                results[i] = func(task)
                if progress is not None:
                    progress.increment()
            return results

        futures: Dict = {
            self._executor.submit(func, task): i for i, task in enumerate(tasks)
        }
        try:
            for fut in as_completed(futures):
                results[futures[fut]] = fut.result()
                if progress is not None:
                    progress.increment()
        except Exception:
            for fut in futures:
                fut.cancel()
            raise
        return results
