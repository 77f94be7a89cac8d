# -*- coding: utf-8 -*-
"""
graphboot.storage
==================================================

Persistent storage for bootstrap results.

The engine itself never writes files; these helpers are for callers
who want to keep the replicate matrices or hand the summary table to
another tool.

HDF5 structure::

    boot_global.h5
    ├── metadata/            (attrs)
    │   ├── measure (str)
    │   ├── conf (float)
    │   ├── xfm_type (str)
    │   ├── seed (int)
    │   ├── groups (str array)
    │   └── software_version (str)
    ├── densities (D,)
    └── groups/
        └── <quoted group>/    (attrs: name, R, seed)
            ├── t0 (D,)
            └── t (R, D)

Group names are percent-encoded as HDF5 keys, so labels such as
"ctrl/young" stay one group instead of a nested path.

Functions
---------
save_bootstrap_result
    Save BootstrapResult to HDF5.
load_bootstrap_result
    Load BootstrapResult from HDF5.
export_summary
    Write the summary table as TSV with a JSON sidecar.
"""

import json
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import numpy as np

from .backends import require_dependencies
from .core import BootstrapResult, GroupBootstrap
from .summary import BootstrapSummary


# Package version
__version__ = "0.1.0"


# =============================================================================
# HDF5 I/O
# =============================================================================

def _group_key(name: str) -> str:
    """HDF5-safe key for a group label (no "/", never "." or "..")."""
    return quote(name, safe="").replace(".", "%2E")


def save_bootstrap_result(
    result: BootstrapResult,
    filepath: str,
    compression: str = "gzip",
    compression_opts: int = 4,
    metadata: Optional[Dict] = None,
) -> None:
    """
    Save BootstrapResult to HDF5.

    Parameters
    ----------
    result : BootstrapResult
    filepath : str
        Output HDF5 path.
    compression : str
        HDF5 compression filter.
    compression_opts : int
        Compression level (1-9 for gzip).
    metadata : dict, optional
        Additional scalar metadata (atlas name, study, etc.).
    """
    require_dependencies("h5py")
    import h5py

    with h5py.File(filepath, "w") as f:
        meta = f.create_group("metadata")
        meta.attrs["measure"] = result.measure
        meta.attrs["conf"] = result.conf
        meta.attrs["xfm_type"] = result.xfm_type
        if result.seed is not None:
            meta.attrs["seed"] = result.seed
        meta.attrs["groups"] = np.array(result.groups, dtype=h5py.string_dtype())
        meta.attrs["software_version"] = __version__

        if metadata:
            for k, v in metadata.items():
                if isinstance(v, (str, int, float, bool)):
                    meta.attrs[k] = v

        f.create_dataset("densities", data=result.densities)

        kw = dict(compression=compression, compression_opts=compression_opts)
        grp_root = f.create_group("groups")
        for name in result.groups:
            gb = result.boot[name]
            g = grp_root.create_group(_group_key(name))
            g.attrs["name"] = name
            g.attrs["R"] = gb.R
            if gb.seed is not None:
                # SeedSequence entropy can exceed 64 bits
                g.attrs["seed"] = str(gb.seed)
            g.create_dataset("t0", data=gb.t0)
            g.create_dataset("t", data=gb.t, **kw)


def load_bootstrap_result(filepath: str) -> BootstrapResult:
    """
    Load BootstrapResult from HDF5.

    Parameters
    ----------
    filepath : str

    Returns
    -------
    BootstrapResult
    """
    require_dependencies("h5py")
    import h5py

    with h5py.File(filepath, "r") as f:
        meta = f["metadata"]
        groups = [
            g.decode() if isinstance(g, bytes) else str(g)
            for g in meta.attrs["groups"]
        ]
        boot = {}
        for name in groups:
            g = f["groups"][_group_key(name)]
            boot[name] = GroupBootstrap(
                group=name,
                t0=g["t0"][:],
                t=g["t"][:],
                R=int(g.attrs["R"]),
                seed=int(g.attrs["seed"]) if "seed" in g.attrs else None,
            )

        return BootstrapResult(
            measure=str(meta.attrs["measure"]),
            densities=f["densities"][:],
            groups=groups,
            conf=float(meta.attrs["conf"]),
            boot=boot,
            xfm_type=str(meta.attrs["xfm_type"]),
            seed=int(meta.attrs["seed"]) if "seed" in meta.attrs else None,
        )


# =============================================================================
# TABULAR OUTPUT
# =============================================================================

def export_summary(
    summary: BootstrapSummary,
    output_dir: str,
    prefix: str = "boot",
) -> Dict[str, str]:
    """
    Export a summary table as TSV plus a JSON sidecar.

    Output structure::

        output_dir/
        ├── {prefix}_summary.tsv
        └── {prefix}_summary.json

    Returns
    -------
    dict mapping 'table' / 'sidecar' to output filepath.
    """
    out_path = Path(output_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    files = {}

    tsv_fpath = out_path / f"{prefix}_summary.tsv"
    summary.table.to_csv(tsv_fpath, sep="\t", index=False, float_format="%.6f")
    files["table"] = str(tsv_fpath)

    sidecar = {
        "measure": summary.meas_full,
        "n_bootstrap": summary.R,
        "conf": summary.conf,
        "ci_method": "normal approximation",
        "columns": list(summary.table.columns),
        "software": "graphboot",
        "software_version": __version__,
    }
    json_fpath = out_path / f"{prefix}_summary.json"
    with open(json_fpath, "w") as jf:
        json.dump(sidecar, jf, indent=2)
    files["sidecar"] = str(json_fpath)

    return files
