# -*- coding: utf-8 -*-
"""
graphboot.measures
==================================================

Global graph measures and edge-weight transforms.

Each measure is registered under one canonical name and reduces a whole
graph to a single scalar.  Measures are grouped following Rubinov &
Sporns (2010):

  - **Segregation**: modularity, clustering coefficient
  - **Integration**: global efficiency, characteristic path length
  - **Resilience / strength**: degree assortativity, mean strength

Weighted measures are computed on graphs whose edge weights are the
correlation values.  Path-based weighted measures need weights that
behave like lengths, so the weights are first passed through one of the
transforms in ``WEIGHT_TRANSFORMS`` (default: reciprocal; stronger
correlation → shorter path).

Functions
---------
get_measure
    Look up a registered measure (canonical name or brainGraph alias).
xfm_weights
    Transform edge weights of a graph into a 'distance' attribute.
graphs_from_corrs
    Build one networkx graph per density.

References
----------
- Rubinov & Sporns (2010). NeuroImage 52:1059-1069.
- Latora & Marchiori (2001). Phys Rev Lett 87:198701.
- Blondel et al. (2008). J Stat Mech P10008. Louvain.
- Newman (2002). Phys Rev Lett 89:208701. Assortativity.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

try:
    import networkx as nx
    HAS_NETWORKX = True
except ImportError:
    nx = None
    HAS_NETWORKX = False

from .errors import ConfigurationError, DependencyMissingError


# =============================================================================
# WEIGHT TRANSFORMS
# =============================================================================

WEIGHT_TRANSFORMS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "1/w": lambda w: 1.0 / w,
    "-log(w)": lambda w: -np.log(w),
    "1-w": lambda w: 1.0 - w,
    "-log10(w/max(w))": lambda w: -np.log10(w / w.max()),
    "-log10(w/max(w)+1)": lambda w: -np.log10(w / (w.max() + 1)),
}


def get_weight_transform(xfm_type: str) -> Callable[[np.ndarray], np.ndarray]:
    """Return the transform function registered as ``xfm_type``."""
    try:
        return WEIGHT_TRANSFORMS[xfm_type]
    except KeyError:
        raise ConfigurationError(
            f"Unknown weight transform '{xfm_type}'. "
            f"Choose from {list(WEIGHT_TRANSFORMS)}"
        ) from None


def xfm_weights(g, xfm_type: str = "1/w", attr: str = "distance"):
    """
    Store transformed edge weights in the edge attribute ``attr``.

    The ``weight`` attribute is left untouched.  Transforms that use
    max(w) see all edge weights of the graph at once.

    Parameters
    ----------
    g : nx.Graph
        Weighted graph.
    xfm_type : str
        Key of ``WEIGHT_TRANSFORMS``.
    attr : str

    Returns
    -------
    nx.Graph
        The same graph, modified in place.
    """
    xfm = get_weight_transform(xfm_type)
    edges = list(g.edges(data="weight", default=1.0))
    if not edges:
        return g
    w = np.array([e[2] for e in edges], dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        dist = xfm(w)
    nx.set_edge_attributes(
        g, {(u, v): float(d) for (u, v, _), d in zip(edges, dist)}, attr
    )
    return g


# =============================================================================
# GRAPH CONSTRUCTION
# =============================================================================

def graphs_from_corrs(corrs, weighted: bool = False) -> List:
    """
    Build one undirected graph per density.

    Parameters
    ----------
    corrs : CorrelationMatrices
        Needs ``R`` (N, N) and ``r_thresh`` (N, N, D).
    weighted : bool
        If True, edges carry the correlation as 'weight'.

    Returns
    -------
    list of nx.Graph
    """
    if not HAS_NETWORKX:
        raise DependencyMissingError("Must install 'networkx'.")
    graphs = []
    for k in range(corrs.r_thresh.shape[2]):
        mask = corrs.r_thresh[:, :, k]
        if weighted:
            adj = np.where(mask, corrs.R, 0.0)
        else:
            adj = mask.astype(float)
        np.fill_diagonal(adj, 0)
        graphs.append(nx.from_numpy_array(adj))
    return graphs


# =============================================================================
# REDUCERS
# =============================================================================

def _max_modularity(g, weight: Optional[str] = None, seed: Optional[int] = None) -> float:
    """Louvain modularity; maximum over all levels of the dendrogram."""
    if g.number_of_edges() == 0:
        raise ValueError("Graph has no edges; community detection undefined")
    levels = nx.community.louvain_partitions(g, weight=weight, seed=seed)
    return max(
        nx.community.modularity(g, part, weight=weight) for part in levels
    )


def _modularity(g, seed=None, **kwargs) -> float:
    return _max_modularity(g, weight=None, seed=seed)


def _modularity_wt(g, seed=None, **kwargs) -> float:
    return _max_modularity(g, weight="weight", seed=seed)


def _global_efficiency(g, **kwargs) -> float:
    return nx.global_efficiency(g)


def _global_efficiency_wt(g, xfm_type: str = "1/w", **kwargs) -> float:
    """
    Mean inverse shortest-path length with transformed weights as lengths.

    Pairs at distance 0 (the strongest edge under '-log10(w/max(w))',
    or w = 1 under '1-w') have no finite inverse and are left out of
    the sum, like unreachable pairs.
    """
    n = g.number_of_nodes()
    if n < 2:
        return 0.0
    xfm_weights(g, xfm_type, attr="distance")
    dist = np.array([d for _, _, d in g.edges(data="distance")], dtype=float)
    if np.any(~np.isfinite(dist)) or np.any(dist < 0):
        raise ValueError(
            f"Transform '{xfm_type}' produced negative or undefined edge lengths"
        )
    total = 0.0
    for u, lengths in nx.all_pairs_dijkstra_path_length(g, weight="distance"):
        total += sum(1.0 / d for v, d in lengths.items() if v != u and d > 0)
    return total / (n * (n - 1))


def _clustering_coefficient(g, **kwargs) -> float:
    """Local clustering averaged over nodes with degree ≥ 2."""
    cc = nx.clustering(g)
    vals = [cc[v] for v in g if g.degree(v) >= 2]
    if not vals:
        raise ValueError("No node with degree >= 2; clustering undefined")
    return float(np.mean(vals))


def _mean_shortest_path(g, **kwargs) -> float:
    """Mean shortest-path length over reachable pairs; unreachable pairs ignored."""
    total, n_pairs = 0, 0
    for u, lengths in nx.all_pairs_shortest_path_length(g):
        for v, d in lengths.items():
            if v != u:
                total += d
                n_pairs += 1
    if n_pairs == 0:
        raise ValueError("No connected pair of nodes; path length undefined")
    return total / n_pairs


def _degree_assortativity(g, **kwargs) -> float:
    if g.number_of_edges() == 0:
        raise ValueError("Graph has no edges; assortativity undefined")
    return nx.degree_assortativity_coefficient(g)


def _mean_strength(g, **kwargs) -> float:
    return float(np.mean([s for _, s in g.degree(weight="weight")]))


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class GraphMeasure:
    """
    A registered global measure.

    Parameters
    ----------
    name : str
        Canonical name.
    full_name : str
        Label used in summaries.
    func : callable
        ``func(g, seed=..., xfm_type=...) -> float``.
    weighted : bool
        Graph edges carry correlation weights.
    alias : str
        brainGraph short name.
    """

    name: str
    full_name: str
    func: Callable
    weighted: bool
    alias: str

    def __call__(self, g, seed: Optional[int] = None, xfm_type: str = "1/w") -> float:
        return float(self.func(g, seed=seed, xfm_type=xfm_type))


MEASURES: Dict[str, GraphMeasure] = {
    m.name: m
    for m in (
        GraphMeasure("modularity", "Modularity", _modularity, False, "mod"),
        GraphMeasure("modularity-weighted", "Modularity (weighted)",
                     _modularity_wt, True, "mod.wt"),
        GraphMeasure("global-efficiency", "Global efficiency",
                     _global_efficiency, False, "E.global"),
        GraphMeasure("global-efficiency-weighted", "Global efficiency (weighted)",
                     _global_efficiency_wt, True, "E.global.wt"),
        GraphMeasure("clustering-coefficient", "Clustering coefficient",
                     _clustering_coefficient, False, "Cp"),
        GraphMeasure("mean-shortest-path", "Average shortest path length",
                     _mean_shortest_path, False, "Lp"),
        GraphMeasure("degree-assortativity", "Degree assortativity",
                     _degree_assortativity, False, "assortativity"),
        GraphMeasure("mean-strength", "Average strength",
                     _mean_strength, True, "strength"),
    )
}

_ALIASES = {m.alias: m.name for m in MEASURES.values()}


def resolve_measure(measure: str) -> str:
    """Canonical name for ``measure`` (accepts brainGraph aliases)."""
    if measure in MEASURES:
        return measure
    if measure in _ALIASES:
        return _ALIASES[measure]
    raise ConfigurationError(
        f"Unsupported measure '{measure}'. Choose from {list(MEASURES)}"
    )


def get_measure(measure: str) -> GraphMeasure:
    return MEASURES[resolve_measure(measure)]
