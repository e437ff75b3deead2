"""
Helper utilities for building and summarizing undirected igraph graphs.
"""
import logging
from typing import Any, Dict, List, Tuple

import igraph as ig
import polars as pl

logger = logging.getLogger(__name__)


def create_node_mapping(unique_ids: List[str]) -> Tuple[Dict[str, int], pl.DataFrame]:
    """
    Map string node labels to contiguous vertex ids (sorted label order).

    Args:
        unique_ids: Node labels, duplicates allowed

    Returns:
        Tuple of (label_to_id dict, DataFrame with columns vertex_id, name)
    """
    sorted_ids = sorted(set(unique_ids))
    id_to_int = {id_val: idx for idx, id_val in enumerate(sorted_ids)}

    mapping_df = pl.DataFrame({
        "vertex_id": list(range(len(sorted_ids))),
        "name": sorted_ids
    })

    return id_to_int, mapping_df


def build_undirected_graph(
    edges_df: pl.DataFrame,
    source_col: str = "source",
    target_col: str = "target",
    simplify: bool = True,
) -> ig.Graph:
    """
    Build an undirected, unweighted graph from an edge list.

    Args:
        edges_df: DataFrame with one row per edge
        source_col: Column name for one endpoint label
        target_col: Column name for the other endpoint label
        simplify: Drop self-loops and multi-edges (default: True)

    Returns:
        igraph Graph with vertex attribute 'name'
    """
    sources = [str(s) for s in edges_df[source_col].to_list()]
    targets = [str(t) for t in edges_df[target_col].to_list()]

    id_map, mapping_df = create_node_mapping(sources + targets)

    g = ig.Graph(n=len(id_map), directed=False)
    g.vs["name"] = mapping_df["name"].to_list()
    g.add_edges([(id_map[s], id_map[t]) for s, t in zip(sources, targets)])

    if simplify:
        n_before = g.ecount()
        g.simplify(multiple=True, loops=True)
        dropped = n_before - g.ecount()
        if dropped:
            logger.warning(f"Dropped {dropped} self-loops/multi-edges while simplifying")

    logger.info(f"Built graph: {g.vcount()} nodes, {g.ecount()} edges, directed=False")
    return g


def node_labels(g: ig.Graph) -> Tuple[str, ...]:
    """Node identifiers: the 'name' attribute if present, else vertex indices as strings."""
    if "name" in g.vs.attributes():
        return tuple(str(name) for name in g.vs["name"])
    return tuple(str(v) for v in range(g.vcount()))


def get_graph_summary(g: ig.Graph) -> Dict[str, Any]:
    """
    Summary statistics for an undirected graph.

    Args:
        g: igraph Graph

    Returns:
        Dictionary with node/edge counts, density, components and degree stats
    """
    n = g.vcount()
    summary: Dict[str, Any] = {
        "n_nodes": n,
        "n_edges": g.ecount(),
        "density": g.density() if n > 1 else 0.0,
    }

    components = g.connected_components()
    sizes = components.sizes()
    summary["n_components"] = len(components)
    summary["lcc_size"] = max(sizes) if sizes else 0

    degrees = g.degree()
    summary["mean_degree"] = sum(degrees) / n if n else 0.0
    summary["max_degree"] = max(degrees) if degrees else 0
    summary["n_isolated"] = sum(1 for d in degrees if d == 0)

    return summary
