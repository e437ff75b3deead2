"""
Random edge-loss perturbation of undirected graphs.

perturb() removes floor(|E| * fraction) edges sampled uniformly without
replacement; cascade() applies it repeatedly, each step thinning the previous
step's output. Inputs are never modified: every level is a fresh copy with
the same vertex set (and vertex attributes) as the original.
"""

import logging
import math
from typing import List, Optional

import igraph as ig
import numpy as np

from centrality_robustness.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _check_fraction(fraction: float) -> None:
    if not 0.0 <= fraction <= 1.0:
        raise ConfigurationError(f"Perturbation fraction must be in [0, 1], got {fraction}")


def n_edges_to_remove(n_edges: int, fraction: float) -> int:
    """Number of edges one perturbation step deletes: floor(n_edges * fraction)."""
    _check_fraction(fraction)
    return int(math.floor(n_edges * fraction))


def perturb(
    g: ig.Graph,
    fraction: float,
    rng: Optional[np.random.Generator] = None,
) -> ig.Graph:
    """
    Remove a random fraction of the current edges.

    Parameters
    ----------
    g : ig.Graph
        Undirected graph; left untouched
    fraction : float
        Share of edges to delete, in [0, 1]
    rng : np.random.Generator, optional
        Random source; a fresh unseeded Generator if omitted

    Returns
    -------
    ig.Graph
        Copy of g with the same vertices and |E| - floor(|E| * fraction) edges
    """
    k = n_edges_to_remove(g.ecount(), fraction)
    h = g.copy()
    if k == 0:
        return h

    if rng is None:
        rng = np.random.default_rng()

    doomed = rng.choice(g.ecount(), size=k, replace=False)
    h.delete_edges(sorted(int(e) for e in doomed))
    return h


def cascade(
    g: ig.Graph,
    fraction: float,
    levels: int,
    rng: Optional[np.random.Generator] = None,
) -> List[ig.Graph]:
    """
    Build one cascade (G0 = g, G1, ..., G_levels) of cumulative edge loss.

    Level i removes `fraction` of level i-1's edges, so after i steps roughly
    (1 - fraction)**i of the original edges survive.

    Parameters
    ----------
    g : ig.Graph
        Seed graph (level 0, returned as-is)
    fraction : float
        Share of the current edges removed per step, in [0, 1]
    levels : int
        Number of perturbed levels beyond g, >= 0
    rng : np.random.Generator, optional
        Random source shared by all steps of this cascade

    Returns
    -------
    list of ig.Graph
        levels + 1 graphs with non-increasing edge counts
    """
    _check_fraction(fraction)
    if levels < 0:
        raise ConfigurationError(f"Cascade depth must be >= 0, got {levels}")

    if rng is None:
        rng = np.random.default_rng()

    graphs = [g]
    for _ in range(levels):
        graphs.append(perturb(graphs[-1], fraction, rng))

    logger.debug(f"Cascade edge counts: {[h.ecount() for h in graphs]}")
    return graphs
