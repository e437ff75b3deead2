"""
Centrality vectors and the igraph-backed scoring functions that produce them.

A centrality function maps a graph to a CentralityVector defined over every
node of that graph, isolated nodes included. Perturbation removes edges only,
so vectors from any two levels of a cascade share one node set and can be
compared pair by pair.

Registered measures:
- degree
- betweenness (undirected, exact)
- eigenvector (0 on edgeless graphs)
- pagerank
- closeness (isolated nodes scored 0 instead of NaN)
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Sequence, Tuple

import igraph as ig
import numpy as np
import polars as pl

from centrality_robustness.errors import ConfigurationError
from centrality_robustness.networks.graph_build import node_labels

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CentralityVector:
    """
    Immutable node -> score mapping.

    Parameters
    ----------
    nodes : tuple of str
        Node identifiers, unique
    values : np.ndarray
        float64 scores, values[i] belongs to nodes[i]
    """
    nodes: Tuple[str, ...]
    values: np.ndarray

    def __post_init__(self):
        nodes = tuple(self.nodes)
        values = np.array(self.values, dtype=np.float64)
        if values.ndim != 1 or len(values) != len(nodes):
            raise ConfigurationError(
                f"CentralityVector needs one value per node: {len(nodes)} nodes, shape {values.shape}"
            )
        if len(set(nodes)) != len(nodes):
            raise ConfigurationError("CentralityVector node identifiers must be unique")
        values.setflags(write=False)
        object.__setattr__(self, "nodes", nodes)
        object.__setattr__(self, "values", values)

    @classmethod
    def from_graph(cls, g: ig.Graph, scores: Iterable[float]) -> "CentralityVector":
        """Attach per-vertex scores (in vertex index order) to the graph's node labels."""
        return cls(node_labels(g), np.asarray(list(scores), dtype=np.float64))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float]) -> "CentralityVector":
        return cls(tuple(mapping.keys()), np.fromiter(mapping.values(), dtype=np.float64))

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, node: str) -> float:
        return float(self.values[self.nodes.index(node)])

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.nodes, self.values.tolist()))

    def aligned_to(self, nodes: Sequence[str]) -> np.ndarray:
        """
        Values reordered to follow `nodes`.

        Raises ConfigurationError when `nodes` is not exactly this vector's node set.
        """
        if tuple(nodes) == self.nodes:
            return self.values
        if len(nodes) != len(self.nodes) or set(nodes) != set(self.nodes):
            only_self = sorted(set(self.nodes) - set(nodes))[:5]
            only_other = sorted(set(nodes) - set(self.nodes))[:5]
            raise ConfigurationError(
                "Node sets differ between compared vectors "
                f"(examples only here: {only_self}, only there: {only_other})"
            )
        index = {node: i for i, node in enumerate(self.nodes)}
        return self.values[[index[node] for node in nodes]]

    def scaled(self, factor: float) -> "CentralityVector":
        return CentralityVector(self.nodes, self.values * factor)

    def to_frame(self, value_col: str = "value") -> pl.DataFrame:
        return pl.DataFrame({"node": list(self.nodes), value_col: self.values})


CentralityFunction = Callable[[ig.Graph], CentralityVector]


def degree_centrality(g: ig.Graph) -> CentralityVector:
    return CentralityVector.from_graph(g, g.degree())


def betweenness_centrality(g: ig.Graph) -> CentralityVector:
    return CentralityVector.from_graph(g, g.betweenness(directed=False))


def eigenvector_centrality(g: ig.Graph) -> CentralityVector:
    """Eigenvector centrality scaled to max 1; an edgeless graph scores 0 everywhere."""
    if g.ecount() == 0:
        return CentralityVector.from_graph(g, np.zeros(g.vcount()))
    return CentralityVector.from_graph(g, g.eigenvector_centrality(scale=True))


def pagerank_centrality(g: ig.Graph) -> CentralityVector:
    return CentralityVector.from_graph(g, g.pagerank(directed=False))


def closeness_centrality(g: ig.Graph) -> CentralityVector:
    """Closeness within each node's component; isolated nodes get 0."""
    scores = np.asarray(g.closeness(), dtype=np.float64)
    return CentralityVector.from_graph(g, np.nan_to_num(scores, nan=0.0))


CENTRALITY_FUNCTIONS: Dict[str, CentralityFunction] = {
    "degree": degree_centrality,
    "betweenness": betweenness_centrality,
    "eigenvector": eigenvector_centrality,
    "pagerank": pagerank_centrality,
    "closeness": closeness_centrality,
}


def get_centrality_function(name: str) -> CentralityFunction:
    """
    Resolve a registered centrality function by name.

    Raises
    ------
    ConfigurationError
        If the name is not registered
    """
    try:
        return CENTRALITY_FUNCTIONS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown centrality '{name}'; choose one of {sorted(CENTRALITY_FUNCTIONS)}"
        ) from None
