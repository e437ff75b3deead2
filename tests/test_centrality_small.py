"""
Test centrality functions and CentralityVector on small toy graphs.
"""
import sys
from pathlib import Path

import igraph as ig
import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from centrality_robustness.analysis.centrality import (
    CENTRALITY_FUNCTIONS,
    CentralityVector,
    betweenness_centrality,
    closeness_centrality,
    degree_centrality,
    eigenvector_centrality,
    get_centrality_function,
)
from centrality_robustness.errors import ConfigurationError
from fixtures.generate_toy_graph import make_star_graph, make_two_cliques


class TestCentralityFunctions:
    def test_star_degree(self):
        vec = degree_centrality(make_star_graph(5))

        assert vec.nodes == ("hub", "leaf0", "leaf1", "leaf2", "leaf3", "leaf4")
        assert vec.values.tolist() == [5.0, 1.0, 1.0, 1.0, 1.0, 1.0]

    def test_star_betweenness(self):
        """Hub lies on all C(5, 2) = 10 leaf-to-leaf shortest paths."""
        vec = betweenness_centrality(make_star_graph(5))

        assert vec["hub"] == 10.0
        assert vec["leaf0"] == 0.0

    def test_bridge_nodes_have_top_betweenness(self):
        vec = betweenness_centrality(make_two_cliques(5))
        top_two = sorted(vec.as_dict(), key=vec.as_dict().get, reverse=True)[:2]

        assert set(top_two) == {"c4", "c5"}

    def test_unlabelled_graph_uses_vertex_indices(self):
        g = ig.Graph(n=3, edges=[(0, 1)])
        vec = degree_centrality(g)

        assert vec.nodes == ("0", "1", "2")

    @pytest.mark.parametrize("name", sorted(CENTRALITY_FUNCTIONS))
    def test_every_node_scored_with_isolates(self, name):
        """Isolated nodes after edge loss still receive a finite score."""
        g = make_star_graph(4)
        g.delete_edges([0, 1])
        vec = get_centrality_function(name)(g)

        assert len(vec) == g.vcount()
        assert np.all(np.isfinite(vec.values))

    @pytest.mark.parametrize("name", sorted(CENTRALITY_FUNCTIONS))
    def test_edgeless_graph(self, name):
        g = ig.Graph(n=4)
        g.vs["name"] = list("abcd")
        vec = get_centrality_function(name)(g)

        assert vec.nodes == ("a", "b", "c", "d")
        assert np.all(np.isfinite(vec.values))

    def test_star_eigenvector(self):
        vec = eigenvector_centrality(make_star_graph(5))

        assert vec["hub"] == pytest.approx(1.0)
        assert all(vec[f"leaf{i}"] < vec["hub"] for i in range(5))

    def test_eigenvector_edgeless_is_zero(self):
        vec = eigenvector_centrality(ig.Graph(n=3))
        assert vec.values.tolist() == [0.0, 0.0, 0.0]

    def test_closeness_isolated_is_zero(self):
        g = ig.Graph(n=3, edges=[(0, 1)])
        vec = closeness_centrality(g)

        assert vec["2"] == 0.0
        assert vec["0"] > 0.0

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError):
            get_centrality_function("katz")


class TestCentralityVector:
    def test_immutable_values(self):
        vec = CentralityVector(("a", "b"), [1.0, 2.0])
        with pytest.raises(ValueError):
            vec.values[0] = 5.0

    def test_length_mismatch(self):
        with pytest.raises(ConfigurationError):
            CentralityVector(("a", "b"), [1.0])

    def test_duplicate_nodes(self):
        with pytest.raises(ConfigurationError):
            CentralityVector(("a", "a"), [1.0, 2.0])

    def test_aligned_to(self):
        vec = CentralityVector.from_mapping({"a": 1.0, "b": 2.0, "c": 3.0})

        assert vec.aligned_to(("c", "a", "b")).tolist() == [3.0, 1.0, 2.0]

    def test_aligned_to_mismatch(self):
        vec = CentralityVector(("a", "b"), [1.0, 2.0])
        with pytest.raises(ConfigurationError):
            vec.aligned_to(("a", "c"))

    def test_to_frame(self):
        df = CentralityVector(("a", "b"), [1.0, 2.0]).to_frame("betweenness")

        assert df.columns == ["node", "betweenness"]
        assert df["node"].to_list() == ["a", "b"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
