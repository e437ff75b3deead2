"""
End-to-end smoke test: edge list -> graph -> robustness matrices -> outputs -> figures.
"""
import json
import math
import sys
from dataclasses import replace
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import igraph as ig
import numpy as np
import polars as pl
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from centrality_robustness.analysis.centrality import degree_centrality, get_centrality_function
from centrality_robustness.analysis.robustness import (
    ORIGINAL_LABEL,
    level_vectors_frame,
    order_comparison_vectors,
    run_robustness_estimation,
    write_robustness_outputs,
)
from centrality_robustness.errors import ConfigurationError
from centrality_robustness.io.load_edges import load_edge_list
from centrality_robustness.networks.graph_build import build_undirected_graph
from centrality_robustness.utils.config import RobustnessConfig
from centrality_robustness.utils.manifests import create_run_manifest
from centrality_robustness.viz.plotting import (
    plot_agreement_with_original,
    plot_correlation_heatmap,
)
from fixtures.generate_toy_graph import make_ring_lattice, make_two_cliques


@pytest.fixture
def small_config():
    return RobustnessConfig(
        perturbation_fraction=0.1,
        cascade_depth=3,
        trial_count=8,
        centrality="betweenness",
        random_seed=123,
    )


@pytest.fixture
def result(small_config):
    g = make_two_cliques(6)
    return run_robustness_estimation(g, get_centrality_function("betweenness"), small_config)


class TestRunRobustnessEstimation:
    def test_labels_perturbed_first_original_last(self, result):
        assert result.labels == ("level_1", "level_2", "level_3", ORIGINAL_LABEL)

    def test_most_perturbed_first(self, small_config):
        cfg = replace(small_config, most_perturbed_first=True)
        res = run_robustness_estimation(make_two_cliques(6), degree_centrality, cfg)

        assert res.labels == ("level_3", "level_2", "level_1", ORIGINAL_LABEL)

    def test_matrices_well_formed(self, result):
        for m in (result.tau_b, result.gamma):
            assert m.values.shape == (4, 4)
            assert np.allclose(m.values, m.values.T, equal_nan=True)
            assert np.all(np.diag(m.values) == 1.0)
            finite = m.values[np.isfinite(m.values)]
            assert np.all((finite >= -1.0) & (finite <= 1.0))

    def test_gamma_at_least_tau_in_magnitude(self, result):
        """Gamma drops tied pairs from its denominator, so |gamma| >= |tau-b|."""
        tau = result.tau_b.values
        gamma = result.gamma.values
        mask = np.isfinite(tau) & np.isfinite(gamma)
        assert np.all(np.abs(gamma[mask]) >= np.abs(tau[mask]) - 1e-12)

    def test_zero_loss_gives_perfect_agreement(self, small_config):
        cfg = replace(small_config, perturbation_fraction=0.0)
        res = run_robustness_estimation(make_ring_lattice(20, 3), get_centrality_function("closeness"), cfg)

        # Every closeness score in a ring lattice is equal: all-tied, undefined
        assert all(math.isnan(v) for v in res.tau_b.values.ravel())

        res = run_robustness_estimation(make_two_cliques(6), degree_centrality, cfg)
        assert np.all(res.tau_b.values == 1.0)

    def test_eigenvector_on_connected_graph(self, small_config):
        g = ig.Graph.Famous("Zachary")
        cfg = replace(small_config, centrality="eigenvector", trial_count=3)
        res = run_robustness_estimation(g, get_centrality_function("eigenvector"), cfg)

        assert res.tau_b.values.shape == (4, 4)
        assert res.tau_b[ORIGINAL_LABEL, ORIGINAL_LABEL] == 1.0
        assert np.isclose(res.aggregation.original.values.max(), 1.0)

    def test_raw_sums_give_same_statistics(self, small_config):
        """Means and sums differ by one common factor, so ranks are unchanged."""
        g = make_two_cliques(6)
        fn = get_centrality_function("betweenness")
        mean_res = run_robustness_estimation(g, fn, small_config)
        sum_res = run_robustness_estimation(g, fn, replace(small_config, average_trials=False))

        assert np.allclose(mean_res.tau_b.values, sum_res.tau_b.values, equal_nan=True)
        assert np.allclose(mean_res.gamma.values, sum_res.gamma.values, equal_nan=True)

    def test_invalid_config_before_any_trial(self, small_config):
        calls = []

        def counting_fn(g):
            calls.append(1)
            return degree_centrality(g)

        with pytest.raises(ConfigurationError):
            run_robustness_estimation(
                make_two_cliques(4), counting_fn, replace(small_config, trial_count=0)
            )
        assert calls == []

    def test_agreement_with_original(self, result):
        df = result.agreement_with_original()

        assert df.columns == ["level", "tau_b", "gamma"]
        assert df["level"].to_list() == ["level_1", "level_2", "level_3"]

    def test_order_comparison_vectors(self, result):
        ordered = order_comparison_vectors(result.aggregation, average=True)

        assert [label for label, _ in ordered] == list(result.labels)
        assert ordered[-1][1] is result.aggregation.original


class TestOutputs:
    def test_write_outputs_and_figures(self, result, tmp_path):
        paths = write_robustness_outputs(result, tmp_path)

        assert set(paths) == {
            "level_centrality", "tau_b_matrix", "gamma_matrix",
            "agreement_with_original", "summary",
        }

        tau_df = pl.read_csv(paths["tau_b_matrix"])
        assert tau_df["level"].to_list() == list(result.labels)

        levels_df = pl.read_parquet(paths["level_centrality"])
        assert len(levels_df) == 4 * 12
        assert levels_df.filter(pl.col("level") == ORIGINAL_LABEL)["sum"].null_count() == 12

        with open(paths["summary"]) as f:
            summary = json.load(f)
        assert summary["labels"] == list(result.labels)
        assert summary["trials"] == 8

        figures = tmp_path / "figures"
        figures.mkdir()
        plot_correlation_heatmap(tau_df, figures / "tau.png", statistic="tau_b", centrality="betweenness")
        plot_agreement_with_original(
            pl.read_csv(paths["agreement_with_original"]), figures / "agreement.png"
        )
        assert (figures / "tau.png").exists()
        assert (figures / "agreement.png").exists()

    def test_existing_files_skipped_without_overwrite(self, result, tmp_path):
        write_robustness_outputs(result, tmp_path)
        again = write_robustness_outputs(result, tmp_path, overwrite=False)
        forced = write_robustness_outputs(result, tmp_path, overwrite=True)

        assert again == {}
        assert len(forced) == 5

    def test_level_vectors_frame(self, result):
        df = level_vectors_frame(result)

        assert df.columns == ["node", "level", "value", "sum", "trials"]
        level_1 = df.filter(pl.col("level") == "level_1")
        assert np.allclose(level_1["sum"].to_numpy(), level_1["value"].to_numpy() * 8)

    def test_heatmap_with_degenerate_cells(self, tmp_path):
        df = pl.DataFrame({
            "level": ["level_1", "original"],
            "level_1": [float("nan"), float("nan")],
            "original": [float("nan"), 1.0],
        })
        out = tmp_path / "heatmap.png"
        plot_correlation_heatmap(df, out)

        assert out.exists()


def test_edge_list_to_matrices(tmp_path, small_config):
    """CSV edge list through to matrices, with a run manifest."""
    path = tmp_path / "edges.csv"
    g_ref = make_ring_lattice(24, 2)
    names = g_ref.vs["name"]
    pl.DataFrame({
        "source": [names[u] for u, _ in g_ref.get_edgelist()],
        "target": [names[v] for _, v in g_ref.get_edgelist()],
    }).write_csv(path)

    g = build_undirected_graph(load_edge_list(path))
    res = run_robustness_estimation(g, degree_centrality, small_config)
    paths = write_robustness_outputs(res, tmp_path / "results")

    manifest = create_run_manifest(
        script_name="smoke",
        config=small_config.to_dict(),
        input_files=[path],
        output_files=[Path(p) for p in paths.values()],
        manifest_path=tmp_path / "manifest.json",
    )

    assert g.vcount() == 24
    assert g.ecount() == 48
    assert len(manifest["inputs"]) == 1
    assert len(manifest["outputs"]) == 5
    assert (tmp_path / "manifest.json").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
