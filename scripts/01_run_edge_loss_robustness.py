#!/usr/bin/env python
"""
Script 01: Centrality robustness under random edge loss.

Loads the edge list named in config/config.yaml, builds an undirected graph,
runs the perturbation cascades and writes tau-b / gamma agreement matrices
under results/analysis and results/tables.
Writes run manifest JSON.

Usage:
    python scripts/01_run_edge_loss_robustness.py
    python scripts/01_run_edge_loss_robustness.py --centrality eigenvector
    python scripts/01_run_edge_loss_robustness.py --demo
"""

import argparse
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path

import igraph as ig

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from centrality_robustness.analysis.centrality import get_centrality_function
from centrality_robustness.analysis.robustness import (
    run_robustness_estimation,
    write_robustness_outputs,
)
from centrality_robustness.errors import ConfigurationError, TrialTimeoutError
from centrality_robustness.io.load_edges import load_edges_from_config
from centrality_robustness.networks.graph_build import build_undirected_graph, get_graph_summary
from centrality_robustness.utils.config import RobustnessConfig, load_config
from centrality_robustness.utils.logging import setup_logging
from centrality_robustness.utils.manifests import create_run_manifest
from centrality_robustness.utils.paths import get_config_path, get_project_root

SCRIPT_NAME = "01_run_edge_loss_robustness"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument("--centrality", default=None, help="Override robustness.centrality")
    parser.add_argument("--demo", action="store_true", help="Run on a synthetic Barabasi-Albert graph")
    return parser.parse_args()


def build_demo_graph(n: int = 300, m: int = 2, seed: int = 42) -> ig.Graph:
    """Scale-free toy graph with string node labels, reproducible for a given seed."""
    ig.set_random_number_generator(random.Random(seed))
    try:
        g = ig.Graph.Barabasi(n, m, directed=False)
    finally:
        ig.set_random_number_generator(random)
    g.vs["name"] = [f"n{i}" for i in range(n)]
    return g


def main():
    """Main execution."""
    args = parse_args()

    root = get_project_root()
    log_dir = root / "results" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    setup_logging(log_dir / f"{SCRIPT_NAME}.log")
    logger = logging.getLogger(__name__)

    logger.info("=" * 80)
    logger.info("Script 01: Centrality Robustness Under Edge Loss")
    logger.info("=" * 80)

    config_path = args.config or get_config_path()
    config = load_config(config_path)

    try:
        rob_cfg = RobustnessConfig.from_config(config)
        if args.centrality:
            rob_cfg = replace(rob_cfg, centrality=args.centrality).validate()
        centrality_fn = get_centrality_function(rob_cfg.centrality)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    input_files = []
    if args.demo:
        logger.info("Running DEMO on a synthetic Barabasi-Albert graph")
        g = build_demo_graph(seed=rob_cfg.random_seed)
    else:
        input_config = config.get("input", {})
        edge_path = Path(input_config.get("edge_list", ""))
        if not edge_path.is_absolute():
            edge_path = root / edge_path
        if not edge_path.is_file():
            logger.error(f"Edge list not found: {edge_path}")
            logger.error("Set input.edge_list in config/config.yaml or use --demo")
            sys.exit(1)
        input_files.append(edge_path)

        try:
            edges_df = load_edges_from_config(config, root)
        except ConfigurationError as e:
            logger.error(f"Could not load edge list: {e}")
            sys.exit(1)
        g = build_undirected_graph(
            edges_df,
            source_col=input_config.get("source_col", "source"),
            target_col=input_config.get("target_col", "target"),
            simplify=input_config.get("simplify", True),
        )

    graph_summary = get_graph_summary(g)
    logger.info(f"Graph summary: {graph_summary}")

    logger.info(f"Running robustness estimation with {rob_cfg.centrality} centrality...")
    try:
        result = run_robustness_estimation(g, centrality_fn, rob_cfg)
    except (ConfigurationError, TrialTimeoutError) as e:
        logger.error(f"Robustness estimation aborted: {e}")
        sys.exit(1)

    logger.info("Writing outputs...")
    overwrite = config.get("outputs", {}).get("overwrite", False)
    output_paths = write_robustness_outputs(result, root / "results", overwrite=overwrite)
    logger.info(f"Wrote {len(output_paths)} output files")

    manifest_path = log_dir / f"{SCRIPT_NAME}_manifest.json"
    create_run_manifest(
        script_name=SCRIPT_NAME,
        config={"seed": config.get("seed"), "robustness": rob_cfg.to_dict(), "demo": args.demo},
        input_files=input_files,
        output_files=[Path(p) for p in output_paths.values()],
        metadata={
            "graph_summary": graph_summary,
            "labels": list(result.labels),
            "elapsed_seconds": result.aggregation.elapsed_seconds,
            "agreement_with_original": result.agreement_with_original().to_dicts(),
        },
        manifest_path=manifest_path,
    )
    logger.info(f"Wrote manifest: {manifest_path}")

    logger.info("=" * 80)
    logger.info("Script 01: Complete")
    logger.info("=" * 80)


if __name__ == "__main__":
    main()
