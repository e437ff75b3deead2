#!/usr/bin/env python
"""
Script 02: Make robustness figures.

Reads the tables written by script 01 and produces report-ready figures.
Does NOT recompute any analyses.
Writes figures to results/figures/.

Usage:
    python scripts/02_make_figures.py
"""

import logging
import sys
from pathlib import Path

import polars as pl

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from centrality_robustness.utils.config import load_config
from centrality_robustness.utils.logging import setup_logging
from centrality_robustness.utils.manifests import create_run_manifest
from centrality_robustness.utils.paths import get_config_path, get_project_root
from centrality_robustness.viz.plotting import (
    plot_agreement_with_original,
    plot_correlation_heatmap,
)

SCRIPT_NAME = "02_make_figures"


def check_file_exists(path: Path, name: str, logger) -> bool:
    """Check if file exists and log warning if not."""
    if not path.exists():
        logger.warning(f"{name} not found: {path}")
        return False
    logger.info(f"Found {name}: {path}")
    return True


def main():
    """Main execution."""
    root = get_project_root()
    log_dir = root / "results" / "logs"
    tables_dir = root / "results" / "tables"
    figures_dir = root / "results" / "figures"
    log_dir.mkdir(parents=True, exist_ok=True)
    figures_dir.mkdir(parents=True, exist_ok=True)

    setup_logging(log_dir / f"{SCRIPT_NAME}.log")
    logger = logging.getLogger(__name__)

    logger.info("=" * 80)
    logger.info("Script 02: Make Figures")
    logger.info("=" * 80)

    config = load_config(get_config_path())
    centrality = config.get("robustness", {}).get("centrality", "")

    inputs = []
    outputs = []

    for statistic in ("tau_b", "gamma"):
        matrix_path = tables_dir / f"{statistic}_matrix.csv"
        if not check_file_exists(matrix_path, f"{statistic} matrix", logger):
            continue
        inputs.append(matrix_path)
        figure_path = figures_dir / f"fig_{statistic}_heatmap.png"
        plot_correlation_heatmap(
            pl.read_csv(matrix_path),
            figure_path,
            statistic=statistic,
            centrality=centrality,
        )
        outputs.append(figure_path)

    agreement_path = tables_dir / "agreement_with_original.csv"
    if check_file_exists(agreement_path, "agreement table", logger):
        inputs.append(agreement_path)
        figure_path = figures_dir / "fig_agreement_with_original.png"
        plot_agreement_with_original(pl.read_csv(agreement_path), figure_path, centrality=centrality)
        outputs.append(figure_path)

    if not outputs:
        logger.error("No tables found; run scripts/01_run_edge_loss_robustness.py first")
        sys.exit(1)

    manifest_path = log_dir / f"{SCRIPT_NAME}_manifest.json"
    create_run_manifest(
        script_name=SCRIPT_NAME,
        config={"centrality": centrality},
        input_files=inputs,
        output_files=outputs,
        manifest_path=manifest_path,
    )
    logger.info(f"Wrote {len(outputs)} figures; manifest: {manifest_path}")

    logger.info("=" * 80)
    logger.info("Script 02: Complete")
    logger.info("=" * 80)


if __name__ == "__main__":
    main()
