"""
Centrality robustness estimation under random edge loss.

This module ties the pipeline together:
- validate the run configuration (fail fast, before any trial)
- aggregate centrality over independent perturbation cascades
- order and label the comparison vectors (perturbed levels, then original)
- build tau-b and gamma agreement matrices
- write tables and summaries for reporting
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

import igraph as ig
import polars as pl

from centrality_robustness.analysis.aggregation import AggregationResult, aggregate
from centrality_robustness.analysis.centrality import CentralityFunction, CentralityVector
from centrality_robustness.analysis.correlation_matrix import (
    CorrelationMatrix,
    build_correlation_matrices,
)
from centrality_robustness.utils.config import RobustnessConfig
from centrality_robustness.utils.manifests import save_json

logger = logging.getLogger(__name__)

ORIGINAL_LABEL = "original"


def level_label(level: int) -> str:
    return f"level_{level}"


@dataclass(frozen=True, eq=False)
class RobustnessResult:
    config: RobustnessConfig
    labels: Tuple[str, ...]
    vectors: Dict[str, CentralityVector]
    aggregation: AggregationResult
    tau_b: CorrelationMatrix
    gamma: CorrelationMatrix

    def agreement_with_original(self) -> pl.DataFrame:
        """tau-b and gamma of each perturbed level against the unperturbed graph."""
        rows = [
            {
                "level": label,
                "tau_b": self.tau_b[label, ORIGINAL_LABEL],
                "gamma": self.gamma[label, ORIGINAL_LABEL],
            }
            for label in self.labels
            if label != ORIGINAL_LABEL
        ]
        return pl.DataFrame(
            rows, schema={"level": pl.Utf8, "tau_b": pl.Float64, "gamma": pl.Float64}
        )


def order_comparison_vectors(
    aggregation: AggregationResult,
    average: bool = True,
    most_perturbed_first: bool = False,
) -> List[Tuple[str, CentralityVector]]:
    """
    Labelled comparison vectors: perturbed levels first, original last.

    Every level is converted the same way (all means or all sums), so no
    level is rescaled relative to another.
    """
    levels = list(aggregation.levels)
    if most_perturbed_first:
        levels = levels[::-1]
    ordered = [(level_label(lv.level), lv.as_vector(average)) for lv in levels]
    ordered.append((ORIGINAL_LABEL, aggregation.original))
    return ordered


def run_robustness_estimation(
    g: ig.Graph,
    centrality_fn: CentralityFunction,
    config: RobustnessConfig,
) -> RobustnessResult:
    """
    Estimate how stable `centrality_fn` is under cascading random edge loss.

    Parameters
    ----------
    g : ig.Graph
        Undirected, unweighted graph
    centrality_fn : CentralityFunction
        Scoring function applied to every level
    config : RobustnessConfig
        Validated here; invalid configs raise before any trial runs

    Returns
    -------
    RobustnessResult
    """
    config.validate()
    logger.info(f"Robustness config: {config.to_dict()}")

    aggregation = aggregate(
        g,
        centrality_fn,
        fraction=config.perturbation_fraction,
        levels=config.cascade_depth,
        trials=config.trial_count,
        seed=config.random_seed,
        n_workers=config.n_workers,
        backend=config.parallel_backend,
        timeout_seconds=config.timeout_seconds,
    )

    ordered = order_comparison_vectors(
        aggregation,
        average=config.average_trials,
        most_perturbed_first=config.most_perturbed_first,
    )
    tau_b, gamma = build_correlation_matrices(ordered, tie_tolerance=config.tie_tolerance)

    result = RobustnessResult(
        config=config,
        labels=tuple(label for label, _ in ordered),
        vectors=dict(ordered),
        aggregation=aggregation,
        tau_b=tau_b,
        gamma=gamma,
    )

    for row in result.agreement_with_original().iter_rows(named=True):
        logger.info(f"{row['level']} vs original: tau_b={row['tau_b']:.4f}, gamma={row['gamma']:.4f}")

    return result


def level_vectors_frame(result: RobustnessResult) -> pl.DataFrame:
    """
    Long table of node scores per level.

    Columns: node, level, value (what the matrices compared), sum (raw trial
    sum, null for the original), trials.
    """
    frames = []
    sums = {level_label(lv.level): lv for lv in result.aggregation.levels}
    for label in result.labels:
        vec = result.vectors[label]
        lv = sums.get(label)
        frames.append(pl.DataFrame({
            "node": list(vec.nodes),
            "level": [label] * len(vec),
            "value": vec.values,
            "sum": lv.total().aligned_to(vec.nodes) if lv is not None else [None] * len(vec),
            "trials": [lv.trials if lv is not None else 1] * len(vec),
        }, schema={
            "node": pl.Utf8, "level": pl.Utf8, "value": pl.Float64,
            "sum": pl.Float64, "trials": pl.Int64,
        }))
    return pl.concat(frames)


def write_robustness_outputs(
    result: RobustnessResult,
    output_dir: str | Path,
    overwrite: bool = False,
) -> Dict[str, str]:
    """
    Write robustness outputs to disk.

    Parameters
    ----------
    result : RobustnessResult
        Pipeline output
    output_dir : str or Path
        Base output directory (results/)
    overwrite : bool
        Whether to overwrite existing files

    Returns
    -------
    dict
        Paths to written files
    """
    output_dir = Path(output_dir)
    analysis_dir = output_dir / "analysis"
    tables_dir = output_dir / "tables"
    analysis_dir.mkdir(parents=True, exist_ok=True)
    tables_dir.mkdir(parents=True, exist_ok=True)

    paths = {}

    def _should_write(path: Path) -> bool:
        if path.exists() and not overwrite:
            logger.warning(f"{path} exists; skipping (overwrite=False)")
            return False
        return True

    levels_path = analysis_dir / "level_centrality.parquet"
    if _should_write(levels_path):
        level_vectors_frame(result).write_parquet(levels_path)
        logger.info(f"Wrote {levels_path}")
        paths["level_centrality"] = str(levels_path)

    for matrix in (result.tau_b, result.gamma):
        matrix_path = tables_dir / f"{matrix.statistic}_matrix.csv"
        if _should_write(matrix_path):
            matrix.to_frame().write_csv(matrix_path)
            logger.info(f"Wrote {matrix_path}")
            paths[f"{matrix.statistic}_matrix"] = str(matrix_path)

    agreement_path = tables_dir / "agreement_with_original.csv"
    if _should_write(agreement_path):
        result.agreement_with_original().write_csv(agreement_path)
        logger.info(f"Wrote {agreement_path}")
        paths["agreement_with_original"] = str(agreement_path)

    summary_path = analysis_dir / "robustness_summary.json"
    if _should_write(summary_path):
        summary = {
            "config": result.config.to_dict(),
            "labels": list(result.labels),
            "trials": result.aggregation.trials,
            "elapsed_seconds": result.aggregation.elapsed_seconds,
            "tau_b": result.tau_b.values.tolist(),
            "gamma": result.gamma.values.tolist(),
            "degenerate_cells": {
                "tau_b": [list(c) for c in result.tau_b.degenerate_cells()],
                "gamma": [list(c) for c in result.gamma.degenerate_cells()],
            },
        }
        save_json(summary, summary_path)
        logger.info(f"Wrote {summary_path}")
        paths["summary"] = str(summary_path)

    return paths
