"""
Edge list loading.

Reads an undirected edge list (one row per edge) from CSV or parquet via polars.
"""
import logging
from pathlib import Path
from typing import Any, Dict

import polars as pl

from centrality_robustness.errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_edge_list(
    data_path: str | Path,
    source_col: str = "source",
    target_col: str = "target",
    format: str = "csv",
) -> pl.DataFrame:
    """
    Load an edge list and check the endpoint columns.

    Endpoint columns are cast to strings so that node labels compare the
    same way regardless of how the file typed them.

    Args:
        data_path: Path to data file
        source_col: Column holding one endpoint
        target_col: Column holding the other endpoint
        format: File format ("csv" or "parquet")

    Returns:
        DataFrame with columns [source_col, target_col] as Utf8
    """
    data_path = Path(data_path)
    if format == "parquet":
        df = pl.read_parquet(data_path)
    elif format == "csv":
        df = pl.read_csv(data_path)
    else:
        raise ConfigurationError(f"Unsupported edge list format: {format}")

    logger.info(f"Loaded {len(df)} rows from {data_path}")

    missing = [c for c in (source_col, target_col) if c not in df.columns]
    if missing:
        raise ConfigurationError(
            f"Edge list {data_path} is missing columns {missing}; found {df.columns}"
        )

    edges = df.select([
        pl.col(source_col).cast(pl.Utf8),
        pl.col(target_col).cast(pl.Utf8),
    ])

    n_null = edges.null_count().sum_horizontal().item()
    if n_null:
        raise ConfigurationError(f"Edge list {data_path} has {n_null} null endpoints")

    return edges


def load_edges_from_config(config: Dict[str, Any], root: Path) -> pl.DataFrame:
    """
    Load the edge list named in the config's input section.

    Relative paths are resolved against the project root.
    """
    input_config = config.get("input", {})
    if "edge_list" not in input_config:
        raise ConfigurationError("config.input.edge_list is required")

    path = Path(input_config["edge_list"])
    if not path.is_absolute():
        path = root / path

    return load_edge_list(
        path,
        source_col=input_config.get("source_col", "source"),
        target_col=input_config.get("target_col", "target"),
        format=input_config.get("format", "csv"),
    )
