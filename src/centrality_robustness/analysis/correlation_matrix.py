"""
Level-by-level rank agreement matrices (tau-b and gamma).
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
import polars as pl

from centrality_robustness.analysis.centrality import CentralityVector
from centrality_robustness.analysis.concordance import count_concordance
from centrality_robustness.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CorrelationMatrix:
    """
    L x L symmetric matrix of one statistic, indexed by level label.

    NaN cells mark degenerate (undefined) statistics.
    """
    statistic: str
    labels: Tuple[str, ...]
    values: np.ndarray

    def __getitem__(self, key: Tuple[str, str]) -> float:
        row, col = key
        return float(self.values[self.labels.index(row), self.labels.index(col)])

    def degenerate_cells(self) -> List[Tuple[str, str]]:
        """Label pairs (upper triangle, diagonal included) holding NaN."""
        rows, cols = np.nonzero(np.triu(np.isnan(self.values)))
        return [(self.labels[i], self.labels[j]) for i, j in zip(rows, cols)]

    def to_frame(self) -> pl.DataFrame:
        """Wide table: a 'level' column followed by one column per label."""
        data = {"level": list(self.labels)}
        for j, label in enumerate(self.labels):
            data[label] = self.values[:, j].tolist()
        return pl.DataFrame(data)


def build_correlation_matrices(
    vectors: Sequence[Tuple[str, CentralityVector]],
    tie_tolerance: float = 0.0,
) -> Tuple[CorrelationMatrix, CorrelationMatrix]:
    """
    Compare every pair of labelled vectors.

    Cell [i][j] holds the statistic of count_concordance(vectors[i], vectors[j]).
    The counter is symmetric under argument swap, so each unordered pair is
    counted once and mirrored.

    Parameters
    ----------
    vectors : sequence of (label, CentralityVector)
        Comparison vectors in display order, all over the same node set
    tie_tolerance : float
        Passed through to count_concordance

    Returns
    -------
    (tau_b_matrix, gamma_matrix)
    """
    labels = tuple(label for label, _ in vectors)
    if len(set(labels)) != len(labels):
        raise ConfigurationError(f"Level labels must be unique, got {labels}")

    # Fail before any counting if a node set differs.
    if vectors:
        reference = vectors[0][1].nodes
        for label, vec in vectors[1:]:
            try:
                vec.aligned_to(reference)
            except ConfigurationError as e:
                raise ConfigurationError(f"Level '{label}': {e}") from e

    n = len(vectors)
    tau = np.full((n, n), np.nan)
    gamma = np.full((n, n), np.nan)

    for i in range(n):
        for j in range(i, n):
            counts = count_concordance(vectors[i][1], vectors[j][1], tie_tolerance)
            tau[i, j] = tau[j, i] = counts.tau_b
            gamma[i, j] = gamma[j, i] = counts.gamma

    tau_matrix = CorrelationMatrix("tau_b", labels, tau)
    gamma_matrix = CorrelationMatrix("gamma", labels, gamma)

    for matrix in (tau_matrix, gamma_matrix):
        cells = matrix.degenerate_cells()
        if cells:
            logger.warning(f"{matrix.statistic}: {len(cells)} undefined cells {cells}")

    logger.info(f"Built {n}x{n} tau-b and gamma matrices")
    return tau_matrix, gamma_matrix
