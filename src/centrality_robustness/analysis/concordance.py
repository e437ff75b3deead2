"""
Pairwise concordance counting and the rank statistics built on it.

For two vectors over the same nodes every unordered pair {u, v} is classified:

- tied in both vectors        -> n_tied_both (excluded from all statistics)
- tied only in x              -> n_tied_x
- tied only in y              -> n_tied_y
- untied in both, same order  -> n_concordant
- untied in both, opposite    -> n_discordant

tau-b = (n_c - n_d) / sqrt((n_c + n_d + n_tx) * (n_c + n_d + n_ty))
gamma = (n_c - n_d) / (n_c + n_d)

Gamma here is Goodman-Kruskal gamma with pairs tied in either vector dropped
from the denominator. A zero denominator gives NaN (see is_degenerate); a
statistic is never coerced to 0 or 1.

Ties are exact equality unless a positive tie_tolerance is given, in which
case |a - b| <= tie_tolerance counts as a tie. Floating-point noise in the
centrality function therefore shows up as broken ties at the default.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from centrality_robustness.analysis.centrality import CentralityVector
from centrality_robustness.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEGENERATE = float("nan")

VectorLike = Union[CentralityVector, Sequence[float], np.ndarray]


def is_degenerate(value: float) -> bool:
    """True for the undefined-statistic sentinel."""
    return math.isnan(value)


@dataclass(frozen=True)
class ConcordanceCounts:
    n_concordant: int
    n_discordant: int
    n_tied_x: int
    n_tied_y: int
    n_tied_both: int = 0

    @property
    def n_pairs(self) -> int:
        """All classified pairs, C(n, 2) for n nodes."""
        return (self.n_concordant + self.n_discordant + self.n_tied_x
                + self.n_tied_y + self.n_tied_both)

    @property
    def tau_b(self) -> float:
        untied = self.n_concordant + self.n_discordant
        a = untied + self.n_tied_x
        b = untied + self.n_tied_y
        if a == 0 or b == 0:
            return DEGENERATE
        # a == b keeps self-comparison exactly 1.0
        denominator = float(a) if a == b else math.sqrt(a * b)
        return (self.n_concordant - self.n_discordant) / denominator

    @property
    def gamma(self) -> float:
        untied = self.n_concordant + self.n_discordant
        if untied == 0:
            return DEGENERATE
        return (self.n_concordant - self.n_discordant) / untied

    def swapped(self) -> "ConcordanceCounts":
        """Counts for the arguments in reverse order."""
        return ConcordanceCounts(
            self.n_concordant, self.n_discordant,
            self.n_tied_y, self.n_tied_x, self.n_tied_both,
        )


def _aligned_values(x: VectorLike, y: VectorLike) -> Tuple[np.ndarray, np.ndarray]:
    if isinstance(x, CentralityVector) and isinstance(y, CentralityVector):
        xv, yv = x.values, y.aligned_to(x.nodes)
    elif isinstance(x, CentralityVector) or isinstance(y, CentralityVector):
        raise ConfigurationError("Compare two CentralityVectors or two plain sequences, not a mix")
    else:
        xv = np.asarray(x, dtype=np.float64)
        yv = np.asarray(y, dtype=np.float64)
        if xv.ndim != 1 or xv.shape != yv.shape:
            raise ConfigurationError(
                f"Vectors must be 1-D with equal length, got {xv.shape} and {yv.shape}"
            )
    if not (np.all(np.isfinite(xv)) and np.all(np.isfinite(yv))):
        raise ConfigurationError("Centrality vectors must contain finite values only")
    return xv, yv


def count_concordance(
    x: VectorLike,
    y: VectorLike,
    tie_tolerance: float = 0.0,
) -> ConcordanceCounts:
    """
    Classify every unordered node pair of x and y.

    Parameters
    ----------
    x, y : CentralityVector or 1-D sequence
        CentralityVectors are aligned by node label (y follows x's order);
        plain sequences are compared position by position
    tie_tolerance : float
        Largest absolute difference still treated as a tie (default exact)

    Returns
    -------
    ConcordanceCounts

    Raises
    ------
    ConfigurationError
        Mismatched node sets or lengths, non-finite values, negative tolerance
    """
    if tie_tolerance < 0:
        raise ConfigurationError(f"tie_tolerance must be >= 0, got {tie_tolerance}")

    xv, yv = _aligned_values(x, y)
    n = len(xv)

    n_c = n_d = n_tx = n_ty = n_both = 0
    # One row of the upper triangle per step: memory stays O(n).
    for i in range(n - 1):
        dx = xv[i + 1:] - xv[i]
        dy = yv[i + 1:] - yv[i]
        tie_x = np.abs(dx) <= tie_tolerance
        tie_y = np.abs(dy) <= tie_tolerance

        n_both += int(np.count_nonzero(tie_x & tie_y))
        n_tx += int(np.count_nonzero(tie_x & ~tie_y))
        n_ty += int(np.count_nonzero(tie_y & ~tie_x))

        untied = ~(tie_x | tie_y)
        n_untied = int(np.count_nonzero(untied))
        agree = int(np.count_nonzero(np.sign(dx[untied]) == np.sign(dy[untied])))
        n_c += agree
        n_d += n_untied - agree

    return ConcordanceCounts(
        n_concordant=n_c,
        n_discordant=n_d,
        n_tied_x=n_tx,
        n_tied_y=n_ty,
        n_tied_both=n_both,
    )


def kendall_tau_b(x: VectorLike, y: VectorLike, tie_tolerance: float = 0.0) -> float:
    return count_concordance(x, y, tie_tolerance).tau_b


def goodman_kruskal_gamma(x: VectorLike, y: VectorLike, tie_tolerance: float = 0.0) -> float:
    return count_concordance(x, y, tie_tolerance).gamma
