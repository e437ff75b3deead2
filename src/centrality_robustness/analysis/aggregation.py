"""
Multi-trial aggregation of centrality vectors per perturbation level.

Each trial builds one cascade from the original graph with its own random
stream (run seed + trial index), scores every perturbed level and returns a
(levels, n_nodes) array aligned to the original graph's node order. Trials
share nothing, so they can run on a process or thread pool; the reduction
adds trial arrays strictly in trial-index order, which makes the sums
independent of completion order and of the worker count.
"""

import logging
import time
from concurrent.futures import (
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    TimeoutError as FuturesTimeoutError,
    as_completed,
)
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import igraph as ig
import numpy as np

from centrality_robustness.analysis.centrality import CentralityFunction, CentralityVector
from centrality_robustness.analysis.perturbation import cascade
from centrality_robustness.errors import ConfigurationError, TrialTimeoutError
from centrality_robustness.networks.graph_build import node_labels
from centrality_robustness.utils.config import PARALLEL_BACKENDS
from centrality_robustness.utils.seeds import get_trial_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AggregatedLevelVector:
    """Node-wise sum of one perturbation level's centrality over all trials."""
    level: int
    nodes: Tuple[str, ...]
    sums: np.ndarray
    trials: int

    def total(self) -> CentralityVector:
        return CentralityVector(self.nodes, self.sums)

    def mean(self) -> CentralityVector:
        return CentralityVector(self.nodes, self.sums / self.trials)

    def as_vector(self, average: bool = True) -> CentralityVector:
        return self.mean() if average else self.total()


@dataclass(frozen=True, eq=False)
class AggregationResult:
    """Unperturbed vector plus one aggregated vector per level 1..k."""
    original: CentralityVector
    levels: List[AggregatedLevelVector]
    trials: int
    elapsed_seconds: float


class OrderedTrialAccumulator:
    """
    Per-level running sums fed by trials arriving in any order.

    Completed trials wait in a buffer until every lower trial index has been
    added, so floating-point addition always happens in index order.
    """

    def __init__(self, n_levels: int, n_nodes: int):
        self.sums = np.zeros((n_levels, n_nodes), dtype=np.float64)
        self._pending: Dict[int, np.ndarray] = {}
        self._next = 0

    def add(self, trial_index: int, level_values: np.ndarray) -> None:
        if trial_index < self._next or trial_index in self._pending:
            raise ValueError(f"Trial {trial_index} was already accumulated")
        if level_values.shape != self.sums.shape:
            raise ValueError(
                f"Trial {trial_index} has shape {level_values.shape}, expected {self.sums.shape}"
            )
        self._pending[trial_index] = level_values
        while self._next in self._pending:
            self.sums += self._pending.pop(self._next)
            self._next += 1

    @property
    def n_reduced(self) -> int:
        return self._next

    @property
    def n_pending(self) -> int:
        return len(self._pending)


def reduce_trial_vectors(trial_vectors: Dict[int, np.ndarray]) -> np.ndarray:
    """
    Sum per-trial (levels, n_nodes) arrays in trial-index order.

    Trial indices must be 0..T-1 without gaps.
    """
    if not trial_vectors:
        raise ValueError("No trial vectors to reduce")
    first = next(iter(trial_vectors.values()))
    acc = OrderedTrialAccumulator(*first.shape)
    for trial_index, values in trial_vectors.items():
        acc.add(trial_index, values)
    if acc.n_pending:
        raise ValueError(f"Trial indices are not contiguous from 0; {acc.n_pending} left unreduced")
    return acc.sums


def run_trial(
    graph: ig.Graph,
    centrality_fn: CentralityFunction,
    fraction: float,
    levels: int,
    seed: int,
    trial_index: int,
    nodes: Sequence[str],
) -> np.ndarray:
    """
    One independent trial: a cascade scored at levels 1..levels.

    Returns
    -------
    np.ndarray
        Shape (levels, len(nodes)); row i-1 holds level i aligned to `nodes`
    """
    rng = get_trial_rng(seed, trial_index)
    graphs = cascade(graph, fraction, levels, rng)
    out = np.empty((levels, len(nodes)), dtype=np.float64)
    for i, h in enumerate(graphs[1:]):
        out[i] = centrality_fn(h).aligned_to(nodes)
    return out


def _run_trial_batch(
    graph: ig.Graph,
    centrality_fn: CentralityFunction,
    fraction: float,
    levels: int,
    seed: int,
    trial_indices: Sequence[int],
    nodes: Sequence[str],
) -> List[Tuple[int, np.ndarray]]:
    return [
        (t, run_trial(graph, centrality_fn, fraction, levels, seed, t, nodes))
        for t in trial_indices
    ]


def _split_batches(trials: int, n_batches: int) -> List[List[int]]:
    batches = [chunk.tolist() for chunk in np.array_split(np.arange(trials), n_batches)]
    return [b for b in batches if b]


def _make_executor(backend: str, n_workers: int) -> Executor:
    if backend == "process":
        return ProcessPoolExecutor(max_workers=n_workers)
    return ThreadPoolExecutor(max_workers=n_workers)


def _log_progress(done: int, trials: int, logged_decile: int) -> int:
    """Log once per completed tenth of the trials; returns the last decile logged."""
    decile = done * 10 // trials
    if decile > logged_decile:
        logger.info(f"Perturbation trials: {done}/{trials} complete")
        return decile
    return logged_decile


def aggregate(
    graph: ig.Graph,
    centrality_fn: CentralityFunction,
    fraction: float = 0.05,
    levels: int = 4,
    trials: int = 50,
    seed: int = 42,
    n_workers: int = 1,
    backend: str = "process",
    timeout_seconds: Optional[float] = None,
) -> AggregationResult:
    """
    Run `trials` independent cascades and sum centrality per level.

    Parameters
    ----------
    graph : ig.Graph
        Original undirected graph
    centrality_fn : CentralityFunction
        Graph -> CentralityVector over all nodes; must be picklable for
        the process backend (module-level function)
    fraction : float
        Share of current edges removed per level, in [0, 1]
    levels : int
        Perturbed levels per cascade, >= 0
    trials : int
        Number of independent cascades, >= 1
    seed : int
        Run seed; trial t draws from SeedSequence([seed, t])
    n_workers : int
        1 runs in-process; more uses a `backend` pool
    backend : str
        "process" or "thread"
    timeout_seconds : float, optional
        Wall-clock budget for all trials. With a pool the wait is cut off
        as soon as the budget runs out. In-process (n_workers=1) a trial
        already running is not interrupted; the overrun is detected when
        it returns and the run still fails.

    Returns
    -------
    AggregationResult
        Unperturbed vector and one AggregatedLevelVector per level 1..levels

    Raises
    ------
    ConfigurationError
        Invalid parameters or a centrality_fn that changes the node set
    TrialTimeoutError
        Budget exceeded; nothing partial is returned
    """
    if not 0.0 <= fraction <= 1.0:
        raise ConfigurationError(f"Perturbation fraction must be in [0, 1], got {fraction}")
    if levels < 0:
        raise ConfigurationError(f"Cascade depth must be >= 0, got {levels}")
    if trials < 1:
        raise ConfigurationError(f"Trial count must be >= 1, got {trials}")
    if n_workers < 1:
        raise ConfigurationError(f"n_workers must be >= 1, got {n_workers}")
    if backend not in PARALLEL_BACKENDS:
        raise ConfigurationError(f"Unknown parallel backend {backend!r}")

    start = time.monotonic()
    nodes = node_labels(graph)

    original = centrality_fn(graph)
    original = CentralityVector(nodes, original.aligned_to(nodes))

    logger.info(
        f"Aggregating {trials} trials: fraction={fraction}, levels={levels}, "
        f"N={graph.vcount()}, E={graph.ecount()}, workers={n_workers}"
    )

    acc = OrderedTrialAccumulator(levels, len(nodes))
    if n_workers == 1:
        _aggregate_sequential(
            acc, graph, centrality_fn, fraction, levels, trials, seed, nodes,
            start, timeout_seconds,
        )
    else:
        _aggregate_parallel(
            acc, graph, centrality_fn, fraction, levels, trials, seed, nodes,
            n_workers, backend, start, timeout_seconds,
        )

    level_vectors = [
        AggregatedLevelVector(level=i + 1, nodes=nodes, sums=acc.sums[i].copy(), trials=trials)
        for i in range(levels)
    ]
    elapsed = time.monotonic() - start
    logger.info(f"Aggregation complete in {elapsed:.1f}s")

    return AggregationResult(
        original=original,
        levels=level_vectors,
        trials=trials,
        elapsed_seconds=elapsed,
    )


def _aggregate_sequential(
    acc: OrderedTrialAccumulator,
    graph: ig.Graph,
    centrality_fn: CentralityFunction,
    fraction: float,
    levels: int,
    trials: int,
    seed: int,
    nodes: Sequence[str],
    start: float,
    timeout_seconds: Optional[float],
) -> None:
    logged = 0
    for t in range(trials):
        _check_deadline(start, timeout_seconds, t, trials)
        values = run_trial(graph, centrality_fn, fraction, levels, seed, t, nodes)
        # A running trial is not interrupted; an overrun is caught once it returns.
        _check_deadline(start, timeout_seconds, t + 1, trials)
        acc.add(t, values)
        logged = _log_progress(t + 1, trials, logged)


def _check_deadline(start: float, timeout_seconds: Optional[float], done: int, trials: int) -> None:
    if timeout_seconds is not None and time.monotonic() - start > timeout_seconds:
        raise TrialTimeoutError(
            f"Exceeded {timeout_seconds}s after {done}/{trials} trials; partial results discarded"
        )


def _aggregate_parallel(
    acc: OrderedTrialAccumulator,
    graph: ig.Graph,
    centrality_fn: CentralityFunction,
    fraction: float,
    levels: int,
    trials: int,
    seed: int,
    nodes: Sequence[str],
    n_workers: int,
    backend: str,
    start: float,
    timeout_seconds: Optional[float],
) -> None:
    # Several batches per worker keeps progress logging and load balance useful.
    batches = _split_batches(trials, n_workers * 4)
    remaining = None
    if timeout_seconds is not None:
        remaining = max(0.0, timeout_seconds - (time.monotonic() - start))

    executor = _make_executor(backend, n_workers)
    logged = 0
    finished = False
    try:
        futures = [
            executor.submit(
                _run_trial_batch, graph, centrality_fn, fraction, levels, seed, batch, tuple(nodes)
            )
            for batch in batches
        ]
        for future in as_completed(futures, timeout=remaining):
            for trial_index, values in future.result():
                acc.add(trial_index, values)
            logged = _log_progress(acc.n_reduced + acc.n_pending, trials, logged)
        finished = True
    except FuturesTimeoutError:
        raise TrialTimeoutError(
            f"Exceeded {timeout_seconds}s with {acc.n_reduced}/{trials} trials reduced; "
            "partial results discarded"
        ) from None
    finally:
        executor.shutdown(wait=finished, cancel_futures=not finished)
