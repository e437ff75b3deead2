"""
Per-trial random streams for reproducible, independent perturbation trials.

No process-wide seeding: every stochastic function receives its own
numpy Generator, derived from the run seed and the trial index.
"""
import numpy as np


def get_trial_seed_sequence(base_seed: int, trial_index: int) -> np.random.SeedSequence:
    """
    Build the seed sequence of one trial.

    Args:
        base_seed: Run-level seed (e.g., 42)
        trial_index: Zero-based trial index

    Returns:
        SeedSequence whose entropy depends on both values only
    """
    if trial_index < 0:
        raise ValueError(f"trial_index must be >= 0, got {trial_index}")
    return np.random.SeedSequence([int(base_seed), int(trial_index)])


def get_trial_rng(base_seed: int, trial_index: int) -> np.random.Generator:
    """
    Generator for a single trial.

    The stream does not depend on how many other trials run or in which
    order they are scheduled, so parallel and sequential runs agree.

    Args:
        base_seed: Run-level seed
        trial_index: Zero-based trial index

    Returns:
        Independent numpy Generator
    """
    return np.random.default_rng(get_trial_seed_sequence(base_seed, trial_index))
