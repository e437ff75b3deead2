"""
Error types shared across the robustness pipeline.

Configuration problems abort a run before any trial starts. Degenerate
statistics are not errors: they surface as NaN cells (see
analysis.concordance.is_degenerate).
"""


class ConfigurationError(ValueError):
    """Invalid run configuration or incompatible inputs (e.g. mismatched node sets)."""


class TrialTimeoutError(TimeoutError):
    """Trial execution exceeded the wall-clock budget; partial aggregates are discarded."""
