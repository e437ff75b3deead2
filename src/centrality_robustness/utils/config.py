"""
Run configuration: YAML loading and the validated RobustnessConfig.

config/config.yaml layout:

    seed: 42
    input:
      edge_list: data/edges.csv
      source_col: source
      target_col: target
      format: csv
    robustness:
      perturbation_fraction: 0.05
      cascade_depth: 4
      trial_count: 50
      centrality: betweenness
      ...
    outputs:
      overwrite: false
"""
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from centrality_robustness.analysis.centrality import CENTRALITY_FUNCTIONS
from centrality_robustness.errors import ConfigurationError

logger = logging.getLogger(__name__)

PARALLEL_BACKENDS = ("process", "thread")


@dataclass(frozen=True)
class RobustnessConfig:
    """Configuration for centrality robustness estimation."""
    perturbation_fraction: float = 0.05   # share of current edges removed per level
    cascade_depth: int = 4                # perturbed levels beyond the original graph
    trial_count: int = 50                 # independent cascades
    centrality: str = "betweenness"
    tie_tolerance: float = 0.0            # 0.0 = exact equality for tie detection
    average_trials: bool = True           # compare means (True) or raw sums (False)
    n_workers: int = 1
    parallel_backend: str = "process"     # "process" or "thread"
    timeout_seconds: Optional[float] = None
    most_perturbed_first: bool = False
    random_seed: int = 42

    def validate(self) -> "RobustnessConfig":
        """
        Check every field; raise ConfigurationError on the first violation.

        Returns self so calls can be chained.
        """
        for name in ("cascade_depth", "trial_count", "n_workers", "random_seed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        numbers = ["perturbation_fraction", "tie_tolerance"]
        if self.timeout_seconds is not None:
            numbers.append("timeout_seconds")
        for name in numbers:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")

        if self.centrality not in CENTRALITY_FUNCTIONS:
            raise ConfigurationError(
                f"Unknown centrality {self.centrality!r}; choose from {sorted(CENTRALITY_FUNCTIONS)}"
            )
        if not 0.0 <= self.perturbation_fraction <= 1.0:
            raise ConfigurationError(
                f"perturbation_fraction must be in [0, 1], got {self.perturbation_fraction}"
            )
        if self.cascade_depth < 0:
            raise ConfigurationError(f"cascade_depth must be >= 0, got {self.cascade_depth}")
        if self.trial_count < 1:
            raise ConfigurationError(f"trial_count must be >= 1, got {self.trial_count}")
        if self.tie_tolerance < 0:
            raise ConfigurationError(f"tie_tolerance must be >= 0, got {self.tie_tolerance}")
        if self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.parallel_backend not in PARALLEL_BACKENDS:
            raise ConfigurationError(
                f"parallel_backend must be one of {PARALLEL_BACKENDS}, got {self.parallel_backend!r}"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.random_seed < 0:
            raise ConfigurationError(f"random_seed must be >= 0, got {self.random_seed}")
        return self

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RobustnessConfig":
        """
        Build from the parsed YAML dict (robustness section + top-level seed).

        Unknown keys in the robustness section are rejected so that typos do
        not silently fall back to defaults.
        """
        section = dict(config.get("robustness", {}) or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            raise ConfigurationError(f"Unknown robustness config keys: {unknown}")
        if "seed" in config and "random_seed" not in section:
            section["random_seed"] = config["seed"]
        return cls(**section).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load config/config.yaml into a dict."""
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}
    logger.info(f"Loaded config from {config_path}")
    return config
