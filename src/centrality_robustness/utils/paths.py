"""
Project-root discovery so scripts find config/ and results/ from any working directory.
"""
from pathlib import Path
from typing import Optional


def get_project_root(start_path: Optional[Path] = None) -> Path:
    """
    Walk upwards to the first directory holding both config/ and src/.

    Falls back to the checkout root implied by this file's location.
    """
    current = (start_path or Path(__file__)).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "config").is_dir() and (candidate / "src").is_dir():
            return candidate
    # src/centrality_robustness/utils/paths.py
    return Path(__file__).resolve().parents[3]


def get_config_path() -> Path:
    return get_project_root() / "config" / "config.yaml"
