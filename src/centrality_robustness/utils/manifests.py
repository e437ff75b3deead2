"""
Run manifests for reproducibility tracking.

Each pipeline script records its config, input fingerprints and outputs.
"""
import hashlib
import json
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


def get_git_commit() -> Optional[str]:
    """
    Current git commit hash, or None outside a git checkout.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode == 0:
        return result.stdout.strip()
    return None


def hash_file(file_path: Path) -> str:
    """
    SHA256 of a file, read in chunks.

    Args:
        file_path: Path to file

    Returns:
        Hexadecimal hash string
    """
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def create_run_manifest(
    script_name: str,
    config: Dict[str, Any],
    input_files: List[Path],
    output_files: List[Path],
    metadata: Optional[Dict[str, Any]] = None,
    manifest_path: Optional[Path] = None
) -> Dict[str, Any]:
    """
    Create a run manifest capturing execution context.

    Args:
        script_name: Name of the script (e.g., "01_run_edge_loss_robustness")
        config: Configuration snapshot
        input_files: Input paths (edge lists); hashed when present
        output_files: Output paths; sizes recorded when present
        metadata: Extra run facts (graph summary, elapsed time, ...)
        manifest_path: Optional path to save the manifest JSON

    Returns:
        Manifest dictionary
    """
    manifest = {
        "script": script_name,
        "timestamp": datetime.now().isoformat(),
        "git_commit": get_git_commit(),
        "config_snapshot": config,
        "inputs": [],
        "outputs": [],
        "metadata": metadata or {}
    }

    for input_file in input_files:
        if input_file.exists():
            manifest["inputs"].append({
                "path": str(input_file),
                "size_bytes": input_file.stat().st_size,
                "hash": hash_file(input_file)[:16]
            })

    for output_file in output_files:
        if output_file.exists():
            manifest["outputs"].append({
                "path": str(output_file),
                "size_bytes": output_file.stat().st_size
            })

    if manifest_path is not None:
        save_json(manifest, manifest_path)

    return manifest


def save_json(data: Dict[str, Any], file_path: Path) -> None:
    """
    Save a dictionary as indented JSON, creating parent directories.

    Non-finite floats (degenerate statistics) are written as null.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w") as f:
        json.dump(_nan_to_none(data), f, indent=2)


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, float) and value != value:
        return None
    if isinstance(value, dict):
        return {k: _nan_to_none(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_nan_to_none(v) for v in value]
    return value
