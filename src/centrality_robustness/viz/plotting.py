"""
Plotting helpers for robustness results.

These functions only draw what the pipeline already wrote (matrix and
agreement tables); they never recompute statistics.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import polars as pl

logger = logging.getLogger(__name__)


def plot_correlation_heatmap(
    matrix_df: pl.DataFrame,
    output_path: str | Path,
    statistic: str = "tau_b",
    centrality: str = "",
) -> None:
    """
    Heatmap of a level x level agreement matrix.

    Parameters
    ----------
    matrix_df : pl.DataFrame
        Columns: level, then one column per level label (tables/<statistic>_matrix.csv)
    output_path : str or Path
        Path to save figure
    statistic : str
        'tau_b' or 'gamma' (for title and colorbar)
    centrality : str
        Centrality name (for title)
    """
    labels = matrix_df["level"].to_list()
    values = matrix_df.select(labels).to_numpy().astype(float)
    # Undefined cells stay blank
    masked = np.ma.masked_invalid(values)

    fig, ax = plt.subplots(figsize=(1.2 * len(labels) + 3, 1.2 * len(labels) + 2))
    im = ax.imshow(masked, vmin=-1.0, vmax=1.0, cmap="RdBu_r")

    ax.set_xticks(range(len(labels)))
    ax.set_yticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_yticklabels(labels)

    for i in range(len(labels)):
        for j in range(len(labels)):
            text = "n/a" if np.isnan(values[i, j]) else f"{values[i, j]:.3f}"
            ax.text(j, i, text, ha="center", va="center", fontsize=9)

    fig.colorbar(im, ax=ax, label=statistic.replace("_", "-"))
    title = f"Rank agreement across perturbation levels ({statistic.replace('_', '-')})"
    if centrality:
        title += f"\n{centrality} centrality"
    ax.set_title(title, fontsize=12)

    plt.tight_layout()
    plt.savefig(output_path, dpi=300)
    plt.close()

    logger.info(f"Saved {statistic} heatmap: {output_path}")


def plot_agreement_with_original(
    agreement_df: pl.DataFrame,
    output_path: str | Path,
    centrality: str = "",
) -> None:
    """
    Line plot of tau-b and gamma of each perturbed level against the original.

    Parameters
    ----------
    agreement_df : pl.DataFrame
        Columns: level, tau_b, gamma (tables/agreement_with_original.csv)
    output_path : str or Path
        Path to save figure
    centrality : str
        Centrality name (for title)
    """
    levels = agreement_df["level"].to_list()
    x = range(len(levels))

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(x, agreement_df["tau_b"].to_list(), "o-", label="tau-b", linewidth=2)
    ax.plot(x, agreement_df["gamma"].to_list(), "s--", label="gamma", linewidth=2)

    ax.set_xticks(list(x))
    ax.set_xticklabels(levels)
    ax.set_ylim(-1.05, 1.05)
    ax.set_xlabel("Perturbation level", fontsize=12)
    ax.set_ylabel("Agreement with original", fontsize=12)
    title = "Centrality rank agreement under edge loss"
    if centrality:
        title += f" ({centrality})"
    ax.set_title(title, fontsize=14)
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=300)
    plt.close()

    logger.info(f"Saved agreement plot: {output_path}")
