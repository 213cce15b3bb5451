"""Matplotlib figures for a simulation study."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from ebsim.pipeline import StudyResult


logger = logging.getLogger(__name__)

METHOD_COLORS = {"raw": "#D55E00", "shrunken": "#0072B2"}


def save_fig(fig: plt.Figure, path: Path, dpi: int = 150) -> None:
    fig.savefig(path, dpi=dpi, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.info("Saved figure %s", path)


def _identity(ax: plt.Axes, low: float = 0.0, high: float = 1.0) -> None:
    ax.plot([low, high], [low, high], color="#444444", linestyle="--", linewidth=1)


def plot_shrinkage(estimates: pd.DataFrame, *, max_points: int = 5_000, seed: int = 0) -> plt.Figure:
    """Raw and shrunken estimates against the true probability."""

    if len(estimates) > max_points:
        estimates = estimates.sample(n=max_points, random_state=seed)

    fig, axes = plt.subplots(1, 2, figsize=(11, 5), sharex=True, sharey=True)
    color = np.log10(estimates["at_bats"].to_numpy(dtype=float))
    for ax, method in zip(axes, ("raw", "shrunken")):
        points = ax.scatter(
            estimates["true_p"],
            estimates[method],
            c=color,
            cmap="viridis",
            s=6,
            alpha=0.6,
        )
        low = float(estimates["true_p"].min())
        high = float(estimates["true_p"].max())
        _identity(ax, low, high)
        ax.set_title(f"{method.capitalize()} estimate vs. true batting average")
        ax.set_xlabel("True batting average")
    axes[0].set_ylabel("Estimate")
    fig.colorbar(points, ax=axes, label="log10(at-bats)")
    return fig


def plot_mse_by_bin(mse_by_bin: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(7, 5))
    for method, group in mse_by_bin.groupby("method", sort=True):
        ax.plot(
            group["ab_bin"],
            group["mse"],
            marker="o",
            color=METHOD_COLORS.get(method),
            label=method,
        )
    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("At-bats (rounded to nearest power of 10)")
    ax.set_ylabel("Mean squared error")
    ax.set_title("Estimation error by number of at-bats")
    ax.legend()
    return fig


def plot_coverage(coverage: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(6, 6))
    ax.plot(coverage["level"], coverage["coverage"], marker="o", color=METHOD_COLORS["shrunken"])
    _identity(ax)
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_xlabel("Credible interval level")
    ax.set_ylabel("Fraction of intervals containing the true average")
    ax.set_title("Credible interval coverage")
    return fig


def plot_fdr_calibration(fdr: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(6, 6))
    usable = fdr.dropna(subset=["fdp"])
    ax.plot(usable["q_cutoff"], usable["fdp"], marker="o", color=METHOD_COLORS["shrunken"], label="observed")
    ax.plot(
        usable["q_cutoff"],
        usable["expected_fdp"],
        marker=".",
        color=METHOD_COLORS["raw"],
        label="mean PEP",
    )
    upper = float(max(fdr["q_cutoff"].max(), usable["fdp"].max() if len(usable) else 0.0))
    _identity(ax, 0.0, upper)
    ax.set_xlabel("q-value cutoff")
    ax.set_ylabel("False discovery proportion")
    ax.set_title("False discovery rate control")
    ax.legend()
    return fig


def save_study_figures(result: "StudyResult", directory: Path) -> List[Path]:
    """Render every study figure into ``directory`` and return the paths."""

    directory.mkdir(parents=True, exist_ok=True)
    figures = {
        "shrinkage.png": plot_shrinkage(result.estimates, seed=result.settings.seed % 2**32),
        "mse_by_bin.png": plot_mse_by_bin(result.mse_by_bin),
        "coverage.png": plot_coverage(result.coverage),
        "fdr_calibration.png": plot_fdr_calibration(result.fdr),
    }
    paths = []
    for name, fig in figures.items():
        path = directory / name
        save_fig(fig, path)
        paths.append(path)
    return paths
