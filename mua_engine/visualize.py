"""Charts for uncertainty budget results."""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from mua_engine.analysis import BudgetResult

logger = logging.getLogger(__name__)


def _finish(fig, save_path: Optional[str], what: str) -> None:
    import matplotlib.pyplot as plt

    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.info("Saved %s to %s", what, save_path)
    else:
        plt.show()
    plt.close(fig)


def plot_contributions(
    result: BudgetResult,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
) -> None:
    """Pareto-style bar chart of each component's share of uc²."""
    import matplotlib.pyplot as plt

    contributions = result.contributions
    if not contributions:
        logger.warning("No budget components to plot.")
        return

    names = [n for n, _ in contributions]
    values = [p for _, p in contributions]

    fig, ax = plt.subplots(figsize=(10, max(4, len(names) * 0.4 + 1)))
    y_pos = range(len(names))
    ax.barh(y_pos, values, color="#2196F3", edgecolor="black", linewidth=0.5, height=0.6)
    for i, v in enumerate(values):
        ax.text(v, i, f" {v:.1f}%", va="center", fontsize=8)
    ax.set_yticks(list(y_pos))
    ax.set_yticklabels(names)
    ax.set_xlim(0, 110)
    ax.set_xlabel("Contribution to combined variance (%)")
    ax.set_title(title or f"Uncertainty Budget (uc = {result.uc:.3f} ppm)")
    ax.invert_yaxis()

    _finish(fig, save_path, "contribution chart")


def plot_guard_band(
    result: BudgetResult,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
) -> None:
    """Plot the tolerance, acceptance limits and measurement distribution.

    The measurement distribution is drawn as a normal curve with standard
    deviation uc centered on each acceptance limit, the model PFA/PFR are
    evaluated under.
    """
    import matplotlib.pyplot as plt

    tol = result.tolerance_ppm
    acc = result.acceptance_limit
    uc = result.uc
    if not (math.isfinite(tol) and math.isfinite(acc) and uc > 0):
        logger.warning("Guard band is not available for this result.")
        return

    span = max(tol, acc) + 4.0 * uc
    x = np.linspace(-span, span, 600)
    fig, ax = plt.subplots(figsize=(10, 5))

    for center in (-acc, acc):
        pdf = np.exp(-0.5 * ((x - center) / uc) ** 2) / (uc * np.sqrt(2 * np.pi))
        ax.plot(x, pdf, color="#1976D2", linewidth=1.5)
        outside = np.abs(x) > tol
        ax.fill_between(x, 0, pdf, where=outside, color="#F44336", alpha=0.3)

    ax.axvline(-tol, color="red", linewidth=2, label=f"Tolerance ±{tol:.2f} ppm")
    ax.axvline(tol, color="red", linewidth=2)
    ax.axvline(-acc, color="green", linestyle="--", linewidth=1.5,
               label=f"Acceptance ±{acc:.2f} ppm")
    ax.axvline(acc, color="green", linestyle="--", linewidth=1.5)
    if math.isfinite(result.pfa):
        ax.text(0.02, 0.95, f"PFA = {result.pfa * 100:.2f}%\nPFR = {result.pfr * 100:.2f}%",
                transform=ax.transAxes, fontsize=10, verticalalignment="top",
                bbox=dict(boxstyle="round", facecolor="wheat", alpha=0.5))

    ax.set_xlabel("Deviation from nominal (ppm)")
    ax.set_ylabel("Probability density")
    ax.set_title(title or f"Guard Band (g = {result.guard_band:.2f} ppm)")
    ax.legend(loc="upper right", fontsize=8)

    _finish(fig, save_path, "guard band chart")
