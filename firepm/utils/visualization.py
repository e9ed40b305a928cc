"""
Visualization utilities for FirePM.

This module provides plotting functions for response surfaces and
combined-scenario comparisons.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

__all__ = []


def _import_pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib required for plotting: pip install matplotlib") from None
    return plt


def _create_response_plot(
    samples: Dict[str, List[Tuple[float, float]]],
    curves: Dict[str, Tuple[float, float]],
    output_alias: str,
    base_value: float,
    title: str,
):
    """Plot sampled outcomes and fitted power curves of one output.

    Draws one panel per input: the aggregated samples as markers, the
    fitted ``a * x**b`` curve as a line and the output's base value as a
    dashed reference.

    Args:
        samples: Input alias -> list of ``(input value, output value)``.
        curves: Input alias -> ``(a, b)`` of the fitted curve.
        output_alias: Output shown on the y axis.
        base_value: Baseline outcome (drawn as reference line).
        title: Figure title.

    Raises:
        ImportError: If ``matplotlib`` is not installed.
    """
    plt = _import_pyplot()

    inputs = list(samples)
    fig, axes = plt.subplots(1, max(len(inputs), 1), figsize=(5 * max(len(inputs), 1), 4), squeeze=False)
    colors = plt.get_cmap("Set1")(np.linspace(0, 1, max(len(inputs), 1)))

    for i, alias in enumerate(inputs):
        ax = axes[0][i]
        x, y = zip(*samples[alias])
        ax.plot(x, y, "o", color=colors[i], markersize=6, label="samples")

        if alias in curves:
            a, b = curves[alias]
            grid = np.linspace(min(x), max(x), 100)
            ax.plot(grid, a * np.power(grid, b), "-", color=colors[i], linewidth=2, label=f"{a:.2f}·x^{b:.2f}")

        ax.axhline(y=base_value, color="gray", linestyle="--", linewidth=1, label="base")
        ax.set_xlabel(alias, fontsize=11)
        ax.set_ylabel(output_alias, fontsize=11)
        ax.grid(True, alpha=0.3)
        ax.legend(loc="best")

    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()
    plt.show()


def _create_combined_plot(
    labels: Sequence[str],
    measured: Sequence[float],
    by_sensitivity: Sequence[float],
    by_response_surface: Sequence[float],
    title: str,
):
    """Grouped bar chart of measured vs. predicted combined outcomes.

    Missing predictions (``None``) are drawn as empty bars.

    Raises:
        ImportError: If ``matplotlib`` is not installed.
    """
    plt = _import_pyplot()

    def _values(seq):
        return [np.nan if v is None else v for v in seq]

    positions = np.arange(len(labels))
    width = 0.27
    fig, ax = plt.subplots(figsize=(max(8, 1.5 * len(labels)), 6))
    ax.bar(positions - width, _values(measured), width, label="measured")
    ax.bar(positions, _values(by_sensitivity), width, label="sensitivity")
    ax.bar(positions + width, _values(by_response_surface), width, label="response surface")

    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=30, ha="right")
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.grid(True, axis="y", alpha=0.3)
    ax.legend(loc="best")
    plt.tight_layout()
    plt.show()
