"""
Chart rendering for benchmark comparisons.
Turns ChartSeries into PNG bar charts.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .reporter import ChartSeries

# Configure matplotlib for non-interactive backend
plt.switch_backend("Agg")

COLORS = ["#3498db", "#2ecc71", "#e74c3c", "#9b59b6", "#f39c12", "#1abc9c"]


def setup_plot_style():
    """Set up consistent plot styling."""
    plt.style.use("default")
    plt.rcParams.update(
        {
            "font.size": 10,
            "axes.titlesize": 12,
            "axes.labelsize": 10,
            "xtick.labelsize": 9,
            "ytick.labelsize": 9,
            "legend.fontsize": 9,
            "figure.dpi": 100,
            "savefig.dpi": 150,
            "savefig.bbox": "tight",
        }
    )


def _format_label(value: float) -> str:
    if abs(value - round(value)) < 0.001:
        return str(int(round(value)))
    return f"{value:.1f}"


def plot_bar_chart(chart: ChartSeries, output_path: Path) -> Path:
    """
    Create a (grouped) bar chart with value labels on every bar.

    Missing values leave a gap instead of a zero-height bar.

    Args:
        chart: Categories and one value list per series
        output_path: Path to save the plot

    Returns:
        Path of the written image
    """
    setup_plot_style()

    categories = chart.categories
    names = list(chart.series)
    x = np.arange(len(categories))
    width = 0.8 / max(len(names), 1)

    fig, ax = plt.subplots(figsize=(10, 5))

    for i, name in enumerate(names):
        values = chart.series[name]
        heights = np.array([np.nan if v is None else v for v in values], dtype=float)
        offset = (i - (len(names) - 1) / 2) * width
        bars = ax.bar(x + offset, heights, width, label=name, color=COLORS[i % len(COLORS)])

        for bar, value in zip(bars, values):
            if value is None:
                continue
            ax.text(
                bar.get_x() + bar.get_width() / 2.0,
                bar.get_height(),
                _format_label(value),
                ha="center",
                va="bottom",
                fontsize=8,
            )

    ax.set_title(chart.title)
    ax.set_xticks(x)
    ax.set_xticklabels(categories)
    if chart.x_label:
        ax.set_xlabel(chart.x_label)
    ax.set_ylabel(chart.y_label)
    ax.grid(True, axis="y", alpha=0.3)
    if len(names) > 1:
        ax.legend(loc="upper left")

    # Set y-axis to start from 0
    ax.set_ylim(bottom=0)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path)
    plt.close(fig)
    return output_path
