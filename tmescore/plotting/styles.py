"""Shared plotting style settings for deterministic report figures."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np


@dataclass(frozen=True)
class PlotStyle:
    """Centralized plotting defaults used across report figures."""

    dpi: int = 200
    figsize_box: tuple[float, float] = (4.5, 5.0)
    figsize_scatter: tuple[float, float] = (5.0, 4.5)
    figsize_km: tuple[float, float] = (7.0, 5.5)
    figsize_profile: tuple[float, float] = (6.5, 4.0)
    point_size: float = 18.0
    point_alpha: float = 0.75
    jitter: float = 0.08
    group_colors: tuple[str, ...] = ("#3498db", "#e74c3c", "#7f8c8d", "#27ae60")
    legend_fontsize: int = 8
    axis_label_fontsize: int = 10
    title_fontsize: int = 11


DEFAULT_PLOT_STYLE = PlotStyle()


def apply_plot_style(style: PlotStyle = DEFAULT_PLOT_STYLE) -> None:
    """Apply deterministic matplotlib rcParams for report plots."""
    plt.rcParams.update(
        {
            "figure.dpi": style.dpi,
            "savefig.dpi": style.dpi,
            "savefig.facecolor": "white",
            "font.family": "DejaVu Sans",
            "axes.titlesize": style.title_fontsize,
            "axes.labelsize": style.axis_label_fontsize,
            "legend.fontsize": style.legend_fontsize,
            "axes.grid": False,
        }
    )


def plot_style_dict(style: PlotStyle = DEFAULT_PLOT_STYLE) -> dict[str, Any]:
    """Return style + dependency versions for metadata manifests."""
    d = asdict(style)
    d["matplotlib_version"] = str(matplotlib.__version__)
    d["numpy_version"] = str(np.__version__)
    return d
