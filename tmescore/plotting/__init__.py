"""Plotting API for tmescore reports."""

from tmescore.plotting.figures import (
    plot_correlation_scatter,
    plot_enrichment_profile,
    plot_km,
    plot_score_boxplot,
)
from tmescore.plotting.styles import (
    DEFAULT_PLOT_STYLE,
    PlotStyle,
    apply_plot_style,
    plot_style_dict,
)
from tmescore.plotting.utils import format_p, sanitize_label, save_figure

__all__ = [
    "DEFAULT_PLOT_STYLE",
    "PlotStyle",
    "apply_plot_style",
    "plot_style_dict",
    "format_p",
    "sanitize_label",
    "save_figure",
    "plot_correlation_scatter",
    "plot_enrichment_profile",
    "plot_km",
    "plot_score_boxplot",
]
