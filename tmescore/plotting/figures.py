"""Report figure factories: boxplots, scatter, Kaplan-Meier, running-sum."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter

from tmescore.plotting.styles import DEFAULT_PLOT_STYLE, PlotStyle
from tmescore.plotting.utils import format_p, save_figure


def plot_score_boxplot(
    values: pd.Series,
    groups: pd.Series,
    out_png: Path,
    *,
    order: Sequence[str] | None = None,
    p_value: float | None = None,
    ylabel: str = "score",
    title: str = "",
    seed: int = 0,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> None:
    """Boxplot of `values` per group with jittered points."""
    common = values.index.intersection(groups.index)
    v = pd.to_numeric(values.loc[common], errors="coerce")
    g = groups.loc[common].astype(str)
    labels = list(order) if order is not None else sorted(g.dropna().unique().tolist())
    data = [v[(g == lab) & v.notna()].to_numpy(dtype=float) for lab in labels]
    if not any(d.size for d in data):
        raise ValueError("No finite values to plot.")

    rng = np.random.default_rng(seed)
    fig, ax = plt.subplots(figsize=style.figsize_box)
    ax.boxplot(data, showfliers=False, widths=0.55)
    for i, d in enumerate(data, start=1):
        color = style.group_colors[(i - 1) % len(style.group_colors)]
        x = i + rng.uniform(-style.jitter, style.jitter, size=d.size)
        ax.scatter(x, d, s=style.point_size, alpha=style.point_alpha, color=color, linewidths=0.0)
    ax.set_xticks(range(1, len(labels) + 1))
    ax.set_xticklabels([f"{lab}\n(n={d.size})" for lab, d in zip(labels, data)])
    ax.set_ylabel(ylabel)
    full_title = title
    if p_value is not None:
        full_title = f"{title}\n{format_p(p_value)}" if title else format_p(p_value)
    ax.set_title(full_title)
    fig.tight_layout()
    save_figure(fig, out_png, style=style)


def plot_correlation_scatter(
    x: pd.Series,
    y: pd.Series,
    out_png: Path,
    *,
    rho: float | None = None,
    p_value: float | None = None,
    xlabel: str = "score",
    ylabel: str = "fraction",
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> None:
    common = x.index.intersection(y.index)
    xa = pd.to_numeric(x.loc[common], errors="coerce").to_numpy(dtype=float)
    ya = pd.to_numeric(y.loc[common], errors="coerce").to_numpy(dtype=float)
    mask = np.isfinite(xa) & np.isfinite(ya)

    fig, ax = plt.subplots(figsize=style.figsize_scatter)
    ax.scatter(xa[mask], ya[mask], s=style.point_size, alpha=style.point_alpha, color="#1f77b4", linewidths=0.0)
    if int(mask.sum()) >= 2 and np.ptp(xa[mask]) > 0:
        slope, intercept = np.polyfit(xa[mask], ya[mask], 1)
        xs = np.linspace(float(xa[mask].min()), float(xa[mask].max()), 50)
        ax.plot(xs, slope * xs + intercept, color="#8B0000", lw=1.5)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    if rho is not None:
        ax.set_title(f"rho = {rho:.3f}, {format_p(p_value if p_value is not None else float('nan'))}")
    ax.grid(alpha=0.25, linewidth=0.6)
    fig.tight_layout()
    save_figure(fig, out_png, style=style)


def plot_km(
    table: pd.DataFrame,
    out_png: Path,
    *,
    group_col: str = "group",
    time_col: str = "time_days",
    event_col: str = "event",
    p_value: float | None = None,
    title: str = "",
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> None:
    """Kaplan-Meier curves per group; time is shown in years."""
    fig, ax = plt.subplots(figsize=style.figsize_km)
    kmf = KaplanMeierFitter()
    for i, group in enumerate(sorted(table[group_col].astype(str).unique())):
        sub = table[table[group_col].astype(str) == group]
        kmf.fit(
            sub[time_col].to_numpy(dtype=float) / 365.25,
            sub[event_col].to_numpy(dtype=bool),
            label=f"{group} (n={len(sub)})",
        )
        kmf.plot_survival_function(
            ax=ax, color=style.group_colors[i % len(style.group_colors)], ci_alpha=0.1
        )
    if p_value is not None:
        ax.text(0.5, 0.02, f"Log-rank {format_p(p_value)}", transform=ax.transAxes, ha="center")
    ax.set_xlabel("Time (years)")
    ax.set_ylabel("Survival probability")
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    save_figure(fig, out_png, style=style)


def plot_enrichment_profile(
    profile: np.ndarray,
    out_png: Path,
    *,
    in_set: np.ndarray | None = None,
    title: str = "",
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> None:
    """Running CDF difference along genes ordered from highest rank."""
    diff = np.asarray(profile, dtype=float).ravel()
    fig, ax = plt.subplots(figsize=style.figsize_profile)
    pos = np.arange(1, diff.size + 1)
    ax.plot(pos, diff, color="#2ca02c", lw=1.5)
    ax.axhline(0.0, color="black", lw=0.8)
    if in_set is not None:
        hits = np.flatnonzero(np.asarray(in_set, dtype=bool).ravel()) + 1
        y0 = float(np.min(diff)) if diff.size else 0.0
        ax.vlines(hits, y0 - 0.05 * (np.ptp(diff) or 1.0), y0, color="black", lw=0.5)
    ax.set_xlabel("Gene position (highest rank first)")
    ax.set_ylabel("In-set CDF - out-of-set CDF")
    ax.set_title(title)
    fig.tight_layout()
    save_figure(fig, out_png, style=style)
