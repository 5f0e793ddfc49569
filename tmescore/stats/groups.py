"""Two-group comparisons (responders vs non-responders)."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from scipy.stats import mannwhitneyu, rankdata


def cliffs_delta(x: np.ndarray, y: np.ndarray) -> float:
    """Cliff's delta; positive when `x` tends to exceed `y`."""
    xa = np.asarray(x, dtype=float).ravel()
    ya = np.asarray(y, dtype=float).ravel()
    nx, ny = xa.size, ya.size
    if nx == 0 or ny == 0:
        raise ValueError("Both groups must be non-empty.")
    ranks = rankdata(np.concatenate([xa, ya]), method="average")
    u = float(ranks[:nx].sum()) - nx * (nx + 1) / 2.0
    return float((2.0 * u) / (nx * ny) - 1.0)


def compare_groups(
    values: pd.Series,
    groups: pd.Series,
    *,
    positive: Any = True,
    negative: Any = False,
    label: str = "score",
) -> dict[str, Any]:
    """Two-sided Mann-Whitney U of `values` between two labelled groups."""
    common = values.index.intersection(groups.index)
    v = pd.to_numeric(values.loc[common], errors="coerce")
    g = groups.loc[common]
    pos = v[(g == positive) & v.notna()].to_numpy(dtype=float)
    neg = v[(g == negative) & v.notna()].to_numpy(dtype=float)
    if pos.size == 0 or neg.size == 0:
        raise ValueError(
            f"Cannot compare '{label}': groups have sizes {pos.size} ({positive}) "
            f"and {neg.size} ({negative})."
        )
    u, p = mannwhitneyu(pos, neg, alternative="two-sided")
    return {
        "term": label,
        "n_positive": int(pos.size),
        "n_negative": int(neg.size),
        "mw_u": float(u),
        "p_value": float(p),
        "cliffs_delta": cliffs_delta(pos, neg),
        "median_positive": float(np.median(pos)),
        "median_negative": float(np.median(neg)),
    }
