"""Per-sample gene ranking."""

from __future__ import annotations

import numpy as np
from scipy.stats import rankdata


def rank_columns(values: np.ndarray) -> np.ndarray:
    """Rank each column ascending; ties receive the average of their ranks.

    Ranks are 1-based, so a column of ``n`` values maps into ``[1, n]``.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError("values must be a 1D or 2D array.")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("values must be non-empty.")
    if not np.isfinite(arr).all():
        raise ValueError("values must be finite.")
    return np.asarray(rankdata(arr, method="average", axis=0), dtype=float)


def descending_order(ranks: np.ndarray) -> np.ndarray:
    """Gene indices from highest to lowest rank; tied genes keep row order."""
    r = np.asarray(ranks, dtype=float).ravel()
    return np.argsort(-r, kind="stable")
