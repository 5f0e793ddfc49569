"""Score vs cell-type correlation with multiple-testing control."""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.stats import pearsonr, spearmanr

MIN_PAIRS = 3


def bh_fdr(pvals: np.ndarray) -> np.ndarray:
    arr = np.asarray(pvals, dtype=float)
    flat = arr.ravel()
    q = np.ones_like(flat)
    finite = np.isfinite(flat)
    if np.any((flat[finite] < 0.0) | (flat[finite] > 1.0)):
        raise ValueError("p-values must be in [0,1] or NaN.")
    if np.any(finite):
        p = flat[finite]
        m = int(p.size)
        order = np.argsort(p, kind="mergesort")
        ranked = p[order]
        ranks = np.arange(1, m + 1, dtype=float)
        adj = ranked * (float(m) / ranks)
        adj = np.minimum.accumulate(adj[::-1])[::-1]
        adj = np.clip(adj, 0.0, 1.0)
        q_valid = np.empty_like(adj)
        q_valid[order] = adj
        q[finite] = q_valid
    return q.reshape(arr.shape)


def safe_correlation(x: np.ndarray, y: np.ndarray, method: str = "spearman") -> tuple[float, float, int]:
    """Return `(rho, p, n)`; NaN when fewer than 3 finite pairs or a constant side."""
    if method not in {"spearman", "pearson"}:
        raise ValueError(f"Unsupported correlation method '{method}'.")
    xa = np.asarray(x, dtype=float).ravel()
    ya = np.asarray(y, dtype=float).ravel()
    if xa.size != ya.size:
        raise ValueError("x and y must have same length.")
    mask = np.isfinite(xa) & np.isfinite(ya)
    n = int(mask.sum())
    if n < MIN_PAIRS:
        return float("nan"), float("nan"), n
    x_sub = xa[mask]
    y_sub = ya[mask]
    if np.allclose(x_sub, x_sub[0]) or np.allclose(y_sub, y_sub[0]):
        return float("nan"), float("nan"), n
    if method == "spearman":
        res = spearmanr(x_sub, y_sub)
    else:
        res = pearsonr(x_sub, y_sub)
    rho = float(res[0])
    p = float(res[1])
    if not np.isfinite(rho):
        return float("nan"), float("nan"), n
    return rho, p, n


def correlate_with_cell_types(
    scores: pd.Series,
    fractions: pd.DataFrame,
    method: str = "spearman",
) -> pd.DataFrame:
    """Correlate one score per patient against every cell-type column.

    `scores` and `fractions` are aligned on their index (patient id); only
    shared patients are used.
    """
    common = scores.index.intersection(fractions.index)
    s = pd.to_numeric(scores.loc[common], errors="coerce").to_numpy(dtype=float)
    rows = []
    for col in fractions.columns:
        y = pd.to_numeric(fractions.loc[common, col], errors="coerce").to_numpy(dtype=float)
        rho, p, n = safe_correlation(s, y, method=method)
        rows.append({"cell_type": str(col), "rho": rho, "p_value": p, "n": n})
    table = pd.DataFrame(rows, columns=["cell_type", "rho", "p_value", "n"])
    table["q_value"] = bh_fdr(table["p_value"].to_numpy(dtype=float))
    table["method"] = method
    return table.sort_values(["p_value", "cell_type"], na_position="last").reset_index(drop=True)
