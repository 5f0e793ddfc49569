"""Small pure helpers for validating scorer inputs."""

from __future__ import annotations

import warnings
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from tmescore.core.types import InvalidExpressionError


def finite_1d(name: str, values: np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    if arr.size == 0:
        raise ValueError(f"{name} must be non-empty.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} must be finite.")
    return arr


def validate_expression(expr: pd.DataFrame) -> np.ndarray:
    """Return the matrix values as a float array, or raise on bad input."""
    if not isinstance(expr, pd.DataFrame):
        raise InvalidExpressionError(
            f"Expression matrix must be a pandas DataFrame, got {type(expr).__name__}."
        )
    n_genes, n_samples = expr.shape
    if n_genes == 0:
        raise InvalidExpressionError("Expression matrix has no genes (rows).")
    if n_samples == 0:
        raise InvalidExpressionError("Expression matrix has no samples (columns).")

    bad_cols = [
        str(col)
        for col, dtype in expr.dtypes.items()
        if not (pd.api.types.is_numeric_dtype(dtype) and not pd.api.types.is_bool_dtype(dtype))
    ]
    if bad_cols:
        shown = ", ".join(bad_cols[:5])
        raise InvalidExpressionError(
            f"Expression matrix has non-numeric sample columns: {shown}"
            + (" ..." if len(bad_cols) > 5 else "")
        )

    values = expr.to_numpy(dtype=float)
    finite = np.isfinite(values)
    if not finite.all():
        n_bad = int((~finite).sum())
        raise InvalidExpressionError(f"Expression matrix contains {n_bad} NaN/inf values.")

    if expr.index.has_duplicates:
        dup = expr.index[expr.index.duplicated()].unique()
        warnings.warn(
            (
                f"Duplicate gene identifiers in expression matrix ({len(dup)} distinct); "
                "every duplicate row counts as in-set."
            ),
            RuntimeWarning,
            stacklevel=3,
        )
    return values


def validate_gene_sets(gene_sets: Mapping[str, Iterable[str]]) -> dict[str, list[str]]:
    """Normalize a name -> genes mapping into ordered lists of unique strings."""
    if not isinstance(gene_sets, Mapping):
        raise TypeError(
            f"gene_sets must be a mapping of name -> genes, got {type(gene_sets).__name__}."
        )
    if len(gene_sets) == 0:
        raise ValueError("gene_sets must contain at least one gene set.")

    out: dict[str, list[str]] = {}
    for name, genes in gene_sets.items():
        if isinstance(genes, str):
            raise TypeError(
                f"Gene set '{name}' must be a collection of identifiers, not a single string."
            )
        seen: dict[str, None] = {}
        for g in genes:
            key = str(g).strip()
            if key != "":
                seen.setdefault(key, None)
        out[str(name)] = list(seen)
    return out
