"""TPM matrix loading and preparation (genes x samples)."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from tmescore.cohort import normalize_barcode, sample_type_code
from tmescore.core.types import InvalidExpressionError

logger = logging.getLogger(__name__)

PRIMARY_TUMOR = "01"


def read_tpm_matrix(path: str | Path) -> pd.DataFrame:
    """Read a TSV whose first column is the gene symbol and the rest are samples."""
    tpm_path = Path(path)
    if not tpm_path.exists():
        raise FileNotFoundError(f"Expression file not found: {tpm_path}")
    frame = pd.read_csv(tpm_path, sep="\t", index_col=0, low_memory=False)
    frame.index = frame.index.astype(str)
    frame.index.name = "gene"

    numeric = frame.apply(pd.to_numeric, errors="coerce")
    bad = numeric.isna() & frame.notna()
    if bad.to_numpy().any():
        cols = [str(c) for c in frame.columns[bad.any(axis=0).to_numpy()]]
        raise InvalidExpressionError(
            f"Non-numeric expression values in {tpm_path.name}, columns: {cols[:5]}"
        )
    logger.info("Read expression matrix %s: %d genes x %d samples", tpm_path.name, *numeric.shape)
    return numeric


def drop_duplicate_genes(expr: pd.DataFrame) -> pd.DataFrame:
    dup = expr.index.duplicated(keep="first")
    if dup.any():
        logger.info("Dropping %d duplicated gene rows", int(dup.sum()))
    return expr.loc[~dup]


def select_primary_tumor(expr: pd.DataFrame, sample_type: str = PRIMARY_TUMOR) -> pd.DataFrame:
    """Keep one `sample_type` aliquot per patient; columns become patient barcodes.

    When a patient has several matching aliquots the first in sorted barcode
    order is kept.
    """
    chosen: dict[str, str] = {}
    for col in sorted(str(c) for c in expr.columns):
        try:
            code = sample_type_code(col)
            pid = normalize_barcode(col)
        except ValueError:
            continue
        if code == sample_type:
            chosen.setdefault(pid, col)
    if not chosen:
        raise InvalidExpressionError(
            f"No samples with sample type '{sample_type}' in expression matrix columns."
        )
    ordered = [c for c in (str(x) for x in expr.columns) if c in set(chosen.values())]
    out = expr.loc[:, ordered].copy()
    out.columns = pd.Index([normalize_barcode(c) for c in ordered], name="patient_id")
    n_dropped = int(expr.shape[1] - out.shape[1])
    if n_dropped:
        logger.info("Dropped %d non-primary or duplicate aliquot columns", n_dropped)
    return out


def log_transform(expr: pd.DataFrame, pseudocount: float = 1.0) -> pd.DataFrame:
    values = expr.to_numpy(dtype=float)
    if np.any(values < 0):
        raise InvalidExpressionError("TPM values must be non-negative before log transform.")
    return pd.DataFrame(
        np.log2(values + float(pseudocount)), index=expr.index, columns=expr.columns
    )


def prepare_expression(path: str | Path, *, pseudocount: float = 1.0) -> pd.DataFrame:
    expr = read_tpm_matrix(path)
    expr = drop_duplicate_genes(expr)
    expr = select_primary_tumor(expr)
    return log_transform(expr, pseudocount=pseudocount)
