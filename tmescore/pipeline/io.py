"""Pipeline I/O, logging, and table helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd


def ensure_dir(path: str | Path) -> None:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, Path):
        return obj.as_posix()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: str | Path, payload: dict[str, Any]) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True, default=_json_default)


def write_table(path: str | Path, frame: pd.DataFrame, *, index: bool = False) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(out, index=index)
    return out


def setup_logger(log_path: Path, logger_name: str) -> logging.Logger:
    ensure_dir(log_path.parent)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)
    return logger


def close_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def pick_column(frame: pd.DataFrame, candidates: Iterable[str], *, required: bool = True) -> str | None:
    """Return the first candidate present in `frame` (case-insensitive)."""
    tried = list(candidates)
    lower_map = {str(c).lower(): str(c) for c in frame.columns}
    for cand in tried:
        hit = lower_map.get(str(cand).lower())
        if hit is not None:
            return hit
    if required:
        raise KeyError(f"Required column not found. Tried: {', '.join(tried)}")
    return None


def read_table(path: str | Path, *, sheet_name: str | int | None = None) -> pd.DataFrame:
    """Read CSV, TSV or XLSX into a DataFrame, choosing the reader by suffix."""
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Input table not found: {table_path}")
    suffix = table_path.suffix.lower()
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(table_path, sheet_name=0 if sheet_name is None else sheet_name)
    if suffix in {".tsv", ".txt"}:
        return pd.read_csv(table_path, sep="\t", low_memory=False)
    if suffix == ".csv":
        return pd.read_csv(table_path, low_memory=False)
    raise ValueError(
        f"Unsupported table format for '{table_path}'. Use .csv, .tsv or .xlsx."
    )
