"""Configuration loading utilities for tmescore reports."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tmescore.core.types import EnrichmentConfig


def load_json_config(path: str | Path) -> dict[str, Any]:
    """Load and validate a report config from a JSON file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(
            f"Unsupported config format for '{config_path}'. Use a .json config file."
        )

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Invalid JSON in config '{config_path}' at line {exc.lineno}, "
            f"column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid config root in '{config_path}': expected JSON object, got {type(data).__name__}."
        )
    return data


_PATH_KEYS = ("tnbc_table", "deconvolution", "patient", "treatment", "follow_up", "expression")
_OPTIONAL_PATH_KEYS = ("gene_sets",)
_ENRICHMENT_KEYS = ("alpha", "scale", "norm", "single", "min_size")


@dataclass(frozen=True)
class ReportConfig:
    """Inputs, outputs and parameters of one TME report run."""

    tnbc_table: Path
    deconvolution: Path
    patient: Path
    treatment: Path
    follow_up: Path
    expression: Path
    outdir: Path
    gene_sets: Path | None = None
    tnbc_sheet: str | None = "A-TCGA_TNBC_subtype"
    cell_types: tuple[str, ...] | None = None
    correlation_method: str = "spearman"
    pseudocount: float = 1.0
    min_group_size: int = 5
    make_plots: bool = True
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: str | Path | None = None) -> "ReportConfig":
        """Build a config, resolving relative paths against `base_dir`."""
        base = Path(base_dir) if base_dir is not None else Path.cwd()
        known = set(_PATH_KEYS) | set(_OPTIONAL_PATH_KEYS) | {
            "outdir",
            "tnbc_sheet",
            "cell_types",
            "correlation_method",
            "pseudocount",
            "min_group_size",
            "make_plots",
            "enrichment",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        missing = [k for k in _PATH_KEYS if k not in data]
        if missing:
            raise ValueError(f"Missing required config keys: {missing}")

        def _resolve(value: Any) -> Path:
            p = Path(str(value))
            return p if p.is_absolute() else (base / p)

        enrichment_raw = data.get("enrichment", {}) or {}
        if not isinstance(enrichment_raw, dict):
            raise ValueError("'enrichment' must be a JSON object.")
        bad = sorted(set(enrichment_raw) - set(_ENRICHMENT_KEYS))
        if bad:
            raise ValueError(f"Unknown enrichment keys: {bad}")

        method = str(data.get("correlation_method", "spearman"))
        if method not in {"spearman", "pearson"}:
            raise ValueError(f"correlation_method must be 'spearman' or 'pearson', got '{method}'.")

        cell_types = data.get("cell_types")
        return cls(
            **{k: _resolve(data[k]) for k in _PATH_KEYS},
            outdir=_resolve(data.get("outdir", "tmescore_out")),
            gene_sets=_resolve(data["gene_sets"]) if data.get("gene_sets") else None,
            tnbc_sheet=data.get("tnbc_sheet", "A-TCGA_TNBC_subtype"),
            cell_types=tuple(str(c) for c in cell_types) if cell_types else None,
            correlation_method=method,
            pseudocount=float(data.get("pseudocount", 1.0)),
            min_group_size=int(data.get("min_group_size", 5)),
            make_plots=bool(data.get("make_plots", True)),
            enrichment=EnrichmentConfig(**enrichment_raw),
        )


def load_report_config(path: str | Path) -> ReportConfig:
    config_path = Path(path)
    return ReportConfig.from_dict(load_json_config(config_path), base_dir=config_path.parent)
