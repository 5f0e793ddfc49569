"""Gene set construction and gene set file readers."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Mapping

IG_SET_NAME = "IG_score"

_IG_RE = re.compile(r"^IG[HKL](?:[VDJC]|G[1-4]|A[12]|M|E)")
_PSEUDOGENE_RE = re.compile(r"P\d*$")


def is_immunoglobulin_gene(symbol: str) -> bool:
    s = str(symbol).strip().upper()
    return bool(_IG_RE.match(s)) and not _PSEUDOGENE_RE.search(s)


def immunoglobulin_genes(genes: Iterable[str]) -> list[str]:
    """Immunoglobulin heavy/kappa/lambda genes among `genes`, in input order."""
    seen: dict[str, None] = {}
    for g in genes:
        if is_immunoglobulin_gene(g):
            seen.setdefault(str(g).strip(), None)
    return list(seen)


def read_gmt(path: str | Path) -> dict[str, list[str]]:
    """Read a GMT file: name, description, then genes, tab separated."""
    gmt_path = Path(path)
    if not gmt_path.exists():
        raise FileNotFoundError(f"Gene set file not found: {gmt_path}")
    out: dict[str, list[str]] = {}
    with open(gmt_path, "r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            parts = [p.strip() for p in line.rstrip("\n").split("\t")]
            if not parts or parts[0] == "":
                continue
            if len(parts) < 3:
                raise ValueError(
                    f"Malformed GMT line {lineno} in '{gmt_path}': expected name, "
                    "description and at least one gene."
                )
            if parts[0] in out:
                raise ValueError(f"Duplicate gene set '{parts[0]}' in '{gmt_path}'.")
            out[parts[0]] = [g for g in parts[2:] if g != ""]
    return out


def read_gene_sets_json(path: str | Path) -> dict[str, list[str]]:
    json_path = Path(path)
    if not json_path.exists():
        raise FileNotFoundError(f"Gene set file not found: {json_path}")
    with open(json_path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Gene set JSON '{json_path}' must be an object of name -> genes.")
    out: dict[str, list[str]] = {}
    for name, genes in data.items():
        if not isinstance(genes, list):
            raise ValueError(f"Gene set '{name}' in '{json_path}' must be a list.")
        out[str(name)] = [str(g) for g in genes]
    return out


def read_gene_sets(path: str | Path) -> dict[str, list[str]]:
    suffix = Path(path).suffix.lower()
    if suffix == ".gmt":
        return read_gmt(path)
    if suffix == ".json":
        return read_gene_sets_json(path)
    raise ValueError(f"Unsupported gene set format for '{path}'. Use .gmt or .json.")


def build_gene_sets(
    genes: Iterable[str],
    extra: Mapping[str, Iterable[str]] | None = None,
) -> dict[str, list[str]]:
    """The immunoglobulin set over `genes`, followed by any extra sets."""
    sets: dict[str, list[str]] = {IG_SET_NAME: immunoglobulin_genes(genes)}
    for name, members in (extra or {}).items():
        if name == IG_SET_NAME:
            raise ValueError(f"Gene set name '{IG_SET_NAME}' is reserved.")
        sets[str(name)] = [str(g) for g in members]
    return sets
