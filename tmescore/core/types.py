"""Typed configuration, result containers and errors for enrichment scoring."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
import pandas as pd


class InvalidExpressionError(ValueError):
    """Expression matrix is empty, non-numeric or non-finite."""


class EmptyGeneSetError(ValueError):
    """A gene set has no (or too few) identifiers present in the matrix rows."""

    def __init__(self, set_name: str, n_overlap: int, min_size: int = 1):
        self.set_name = str(set_name)
        self.n_overlap = int(n_overlap)
        self.min_size = int(min_size)
        if self.n_overlap == 0:
            msg = (
                f"Gene set '{self.set_name}' has an empty intersection with the "
                "expression matrix rows."
            )
        else:
            msg = (
                f"Gene set '{self.set_name}' overlaps the expression matrix in "
                f"{self.n_overlap} genes; at least {self.min_size} required."
            )
        super().__init__(msg)


@dataclass(frozen=True)
class EnrichmentConfig:
    """Parameters for one single-sample enrichment run.

    - `alpha`: exponent applied to in-set ranks (weighting strength).
    - `scale`: divide the running difference by the number of genes.
    - `norm`: divide each gene set's scores by their range across samples.
    - `single`: sum the running difference (ssGSEA); otherwise take the
      signed maximum deviation (GSEA-style).
    """

    alpha: float = 0.25
    scale: bool = True
    norm: bool = False
    single: bool = True
    min_size: int = 1

    def __post_init__(self) -> None:
        if not np.isfinite(float(self.alpha)):
            raise ValueError("alpha must be finite.")
        if int(self.min_size) < 1:
            raise ValueError("min_size must be >= 1.")
        for name in ("scale", "norm", "single"):
            value = getattr(self, name)
            if not isinstance(value, (bool, np.bool_)):
                raise ValueError(f"{name} must be a boolean, got {value!r}.")

    def with_overrides(self, **overrides: Any) -> "EnrichmentConfig":
        unknown = sorted(set(overrides) - set(self.__dataclass_fields__))
        if unknown:
            raise TypeError(f"Unknown enrichment options: {unknown}")
        return replace(self, **overrides)


@dataclass(frozen=True)
class EnrichmentResult:
    """Output of `score_gene_sets` plus the overlap bookkeeping behind it."""

    scores: pd.DataFrame
    overlap: dict[str, int]
    n_genes: int
    config: EnrichmentConfig
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def set_names(self) -> list[str]:
        return [str(x) for x in self.scores.index]

    @property
    def samples(self) -> list[str]:
        return [str(x) for x in self.scores.columns]
