"""Rank-based single-sample gene set enrichment (ssGSEA).

Each sample is ranked independently. For every gene set the genes are walked
from highest to lowest rank while two cumulative distributions are built: one
over in-set genes weighted by ``rank ** alpha`` and one over the remaining
genes counted uniformly. The score is the sum of their difference (``single``)
or its signed maximum deviation.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from tmescore.core.ranking import descending_order, rank_columns
from tmescore.core.types import EmptyGeneSetError, EnrichmentConfig, EnrichmentResult
from tmescore.core.utils import finite_1d, validate_expression, validate_gene_sets

logger = logging.getLogger(__name__)


def _running_difference(
    ordered_ranks: np.ndarray,
    ordered_in_set: np.ndarray,
    alpha: float,
    scale: bool,
) -> np.ndarray:
    weights = np.where(ordered_in_set, ordered_ranks ** float(alpha), 0.0)
    total = float(weights.sum())
    if total <= 0.0:
        raise ValueError("in-set weights sum to zero; gene set must mark at least one gene.")
    cdf_in = np.cumsum(weights) / total

    outside = ~ordered_in_set
    n_out = int(outside.sum())
    if n_out > 0:
        cdf_out = np.cumsum(outside, dtype=float) / float(n_out)
    else:
        cdf_out = np.zeros_like(cdf_in)

    diff = cdf_in - cdf_out
    if scale:
        diff = diff / float(ordered_ranks.size)
    return diff


def enrichment_profile(
    ranks: np.ndarray,
    in_set: np.ndarray,
    alpha: float = 0.25,
    scale: bool = True,
) -> np.ndarray:
    """Running in-set minus out-of-set CDF difference for one sample.

    `ranks` are the gene ranks of a single sample in matrix row order and
    `in_set` marks the rows belonging to the gene set. The returned sequence
    follows genes from highest to lowest rank.
    """
    r = finite_1d("ranks", ranks)
    mask = np.asarray(in_set, dtype=bool).ravel()
    if mask.size != r.size:
        raise ValueError("ranks and in_set must have same length.")
    if not mask.any():
        raise ValueError("in_set must mark at least one gene.")
    order = descending_order(r)
    return _running_difference(r[order], mask[order], alpha, scale)


def score_from_profile(diff: np.ndarray, single: bool = True) -> float:
    d = finite_1d("diff", diff)
    if single:
        return float(np.sum(d))
    return float(d[int(np.argmax(np.abs(d)))])


def _normalize_by_range(scores: np.ndarray, set_names: list[str]) -> np.ndarray:
    out = np.empty_like(scores)
    for i, name in enumerate(set_names):
        row = scores[i]
        span = float(np.max(row) - np.min(row))
        if not np.isfinite(span) or span <= 0.0:
            raise ValueError(
                f"Cannot normalize gene set '{name}': scores have zero range across "
                f"{row.size} sample(s)."
            )
        out[i] = row / span
    return out


def compute_enrichment(
    expr: pd.DataFrame,
    gene_sets: Mapping[str, Iterable[str]],
    config: EnrichmentConfig | None = None,
    **overrides: Any,
) -> EnrichmentResult:
    """Score every (gene set, sample) pair of a genes x samples matrix."""
    cfg = config or EnrichmentConfig()
    if overrides:
        cfg = cfg.with_overrides(**overrides)

    values = validate_expression(expr)
    sets = validate_gene_sets(gene_sets)
    n_genes = int(values.shape[0])
    genes = expr.index.astype(str)

    set_names = list(sets)
    masks = np.zeros((len(set_names), n_genes), dtype=bool)
    overlap: dict[str, int] = {}
    for i, name in enumerate(set_names):
        mask = np.asarray(genes.isin(sets[name]), dtype=bool)
        n_hit = int(pd.Index(genes[mask]).nunique())
        if n_hit < int(cfg.min_size):
            raise EmptyGeneSetError(name, n_hit, cfg.min_size)
        masks[i] = mask
        overlap[name] = n_hit
        logger.debug(
            "Gene set %s: %d/%d genes present in matrix", name, n_hit, len(sets[name])
        )

    ranks = rank_columns(values)
    scores = np.empty((len(set_names), ranks.shape[1]), dtype=float)
    for j in range(ranks.shape[1]):
        r_col = ranks[:, j]
        order = descending_order(r_col)
        r_ord = r_col[order]
        for i in range(len(set_names)):
            diff = _running_difference(r_ord, masks[i][order], cfg.alpha, cfg.scale)
            scores[i, j] = score_from_profile(diff, single=cfg.single)

    if cfg.norm:
        scores = _normalize_by_range(scores, set_names)

    frame = pd.DataFrame(scores, index=pd.Index(set_names, name="gene_set"), columns=expr.columns)
    logger.info(
        "Scored %d gene set(s) across %d sample(s) over %d genes",
        len(set_names),
        frame.shape[1],
        n_genes,
    )
    return EnrichmentResult(
        scores=frame,
        overlap=overlap,
        n_genes=n_genes,
        config=cfg,
        metadata={"set_sizes": {name: len(sets[name]) for name in set_names}},
    )


def score_gene_sets(
    expr: pd.DataFrame,
    gene_sets: Mapping[str, Iterable[str]],
    config: EnrichmentConfig | None = None,
    **overrides: Any,
) -> pd.DataFrame:
    """Return the gene sets x samples score matrix."""
    return compute_enrichment(expr, gene_sets, config, **overrides).scores


def ssgsea(
    expr: pd.DataFrame,
    gene_sets: Mapping[str, Iterable[str]],
    alpha: float = 0.25,
    scale: bool = True,
    norm: bool = False,
    single: bool = True,
) -> pd.DataFrame:
    return score_gene_sets(
        expr,
        gene_sets,
        EnrichmentConfig(alpha=alpha, scale=scale, norm=norm, single=single),
    )
