"""Core enrichment scoring subpackage."""

from tmescore.core.enrichment import (
    compute_enrichment,
    enrichment_profile,
    score_from_profile,
    score_gene_sets,
    ssgsea,
)
from tmescore.core.ranking import descending_order, rank_columns
from tmescore.core.types import (
    EmptyGeneSetError,
    EnrichmentConfig,
    EnrichmentResult,
    InvalidExpressionError,
)

__all__ = [
    "EnrichmentConfig",
    "EnrichmentResult",
    "EmptyGeneSetError",
    "InvalidExpressionError",
    "compute_enrichment",
    "enrichment_profile",
    "score_from_profile",
    "score_gene_sets",
    "ssgsea",
    "rank_columns",
    "descending_order",
]
