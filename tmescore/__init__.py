"""tmescore public API."""

from tmescore._version import __version__
from tmescore.core.enrichment import compute_enrichment, score_gene_sets, ssgsea
from tmescore.core.types import EmptyGeneSetError, EnrichmentConfig, InvalidExpressionError
from tmescore.signatures import build_gene_sets, immunoglobulin_genes


def run_tme_report(*args, **kwargs):
    """Lazy wrapper to avoid importing plotting and survival dependencies at import time."""
    from tmescore.pipeline.report import run_tme_report as _run_tme_report

    return _run_tme_report(*args, **kwargs)


__all__ = [
    "__version__",
    "EnrichmentConfig",
    "EmptyGeneSetError",
    "InvalidExpressionError",
    "compute_enrichment",
    "score_gene_sets",
    "ssgsea",
    "build_gene_sets",
    "immunoglobulin_genes",
    "run_tme_report",
]
