"""Statistical utilities for tmescore reports."""

from tmescore.stats.correlation import bh_fdr, correlate_with_cell_types, safe_correlation
from tmescore.stats.groups import cliffs_delta, compare_groups
from tmescore.stats.survival import SurvivalAnalysis, build_survival, survival_by_median

__all__ = [
    "bh_fdr",
    "safe_correlation",
    "correlate_with_cell_types",
    "cliffs_delta",
    "compare_groups",
    "SurvivalAnalysis",
    "build_survival",
    "survival_by_median",
]
