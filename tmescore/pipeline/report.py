"""End-to-end TNBC tumor-microenvironment report."""

from __future__ import annotations

import logging
import platform
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import matplotlib

# Use a non-interactive backend for reproducible headless runs.
matplotlib.use("Agg")
import numpy as np
import pandas as pd

from tmescore._version import __version__
from tmescore.cohort import (
    best_responses,
    filter_to_patients,
    join_records,
    read_deconvolution,
    read_follow_ups,
    read_patients,
    read_tnbc_patients,
    read_treatments,
)
from tmescore.config import ReportConfig, load_report_config
from tmescore.core.enrichment import compute_enrichment, enrichment_profile
from tmescore.core.ranking import descending_order, rank_columns
from tmescore.expression import prepare_expression
from tmescore.pipeline.io import close_logger, ensure_dir, setup_logger, write_json, write_table
from tmescore.plotting import (
    apply_plot_style,
    plot_correlation_scatter,
    plot_enrichment_profile,
    plot_km,
    plot_score_boxplot,
    plot_style_dict,
    sanitize_label,
)
from tmescore.records import DeconvolutionRecord
from tmescore.signatures import IG_SET_NAME, build_gene_sets, read_gene_sets
from tmescore.stats import (
    build_survival,
    compare_groups,
    correlate_with_cell_types,
    survival_by_median,
)

RESPONSE_COLUMNS = [
    "term",
    "n_positive",
    "n_negative",
    "mw_u",
    "p_value",
    "cliffs_delta",
    "median_positive",
    "median_negative",
]
SURVIVAL_COLUMNS = [
    "term",
    "n",
    "n_events",
    "median_score",
    "n_high",
    "n_low",
    "logrank_p",
    "median_os_high_days",
    "median_os_low_days",
    "cox_hr_per_unit",
    "cox_p",
]


@dataclass(frozen=True)
class ReportResult:
    """Summary returned by `run_tme_report`."""

    outdir: str
    n_patients: int
    n_samples_scored: int
    gene_sets: list[str]
    tables: dict[str, str] = field(default_factory=dict)
    figures: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _prepare_report_dirs(outdir: Path) -> tuple[Path, Path, Path]:
    tables_dir = outdir / "tables"
    figures_dir = outdir / "figures"
    logs_dir = outdir / "logs"
    ensure_dir(tables_dir)
    ensure_dir(figures_dir)
    ensure_dir(logs_dir)
    return tables_dir, figures_dir, logs_dir


def _safe_step(
    step: Callable[[], Any],
    *,
    logger: logging.Logger,
    what: str,
    term: str,
    skipped: list[str],
) -> Any:
    """Run an optional analysis step, warning on expected data issues."""
    try:
        return step()
    except ValueError as exc:
        logger.warning("%s skipped: term=%s reason=%s", what, term, exc)
        skipped.append(f"{what}:{term}")
        return None


def _fractions_frame(records: list[DeconvolutionRecord], logger: logging.Logger) -> pd.DataFrame:
    rows = pd.DataFrame([r.to_row() for r in records])
    if rows.empty:
        return pd.DataFrame()
    dup = rows["patient_id"].duplicated(keep="first")
    if dup.any():
        logger.warning("Dropping %d duplicate deconvolution rows", int(dup.sum()))
        rows = rows.loc[~dup]
    return rows.set_index("patient_id")


def run_tme_report(config: ReportConfig | str | Path) -> ReportResult:
    """Score TNBC samples and relate the scores to TME, response and survival."""
    cfg = config if isinstance(config, ReportConfig) else load_report_config(config)
    outdir = Path(cfg.outdir)
    tables_dir, figures_dir, logs_dir = _prepare_report_dirs(outdir)
    # handlers sit on the package logger so library modules reach run.log
    package_logger = setup_logger(logs_dir / "run.log", "tmescore")
    try:
        return _run(cfg, outdir, tables_dir, figures_dir, logging.getLogger(__name__))
    finally:
        close_logger(package_logger)


def _run(
    cfg: ReportConfig,
    outdir: Path,
    tables_dir: Path,
    figures_dir: Path,
    logger: logging.Logger,
) -> ReportResult:
    tables: dict[str, str] = {}
    figures: list[str] = []
    skipped: list[str] = []

    patients = read_tnbc_patients(cfg.tnbc_table, sheet_name=cfg.tnbc_sheet)
    deconv = filter_to_patients(
        read_deconvolution(cfg.deconvolution, cell_types=cfg.cell_types), patients
    )
    patient_recs = filter_to_patients(read_patients(cfg.patient), patients)
    treatments = filter_to_patients(read_treatments(cfg.treatment), patients)
    follow_ups = filter_to_patients(read_follow_ups(cfg.follow_up), patients)
    logger.info(
        "Cohort: %d TNBC patients, %d deconvolution rows, %d clinical, %d treatment, %d follow-up",
        len(patients),
        len(deconv),
        len(patient_recs),
        len(treatments),
        len(follow_ups),
    )

    expr = prepare_expression(cfg.expression, pseudocount=cfg.pseudocount)
    keep = [c for c in expr.columns if c in set(patients)]
    if not keep:
        raise ValueError("No TNBC patients have a primary-tumor expression profile.")
    expr = expr.loc[:, keep]
    logger.info("Expression: %d genes x %d TNBC samples", *expr.shape)

    extra = read_gene_sets(cfg.gene_sets) if cfg.gene_sets is not None else None
    gene_sets = build_gene_sets(expr.index, extra)
    logger.info("%s: %d immunoglobulin genes in matrix", IG_SET_NAME, len(gene_sets[IG_SET_NAME]))

    enrichment = compute_enrichment(expr, gene_sets, cfg.enrichment)
    scores = enrichment.scores
    tables["enrichment_scores"] = write_table(
        tables_dir / "enrichment_scores.csv", scores, index=True
    ).as_posix()

    # patients x gene sets, one row per scored patient
    score_rows = scores.T.rename_axis("patient_id").reset_index()
    fractions = _fractions_frame(deconv, logger)
    responses = best_responses(treatments)
    survival = build_survival(patient_recs, follow_ups)

    frame = join_records(
        score_rows, fractions.reset_index() if not fractions.empty else [], how="left"
    )
    frame = join_records(frame, responses, how="left")
    frame = join_records(frame, survival, how="left")
    tables["analysis_frame"] = write_table(tables_dir / "analysis_frame.csv", frame).as_posix()

    corr_parts = []
    for set_name in scores.index:
        if fractions.empty:
            break
        part = correlate_with_cell_types(
            scores.loc[set_name], fractions, method=cfg.correlation_method
        )
        part.insert(0, "gene_set", set_name)
        corr_parts.append(part)
    corr = pd.concat(corr_parts, ignore_index=True) if corr_parts else pd.DataFrame(
        columns=["gene_set", "cell_type", "rho", "p_value", "n", "q_value", "method"]
    )
    tables["score_vs_cell_types"] = write_table(
        tables_dir / "score_vs_cell_types.csv", corr
    ).as_posix()

    responder = pd.Series(
        {r.patient_id: r.responder for r in responses}, dtype=object, name="responder"
    )
    response_rows = []
    for set_name in scores.index:
        row = _safe_step(
            lambda: compare_groups(scores.loc[set_name], responder, label=str(set_name)),
            logger=logger,
            what="Response comparison",
            term=str(set_name),
            skipped=skipped,
        )
        if row is not None:
            response_rows.append(row)
    response_table = pd.DataFrame(response_rows, columns=RESPONSE_COLUMNS)
    tables["response_comparison"] = write_table(
        tables_dir / "response_comparison.csv", response_table
    ).as_posix()

    survival_results = {}
    for set_name in scores.index:
        res = _safe_step(
            lambda: survival_by_median(
                survival,
                scores.loc[set_name],
                label=str(set_name),
                min_group_size=cfg.min_group_size,
            ),
            logger=logger,
            what="Survival analysis",
            term=str(set_name),
            skipped=skipped,
        )
        if res is not None:
            survival_results[str(set_name)] = res
    survival_table = pd.DataFrame(
        [r.summary for r in survival_results.values()], columns=SURVIVAL_COLUMNS
    )
    tables["survival_summary"] = write_table(
        tables_dir / "survival_summary.csv", survival_table
    ).as_posix()

    if cfg.make_plots:
        apply_plot_style()
        figures = _write_figures(
            expr=expr,
            gene_sets=gene_sets,
            scores=scores,
            fractions=fractions,
            corr=corr,
            responder=responder,
            response_table=response_table,
            survival_results=survival_results,
            figures_dir=figures_dir,
            cfg=cfg,
        )
        logger.info("Wrote %d figures to %s", len(figures), figures_dir)

    result = ReportResult(
        outdir=outdir.as_posix(),
        n_patients=len(patients),
        n_samples_scored=int(scores.shape[1]),
        gene_sets=[str(s) for s in scores.index],
        tables=tables,
        figures=figures,
        skipped=skipped,
    )
    write_json(
        outdir / "metadata.json",
        {
            "timestamp_utc": _now_utc_iso(),
            "tmescore_version": __version__,
            "python_version": platform.python_version(),
            "versions": {"numpy": np.__version__, "pandas": pd.__version__},
            "parameters": {
                "enrichment": asdict(cfg.enrichment),
                "correlation_method": cfg.correlation_method,
                "pseudocount": cfg.pseudocount,
                "min_group_size": cfg.min_group_size,
            },
            "overlap": enrichment.overlap,
            "n_genes": enrichment.n_genes,
            "plot_style": plot_style_dict() if cfg.make_plots else None,
            "result": asdict(result),
        },
    )
    logger.info("Report complete: %s", outdir)
    return result


def _write_figures(
    *,
    expr: pd.DataFrame,
    gene_sets: dict[str, list[str]],
    scores: pd.DataFrame,
    fractions: pd.DataFrame,
    corr: pd.DataFrame,
    responder: pd.Series,
    response_table: pd.DataFrame,
    survival_results: dict[str, Any],
    figures_dir: Path,
    cfg: ReportConfig,
) -> list[str]:
    out: list[str] = []
    groups = responder.map({True: "Responder", False: "Non-responder"})
    p_by_set = dict(zip(response_table["term"], response_table["p_value"]))

    for set_name in scores.index:
        stem = sanitize_label(set_name)
        values = scores.loc[set_name]

        if str(set_name) in p_by_set:
            path = figures_dir / f"{stem}_by_response.png"
            plot_score_boxplot(
                values,
                groups,
                path,
                order=["Responder", "Non-responder"],
                p_value=float(p_by_set[str(set_name)]),
                ylabel=f"{set_name} (ssGSEA)",
                title="Best response to therapy",
            )
            out.append(path.as_posix())

        sub = corr[(corr["gene_set"] == set_name) & corr["p_value"].notna()] if not corr.empty else corr
        if not fractions.empty and len(sub):
            top = sub.iloc[0]
            path = figures_dir / f"{stem}_vs_{sanitize_label(top['cell_type'])}.png"
            plot_correlation_scatter(
                values,
                fractions[top["cell_type"]],
                path,
                rho=float(top["rho"]),
                p_value=float(top["p_value"]),
                xlabel=f"{set_name} (ssGSEA)",
                ylabel=str(top["cell_type"]),
            )
            out.append(path.as_posix())

        surv = survival_results.get(str(set_name))
        if surv is not None:
            path = figures_dir / f"{stem}_km.png"
            plot_km(
                surv.table,
                path,
                p_value=float(surv.summary["logrank_p"]),
                title=f"Overall survival by {set_name} (median split)",
            )
            out.append(path.as_posix())

    ig_genes = set(gene_sets[IG_SET_NAME])
    first_sample = expr.columns[0]
    ranks = rank_columns(expr[[first_sample]].to_numpy(dtype=float))[:, 0]
    in_set = expr.index.isin(ig_genes)
    profile = enrichment_profile(ranks, in_set, alpha=cfg.enrichment.alpha, scale=cfg.enrichment.scale)
    path = figures_dir / f"{sanitize_label(IG_SET_NAME)}_profile_{sanitize_label(first_sample)}.png"
    plot_enrichment_profile(
        profile,
        path,
        in_set=in_set[descending_order(ranks)],
        title=f"{IG_SET_NAME}: {first_sample}",
    )
    out.append(path.as_posix())
    return out
