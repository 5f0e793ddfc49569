"""Command-line interfaces for tmescore."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

from tmescore.core.enrichment import compute_enrichment
from tmescore.core.types import EnrichmentConfig
from tmescore.expression import log_transform, read_tpm_matrix
from tmescore.pipeline.io import ensure_dir
from tmescore.signatures import read_gene_sets


def score_main(argv: Iterable[str] | None = None) -> int:
    """Score gene sets for every sample of an expression TSV.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(description="Single-sample gene set enrichment scores")
    parser.add_argument("--expr", required=True, help="Genes x samples TSV (first column = gene)")
    parser.add_argument("--gene-sets", required=True, help="Gene sets (.gmt or .json)")
    parser.add_argument("--out", default="enrichment_scores.csv", help="Output CSV path")
    parser.add_argument("--alpha", type=float, default=0.25, help="Rank weight exponent")
    parser.add_argument(
        "--no-scale", action="store_true", help="Do not divide by the number of genes"
    )
    parser.add_argument(
        "--norm", action="store_true", help="Divide each set's scores by their range"
    )
    parser.add_argument(
        "--max-deviation",
        action="store_true",
        help="Report the signed maximum deviation instead of the summed difference",
    )
    parser.add_argument("--min-size", type=int, default=1, help="Minimum genes present per set")
    parser.add_argument(
        "--log", action="store_true", help="Apply log2(x + 1) before scoring"
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    expr = read_tpm_matrix(args.expr)
    if args.log:
        expr = log_transform(expr)
    config = EnrichmentConfig(
        alpha=args.alpha,
        scale=not args.no_scale,
        norm=args.norm,
        single=not args.max_deviation,
        min_size=args.min_size,
    )
    result = compute_enrichment(expr, read_gene_sets(args.gene_sets), config)

    out_path = Path(args.out)
    ensure_dir(out_path.parent)
    result.scores.to_csv(out_path)
    for name, n_hit in result.overlap.items():
        print(f"gene_set={name} overlap={n_hit}")
    print(f"samples={result.scores.shape[1]} genes={result.n_genes}")
    print(f"wrote={out_path.as_posix()}")
    return 0


def report_main(argv: Iterable[str] | None = None) -> int:
    """Run the TNBC TME report from a JSON config.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(description="TNBC tumor-microenvironment report")
    parser.add_argument(
        "--config", default="configs/tnbc_tme.json", help="Path to report config"
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    from tmescore.pipeline.report import run_tme_report

    result = run_tme_report(args.config)
    print(f"outdir={result.outdir}")
    print(f"samples_scored={result.n_samples_scored}")
    if result.skipped:
        print(f"skipped={','.join(result.skipped)}")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(description="tmescore CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("score", help="Score gene sets for an expression matrix")
    sub.add_parser("report", help="Run the TNBC TME report")

    args, remainder = parser.parse_known_args(list(argv) if argv is not None else None)
    if args.command == "score":
        return score_main(remainder)
    if args.command == "report":
        return report_main(remainder)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
