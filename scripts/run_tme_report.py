#!/usr/bin/env python3
"""CLI entrypoint for the TNBC tumor-microenvironment report."""

from __future__ import annotations

import argparse

from tmescore.pipeline.report import run_tme_report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the TNBC TME report (enrichment, deconvolution, response, survival)."
    )
    parser.add_argument(
        "--config", required=True, help="Path to JSON config for the report."
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    run_tme_report(str(args.config))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
