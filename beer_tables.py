"""Recover the MANUFACTURE OF BEER table from monthly statistical reports.

Per-document pipeline:
  1. extract_lines   – layout-preserving page text from pdfplumber
  2. locate          – slice the table between its start and end anchor lines
  3. split_columns   – runs of 2+ spaces are column boundaries, commas dropped
  4. parse_window    – label + four measures per row, bad rows kept as anomalies
  5. segment         – production rows above "MATERIALS USED", materials below
  6. classify        – tax status / material type from fixed label rules

Documents run concurrently and are merged back in (year, month) order into
production.csv and materials.csv, with diagnostics.json listing every rejected
row and document.
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import find_dotenv, load_dotenv

from pdf_config import load_config
from pdf_pipeline import diagnostics_frame, find_documents, run, write_outputs

logger = logging.getLogger(__name__)


def _parse_years(text: str) -> list[int]:
    """Parse ``2016`` or ``2008-2019`` into a list of years."""
    try:
        if "-" in text:
            first, last = (int(p) for p in text.split("-", 1))
        else:
            first = last = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid year range: {text!r}") from None
    if first > last:
        raise argparse.ArgumentTypeError(f"empty year range: {text!r}")
    return list(range(first, last + 1))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract beer production and materials tables from monthly PDF reports.",
    )
    parser.add_argument("input", help="Directory containing the monthly PDF reports")
    parser.add_argument("--out-root", help="Output directory (default: $BEER_TABLES_OUT_ROOT or ./output)")
    parser.add_argument(
        "--years",
        type=_parse_years, metavar="YYYY[-YYYY]",
        help="Only process reports for these years",
    )
    parser.add_argument("-w", "--workers", type=int, metavar="N", help="Concurrent documents")
    parser.add_argument("--timeout", type=float, metavar="S", help="Per-document extraction timeout in seconds")
    parser.add_argument("--start-anchor", help="Text of the line that opens the table")
    parser.add_argument("--end-anchor", help="Text of the line that closes the table")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True), override=False)
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_config(
            out_root=args.out_root,
            start_anchor=args.start_anchor,
            end_anchor=args.end_anchor,
            max_workers=args.workers,
            timeout=args.timeout,
            log_level=args.log_level,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    docs = find_documents(args.input, years=args.years)
    if not docs:
        print(f"No dated PDF reports found under {args.input}", file=sys.stderr)
        return 1

    logger.info("%d report(s) found, writing to %s", len(docs), cfg.out_root)
    try:
        result = run(docs, config=cfg)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130

    paths = write_outputs(result, cfg.out_root)

    print("=" * 64)
    print("RESULTS")
    print("=" * 64)
    print(f"  Documents:       {len(docs)} ({len(result.errors)} failed)")
    print(f"  Production rows: {len(result.production)}  -> {paths['production']}")
    print(f"  Materials rows:  {len(result.materials)}  -> {paths['materials']}")

    diagnostics = diagnostics_frame(result.errors, result.anomalies)
    if not diagnostics.empty:
        print(f"  Diagnostics:     {len(diagnostics)}  -> {paths['diagnostics']}")
        for (kind, reason), count in diagnostics.groupby(["kind", "reason"]).size().items():
            print(f"      {kind:<15} {reason}: {count}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
