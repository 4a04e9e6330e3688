"""Command line entry point for the quotation pipeline."""
import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from quoteflow.core.config import DEFAULT_ENV_FILE, ConfigError, load_settings
from quoteflow.core.logging import configure_logging
from quoteflow.core.utils import get_config_value, load_env_file
from quoteflow.export.sinks import CsvDraftStore
from quoteflow.processing.pipeline import run_pipeline, serve
from quoteflow.review.workflow import (
    line_items_for_display,
    load_review_rows,
    mark_status,
    pending_rows,
    status_summary,
)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per mode."""

    parser = argparse.ArgumentParser(description="Process inbound quotation requests")
    parser.add_argument("--env-file", type=Path, help="Env file loaded before reading settings")
    parser.add_argument("--log-level", help="Overrides LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Poll the mailbox and dispatch queued requests until interrupted")

    process = subparsers.add_parser("process", help="Process the .eml files in a directory once")
    process.add_argument(
        "--data-dir",
        type=Path,
        default=Path("inbox"),
        help="Directory holding the .eml files to process",
    )

    review = subparsers.add_parser("review", help="List pending drafts or record a supervisor decision")
    review.add_argument("--store", type=Path, help="CSV draft store (defaults to DRAFT_STORE)")
    decision = review.add_mutually_exclusive_group()
    decision.add_argument("--approve", metavar="DRAFT_ID")
    decision.add_argument("--reject", metavar="DRAFT_ID")
    return parser


def _review(args: argparse.Namespace) -> int:
    load_env_file(args.env_file or Path(os.getenv("QUOTEFLOW_ENV_FILE", DEFAULT_ENV_FILE)))
    store = CsvDraftStore(args.store or Path(get_config_value("DRAFT_STORE", "output/quotations.csv")))
    if args.approve or args.reject:
        draft_id = args.approve or args.reject
        try:
            row = mark_status(store, draft_id, "approved" if args.approve else "rejected")
        except (KeyError, ValueError) as exc:
            print(f"error: {exc.args[0]}", file=sys.stderr)
            return 1
        print(f"{row['Id']} -> {row['Status']}")
        return 0

    currency = get_config_value("CURRENCY", "Kz")
    rows = load_review_rows(store)
    for row in pending_rows(rows):
        print(f"{row['Id']}  {row['Saved_At']}  {row['Client_Name']} <{row['Client_Email']}>  {row['Total']}")
        for item in line_items_for_display(row, currency):
            print(f"    {item['Quantity']} x {item['Item']} @ {item['Unit price']} = {item['Subtotal']}")
    summary = status_summary(rows)
    print(", ".join(f"{key}={value}" for key, value in summary.items()))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for running the pipeline from the command line."""

    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "review":
        return _review(args)

    try:
        settings = load_settings(args.env_file)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    if args.command == "serve":
        serve(settings)
        return 0

    outcomes = run_pipeline(args.data_dir, settings)
    escalated = sum(1 for outcome in outcomes if outcome.is_escalation)
    print(f"Processed {len(outcomes)} requests ({escalated} sent for review)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
