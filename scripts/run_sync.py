#!/usr/bin/env python3
"""
Run one ingestion invocation against the auctions API.

Features:
- Resumable: continues from a checkpoint younger than 24 hours
- Budgeted: --max-pages pauses the run so it can be resumed later
- Exclusive: exits quietly when another invocation holds the stream

Usage:
    python scripts/run_sync.py
    python scripts/run_sync.py --no-resume
    python scripts/run_sync.py --max-pages 500
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from auto_catalog.domain.ingestion import IngestionReport, RunStatus
from auto_catalog.infra.ingestion_factory import run_ingestion_job
from auto_catalog.use_cases.run_ingestion import IngestionRequest


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync listings from the auctions API")
    parser.add_argument(
        "--no-resume",
        dest="resume",
        action="store_false",
        help="Discard the checkpoint and start again at page 1",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Pause after fetching this many pages",
    )
    return parser.parse_args(argv)


def print_report(report: IngestionReport) -> None:
    if report.skipped_run:
        print(f"⏭️  Another run is in progress (run {report.run_id}), nothing to do")
        return

    print(f"📄 Pages {report.start_page}..{report.last_page} ({report.pages_fetched} fetched)")
    print(f"🚗 Listings processed: {report.total_processed}")
    if report.skipped_records:
        print(f"   Skipped malformed records: {report.skipped_records}")

    if report.status is RunStatus.COMPLETED:
        print(f"✅ Completed ({report.completion_reason.value if report.completion_reason else ''})")
    elif report.status is RunStatus.FAILED:
        print(f"❌ Failed: {report.error}")
    else:
        reason = report.pause_reason.value if report.pause_reason else "unknown"
        print(f"⏸️  Paused ({reason}); run again to resume")


# ==============================================================================
# Main
# ==============================================================================


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        report = run_ingestion_job(IngestionRequest(resume=args.resume, max_pages=args.max_pages))
    except Exception as e:
        print(f"❌ Error running sync: {e}", file=sys.stderr)
        sys.exit(1)

    print_report(report)
    sys.exit(1 if report.status is RunStatus.FAILED else 0)
