"""Print the newest tree records and their daily health breakdown.

Uses the same settings as the application (`DATABASE_DIR` and friends, with
`.env` support), so it reads the database the service writes.

Run: set the `DATABASE_DIR` environment variable and run
      `python print_db.py [limit]`.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv

from models.tree_record import ClassificationRecord
from services.analytics import bucket_by_day, summarize
from services.errors import RecordStoreError
from services.record_store import RecordStore
from utils.config import load_settings
from utils.database_init import AsyncDatabaseInitializer


def format_report(records: List[ClassificationRecord]) -> List[str]:
    """Render records plus summary and per-day counts as printable lines."""
    lines: List[str] = []
    for record in records:
        top = ", ".join(f"{p.label}={p.probability:.2f}" for p in record.predictions)
        lines.append(
            f"{record.timestamp.isoformat()}  {record.subject_id:<20} {record.health_status:<10} [{top}]"
        )

    summary = summarize(records)
    lines.append("")
    lines.append(
        f"Total: {summary.total_records}  Healthy: {summary.healthy_count}  "
        f"Unhealthy: {summary.unhealthy_count}"
    )
    for bucket in bucket_by_day(records):
        lines.append(
            f"  {bucket.date}: {bucket.count} "
            f"(healthy {bucket.healthy_count}, unhealthy {bucket.unhealthy_count})"
        )
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print recent tree records")
    parser.add_argument("limit", nargs="?", type=int, default=100, help="Number of records to show")
    return parser


async def main(limit: int) -> int:
    """Open the configured database and print the report. Returns an exit code."""
    settings = load_settings()
    initializer = AsyncDatabaseInitializer(settings)
    store = RecordStore(initializer, max_list_limit=max(limit, settings.max_list_limit))
    try:
        records = await store.list(limit=limit)
    except RecordStoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        await initializer.close()
    print("\n".join(format_report(records)))
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.limit < 1:
        print("Error: limit must be at least 1", file=sys.stderr)
        return 2
    return asyncio.run(main(args.limit))


if __name__ == "__main__":
    load_dotenv()
    sys.exit(run())
