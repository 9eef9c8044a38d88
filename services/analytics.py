"""Health counts and per-day breakdowns over a snapshot of records.

Everything here is a pure function of its input: no I/O and no state kept
between calls, so the same records always give the same output.

The health partition is binary. A record counts as healthy only when its
status is exactly "healthy"; every other value, including unknown tags,
counts as unhealthy.
"""

from __future__ import annotations

from datetime import tzinfo
from typing import Any, Dict, Iterable, List, Optional

from models.analytics_models import DailyBucket, HealthSummary
from models.tree_record import ClassificationRecord

HEALTHY = "healthy"


def is_healthy(record: ClassificationRecord) -> bool:
    return record.health_status == HEALTHY


def summarize(records: Iterable[ClassificationRecord]) -> HealthSummary:
    summary = HealthSummary()
    for record in records:
        summary.total_records += 1
        if is_healthy(record):
            summary.healthy_count += 1
        else:
            summary.unhealthy_count += 1
    return summary


def day_key(record: ClassificationRecord, tz: Optional[tzinfo] = None) -> str:
    """Calendar date of the record's timestamp as `YYYY-MM-DD`.

    With `tz=None` the date is taken in the process's local time zone.
    """
    return record.timestamp.astimezone(tz).date().isoformat()


def bucket_by_day(records: Iterable[ClassificationRecord], tz: Optional[tzinfo] = None) -> List[DailyBucket]:
    """Group records into one bucket per calendar date.

    Buckets come out in the order their date is first seen in `records`, not
    chronologically. Records from `RecordStore.list()` are newest first, so
    the buckets are usually newest first too; sort them before charting if
    order matters. Days without records get no bucket.
    """
    buckets: Dict[str, DailyBucket] = {}
    for record in records:
        key = day_key(record, tz)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DailyBucket(date=key)
        bucket.count += 1
        if is_healthy(record):
            bucket.healthy_count += 1
        else:
            bucket.unhealthy_count += 1
    return list(buckets.values())


def build_report(records: Iterable[ClassificationRecord], tz: Optional[tzinfo] = None) -> Dict[str, Any]:
    """Summary counts plus `dailyAnalysis`, shaped for the dashboard."""
    snapshot = list(records)
    report = summarize(snapshot).to_dict()
    report["dailyAnalysis"] = [bucket.to_dict() for bucket in bucket_by_day(snapshot, tz)]
    return report
