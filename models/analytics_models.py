"""Derived aggregates computed from stored records. Never persisted."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class HealthSummary:
    total_records: int = 0
    healthy_count: int = 0
    unhealthy_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "healthyCount": self.healthy_count,
            "unhealthyCount": self.unhealthy_count,
        }


@dataclass
class DailyBucket:
    """Counts for one calendar date (`YYYY-MM-DD`)."""

    date: str
    count: int = 0
    healthy_count: int = 0
    unhealthy_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "count": self.count,
            "healthyCount": self.healthy_count,
            "unhealthyCount": self.unhealthy_count,
        }
