from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def to_iso(value: datetime) -> str:
    """Render an aware datetime as UTC ISO-8601 with a `Z` suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Prediction:
    """One `{label, probability}` pair as produced by the classifier."""

    label: str
    probability: float

    def to_dict(self) -> Dict[str, Any]:
        return {"className": self.label, "probability": self.probability}


@dataclass
class ClassificationRecord:
    """In-memory representation of a row in the TREE_RECORD table.

    Attributes:
        id: Opaque identifier assigned by the store (None before insert).
        subject_id: Caller label for the photographed tree.
        image_data: Encoded image payload exactly as the client sent it.
        health_status: Lower-cased status tag, e.g. "healthy".
        timestamp: When the analysis was produced; sort and bucketing key.
        predictions: Classifier output in the order it was produced.
        created_at: Store receipt time (None before insert).
    """

    id: Optional[str]
    subject_id: str
    image_data: str
    health_status: str
    timestamp: datetime
    predictions: List[Prediction] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by the HTTP API."""
        return {
            "id": self.id,
            "subjectId": self.subject_id,
            "imageData": self.image_data,
            "healthStatus": self.health_status,
            "timestamp": to_iso(self.timestamp),
            "predictions": [p.to_dict() for p in self.predictions],
            "createdAt": to_iso(self.created_at) if self.created_at else None,
        }
