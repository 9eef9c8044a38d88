"""Validate and normalize an incoming record body before it reaches the store.

`validate_record_candidate` never raises for bad input; it runs the body
through the `RecordCandidate` schema and returns either a `ValidRecord`
carrying the normalized (unsaved) record or an `InvalidRecord` listing every
problem found.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from models.api_models import RecordCandidate
from models.tree_record import ClassificationRecord, Prediction

REQUIRED_FIELDS = ("imageData", "healthStatus", "predictions")

# Older clients sent `imageUrl` / `treeId`; errors are reported under the current names.
CANONICAL_NAMES = {"imageUrl": "imageData", "treeId": "subjectId"}

# Error types pydantic uses for absent or empty values.
EMPTY_ERROR_TYPES = {"missing", "string_too_short", "too_short"}


@dataclass(frozen=True)
class ValidRecord:
    record: ClassificationRecord


@dataclass(frozen=True)
class InvalidRecord:
    error: str
    missing_fields: List[str] = field(default_factory=list)
    invalid_fields: List[str] = field(default_factory=list)


ValidationResult = Union[ValidRecord, InvalidRecord]


def truncate_ms(value: datetime) -> datetime:
    """Drop sub-millisecond precision so stored and returned values agree."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _field_path(loc: Tuple[Any, ...]) -> str:
    """Render a pydantic error location as `predictions[0].probability`."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            name = CANONICAL_NAMES.get(str(part), str(part))
            path += f".{name}" if path else name
    return path


def _split_errors(exc: ValidationError) -> Tuple[List[str], List[str]]:
    missing: List[str] = []
    invalid: List[str] = []
    for err in exc.errors():
        path = _field_path(tuple(err.get("loc", ())))
        is_empty = err.get("type") in EMPTY_ERROR_TYPES or err.get("input") is None
        if path in REQUIRED_FIELDS and is_empty:
            if path not in missing:
                missing.append(path)
        elif path not in invalid:
            invalid.append(path)
    missing.sort(key=REQUIRED_FIELDS.index)
    return missing, invalid


def validate_record_candidate(data: Any, now: Optional[datetime] = None) -> ValidationResult:
    """Check and normalize a record body.

    Args:
        data: Decoded JSON request body.
        now: Store processing time; used for a missing `timestamp` and the
            generated `subjectId`. Defaults to the current UTC time.

    Returns:
        ValidRecord with an unsaved ClassificationRecord (`id` and
        `created_at` unset), or InvalidRecord naming every missing field
        (in `imageData, healthStatus, predictions` order) and every
        malformed one.
    """
    if not isinstance(data, Mapping):
        return InvalidRecord(error="Invalid request format")

    now = now or datetime.now(timezone.utc)

    try:
        candidate = RecordCandidate.model_validate(dict(data))
    except ValidationError as exc:
        missing, invalid = _split_errors(exc)
        if missing:
            return InvalidRecord(
                error=f"Missing required fields: {', '.join(missing)}",
                missing_fields=missing,
                invalid_fields=invalid,
            )
        return InvalidRecord(
            error=f"Invalid fields: {', '.join(invalid)}",
            invalid_fields=invalid,
        )

    record = ClassificationRecord(
        id=None,
        subject_id=candidate.subject_id or f"tree-{int(now.timestamp() * 1000)}",
        image_data=candidate.image_data,
        health_status=candidate.health_status,
        timestamp=truncate_ms(candidate.timestamp or now),
        predictions=[Prediction(label=p.label, probability=p.probability) for p in candidate.predictions],
    )
    return ValidRecord(record=record)
