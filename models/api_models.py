"""Request and response schemas for the record API (camelCase on the wire)."""

import math
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, field_validator

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _number_to_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class PredictionIn(BaseModel):
    """One classifier output entry as sent by the browser."""

    label: str = Field(..., validation_alias=AliasChoices("className", "label"))
    probability: float

    @field_validator("label", mode="before")
    @classmethod
    def _label_as_text(cls, value: Any) -> Any:
        return _number_to_text(value)

    @field_validator("probability", mode="before")
    @classmethod
    def _finite_number(cls, value: Any) -> float:
        # No range clamping: probabilities are stored as the classifier reported them.
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValueError("probability must be a number") from exc
        if not math.isfinite(number):
            raise ValueError("probability must be finite")
        return number


class RecordCandidate(BaseModel):
    """Body of `POST /records`. `imageUrl` and `treeId` are accepted from older clients."""

    image_data: NonBlankStr = Field(..., validation_alias=AliasChoices("imageData", "imageUrl"))
    health_status: NonBlankStr = Field(..., validation_alias="healthStatus")
    predictions: List[PredictionIn] = Field(..., min_length=1)
    subject_id: Optional[str] = Field(None, validation_alias=AliasChoices("subjectId", "treeId"))
    timestamp: Optional[datetime] = None

    @field_validator("subject_id", mode="before")
    @classmethod
    def _subject_as_text(cls, value: Any) -> Any:
        value = _number_to_text(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("health_status")
    @classmethod
    def _lower_status(cls, value: str) -> str:
        return value.lower()

    @field_validator("timestamp", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_in_range(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        # The value is rendered in UTC and bucketed by local date, so both
        # conversions (up to a day either way) must stay inside datetime's range.
        try:
            utc = value.astimezone(timezone.utc)
            for shift in (-1, 1):
                utc + timedelta(days=shift)
        except OverflowError as exc:
            raise ValueError("timestamp is outside the supported date range") from exc
        return utc


class PredictionOut(ApiModel):
    class_name: str = Field(..., alias="className")
    probability: float


class RecordOut(ApiModel):
    id: str
    subject_id: str = Field(..., alias="subjectId")
    image_data: str = Field(..., alias="imageData")
    health_status: str = Field(..., alias="healthStatus")
    timestamp: str
    predictions: List[PredictionOut]
    created_at: Optional[str] = Field(None, alias="createdAt")


class SaveRecordResponse(ApiModel):
    success: bool = True
    message: str
    id: str
    record: RecordOut


class RecordListResponse(ApiModel):
    success: bool = True
    count: int
    data: List[RecordOut]


class DailyBucketOut(ApiModel):
    date: str
    count: int
    healthy_count: int = Field(..., alias="healthyCount")
    unhealthy_count: int = Field(..., alias="unhealthyCount")


class SummaryResponse(ApiModel):
    success: bool = True
    total_records: int = Field(..., alias="totalRecords")
    healthy_count: int = Field(..., alias="healthyCount")
    unhealthy_count: int = Field(..., alias="unhealthyCount")
    daily_analysis: List[DailyBucketOut] = Field(..., alias="dailyAnalysis")


class LatestRecordOut(ApiModel):
    subject_id: str = Field(..., alias="subjectId")
    health_status: str = Field(..., alias="healthStatus")
    timestamp: str


class StatusResponse(ApiModel):
    success: bool = True
    message: str
    record_count: int = Field(..., alias="recordCount")
    latest_record: Optional[LatestRecordOut] = Field(None, alias="latestRecord")


class SeedResponse(ApiModel):
    success: bool = True
    message: str
    id: str
