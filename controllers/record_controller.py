"""Controllers for saving, listing and summarizing tree health records."""

from __future__ import annotations

import base64
import io
import json
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import Response
from PIL import Image

from services.analytics import build_report
from services.classification import health_status_for, normalize_predictions
from services.errors import RecordValidationError
from services.record_store import RecordStore
from services.thumbnail_generator import ThumbnailGenerator
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)

SEED_PREDICTIONS = {"healthy": 0.95, "unhealthy": 0.05}
SEED_COLOR = (34, 139, 34)


def _get_store(request: Request) -> RecordStore:
    """Retrieve the shared record store from the app state."""
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Record store not initialized.")
    return store


async def save_record(request: Request) -> Dict[str, Any]:
    """Validate the JSON body and persist it as a new record.

    Returns:
        `{success, message, id, record}` for the stored record.

    Raises:
        RecordValidationError: Body is not JSON or misses required fields.
        StorageError: The database could not take the write.
    """
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RecordValidationError("Invalid JSON data") from exc

    record = await _get_store(request).create(data)
    return {
        "success": True,
        "message": "Record saved successfully",
        "id": record.id,
        "record": record.to_dict(),
    }


async def list_records(request: Request, limit: int | None, sort: str) -> Dict[str, Any]:
    """Return the newest `limit` records; `count` is the stored total."""
    store = _get_store(request)
    records = await store.list(limit=limit, sort_order=sort)
    return {
        "success": True,
        "count": await store.count(),
        "data": [r.to_dict() for r in records],
    }


async def get_summary(request: Request, limit: int | None) -> Dict[str, Any]:
    """Health counts and daily breakdown over the newest `limit` records."""
    records = await _get_store(request).list(limit=limit)
    report = build_report(records)
    report["success"] = True
    return report


async def get_status(request: Request) -> Dict[str, Any]:
    """Confirm the database answers and report the latest record."""
    store = _get_store(request)
    count = await store.count()
    latest = await store.latest()
    latest_info = None
    if latest is not None:
        latest_dict = latest.to_dict()
        latest_info = {
            "subjectId": latest_dict["subjectId"],
            "healthStatus": latest_dict["healthStatus"],
            "timestamp": latest_dict["timestamp"],
        }
    return {
        "success": True,
        "message": "Database connection successful",
        "recordCount": count,
        "latestRecord": latest_info,
    }


def _sample_image_data() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), SEED_COLOR).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


async def seed_record(request: Request) -> Dict[str, Any]:
    """Insert a small sample record so dashboards have something to show."""
    predictions = normalize_predictions(SEED_PREDICTIONS)
    record = await _get_store(request).create(
        {
            "imageData": _sample_image_data(),
            "healthStatus": health_status_for(predictions),
            "predictions": [p.to_dict() for p in predictions],
        }
    )
    LOGGER.info("Inserted sample record %s", record.id)
    return {"success": True, "message": "Test record inserted successfully", "id": record.id}


async def get_record(request: Request, record_id: str) -> Dict[str, Any]:
    record = await _get_store(request).get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_dict()


async def get_thumbnail(request: Request, record_id: str) -> Response:
    """Render a PNG preview of a stored record's image.

    Raises:
        HTTPException(404) if the record is unknown, (422) if its payload
        is not a decodable image.
    """
    record = await _get_store(request).get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")

    try:
        png = ThumbnailGenerator().create_thumbnail(record.image_data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(content=png, media_type="image/png")


def database_ready(request: Request) -> bool:
    db: AsyncDatabaseInitializer | None = getattr(request.app.state, "db_initializer", None)
    return bool(db and db.initialized)
