"""FastAPI routes for tree health records and dashboard analytics."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from controllers.record_controller import (
    get_record,
    get_status,
    get_summary,
    get_thumbnail,
    list_records,
    save_record,
    seed_record,
)
from models.api_models import (
    RecordListResponse,
    RecordOut,
    SaveRecordResponse,
    SeedResponse,
    StatusResponse,
    SummaryResponse,
)
from services.errors import RecordStoreError

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


def _unexpected(exc: Exception) -> HTTPException:
    LOGGER.exception("Unhandled error in record route")
    return HTTPException(status_code=500, detail=str(exc) or "Server error occurred")


@router.post("", response_model=SaveRecordResponse)
async def save_record_route(request: Request):
    """Save one classification result (image, status, predictions)."""
    try:
        return await save_record(request)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.get("", response_model=RecordListResponse)
async def list_records_route(
    request: Request,
    limit: Optional[int] = Query(None),
    sort: str = Query("desc"),
):
    """List the newest records first (or oldest first with `sort=asc`)."""
    try:
        return await list_records(request, limit, sort)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.get("/summary", response_model=SummaryResponse)
async def summary_route(request: Request, limit: Optional[int] = Query(None)):
    try:
        return await get_summary(request, limit)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.get("/status", response_model=StatusResponse)
async def status_route(request: Request):
    try:
        return await get_status(request)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.post("/seed", response_model=SeedResponse)
async def seed_route(request: Request):
    """Insert a sample record."""
    try:
        return await seed_record(request)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.get("/{record_id}", response_model=RecordOut)
async def get_record_route(request: Request, record_id: str):
    try:
        return await get_record(request, record_id)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc


@router.get("/{record_id}/thumbnail")
async def get_thumbnail_route(request: Request, record_id: str):
    """Return PNG thumbnail bytes for the record's image."""
    try:
        return await get_thumbnail(request, record_id)
    except (HTTPException, RecordStoreError):
        raise
    except Exception as exc:
        raise _unexpected(exc) from exc
