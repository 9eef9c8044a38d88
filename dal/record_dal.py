"""Async Data Access Layer for the TREE_RECORD table.

Provides RecordDAL with the insert and read queries the record store needs.
Records are insert-only: there is no update or delete.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional, Sequence
from uuid import uuid4

import aiosqlite

from models.tree_record import ClassificationRecord, Prediction, to_iso
from services.errors import StorageError
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class RecordDAL:
    """Data access layer for TREE_RECORD rows.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`). Driver errors are re-raised as StorageError.
    """

    _COLUMNS = (
        "id",
        "subject_id",
        "image_data",
        "health_status",
        "timestamp",
        "predictions",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)
    _PLACEHOLDERS = ", ".join("?" for _ in _COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with self._db.connection() as conn:
                yield conn
        except StorageError:
            raise
        except (aiosqlite.Error, OSError, ValueError) as exc:
            LOGGER.error("Database failure while trying to %s: %s", action, exc)
            raise StorageError(f"Failed to {action}") from exc

    async def create_record(self, record: ClassificationRecord) -> ClassificationRecord:
        """Insert a new TREE_RECORD row.

        Args:
            record: Record with `id=None`; `created_at` defaults to now.

        Returns:
            The stored record with its assigned `id` and `created_at`.
        """
        stored = dataclasses.replace(
            record,
            id=record.id or uuid4().hex,
            created_at=record.created_at or _now_ms(),
        )
        predictions_json = json.dumps([p.to_dict() for p in stored.predictions])

        async with self._session("insert record") as conn:
            await conn.execute(
                f"INSERT INTO TREE_RECORD ({self._COLUMN_LIST}) VALUES ({self._PLACEHOLDERS})",
                (
                    stored.id,
                    stored.subject_id,
                    stored.image_data,
                    stored.health_status,
                    to_iso(stored.timestamp),
                    predictions_json,
                    to_iso(stored.created_at),
                ),
            )
            await conn.commit()
        return stored

    async def get_record_by_id(self, record_id: str) -> Optional[ClassificationRecord]:
        """Return the record for `record_id`, or None if not found."""
        async with self._session("read record") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM TREE_RECORD WHERE id = ?",
                (record_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_records(self, limit: int = 100, ascending: bool = False) -> List[ClassificationRecord]:
        """List rows ordered by analysis timestamp.

        Args:
            limit: Maximum number of rows to return.
            ascending: Oldest first when True; newest first otherwise.
        """
        direction = "ASC" if ascending else "DESC"
        async with self._session("list records") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM TREE_RECORD "
                f"ORDER BY timestamp {direction}, created_at {direction} LIMIT ?",
                (limit,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def count_records(self) -> int:
        async with self._session("count records") as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM TREE_RECORD")
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ClassificationRecord:
        """Convert a DB row tuple into a ClassificationRecord."""
        predictions = [
            Prediction(label=str(p["className"]), probability=float(p["probability"]))
            for p in json.loads(str(row[5]))
        ]
        return ClassificationRecord(
            id=str(row[0]),
            subject_id=str(row[1]),
            image_data=str(row[2]),
            health_status=str(row[3]),
            timestamp=_parse_stored(row[4]),
            predictions=predictions,
            created_at=_parse_stored(row[6]),
        )


def _now_ms() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _parse_stored(value: object) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
