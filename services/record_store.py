"""Record store: validated inserts and recency-ordered reads of tree records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from dal.record_dal import RecordDAL
from models.tree_record import ClassificationRecord
from services.errors import RecordValidationError
from services.record_validation import InvalidRecord, validate_record_candidate
from utils.config import DEFAULT_LIST_LIMIT, DEFAULT_MAX_IMAGE_BYTES, DEFAULT_MAX_LIST_LIMIT
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)

SORT_ORDERS = ("desc", "asc")


class RecordStore:
    """Validate, persist and list classification records.

    Args:
        db_initializer: Shared database handle from the application lifespan.
        list_limit: Default `limit` for `list()`.
        max_list_limit: Largest `limit` accepted by `list()`.
        max_image_bytes: Payload size above which a warning is logged.
    """

    def __init__(
        self,
        db_initializer: AsyncDatabaseInitializer,
        *,
        list_limit: int = DEFAULT_LIST_LIMIT,
        max_list_limit: int = DEFAULT_MAX_LIST_LIMIT,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        self._dal = RecordDAL(db_initializer)
        self.list_limit = list_limit
        self.max_list_limit = max_list_limit
        self.max_image_bytes = max_image_bytes

    async def create(self, data: Any) -> ClassificationRecord:
        """Validate `data` and insert it as a new record.

        Returns:
            The stored record, including its assigned `id` and `created_at`.

        Raises:
            RecordValidationError: If `data` is malformed or incomplete.
            StorageError: If the database rejected or could not take the write.
        """
        result = validate_record_candidate(data, now=datetime.now(timezone.utc))
        if isinstance(result, InvalidRecord):
            LOGGER.info(
                "Rejected record: %s (missing=%s invalid=%s)",
                result.error,
                result.missing_fields,
                result.invalid_fields,
            )
            raise RecordValidationError(
                result.error,
                missing_fields=result.missing_fields,
                invalid_fields=result.invalid_fields,
            )

        candidate = result.record
        if len(candidate.image_data) > self.max_image_bytes:
            LOGGER.warning(
                "Image payload for %s is %d bytes, above the %d byte guideline",
                candidate.subject_id,
                len(candidate.image_data),
                self.max_image_bytes,
            )

        stored = await self._dal.create_record(candidate)
        LOGGER.info("Record saved with id %s (status=%s)", stored.id, stored.health_status)
        return stored

    async def list(self, limit: Optional[int] = None, sort_order: str = "desc") -> List[ClassificationRecord]:
        """Return up to `limit` records ordered by timestamp.

        Args:
            limit: Maximum number of records; defaults to `list_limit`.
            sort_order: "desc" (newest first) or "asc".

        Raises:
            RecordValidationError: If `limit` or `sort_order` is out of range.
        """
        limit = self.list_limit if limit is None else limit
        if not 1 <= limit <= self.max_list_limit:
            raise RecordValidationError(
                f"limit must be between 1 and {self.max_list_limit}",
                invalid_fields=["limit"],
            )
        order = (sort_order or "desc").lower()
        if order not in SORT_ORDERS:
            raise RecordValidationError("sort must be 'asc' or 'desc'", invalid_fields=["sort"])
        return await self._dal.list_records(limit=limit, ascending=order == "asc")

    async def count(self) -> int:
        return await self._dal.count_records()

    async def get(self, record_id: str) -> Optional[ClassificationRecord]:
        return await self._dal.get_record_by_id(record_id)

    async def latest(self) -> Optional[ClassificationRecord]:
        records = await self._dal.list_records(limit=1)
        return records[0] if records else None
