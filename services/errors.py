"""Error types shared by the record store, classifier adapter and API layer."""

from __future__ import annotations

from typing import List, Optional


class RecordStoreError(Exception):
    """Base class for failures the API reports as `{success: false}`."""

    status_code = 500


class RecordValidationError(RecordStoreError):
    """Input to a store operation was malformed or incomplete.

    Always recoverable by the caller fixing the input; never retried.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        missing_fields: Optional[List[str]] = None,
        invalid_fields: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = list(invalid_fields or [])


class StorageError(RecordStoreError):
    """The database was unreachable, timed out, or rejected the operation."""

    status_code = 500


class ClassifierError(Exception):
    """Classifier output was missing or could not be interpreted."""
