import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiosqlite

from services.errors import StorageError
from utils.config import Settings

LOGGER = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS TREE_RECORD (
        id TEXT PRIMARY KEY,
        subject_id TEXT NOT NULL,
        image_data TEXT NOT NULL,
        health_status TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        predictions TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tree_record_timestamp ON TREE_RECORD(timestamp)",
)


class AsyncDatabaseInitializer:
    """
    Own the SQLite database file used by the record store.

    - The database file is located at: <DATABASE_DIR>/<DATABASE_FILE>
    - `ensure_database()` creates the directory, table and index. It never
      removes existing rows, and repeated calls on one instance are no-ops.
    - `connection()` hands out connections from a bounded set of slots
      (`Settings.max_connections`). A caller that cannot get a slot within
      `Settings.acquire_timeout` seconds gets a StorageError.
    - After `close()` every acquisition fails with StorageError.

    One instance is created in the application lifespan and shared through
    `app.state.db_initializer`.
    """

    def __init__(self, settings: Settings) -> None:
        db_dir = settings.database_dir

        # If the path exists but is not a directory, that's a configuration error.
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={str(db_dir)!r} points to a file, not a directory. "
                f"Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.settings = settings
        self.db_dir = db_dir
        self.db_path = settings.db_path

        self._slots = asyncio.Semaphore(settings.max_connections)
        self._initialized = False
        self._closed = False

    @property
    def initialized(self) -> bool:
        return self._initialized and not self._closed

    async def ensure_database(self) -> None:
        """
        Create the TREE_RECORD table and its timestamp index if missing.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL;")
                    for statement in SCHEMA_STATEMENTS:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)
            except aiosqlite.Error as exc:
                raise StorageError(f"Failed to initialize database at {self.db_path}") from exc

        LOGGER.info("Record database ready at %s", self.db_path)
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        Raises:
            StorageError: If the initializer is closed, no slot frees up in
                time, or the database file cannot be opened.
        """
        if self._closed:
            raise StorageError("Database handle is closed")
        await self.ensure_database()

        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.settings.acquire_timeout)
        except asyncio.TimeoutError as exc:
            raise StorageError("Timed out waiting for a database connection") from exc

        try:
            try:
                conn = await aiosqlite.connect(self.db_path)
            except (aiosqlite.Error, OSError) as exc:
                raise StorageError(f"Could not open database at {self.db_path}") from exc
            try:
                yield conn
            finally:
                await conn.close()
        finally:
            self._slots.release()

    async def close(self) -> None:
        """Stop handing out connections."""
        self._closed = True
        LOGGER.info("Record database handle closed")
