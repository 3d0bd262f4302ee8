"""Async SQLite connection manager for the document store.

Uses aiosqlite for non-blocking access with WAL mode so the read API and the
polling loops can read while a loop is writing.
"""

import os
from typing import Self

import aiosqlite

from pairwatch.config import is_configured
from pairwatch.exceptions import ConfigurationError, StoreUnavailableError
from pairwatch.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    body TEXT NOT NULL,
    updated_at INTEGER NOT NULL,
    PRIMARY KEY (collection, id)
);
"""


class DocumentDatabase:
    """Lifecycle owner of the aiosqlite connection.

    Usage:
        async with DocumentDatabase("data/pairwatch.db") as database:
            store = RecordStore(database)
    """

    def __init__(self, db_path: str = "data/pairwatch.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """The raw connection; raises StoreUnavailableError when not connected."""
        if self._connection is None:
            raise StoreUnavailableError("Document store is not connected.")
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the database, set pragmas and create the schema."""
        if not is_configured(self._db_path):
            raise ConfigurationError(
                "Document store is not configured. Set STORE_PATH in your environment."
            )

        if self._db_path != ":memory:":
            db_dir = os.path.dirname(self._db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA synchronous=NORMAL")
            await self._connection.executescript(_CREATE_TABLES_SQL)
            await self._ensure_schema_version()
        except aiosqlite.Error as e:
            raise StoreUnavailableError(
                f"Could not open document store at {self._db_path}: {e}"
            ) from e

        logger.info("document_store_connected", db_path=self._db_path)

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("document_store_closed", db_path=self._db_path)

    async def _ensure_schema_version(self) -> None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
        await self._connection.commit()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
