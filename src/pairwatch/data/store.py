"""Document store with upsert-by-id semantics over SQLite.

Each record is a JSON body keyed by ``(collection, id)``. Writes are upserts
keyed by a stable identifier (pair address, token address), so replaying the
same payload converges on the same stored set instead of duplicating it.

Collections:
    pairs     -- PairSnapshot documents keyed by pair address
    rsi_data  -- IndicatorSnapshot documents keyed by token address
    mails     -- subscriber roster (read-only here)
"""

import json
import time
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Literal

import aiosqlite

from pairwatch.data.database import DocumentDatabase
from pairwatch.exceptions import StoreUnavailableError
from pairwatch.logging import get_logger
from pairwatch.models import IndicatorSnapshot, PairSnapshot, Subscriber

logger = get_logger(__name__)

PAIRS = "pairs"
INDICATORS = "rsi_data"
SUBSCRIBERS = "mails"

UpsertMode = Literal["replace", "merge"]
Predicate = Mapping[str, Any] | Callable[[dict[str, Any]], bool]


@dataclass
class UpsertResult:
    """Counts reported by an upsert, mirroring a document database's write result."""

    matched: int = 0
    modified: int = 0
    upserted: int = 0

    def __add__(self, other: "UpsertResult") -> "UpsertResult":
        return UpsertResult(
            matched=self.matched + other.matched,
            modified=self.modified + other.modified,
            upserted=self.upserted + other.upserted,
        )


def _encode(body: Any) -> str:
    return json.dumps(body, sort_keys=True, default=str)


def _json_path(key: str) -> str:
    """Top-level JSON path for ``key``, quoted so dots stay part of the name."""
    return f'$."{key}"'


def _lookup(document: Mapping[str, Any], dotted_key: str) -> Any:
    """Resolve ``a.b.c`` against nested mappings; missing segments yield None."""
    value: Any = document
    for part in dotted_key.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def matches(document: Mapping[str, Any], predicate: Predicate) -> bool:
    """Evaluate a field-equality mapping or a callable against a document."""
    if callable(predicate):
        return bool(predicate(dict(document)))
    return all(_lookup(document, key) == value for key, value in predicate.items())


class RecordStore:
    """Typed access to the document collections.

    Usage:
        async with DocumentDatabase("data/pairwatch.db") as database:
            store = RecordStore(database)
            await store.upsert_pairs(pairs)
    """

    def __init__(self, database: DocumentDatabase) -> None:
        self._database = database

    @asynccontextmanager
    async def _store_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate driver errors into StoreUnavailableError.

        The connection is shared by every loop, so a failed write rolls back
        its open transaction before the next commit can persist half of it.
        """
        try:
            yield
        except aiosqlite.Error as e:
            try:
                await self._database.db.rollback()
            except aiosqlite.Error as rollback_error:
                logger.warning(
                    "document_store_rollback_failed",
                    operation=operation,
                    error=str(rollback_error),
                )
            raise StoreUnavailableError(f"Document store {operation} failed: {e}") from e

    # ──────────────────────────────────────────────
    # Generic contract
    # ──────────────────────────────────────────────

    async def upsert_by_id(
        self,
        collection: str,
        doc_id: str,
        document: Mapping[str, Any],
        mode: UpsertMode = "replace",
    ) -> UpsertResult:
        """Insert or overwrite (replace) / overlay (merge) one document."""
        async with self._store_errors("upsert"):
            result = await self._upsert(collection, doc_id, document, mode)
            await self._database.db.commit()
        return result

    async def bulk_upsert(
        self,
        collection: str,
        items: Iterable[tuple[str, Mapping[str, Any]]],
        mode: UpsertMode = "replace",
    ) -> UpsertResult:
        """Upsert many ``(id, document)`` pairs and commit once."""
        total = UpsertResult()
        async with self._store_errors("bulk upsert"):
            for doc_id, document in items:
                total = total + await self._upsert(collection, doc_id, document, mode)
            await self._database.db.commit()
        logger.debug(
            "bulk_upsert_complete",
            collection=collection,
            matched=total.matched,
            modified=total.modified,
            upserted=total.upserted,
        )
        return total

    async def find_all(
        self, collection: str, projection: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        """Return every document in a collection, each carrying its ``_id``.

        ``projection`` keeps only the named top-level fields (``_id`` is always kept).
        """
        async with self._store_errors("read"):
            cursor = await self._database.db.execute(
                "SELECT id, body FROM documents WHERE collection = ? ORDER BY id",
                (collection,),
            )
            rows = await cursor.fetchall()

        keep = set(projection) if projection is not None else None
        documents = []
        for doc_id, body in rows:
            document = {"_id": doc_id, **json.loads(body)}
            if keep is not None:
                document = {
                    k: v for k, v in document.items() if k == "_id" or k in keep
                }
            documents.append(document)
        return documents

    async def find_where(
        self, collection: str, predicate: Predicate
    ) -> list[dict[str, Any]]:
        """Return documents matching a field-equality mapping or a callable."""
        return [
            doc for doc in await self.find_all(collection) if matches(doc, predicate)
        ]

    async def merge_where(
        self, collection: str, predicate: Predicate, fields: Mapping[str, Any]
    ) -> UpsertResult:
        """Overlay ``fields`` onto every document matching ``predicate``."""
        targets = await self.find_where(collection, predicate)
        return await self.bulk_upsert(
            collection, ((doc["_id"], fields) for doc in targets), mode="merge"
        )

    async def _get_body(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        cursor = await self._database.db.execute(
            "SELECT body FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        return json.loads(row[0]) if row is not None else None

    async def _upsert(
        self,
        collection: str,
        doc_id: str,
        document: Mapping[str, Any],
        mode: UpsertMode,
    ) -> UpsertResult:
        fields = {k: v for k, v in document.items() if k != "_id"}
        existing = await self._get_body(collection, doc_id)
        if mode == "merge" and existing is not None:
            body = {**existing, **fields}
        else:
            body = fields

        if existing is not None and _encode(existing) == _encode(body):
            return UpsertResult(matched=1)

        now = int(time.time() * 1000)
        if mode == "merge" and fields:
            # Overlay inside SQLite so concurrent merges of disjoint fields
            # into the same document all land.
            assignments = ", ".join("?, json(?)" for _ in fields)
            overlay: list[Any] = []
            for key, value in fields.items():
                overlay.extend((_json_path(key), _encode(value)))
            await self._database.db.execute(
                "INSERT INTO documents (collection, id, body, updated_at) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(collection, id) DO UPDATE SET "
                f"body = json_set(documents.body, {assignments}), "
                "updated_at = excluded.updated_at",
                (collection, doc_id, _encode(fields), now, *overlay),
            )
        else:
            await self._database.db.execute(
                "INSERT INTO documents (collection, id, body, updated_at) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(collection, id) DO UPDATE SET "
                "body = excluded.body, updated_at = excluded.updated_at",
                (collection, doc_id, _encode(body), now),
            )
        if existing is None:
            return UpsertResult(upserted=1)
        return UpsertResult(matched=1, modified=1)

    # ──────────────────────────────────────────────
    # Typed helpers
    # ──────────────────────────────────────────────

    async def upsert_pairs(self, pairs: Iterable[PairSnapshot]) -> UpsertResult:
        """Replace-upsert pair snapshots keyed by pair address."""
        return await self.bulk_upsert(
            PAIRS, ((p.pair_address, p.to_document()) for p in pairs), mode="replace"
        )

    async def merge_pair(self, pair: PairSnapshot) -> UpsertResult:
        """Merge fresh metadata into a stored pair, keeping fields the payload omits."""
        return await self.upsert_by_id(
            PAIRS, pair.pair_address, pair.to_document(exclude_none=True), mode="merge"
        )

    async def get_pairs(self) -> list[dict[str, Any]]:
        return await self.find_all(PAIRS)

    async def list_pair_addresses(self) -> list[str]:
        return [doc["_id"] for doc in await self.find_all(PAIRS, projection=())]

    async def set_market_cap(
        self, token_address: str, market_cap: float
    ) -> UpsertResult:
        """Set ``marketCap`` on every pair whose base or quote token is ``token_address``."""
        return await self.merge_where(
            PAIRS,
            lambda doc: token_address
            in (_lookup(doc, "baseToken.address"), _lookup(doc, "quoteToken.address")),
            {"marketCap": market_cap},
        )

    async def upsert_indicator(self, snapshot: IndicatorSnapshot) -> UpsertResult:
        """Supersede the indicator snapshot for a token."""
        return await self.upsert_by_id(
            INDICATORS, snapshot.token_address, snapshot.to_document(), mode="replace"
        )

    async def get_indicators(self) -> list[dict[str, Any]]:
        return await self.find_all(INDICATORS)

    async def get_active_subscribers(self) -> list[Subscriber]:
        subscribers = map(Subscriber.from_document, await self.find_all(SUBSCRIBERS))
        return [sub for sub in subscribers if sub.is_active and sub.email]
