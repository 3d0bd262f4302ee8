"""Persistence layer -- SQLite-backed document store with upsert-by-id writes."""

from pairwatch.data.database import DocumentDatabase
from pairwatch.data.store import (
    INDICATORS,
    PAIRS,
    SUBSCRIBERS,
    RecordStore,
    UpsertResult,
)

__all__ = [
    "INDICATORS",
    "PAIRS",
    "SUBSCRIBERS",
    "DocumentDatabase",
    "RecordStore",
    "UpsertResult",
]
