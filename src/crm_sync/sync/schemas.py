"""Pydantic schemas describing a sync run.

Defines:
- RemoteCollection: remote collections in the order they must be synced
- CollectionResult: per-collection counters and skipped record ids
- SyncReport: aggregate result of sync_all()
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RemoteCollection(str, Enum):
    """Remote collection names; declaration order is sync order."""

    USERS = "users"
    ORGANIZATIONS = "organizations"
    PERSONS = "persons"
    DEALS = "deals"
    ACTIVITIES = "activities"
    NOTES = "notes"


class CollectionResult(BaseModel):
    collection: RemoteCollection
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    skipped_ids: list[Any] = Field(default_factory=list)


class SyncReport(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    collections: list[CollectionResult] = Field(default_factory=list)

    def for_collection(self, collection: RemoteCollection | str) -> CollectionResult | None:
        name = RemoteCollection(collection)
        return next((c for c in self.collections if c.collection is name), None)

    @property
    def processed(self) -> int:
        return sum(c.processed for c in self.collections)

    @property
    def skipped(self) -> int:
        return sum(c.skipped for c in self.collections)
