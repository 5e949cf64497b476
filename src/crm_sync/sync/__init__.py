"""Sync orchestration -- ordered, paginated pull of every remote collection.

Provides SyncOrchestrator plus the RemoteCollection enum and the
CollectionResult / SyncReport schemas it returns.
"""

from src.crm_sync.sync.orchestrator import SyncOrchestrator
from src.crm_sync.sync.schemas import CollectionResult, RemoteCollection, SyncReport

__all__ = ["CollectionResult", "RemoteCollection", "SyncOrchestrator", "SyncReport"]
