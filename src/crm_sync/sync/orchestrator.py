"""Sync orchestrator -- pulls every remote collection into the local store.

Collections run in dependency order (users → organizations → persons →
deals → activities → notes) so references resolve through mappings
written earlier in the same run. Each page is processed completely before
the next one is requested, and each record commits on its own.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.orm import Session

from src.crm_sync.config import Settings, get_settings
from src.crm_sync.mapping.store import IdentityMappingStore
from src.crm_sync.reconcile.accounts import AccountReconciler
from src.crm_sync.reconcile.base import BaseReconciler, ReconcileOutcome
from src.crm_sync.reconcile.notes import NoteReconciler
from src.crm_sync.reconcile.opportunities import OpportunityReconciler
from src.crm_sync.reconcile.people import PersonReconciler
from src.crm_sync.reconcile.resolver import ReferenceResolver
from src.crm_sync.reconcile.tasks import TaskReconciler
from src.crm_sync.reconcile.users import UserReconciler
from src.crm_sync.remote.client import RemoteCRMClient
from src.crm_sync.sync.schemas import CollectionResult, RemoteCollection, SyncReport

logger = structlog.get_logger(__name__)

RECONCILERS: dict[RemoteCollection, type[BaseReconciler]] = {
    RemoteCollection.USERS: UserReconciler,
    RemoteCollection.ORGANIZATIONS: AccountReconciler,
    RemoteCollection.PERSONS: PersonReconciler,
    RemoteCollection.DEALS: OpportunityReconciler,
    RemoteCollection.ACTIVITIES: TaskReconciler,
    RemoteCollection.NOTES: NoteReconciler,
}


class SyncOrchestrator:
    """Runs remote collections through their reconcilers.

    Args:
        session: Session for the whole run; reconcilers commit per record.
        client: Remote CRM client used for pagination and lookups.
        settings: Application settings. Defaults to get_settings().
    """

    def __init__(
        self,
        session: Session,
        client: RemoteCRMClient,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._client = client
        self._settings = settings or get_settings()
        self._mappings = IdentityMappingStore(session)
        self._resolver = ReferenceResolver(session, self._mappings, self._settings, client)
        self._reconcilers: dict[RemoteCollection, BaseReconciler] = {
            collection: reconciler_cls(
                session, self._mappings, self._resolver, self._settings
            )
            for collection, reconciler_cls in RECONCILERS.items()
        }

    @property
    def mappings(self) -> IdentityMappingStore:
        return self._mappings

    # ── Full and partial runs ──────────────────────────────────────────────

    def sync_all(self) -> SyncReport:
        """Sync every collection in dependency order."""
        report = SyncReport(started_at=datetime.now(timezone.utc))
        logger.info("sync.started")

        for collection in RemoteCollection:
            report.collections.append(self.sync_collection(collection))

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            "sync.complete",
            processed=report.processed,
            skipped=report.skipped,
            duration_s=(report.finished_at - report.started_at).total_seconds(),
        )
        return report

    def sync_collection(self, collection: RemoteCollection | str) -> CollectionResult:
        """Page through one remote collection and reconcile every record.

        A fetch failure ends this collection early; records already
        committed stay committed.
        """
        collection = RemoteCollection(collection)
        reconciler = self._reconcilers[collection]
        result = CollectionResult(collection=collection)
        logger.info("sync.collection_started", collection=collection.value)

        with structlog.contextvars.bound_contextvars(collection=collection.value):
            for page in self._client.iter_pages(collection.value):
                for record in page:
                    self._reconcile_into(reconciler, record, result)

        logger.info(
            "sync.collection_complete",
            collection=collection.value,
            processed=result.processed,
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
        )
        return result

    @staticmethod
    def _reconcile_into(
        reconciler: BaseReconciler, record: Any, result: CollectionResult
    ) -> None:
        if not isinstance(record, dict):
            logger.warning("sync.record_malformed", record_type=type(record).__name__)
            return

        outcome = reconciler.reconcile_with_outcome(record)
        result.processed += 1
        if outcome.outcome is ReconcileOutcome.CREATED:
            result.created += 1
        elif outcome.outcome is ReconcileOutcome.UPDATED:
            result.updated += 1
        else:
            result.skipped += 1
            result.skipped_ids.append(outcome.remote_id)

    def sync_users(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.USERS)

    def sync_organizations(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.ORGANIZATIONS)

    def sync_persons(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.PERSONS)

    def sync_deals(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.DEALS)

    def sync_activities(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.ACTIVITIES)

    def sync_notes(self) -> CollectionResult:
        return self.sync_collection(RemoteCollection.NOTES)

    # ── Single records ─────────────────────────────────────────────────────

    def reconcile_record(
        self, collection: RemoteCollection | str, record: dict[str, Any]
    ) -> int | None:
        """Reconcile one raw remote record; returns the local id or None."""
        return self._reconcilers[RemoteCollection(collection)].reconcile(record)
