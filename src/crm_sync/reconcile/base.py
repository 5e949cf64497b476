"""Shared reconcile algorithm for every remote entity type.

BaseReconciler.reconcile_with_outcome() runs one remote record as its own
unit of work:

1. compute the business key and look up the existing local row
2. absent → build, save, then write the remote add/update times back
3. present → merge only the fields the remote record actually supplies
4. record the identity mapping (first write wins)
5. commit, or roll back and skip the record when it is rejected

Subclasses declare the model, key column and field mapping; the template
owns transactions, logging and the mapping write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

import structlog
from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from src.crm_sync.config import Settings
from src.crm_sync.core.database import Base
from src.crm_sync.crm.models import RecordInvalid
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.mapping.store import IdentityMappingStore
from src.crm_sync.reconcile.fields import is_blank, parse_remote_time
from src.crm_sync.reconcile.resolver import ReferenceResolver

logger = structlog.get_logger(__name__)

# Failures that reject one record; anything else aborts the run
RECORD_ERRORS = (RecordInvalid, IntegrityError, DataError, OverflowError)


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class ReconcileResult(BaseModel):
    """What happened to one remote record."""

    outcome: ReconcileOutcome
    local_id: int | None = None
    remote_id: Any = None
    reason: str | None = None


class BaseReconciler(ABC):
    """Template for reconciling one remote collection into a local table.

    Args:
        session: Session used for the whole run; committed per record.
        mappings: Identity mapping store on the same session.
        resolver: Reference resolver on the same session.
        settings: Application settings.
    """

    entity: ClassVar[str]
    model: ClassVar[type[Base]]
    remote_type: ClassVar[RemoteType]
    key_column: ClassVar[str]

    def __init__(
        self,
        session: Session,
        mappings: IdentityMappingStore,
        resolver: ReferenceResolver,
        settings: Settings,
    ) -> None:
        self._session = session
        self._mappings = mappings
        self._resolver = resolver
        self._settings = settings

    # ── Hooks ──────────────────────────────────────────────────────────────

    @abstractmethod
    def business_key(self, record: dict[str, Any]) -> Any:
        """Natural key used to find an existing local row."""

    @abstractmethod
    def build(self, record: dict[str, Any], key: Any) -> Any:
        """New, unsaved local entity for a record with no local match."""

    @abstractmethod
    def changes(self, record: dict[str, Any], existing: Any) -> dict[str, Any]:
        """Fields to merge into an existing entity. Blank values are dropped."""

    def model_for(self, record: dict[str, Any]) -> type[Base]:
        return self.model

    def remote_type_for(self, record: dict[str, Any]) -> RemoteType:
        return self.remote_type

    def find_existing(self, record: dict[str, Any], key: Any) -> Any | None:
        model = self.model_for(record)
        column = getattr(model, self.key_column)
        stmt = select(model).where(column == key).order_by(model.id).limit(1)
        return self._session.execute(stmt).scalar_one_or_none()

    def after_save(self, entity: Any, record: dict[str, Any]) -> None:
        """Extra writes that belong to the same unit of work."""

    # ── Template ───────────────────────────────────────────────────────────

    def reconcile(self, record: dict[str, Any]) -> int | None:
        """Reconcile one record; returns the local id or None when skipped."""
        return self.reconcile_with_outcome(record).local_id

    def reconcile_with_outcome(self, record: dict[str, Any]) -> ReconcileResult:
        remote_id = record.get("id")
        log = logger.bind(entity=self.entity, remote_id=remote_id)

        try:
            key = self.business_key(record)
            if is_blank(key):
                log.info("reconcile.missing_key", key_column=self.key_column)
                return ReconcileResult(
                    outcome=ReconcileOutcome.SKIPPED,
                    remote_id=remote_id,
                    reason=f"missing {self.key_column}",
                )

            entity = self.find_existing(record, key)
            if entity is None:
                entity = self.build(record, key)
                self._session.add(entity)
                self._session.flush()
                self._preserve_timestamps(entity, record)
                outcome = ReconcileOutcome.CREATED
            else:
                merge_fields(entity, self.changes(record, entity))
                self._session.flush()
                outcome = ReconcileOutcome.UPDATED

            self._mappings.record(self.remote_type_for(record), remote_id, entity.id)
            self.after_save(entity, record)
            self._session.commit()
        except RECORD_ERRORS as exc:
            self._session.rollback()
            log.warning("reconcile.record_invalid", error=str(exc))
            return ReconcileResult(
                outcome=ReconcileOutcome.SKIPPED,
                remote_id=remote_id,
                reason=str(exc),
            )
        except Exception:
            self._session.rollback()
            raise

        log.info(f"reconcile.{outcome.value}", local_id=entity.id)
        return ReconcileResult(outcome=outcome, local_id=entity.id, remote_id=remote_id)

    def _preserve_timestamps(self, entity: Any, record: dict[str, Any]) -> None:
        """Overwrite storage-assigned timestamps with the remote ones.

        Runs as a bulk UPDATE so no validation or onupdate default fires and
        no other column is touched.
        """
        created_at = parse_remote_time(record.get("add_time"))
        updated_at = parse_remote_time(record.get("update_time"))
        if created_at is None and updated_at is None:
            return

        model = type(entity)
        self._session.execute(
            update(model)
            .where(model.id == entity.id)
            .values(
                created_at=created_at or entity.created_at,
                updated_at=updated_at or entity.updated_at,
            )
        )


def merge_fields(entity: Any, changes: dict[str, Any]) -> None:
    """Assign changed values; None, "" and [] never clobber existing data."""
    for field, value in changes.items():
        if is_blank(value):
            continue
        if getattr(entity, field) != value:
            setattr(entity, field, value)
