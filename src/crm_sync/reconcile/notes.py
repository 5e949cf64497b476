"""Remote notes → local notes plus one link per resolvable notable.

A remote note may reference a deal, a person and an organization at once.
Each reference that maps to a local row becomes a NoteAssociation; a person
id may match both a Contact and a Lead, in which case both are linked.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.orm import Session

from src.crm_sync.crm.models import NOTABLE_MODELS, NoteModel
from src.crm_sync.crm.notes import attach_many
from src.crm_sync.crm.schemas import NotableKind, NotableRef
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.mapping.store import IdentityMappingStore
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.fields import ref_id

logger = structlog.get_logger(__name__)

# (record field, remote types to try) in attach order
NOTABLE_REFERENCES: tuple[tuple[str, tuple[RemoteType, ...]], ...] = (
    ("deal_id", (RemoteType.OPPORTUNITY,)),
    ("person_id", (RemoteType.CONTACT, RemoteType.LEAD)),
    ("org_id", (RemoteType.ACCOUNT,)),
)


def resolve_notables(
    session: Session, mappings: IdentityMappingStore, record: dict[str, Any]
) -> list[NotableRef]:
    """Every local notable a remote note points at, deal → person → org.

    Mappings whose local row no longer exists are skipped.
    """
    refs: list[NotableRef] = []
    for field, remote_types in NOTABLE_REFERENCES:
        remote_id = ref_id(record.get(field))
        if remote_id is None:
            continue
        for remote_type, local_id in mappings.resolve_any(remote_types, remote_id):
            kind = NotableKind.parse(remote_type.value)
            if kind is None:
                continue
            ref = NotableRef(kind=kind, id=local_id)
            if ref in refs:
                continue
            if session.get(NOTABLE_MODELS[kind], local_id) is None:
                logger.warning(
                    "notes.stale_mapping",
                    field=field,
                    remote_id=remote_id,
                    notable_type=kind.value,
                    local_id=local_id,
                )
                continue
            refs.append(ref)
    return refs


class NoteReconciler(BaseReconciler):
    entity = "note"
    model = NoteModel
    remote_type = RemoteType.NOTE
    key_column = "content"

    def business_key(self, record: dict[str, Any]) -> str | None:
        content = record.get("content")
        return content if isinstance(content, str) and content.strip() else None

    def build(self, record: dict[str, Any], key: str) -> NoteModel:
        return NoteModel(content=key, created_by=self._resolver.user_for(record.get("user_id")))

    def changes(self, record: dict[str, Any], existing: NoteModel) -> dict[str, Any]:
        if existing.user_id is not None:
            return {}
        return {"created_by": self._resolver.user_for(record.get("user_id"))}

    def after_save(self, entity: NoteModel, record: dict[str, Any]) -> None:
        notables = resolve_notables(self._session, self._mappings, record)
        linked = attach_many(self._session, entity, notables)
        logger.debug(
            "notes.linked",
            note_id=entity.id,
            remote_id=record.get("id"),
            resolved=len(notables),
            new_links=linked,
        )
