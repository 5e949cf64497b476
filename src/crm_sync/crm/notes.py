"""Note ↔ notable link helpers.

A note reaches its notables only through note_associations rows. attach()
is find-or-create on (note, kind, id), so calling it twice is harmless.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.crm_sync.crm.models import (
    NOTABLE_MODELS,
    NotableMixin,
    NoteAssociationModel,
    NoteModel,
)
from src.crm_sync.crm.schemas import NotableKind, NotableRef

logger = structlog.get_logger(__name__)


def _as_ref(notable: NotableMixin | NotableRef) -> NotableRef:
    if isinstance(notable, NotableRef):
        return notable
    return notable.notable_ref


def attach(session: Session, note: NoteModel, notable: NotableMixin | NotableRef) -> bool:
    """Link note to notable unless the link already exists.

    Args:
        session: Active session; the new row is flushed, not committed.
        note: Persisted note.
        notable: Model instance or (kind, id) reference.

    Returns:
        True only when a new association row was inserted.
    """
    ref = _as_ref(notable)
    existing = session.execute(
        select(NoteAssociationModel.id).where(
            NoteAssociationModel.note_id == note.id,
            NoteAssociationModel.notable_type == ref.kind,
            NoteAssociationModel.notable_id == ref.id,
        )
    ).first()
    if existing is not None:
        return False

    session.add(NoteAssociationModel(note=note, notable_type=ref.kind, notable_id=ref.id))
    session.flush()
    logger.debug(
        "notes.attached",
        note_id=note.id,
        notable_type=ref.kind.value,
        notable_id=ref.id,
    )
    return True


def attach_many(
    session: Session, note: NoteModel, notables: Iterable[NotableMixin | NotableRef]
) -> int:
    """Attach every notable; returns how many links were newly created."""
    return sum(1 for notable in notables if attach(session, note, notable))


def notes_for(session: Session, kind: NotableKind | str, notable_id: int) -> list[NoteModel]:
    """Notes linked to one notable, oldest first. Unknown kinds have none."""
    parsed = NotableKind.parse(kind)
    if parsed is None:
        return []
    stmt = (
        select(NoteModel)
        .join(NoteAssociationModel, NoteAssociationModel.note_id == NoteModel.id)
        .where(
            NoteAssociationModel.notable_type == parsed,
            NoteAssociationModel.notable_id == notable_id,
        )
        .order_by(NoteModel.created_at, NoteModel.id)
    )
    return list(session.execute(stmt).scalars().all())


def notables_for(session: Session, note: NoteModel) -> list[NotableMixin]:
    """Load every notable a note is linked to, skipping dangling links."""
    notables: list[NotableMixin] = []
    for association in note.associations:
        model = NOTABLE_MODELS[association.notable_type]
        notable = session.get(model, association.notable_id)
        if notable is None:
            logger.warning(
                "notes.dangling_link",
                note_id=note.id,
                notable_type=association.notable_type.value,
                notable_id=association.notable_id,
            )
            continue
        notables.append(notable)
    return notables
