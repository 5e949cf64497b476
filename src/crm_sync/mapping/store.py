"""Identity mapping store -- translate remote ids into local primary keys.

The store never commits; writes join the caller's unit of work so a record
that fails reconciliation leaves no mapping row behind.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.crm_sync.crm.models import BIGINT_LIMIT
from src.crm_sync.mapping.models import (
    DEFAULT_REMOTE_SYSTEM,
    IdentityMappingModel,
    RemoteType,
)

logger = structlog.get_logger(__name__)


def coerce_remote_id(value: object) -> int | None:
    """Normalize a remote id to int; None for missing or malformed values.

    Ids outside the BIGINT range of identity_mappings.remote_id are malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, int) and -BIGINT_LIMIT <= value < BIGINT_LIMIT:
        return value
    return None


class IdentityMappingStore:
    """Find-or-create access to the identity_mappings table.

    Args:
        session: Session whose transaction the mapping writes join.
        remote_system: Name of the remote CRM the ids belong to.
    """

    def __init__(self, session: Session, remote_system: str = DEFAULT_REMOTE_SYSTEM) -> None:
        self._session = session
        self._remote_system = remote_system

    def _find(self, remote_type: RemoteType, remote_id: int) -> IdentityMappingModel | None:
        stmt = select(IdentityMappingModel).where(
            IdentityMappingModel.remote_system == self._remote_system,
            IdentityMappingModel.remote_type == remote_type,
            IdentityMappingModel.remote_id == remote_id,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def resolve_local_id(self, remote_type: RemoteType, remote_id: object) -> int | None:
        """Return the local id bound to (remote_type, remote_id), if any."""
        key = coerce_remote_id(remote_id)
        if key is None:
            return None
        mapping = self._find(remote_type, key)
        return mapping.local_id if mapping else None

    def resolve_any(
        self, remote_types: Iterable[RemoteType], remote_id: object
    ) -> list[tuple[RemoteType, int]]:
        """Return every (type, local id) hit for remote_id across remote_types."""
        hits: list[tuple[RemoteType, int]] = []
        for remote_type in remote_types:
            local_id = self.resolve_local_id(remote_type, remote_id)
            if local_id is not None:
                hits.append((remote_type, local_id))
        return hits

    def find_by_local_id(
        self, remote_type: RemoteType, local_id: int
    ) -> IdentityMappingModel | None:
        """Reverse lookup: which remote record produced this local row."""
        stmt = select(IdentityMappingModel).where(
            IdentityMappingModel.remote_system == self._remote_system,
            IdentityMappingModel.remote_type == remote_type,
            IdentityMappingModel.local_id == local_id,
        )
        return self._session.execute(stmt).scalars().first()

    def record(self, remote_type: RemoteType, remote_id: object, local_id: int | None) -> bool:
        """Bind remote → local the first time; later calls leave the row alone.

        Returns:
            True if a new mapping row was added, False otherwise.
        """
        key = coerce_remote_id(remote_id)
        if local_id is None or key is None:
            return False

        existing = self._find(remote_type, key)
        if existing is not None:
            if existing.local_id != local_id:
                logger.warning(
                    "mapping.conflicting_local_id_ignored",
                    remote_type=remote_type.value,
                    remote_id=key,
                    kept_local_id=existing.local_id,
                    rejected_local_id=local_id,
                )
            return False

        self._session.add(
            IdentityMappingModel(
                remote_system=self._remote_system,
                remote_type=remote_type,
                remote_id=key,
                local_id=local_id,
            )
        )
        self._session.flush()
        return True
