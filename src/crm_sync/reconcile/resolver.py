"""Resolve remote references (owner, organization, person) to local values.

Resolution order for every reference:
1. identity mapping → local row
2. literal carried by an embedded reference object (name / email)
3. single-record remote lookup, when a client is available and enabled
4. None
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.crm_sync.config import Settings
from src.crm_sync.core.security import generate_password, hash_password
from src.crm_sync.crm.models import AccountModel, ContactModel, LeadModel, UserModel
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.mapping.store import IdentityMappingStore
from src.crm_sync.reconcile.fields import present, ref_id, ref_literal
from src.crm_sync.remote.client import RemoteCRMClient

logger = structlog.get_logger(__name__)

PERSON_TYPES = (RemoteType.CONTACT, RemoteType.LEAD)


class ReferenceResolver:
    """Turns remote references into local ids, names and e-mails.

    Args:
        session: Session of the current unit of work.
        mappings: Identity mapping store bound to the same session.
        settings: Application settings (default user, lookup toggle).
        client: Remote client used for lookups on a mapping miss.
    """

    def __init__(
        self,
        session: Session,
        mappings: IdentityMappingStore,
        settings: Settings,
        client: RemoteCRMClient | None = None,
    ) -> None:
        self._session = session
        self._mappings = mappings
        self._settings = settings
        self._client = client
        self._lookups: dict[tuple[str, int], dict[str, Any] | None] = {}

    def _remote_field(self, collection: str, remote_id: int | None, field: str) -> str | None:
        if remote_id is None or self._client is None or not self._settings.REMOTE_LOOKUP_ON_MISS:
            return None
        key = (collection, remote_id)
        if key not in self._lookups:
            self._lookups[key] = self._client.fetch_one(collection, remote_id)
            logger.debug(
                "resolver.remote_lookup",
                collection=collection,
                remote_id=remote_id,
                found=self._lookups[key] is not None,
            )
        record = self._lookups[key] or {}
        value = record.get(field)
        return present(value.strip()) if isinstance(value, str) else None

    # ── Users ──────────────────────────────────────────────────────────────

    def user_for(self, reference: Any) -> UserModel | None:
        """Local user mapped from a remote user reference, if any."""
        local_id = self._mappings.resolve_local_id(RemoteType.USER, ref_id(reference))
        return self._session.get(UserModel, local_id) if local_id is not None else None

    def owner_email(self, reference: Any) -> str | None:
        if reference is None:
            return None
        user = self.user_for(reference)
        if user is not None:
            return user.email
        return ref_literal(reference, "email") or self._remote_field(
            "users", ref_id(reference), "email"
        )

    def user_by_email(self, email: str | None) -> UserModel | None:
        if not email:
            return None
        return self._session.execute(
            select(UserModel).where(UserModel.email == email)
        ).scalar_one_or_none()

    def default_user(self) -> UserModel:
        """The configured default user, else the first user, else a new admin."""
        user = self.user_by_email(self._settings.DEFAULT_USER_EMAIL)
        if user is None:
            user = self._session.execute(
                select(UserModel).order_by(UserModel.id).limit(1)
            ).scalar_one_or_none()
        if user is None:
            user = UserModel(
                email=self._settings.DEFAULT_USER_EMAIL,
                encrypted_password=hash_password(generate_password()),
                first_name="Admin",
                last_name="User",
                admin=True,
                approved=True,
            )
            self._session.add(user)
            self._session.flush()
            logger.info("resolver.default_user_created", user_id=user.id, email=user.email)
        return user

    # ── Organizations ──────────────────────────────────────────────────────

    def organization_name(self, reference: Any) -> str | None:
        if reference is None:
            return None
        local_id = self._mappings.resolve_local_id(RemoteType.ACCOUNT, ref_id(reference))
        if local_id is not None:
            account = self._session.get(AccountModel, local_id)
            if account is not None:
                return account.name
        return ref_literal(reference, "name") or self._remote_field(
            "organizations", ref_id(reference), "name"
        )

    # ── People ─────────────────────────────────────────────────────────────

    def person_name(self, reference: Any) -> str | None:
        if reference is None:
            return None
        for remote_type, local_id in self._mappings.resolve_any(PERSON_TYPES, ref_id(reference)):
            model = ContactModel if remote_type is RemoteType.CONTACT else LeadModel
            person = self._session.get(model, local_id)
            if person is not None:
                return person.full_name
        return ref_literal(reference, "name") or self._remote_field(
            "persons", ref_id(reference), "name"
        )
