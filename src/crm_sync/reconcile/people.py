"""Remote persons → local contacts or leads, keyed by primary e-mail.

A person with deal history becomes a Contact; everyone else becomes a Lead
owned by the mapped remote owner, or by the default user when the owner
can't be resolved.
"""

from __future__ import annotations

from typing import Any

from src.crm_sync.core.database import Base
from src.crm_sync.crm.models import ContactModel, LeadModel, UserModel
from src.crm_sync.crm.schemas import PersonKind
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.classification import classify_person, lead_status
from src.crm_sync.reconcile.fields import extract_primary_value, present, split_name

LEAD_SOURCE = "pipedrive"


class PersonReconciler(BaseReconciler):
    entity = "person"
    model = ContactModel
    remote_type = RemoteType.CONTACT
    key_column = "email"

    def model_for(self, record: dict[str, Any]) -> type[Base]:
        if classify_person(record) is PersonKind.CONTACT:
            return ContactModel
        return LeadModel

    def remote_type_for(self, record: dict[str, Any]) -> RemoteType:
        if classify_person(record) is PersonKind.CONTACT:
            return RemoteType.CONTACT
        return RemoteType.LEAD

    def business_key(self, record: dict[str, Any]) -> str | None:
        return extract_primary_value(record.get("email"))

    # ── Field mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _names(record: dict[str, Any]) -> tuple[str | None, str | None]:
        split_first, split_last = split_name(record.get("name"))
        return (
            present(record.get("first_name")) or split_first,
            present(record.get("last_name")) or split_last,
        )

    def _common(self, record: dict[str, Any]) -> dict[str, Any]:
        first_name, last_name = self._names(record)
        return {
            "first_name": first_name,
            "last_name": last_name,
            "phone": extract_primary_value(record.get("phone")),
            "company": self._resolver.organization_name(record.get("org_id")),
        }

    def _owner(self, record: dict[str, Any]) -> tuple[str | None, UserModel]:
        owner_email = self._resolver.owner_email(record.get("owner_id"))
        owner = self._resolver.user_by_email(owner_email) or self._resolver.default_user()
        return owner_email, owner

    def _lead_fields(self, record: dict[str, Any]) -> dict[str, Any]:
        owner_email, owner = self._owner(record)
        return {
            "lead_status": lead_status(record).value,
            "lead_owner": owner_email or owner.email,
            "assigned_to": owner,
        }

    # ── Hooks ──────────────────────────────────────────────────────────────

    def build(self, record: dict[str, Any], key: str) -> ContactModel | LeadModel:
        fields = self._common(record)
        if self.model_for(record) is ContactModel:
            return ContactModel(email=key, **fields)
        return LeadModel(
            email=key,
            lead_source=LEAD_SOURCE,
            **fields,
            **self._lead_fields(record),
        )

    def changes(
        self, record: dict[str, Any], existing: ContactModel | LeadModel
    ) -> dict[str, Any]:
        fields = self._common(record)
        if isinstance(existing, LeadModel):
            fields.update(self._lead_fields(record))
        return fields
