"""Remote organizations → local accounts, keyed by name."""

from __future__ import annotations

from typing import Any

from src.crm_sync.crm.models import AccountModel
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.fields import extract_primary_value, present


class AccountReconciler(BaseReconciler):
    entity = "account"
    model = AccountModel
    remote_type = RemoteType.ACCOUNT
    key_column = "name"

    def business_key(self, record: dict[str, Any]) -> str | None:
        name = record.get("name")
        return name.strip() if isinstance(name, str) and name.strip() else None

    @staticmethod
    def _phone(record: dict[str, Any]) -> str | None:
        return extract_primary_value(record.get("phone")) or extract_primary_value(
            record.get("org_phone")
        )

    @staticmethod
    def _email(record: dict[str, Any]) -> str | None:
        return extract_primary_value(record.get("email")) or present(record.get("cc_email"))

    def build(self, record: dict[str, Any], key: str) -> AccountModel:
        return AccountModel(
            name=key,
            phone=self._phone(record) or self._settings.ACCOUNT_PHONE_PLACEHOLDER,
            email=self._email(record),
            website=present(record.get("cc_email")),
            address=present(record.get("address")),
            assigned_to=self._resolver.owner_email(record.get("owner_id")),
        )

    def changes(self, record: dict[str, Any], existing: AccountModel) -> dict[str, Any]:
        return {
            "phone": self._phone(record),
            "email": self._email(record),
            "website": present(record.get("cc_email")),
            "address": present(record.get("address")),
        }
