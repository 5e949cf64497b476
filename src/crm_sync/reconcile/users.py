"""Remote users → local users, keyed by e-mail."""

from __future__ import annotations

from typing import Any

from src.crm_sync.core.security import generate_password, hash_password
from src.crm_sync.crm.models import UserModel
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.fields import extract_primary_value, present, split_name, to_bool


class UserReconciler(BaseReconciler):
    entity = "user"
    model = UserModel
    remote_type = RemoteType.USER
    key_column = "email"

    def business_key(self, record: dict[str, Any]) -> str | None:
        return extract_primary_value(record.get("email"))

    def build(self, record: dict[str, Any], key: str) -> UserModel:
        first_name, last_name = split_name(record.get("name"))
        user = UserModel(
            email=key,
            encrypted_password=hash_password(generate_password()),
            first_name=first_name,
            last_name=last_name,
            phone=extract_primary_value(record.get("phone")),
        )
        approved = to_bool(record.get("active_flag"))
        if approved is not None:
            user.approved = approved
        return user

    def changes(self, record: dict[str, Any], existing: UserModel) -> dict[str, Any]:
        first_name, last_name = split_name(record.get("name"))
        return {
            "first_name": first_name,
            "last_name": last_name,
            "phone": present(extract_primary_value(record.get("phone"))),
        }
