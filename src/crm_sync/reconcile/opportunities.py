"""Remote deals → local opportunities, keyed by title."""

from __future__ import annotations

from datetime import date
from typing import Any

from src.crm_sync.crm.models import OpportunityModel
from src.crm_sync.crm.schemas import OpportunityType
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.classification import deal_stage
from src.crm_sync.reconcile.fields import parse_date, to_decimal, to_int

UNKNOWN_ACCOUNT = "Unknown"
FALLBACK_OWNER = "admin"


class OpportunityReconciler(BaseReconciler):
    entity = "opportunity"
    model = OpportunityModel
    remote_type = RemoteType.OPPORTUNITY
    key_column = "opportunity_name"

    def business_key(self, record: dict[str, Any]) -> str | None:
        title = record.get("title")
        return title.strip() if isinstance(title, str) and title.strip() else None

    @staticmethod
    def _closing_date(record: dict[str, Any]) -> date | None:
        return parse_date(record.get("expected_close_date")) or parse_date(record.get("close_time"))

    def build(self, record: dict[str, Any], key: str) -> OpportunityModel:
        resolver = self._resolver
        return OpportunityModel(
            opportunity_name=key,
            account_name=resolver.organization_name(record.get("org_id")) or UNKNOWN_ACCOUNT,
            amount=to_decimal(record.get("value")),
            stage=deal_stage(record.get("status")).value,
            owner=resolver.owner_email(record.get("owner_id")) or FALLBACK_OWNER,
            probability=to_int(record.get("probability"), default=None),
            contact_name=resolver.person_name(record.get("person_id")),
            closing_date=self._closing_date(record),
            type=OpportunityType.NEW_CUSTOMER.value,
        )

    def changes(self, record: dict[str, Any], existing: OpportunityModel) -> dict[str, Any]:
        return {
            "amount": to_decimal(record.get("value")),
            "stage": deal_stage(record.get("status")).value,
            "probability": to_int(record.get("probability"), default=None),
            "closing_date": self._closing_date(record),
        }
