"""Decision tables that classify remote people and deals.

All three functions are total: missing or non-numeric counts are treated
as zero and unknown deal statuses fall through to the default stage.
"""

from __future__ import annotations

from typing import Any

from src.crm_sync.crm.schemas import DealStage, LeadStatus, PersonKind
from src.crm_sync.reconcile.fields import to_int


def _count(record: dict[str, Any], field: str) -> int:
    return max(to_int(record.get(field)) or 0, 0)


def classify_person(record: dict[str, Any]) -> PersonKind:
    """Contact when the person has any open or closed deal, else Lead."""
    if _count(record, "open_deals_count") + _count(record, "closed_deals_count") > 0:
        return PersonKind.CONTACT
    return PersonKind.LEAD


def lead_status(record: dict[str, Any]) -> LeadStatus:
    """Derive a lead's status from its activity, e-mail and deal counts.

    ============  ==========  ============  =========  ==============
    interaction   open deals  closed deals  won deals  status
    ============  ==========  ============  =========  ==============
    no            any         any           any        new
    yes           > 0         any           any        qualified
    yes           0           > 0           0          disqualified
    yes           0           > 0           > 0        qualified
    yes           0           0             any        contacted
    ============  ==========  ============  =========  ==============
    """
    interacted = (
        _count(record, "activities_count") > 0 or _count(record, "email_messages_count") > 0
    )
    if not interacted:
        return LeadStatus.NEW
    if _count(record, "open_deals_count") > 0:
        return LeadStatus.QUALIFIED
    if _count(record, "closed_deals_count") > 0:
        if _count(record, "won_deals_count") > 0:
            return LeadStatus.QUALIFIED
        return LeadStatus.DISQUALIFIED
    return LeadStatus.CONTACTED


def deal_stage(status: Any) -> DealStage:
    """Map a remote deal status onto the local pipeline.

    Only the terminal statuses are distinguished; every open deal lands in
    prospecting because remote pipeline stages are not fetched.
    """
    normalized = status.strip().lower() if isinstance(status, str) else None
    if normalized == "won":
        return DealStage.CLOSED_WON
    if normalized == "lost":
        return DealStage.CLOSED_LOST
    return DealStage.PROSPECTING
