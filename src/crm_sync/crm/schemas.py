"""Enums and small value types shared by the local CRM models and reconcilers.

Defines:
- NotableKind: closed set of entity kinds a note can be attached to
- NotableRef: hashable (kind, id) pair identifying one notable row
- PersonKind: outcome of the person classification heuristic
- LeadStatus, DealStage, OpportunityType, TaskPriority: local pick-lists
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


# ── Enums ───────────────────────────────────────────────────────────────────


class NotableKind(str, Enum):
    """Entity kinds that can carry notes."""

    CONTACT = "Contact"
    LEAD = "Lead"
    OPPORTUNITY = "Opportunity"
    ACCOUNT = "Account"

    @classmethod
    def parse(cls, value: object) -> NotableKind | None:
        """Return the kind for a tag string, or None for anything unsupported."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for kind in cls:
            if kind.value.lower() == value.strip().lower():
                return kind
        return None


class PersonKind(str, Enum):
    """Which local table a remote person reconciles into."""

    CONTACT = "Contact"
    LEAD = "Lead"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    DISQUALIFIED = "disqualified"


class DealStage(str, Enum):
    """Sales pipeline stage for an opportunity."""

    PROSPECTING = "prospecting"
    PROPOSAL = "proposal"
    ANALYSIS = "analysis"
    PRESENTATION = "presentation"
    NEGOTIATION = "negotiation"
    FINAL_REVIEW = "final_review"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class OpportunityType(str, Enum):
    NEW_CUSTOMER = "new_customer"
    EXISTING_CUSTOMER = "existing_customer"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Value Types ─────────────────────────────────────────────────────────────


class NotableRef(BaseModel):
    """Identifies one notable row by kind tag and primary key."""

    model_config = ConfigDict(frozen=True)

    kind: NotableKind
    id: int
