"""Identity mapping table -- remote record → local row, per remote system.

One row per (remote_system, remote_type, remote_id). Rows are written the
first time a remote record is reconciled and never updated afterwards.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from src.crm_sync.core.database import Base
from src.crm_sync.crm.models import enum_column

DEFAULT_REMOTE_SYSTEM = "pipedrive"


class RemoteType(str, Enum):
    """Local entity kind a remote record was reconciled into."""

    USER = "User"
    ACCOUNT = "Account"
    CONTACT = "Contact"
    LEAD = "Lead"
    OPPORTUNITY = "Opportunity"
    TASK = "Task"
    NOTE = "Note"


class IdentityMappingModel(Base):
    __tablename__ = "identity_mappings"
    __table_args__ = (
        UniqueConstraint(
            "remote_system",
            "remote_type",
            "remote_id",
            name="uq_identity_mapping_remote",
        ),
        Index("ix_identity_mappings_local", "remote_type", "local_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    remote_system: Mapped[str] = mapped_column(
        String(50), nullable=False, default=DEFAULT_REMOTE_SYSTEM
    )
    remote_type: Mapped[RemoteType] = mapped_column(enum_column(RemoteType), nullable=False)
    remote_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    local_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
