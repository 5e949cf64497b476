"""Local CRM persistence models.

Eight SQLAlchemy models on the shared declarative Base:
- UserModel: Sales reps; owners and assignees of other records
- AccountModel: Companies (one per name)
- ContactModel: People with sales history (one per e-mail)
- LeadModel: People without sales history yet (one per e-mail)
- OpportunityModel: Deals
- TaskModel: Follow-up work items
- NoteModel: Free-text notes, linked to notables through NoteAssociationModel
- NoteAssociationModel: (note, notable kind, notable id) join rows

Business rules are checked by each model's validate() before every ORM
insert/update and raise RecordInvalid. Uniqueness is enforced by the
database. Bulk UPDATE statements skip validation, which is how original
remote timestamps are written back after a create.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    delete,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.crm_sync.core.database import Base
from src.crm_sync.crm.schemas import NotableKind, NotableRef

# Same pattern Ruby's URI::MailTo::EMAIL_REGEXP uses
EMAIL_PATTERN = re.compile(
    r"\A[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\Z"
)

# Signed 32- and 64-bit bounds of INTEGER and BIGINT columns
INT_LIMIT = 2**31
BIGINT_LIMIT = 2**63


class RecordInvalid(ValueError):
    """A local business rule rejected the record."""

    def __init__(self, model: str, errors: list[str]) -> None:
        self.model = model
        self.errors = errors
        super().__init__(f"{model} invalid: {', '.join(errors)}")


def enum_column(enum_cls: type, length: int = 50) -> Enum:
    """Store an Enum by its value (e.g. "Contact") rather than its name."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


# ── Mixins ──────────────────────────────────────────────────────────────────


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ValidatedMixin:
    """Runs validate() before every ORM-level insert and update.

    Besides the per-model business rules, every value is checked against
    its column's declared bounds so oversized data is rejected here rather
    than by the database driver.
    """

    def validation_errors(self) -> list[str]:
        return []

    def column_errors(self) -> list[str]:
        errors: list[str] = []
        for column in self.__table__.columns:
            value = getattr(self, column.key, None)
            if value is not None:
                errors.extend(_column_bounds(column, value))
        return errors

    def validate(self) -> None:
        errors = self.column_errors() + self.validation_errors()
        if errors:
            raise RecordInvalid(type(self).__name__.removesuffix("Model"), errors)


@event.listens_for(ValidatedMixin, "before_insert", propagate=True)
@event.listens_for(ValidatedMixin, "before_update", propagate=True)
def _validate_before_write(mapper: Any, connection: Any, target: ValidatedMixin) -> None:
    target.validate()


class NotableMixin:
    """Marks a model as something notes can be attached to."""

    __notable_kind__: ClassVar[NotableKind]

    @property
    def notable_ref(self) -> NotableRef:
        return NotableRef(kind=self.__notable_kind__, id=self.id)


@event.listens_for(NotableMixin, "after_delete", propagate=True)
def _drop_note_links(mapper: Any, connection: Any, target: NotableMixin) -> None:
    """Remove the notable's note links; the notes themselves survive."""
    connection.execute(
        delete(NoteAssociationModel.__table__).where(
            NoteAssociationModel.notable_type == target.__notable_kind__,
            NoteAssociationModel.notable_id == target.id,
        )
    )


def _column_bounds(column: Column, value: Any) -> list[str]:
    column_type = column.type
    if isinstance(column_type, String) and isinstance(value, str):
        if column_type.length is not None and len(value) > column_type.length:
            return [f"{column.key} is too long (maximum is {column_type.length} characters)"]
    elif isinstance(column_type, Integer) and isinstance(value, int):
        limit = BIGINT_LIMIT if isinstance(column_type, BigInteger) else INT_LIMIT
        if not -limit <= value < limit:
            return [f"{column.key} is out of range"]
    elif isinstance(column_type, Numeric) and isinstance(value, Decimal):
        if column_type.precision is not None and value.is_finite():
            whole_digits = column_type.precision - (column_type.scale or 0)
            if abs(value) >= Decimal(10) ** whole_digits:
                return [f"{column.key} is out of range"]
    return []


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(obj: Any, *fields: str) -> list[str]:
    return [f"{name} can't be blank" for name in fields if _blank(getattr(obj, name))]


def _email_format(email: str | None) -> list[str]:
    if email and not EMAIL_PATTERN.match(email):
        return ["email Invalid e-mail address"]
    return []


# ── Users ───────────────────────────────────────────────────────────────────


class UserModel(ValidatedMixin, TimestampMixin, Base):
    """Sales rep account. One per e-mail."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    encrypted_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def validation_errors(self) -> list[str]:
        return _require(self, "email", "encrypted_password") + _email_format(self.email)

    @property
    def full_name(self) -> str | None:
        if _blank(self.last_name):
            return self.first_name
        return f"{self.first_name} {self.last_name}"


# ── Accounts ────────────────────────────────────────────────────────────────


class AccountModel(NotableMixin, ValidatedMixin, TimestampMixin, Base):
    """Company account. One per name."""

    __tablename__ = "accounts"
    __notable_kind__ = NotableKind.ACCOUNT

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def validation_errors(self) -> list[str]:
        return _require(self, "name", "phone")


# ── People ──────────────────────────────────────────────────────────────────


class PersonColumnsMixin:
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    company: Mapped[str | None] = mapped_column(String(300), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def person_errors(self) -> list[str]:
        return _require(self, "first_name", "last_name", "email") + _email_format(self.email)

    @property
    def full_name(self) -> str:
        if _blank(self.last_name):
            return self.first_name
        return f"{self.first_name} {self.last_name}"


class ContactModel(NotableMixin, PersonColumnsMixin, ValidatedMixin, TimestampMixin, Base):
    """Person with real sales history."""

    __tablename__ = "contacts"
    __notable_kind__ = NotableKind.CONTACT

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    def validation_errors(self) -> list[str]:
        return self.person_errors()


class LeadModel(NotableMixin, PersonColumnsMixin, ValidatedMixin, TimestampMixin, Base):
    """Person not yet converted; always owned by a user."""

    __tablename__ = "leads"
    __notable_kind__ = NotableKind.LEAD

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    interested_in: Mapped[str | None] = mapped_column(String(100), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    lead_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lead_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lead_owner: Mapped[str] = mapped_column(String(255), nullable=False)
    account_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    opportunity_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    opportunity_owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_to_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )

    assigned_to: Mapped[UserModel] = relationship(UserModel)

    def validation_errors(self) -> list[str]:
        errors = self.person_errors() + _require(self, "lead_owner")
        if self.assigned_to_id is None and self.assigned_to is None:
            errors.append("assigned_to must exist")
        return errors


# ── Opportunities ───────────────────────────────────────────────────────────


class OpportunityModel(NotableMixin, ValidatedMixin, TimestampMixin, Base):
    """Deal. Account and contact are stored by name, not by key."""

    __tablename__ = "opportunities"
    __notable_kind__ = NotableKind.OPPORTUNITY

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    opportunity_name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String(300), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    probability: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    closing_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def validation_errors(self) -> list[str]:
        return _require(self, "opportunity_name", "account_name", "owner")


# ── Tasks ───────────────────────────────────────────────────────────────────


class TaskModel(ValidatedMixin, TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assignee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )

    assignee: Mapped[UserModel] = relationship(UserModel)

    def validation_errors(self) -> list[str]:
        errors = _require(self, "title")
        if self.assignee_id is None and self.assignee is None:
            errors.append("assignee must exist")
        return errors


# ── Notes ───────────────────────────────────────────────────────────────────


class NoteModel(ValidatedMixin, TimestampMixin, Base):
    """Free-text note. Linked to notables only through NoteAssociationModel."""

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_by: Mapped[UserModel | None] = relationship(UserModel)
    associations: Mapped[list[NoteAssociationModel]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def validation_errors(self) -> list[str]:
        return _require(self, "content")


class NoteAssociationModel(TimestampMixin, Base):
    """Polymorphic link between a note and one notable row.

    notable_id is checked against the notable table in application code;
    the composite unique constraint keeps a note from linking to the same
    notable twice.
    """

    __tablename__ = "note_associations"
    __table_args__ = (
        UniqueConstraint(
            "note_id",
            "notable_type",
            "notable_id",
            name="uq_note_association_note_notable",
        ),
        Index("ix_note_associations_notable", "notable_type", "notable_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    notable_type: Mapped[NotableKind] = mapped_column(enum_column(NotableKind), nullable=False)
    notable_id: Mapped[int] = mapped_column(Integer, nullable=False)

    note: Mapped[NoteModel] = relationship(back_populates="associations")

    @property
    def notable_ref(self) -> NotableRef:
        return NotableRef(kind=self.notable_type, id=self.notable_id)


NOTABLE_MODELS: dict[NotableKind, type[NotableMixin]] = {
    NotableKind.CONTACT: ContactModel,
    NotableKind.LEAD: LeadModel,
    NotableKind.OPPORTUNITY: OpportunityModel,
    NotableKind.ACCOUNT: AccountModel,
}
