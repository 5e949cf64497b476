"""Create local CRM tables and the identity mapping table.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

Creates:
- users, accounts, contacts, leads, opportunities, tasks
- notes + note_associations (polymorphic note → notable links)
- identity_mappings: remote (system, type, id) → local row id

Notable ids in note_associations are not foreign keys; links are removed by
the application when the notable is deleted.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def _person_columns() -> list[sa.Column]:
    return [
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("company", sa.String(300), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
    ]


def upgrade() -> None:
    # ── users ───────────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("encrypted_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("company", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("admin", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # ── accounts ────────────────────────────────────────────────────────

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_accounts_name"),
    )

    # ── contacts / leads ────────────────────────────────────────────────

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_person_columns(),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_contacts_email"),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_person_columns(),
        sa.Column("interested_in", sa.String(100), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("lead_status", sa.String(50), nullable=True),
        sa.Column("lead_source", sa.String(50), nullable=True),
        sa.Column("lead_owner", sa.String(255), nullable=False),
        sa.Column("account_name", sa.String(300), nullable=True),
        sa.Column("opportunity_name", sa.String(300), nullable=True),
        sa.Column("opportunity_owner", sa.String(255), nullable=True),
        sa.Column("assigned_to_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_leads_email"),
        sa.ForeignKeyConstraint(
            ["assigned_to_id"], ["users.id"], name="fk_leads_assigned_to_id_users"
        ),
    )
    op.create_index("ix_leads_assigned_to_id", "leads", ["assigned_to_id"])

    # ── opportunities ───────────────────────────────────────────────────

    op.create_table(
        "opportunities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("opportunity_name", sa.String(300), nullable=False),
        sa.Column("account_name", sa.String(300), nullable=False),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("stage", sa.String(50), nullable=True),
        sa.Column("owner", sa.String(255), nullable=False),
        sa.Column("probability", sa.Integer(), nullable=True),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("closing_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_opportunities_opportunity_name", "opportunities", ["opportunity_name"]
    )

    # ── tasks ───────────────────────────────────────────────────────────

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("assignee_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["assignee_id"], ["users.id"], name="fk_tasks_assignee_id_users"
        ),
    )
    op.create_index("ix_tasks_title", "tasks", ["title"])
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])

    # ── notes / note_associations ───────────────────────────────────────

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_notes_user_id_users", ondelete="SET NULL"
        ),
    )

    op.create_table(
        "note_associations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("notable_type", sa.String(50), nullable=False),
        sa.Column("notable_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["note_id"],
            ["notes.id"],
            name="fk_note_associations_note_id_notes",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "note_id",
            "notable_type",
            "notable_id",
            name="uq_note_association_note_notable",
        ),
    )
    op.create_index("ix_note_associations_note_id", "note_associations", ["note_id"])
    op.create_index(
        "ix_note_associations_notable",
        "note_associations",
        ["notable_type", "notable_id"],
    )

    # ── identity_mappings ───────────────────────────────────────────────

    op.create_table(
        "identity_mappings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("remote_system", sa.String(50), nullable=False),
        sa.Column("remote_type", sa.String(50), nullable=False),
        sa.Column("remote_id", sa.BigInteger(), nullable=False),
        sa.Column("local_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "remote_system",
            "remote_type",
            "remote_id",
            name="uq_identity_mapping_remote",
        ),
    )
    op.create_index(
        "ix_identity_mappings_local",
        "identity_mappings",
        ["remote_type", "local_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_identity_mappings_local", table_name="identity_mappings")
    op.drop_table("identity_mappings")
    op.drop_index("ix_note_associations_notable", table_name="note_associations")
    op.drop_index("ix_note_associations_note_id", table_name="note_associations")
    op.drop_table("note_associations")
    op.drop_table("notes")
    op.drop_index("ix_tasks_assignee_id", table_name="tasks")
    op.drop_index("ix_tasks_title", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_opportunities_opportunity_name", table_name="opportunities")
    op.drop_table("opportunities")
    op.drop_index("ix_leads_assigned_to_id", table_name="leads")
    op.drop_table("leads")
    op.drop_table("contacts")
    op.drop_table("accounts")
    op.drop_table("users")
