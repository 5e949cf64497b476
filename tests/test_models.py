"""Tests for local model integrity rules and password helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from src.crm_sync.core.security import hash_password, verify_password
from src.crm_sync.crm.models import (
    AccountModel,
    ContactModel,
    LeadModel,
    NoteModel,
    OpportunityModel,
    RecordInvalid,
    UserModel,
)


# ── Helpers ────────────────────────────────────────────────────────────────


def _rejected(session, entity, match: str | None = None) -> None:
    session.add(entity)
    with pytest.raises(RecordInvalid, match=match):
        session.flush()
    session.rollback()


def _opportunity(**overrides) -> OpportunityModel:
    values = {"opportunity_name": "Acme renewal", "account_name": "Acme", "owner": "rep@x.com"}
    values.update(overrides)
    return OpportunityModel(**values)


# ── Business rules ─────────────────────────────────────────────────────────


class TestValidation:
    def test_contact_email_format(self, session):
        _rejected(
            session,
            ContactModel(first_name="A", last_name="B", email="not-an-email"),
            match="email",
        )

    def test_user_email_format(self, session):
        _rejected(
            session,
            UserModel(email="not an email", encrypted_password=hash_password("pw")),
            match="email",
        )

    def test_account_requires_phone(self, session):
        _rejected(session, AccountModel(name="No Phone Inc"), match="phone")

    def test_lead_requires_assignee(self, session):
        _rejected(
            session,
            LeadModel(first_name="A", last_name="B", email="a@b.com", lead_owner="x@y.com"),
            match="assigned_to",
        )

    def test_note_requires_content(self, session):
        _rejected(session, NoteModel(content="  "))

    def test_update_is_validated(self, session):
        account = AccountModel(name="Acme", phone="555-0100")
        session.add(account)
        session.commit()

        account.phone = ""
        with pytest.raises(RecordInvalid):
            session.flush()
        session.rollback()


# ── Column bounds ──────────────────────────────────────────────────────────


class TestColumnBounds:
    def test_string_longer_than_column(self, session):
        _rejected(session, _opportunity(opportunity_name="x" * 301), match="too long")

    def test_string_at_column_length_is_accepted(self, session):
        session.add(_opportunity(opportunity_name="x" * 300))
        session.flush()

    def test_text_columns_are_unbounded(self, session):
        session.add(_opportunity(comments="x" * 10_000))
        session.flush()

    def test_integer_out_of_range(self, session):
        _rejected(session, _opportunity(probability=10**20), match="probability")

    def test_numeric_out_of_range(self, session):
        _rejected(session, _opportunity(amount=Decimal("1e15")), match="amount")

    def test_values_within_range_are_accepted(self, session):
        session.add(_opportunity(probability=-5, amount=Decimal("999999999999.99")))
        session.flush()


# ── Users ──────────────────────────────────────────────────────────────────


class TestPasswords:
    def test_hash_round_trip(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_user_full_name(self):
        assert UserModel(first_name="Ada", last_name="Lovelace").full_name == "Ada Lovelace"
        assert UserModel(first_name="Ada").full_name == "Ada"
