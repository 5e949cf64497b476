"""Tests for note ↔ notable links."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from src.crm_sync.crm.models import (
    AccountModel,
    ContactModel,
    NoteAssociationModel,
    NoteModel,
    OpportunityModel,
)
from src.crm_sync.crm.notes import attach, attach_many, notables_for, notes_for
from src.crm_sync.crm.schemas import NotableKind, NotableRef


# ── Helpers ────────────────────────────────────────────────────────────────


def _links(session) -> int:
    return session.execute(
        select(func.count()).select_from(NoteAssociationModel)
    ).scalar_one()


@pytest.fixture
def notables(session):
    account = AccountModel(name="Acme", phone="555-0100")
    contact = ContactModel(first_name="Dan", last_name="Smith", email="dan@x.com")
    opportunity = OpportunityModel(
        opportunity_name="Acme renewal", account_name="Acme", owner="rep@x.com"
    )
    session.add_all([account, contact, opportunity])
    session.commit()
    return account, contact, opportunity


@pytest.fixture
def note(session):
    note = NoteModel(content="Called, left voicemail")
    session.add(note)
    session.commit()
    return note


# ── NotableKind ────────────────────────────────────────────────────────────


class TestNotableKind:
    def test_parse_known_tags(self):
        assert NotableKind.parse("Contact") is NotableKind.CONTACT
        assert NotableKind.parse("opportunity") is NotableKind.OPPORTUNITY
        assert NotableKind.parse(NotableKind.LEAD) is NotableKind.LEAD

    def test_parse_rejects_unknown_tags(self):
        assert NotableKind.parse("Task") is None
        assert NotableKind.parse("User") is None
        assert NotableKind.parse(None) is None
        assert NotableKind.parse(3) is None


# ── attach ─────────────────────────────────────────────────────────────────


class TestAttach:
    def test_attach_is_idempotent(self, session, note, notables):
        account, _, _ = notables
        assert attach(session, note, account) is True
        assert attach(session, note, account) is False
        assert _links(session) == 1

    def test_attach_accepts_refs(self, session, note, notables):
        _, contact, _ = notables
        ref = NotableRef(kind=NotableKind.CONTACT, id=contact.id)
        assert attach(session, note, ref) is True
        assert attach(session, note, contact) is False

    def test_attach_many_counts_new_links(self, session, note, notables):
        assert attach_many(session, note, notables) == 3
        assert attach_many(session, note, notables) == 0
        assert _links(session) == 3

    def test_same_id_different_kinds_are_distinct(self, session, note, notables):
        account, contact, _ = notables
        attach(session, note, NotableRef(kind=NotableKind.ACCOUNT, id=account.id))
        attach(session, note, NotableRef(kind=NotableKind.CONTACT, id=account.id))
        assert _links(session) == 2


# ── Reads ──────────────────────────────────────────────────────────────────


class TestReads:
    def test_note_visible_from_every_notable(self, session, note, notables):
        attach_many(session, note, notables)
        session.commit()
        for notable in notables:
            kind = notable.notable_ref.kind
            assert [n.id for n in notes_for(session, kind, notable.id)] == [note.id]

    def test_notes_for_unknown_kind_is_empty(self, session, note, notables):
        attach_many(session, note, notables)
        assert notes_for(session, "Task", notables[0].id) == []

    def test_notables_for_dispatches_by_kind(self, session, note, notables):
        attach_many(session, note, notables)
        session.commit()
        loaded = notables_for(session, note)
        assert {type(n) for n in loaded} == {AccountModel, ContactModel, OpportunityModel}

    def test_notables_for_skips_dangling_links(self, session, note):
        attach(session, note, NotableRef(kind=NotableKind.LEAD, id=999))
        session.commit()
        assert notables_for(session, note) == []


# ── Deletion integrity ─────────────────────────────────────────────────────


class TestDeletion:
    def test_deleting_notable_removes_links_but_keeps_note(self, session, note, notables):
        account, contact, _ = notables
        attach_many(session, note, notables)
        session.commit()

        session.delete(account)
        session.commit()
        session.expire_all()

        assert session.get(NoteModel, note.id) is not None
        assert _links(session) == 2
        assert notes_for(session, NotableKind.ACCOUNT, account.id) == []
        assert len(notes_for(session, NotableKind.CONTACT, contact.id)) == 1

    def test_deleting_note_removes_its_links(self, session, note, notables):
        attach_many(session, note, notables)
        session.commit()

        session.delete(note)
        session.commit()

        assert _links(session) == 0
        assert session.get(AccountModel, notables[0].id) is not None
