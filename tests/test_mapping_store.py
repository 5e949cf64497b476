"""Unit tests for the identity mapping store.

Covers first-write-wins recording, lookups by remote and local id, and the
database-level uniqueness of (remote_system, remote_type, remote_id).
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from src.crm_sync.mapping.models import IdentityMappingModel, RemoteType
from src.crm_sync.mapping.store import IdentityMappingStore, coerce_remote_id


def _count(session) -> int:
    return session.execute(select(func.count()).select_from(IdentityMappingModel)).scalar_one()


class TestRecord:
    """record() is find-or-create and never overwrites."""

    def test_first_write_creates_row(self, session, mappings):
        assert mappings.record(RemoteType.CONTACT, 18822, 7) is True
        assert mappings.resolve_local_id(RemoteType.CONTACT, 18822) == 7

    def test_second_write_same_local_id_is_noop(self, session, mappings):
        mappings.record(RemoteType.ACCOUNT, 5, 1)
        assert mappings.record(RemoteType.ACCOUNT, 5, 1) is False
        assert _count(session) == 1

    def test_conflicting_local_id_is_ignored(self, session, mappings):
        mappings.record(RemoteType.ACCOUNT, 5, 1)
        assert mappings.record(RemoteType.ACCOUNT, 5, 99) is False
        assert mappings.resolve_local_id(RemoteType.ACCOUNT, 5) == 1

    def test_missing_local_id_writes_nothing(self, session, mappings):
        assert mappings.record(RemoteType.USER, 3, None) is False
        assert _count(session) == 0

    def test_missing_remote_id_writes_nothing(self, session, mappings):
        assert mappings.record(RemoteType.USER, None, 4) is False
        assert _count(session) == 0

    def test_same_remote_id_different_types_are_independent(self, session, mappings):
        mappings.record(RemoteType.CONTACT, 10, 1)
        mappings.record(RemoteType.LEAD, 10, 2)
        assert mappings.resolve_local_id(RemoteType.CONTACT, 10) == 1
        assert mappings.resolve_local_id(RemoteType.LEAD, 10) == 2

    def test_record_does_not_commit(self, session, mappings):
        mappings.record(RemoteType.NOTE, 1, 1)
        session.rollback()
        assert _count(session) == 0


class TestLookups:
    """resolve_local_id / resolve_any / find_by_local_id."""

    def test_unknown_remote_id_resolves_to_none(self, mappings):
        assert mappings.resolve_local_id(RemoteType.USER, 404) is None

    def test_digit_string_remote_id(self, mappings):
        mappings.record(RemoteType.USER, "42", 3)
        assert mappings.resolve_local_id(RemoteType.USER, 42) == 3
        assert mappings.resolve_local_id(RemoteType.USER, "42") == 3

    def test_resolve_any_returns_every_hit_in_order(self, mappings):
        mappings.record(RemoteType.LEAD, 8, 2)
        mappings.record(RemoteType.CONTACT, 8, 5)
        hits = mappings.resolve_any([RemoteType.CONTACT, RemoteType.LEAD], 8)
        assert hits == [(RemoteType.CONTACT, 5), (RemoteType.LEAD, 2)]

    def test_resolve_any_no_hits(self, mappings):
        assert mappings.resolve_any([RemoteType.CONTACT, RemoteType.LEAD], 8) == []

    def test_find_by_local_id(self, mappings):
        mappings.record(RemoteType.OPPORTUNITY, 77, 12)
        mapping = mappings.find_by_local_id(RemoteType.OPPORTUNITY, 12)
        assert mapping is not None
        assert mapping.remote_id == 77
        assert mapping.remote_system == "pipedrive"

    def test_stores_are_scoped_by_remote_system(self, session, mappings):
        other = IdentityMappingStore(session, remote_system="hubspot")
        mappings.record(RemoteType.USER, 1, 10)
        assert other.resolve_local_id(RemoteType.USER, 1) is None


class TestUniqueness:
    """The table itself rejects duplicate remote keys."""

    def test_duplicate_insert_violates_unique_constraint(self, session):
        for local_id in (1, 2):
            session.add(
                IdentityMappingModel(
                    remote_system="pipedrive",
                    remote_type=RemoteType.USER,
                    remote_id=1,
                    local_id=local_id,
                )
            )
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()


class TestCoerceRemoteId:
    def test_values(self):
        assert coerce_remote_id(5) == 5
        assert coerce_remote_id(" 12 ") == 12
        assert coerce_remote_id("abc") is None
        assert coerce_remote_id(True) is None
        assert coerce_remote_id(None) is None

    def test_ids_outside_bigint_range_are_malformed(self):
        assert coerce_remote_id(2**63 - 1) == 2**63 - 1
        assert coerce_remote_id(2**63) is None
        assert coerce_remote_id(str(10**20)) is None

    def test_oversized_id_is_not_recorded(self, session, mappings):
        assert mappings.record(RemoteType.USER, 10**20, 1) is False
        assert _count(session) == 0
