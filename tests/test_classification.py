"""Unit tests for person classification, lead status and deal stage."""

from __future__ import annotations

from src.crm_sync.crm.schemas import DealStage, LeadStatus, PersonKind
from src.crm_sync.reconcile.classification import classify_person, deal_stage, lead_status


class TestClassifyPerson:
    def test_open_deal_makes_contact(self):
        assert classify_person({"open_deals_count": 1}) is PersonKind.CONTACT

    def test_closed_deal_makes_contact(self):
        assert classify_person({"closed_deals_count": "2"}) is PersonKind.CONTACT

    def test_no_deals_makes_lead(self):
        assert classify_person({"open_deals_count": 0, "closed_deals_count": 0}) is PersonKind.LEAD

    def test_missing_counts_make_lead(self):
        assert classify_person({}) is PersonKind.LEAD

    def test_garbage_counts_are_zero(self):
        assert classify_person({"open_deals_count": "n/a", "closed_deals_count": None}) is PersonKind.LEAD

    def test_deterministic(self):
        record = {"open_deals_count": 0, "closed_deals_count": 3}
        assert {classify_person(record) for _ in range(5)} == {PersonKind.CONTACT}


class TestLeadStatus:
    def test_no_interaction_is_new(self):
        assert lead_status({"open_deals_count": 4}) is LeadStatus.NEW

    def test_interaction_without_deals_is_contacted(self):
        assert lead_status({"activities_count": 2}) is LeadStatus.CONTACTED
        assert lead_status({"email_messages_count": 1}) is LeadStatus.CONTACTED

    def test_interaction_with_open_deals_is_qualified(self):
        record = {"activities_count": 1, "open_deals_count": 1, "closed_deals_count": 5}
        assert lead_status(record) is LeadStatus.QUALIFIED

    def test_only_lost_deals_is_disqualified(self):
        record = {"email_messages_count": 3, "closed_deals_count": 2, "won_deals_count": 0}
        assert lead_status(record) is LeadStatus.DISQUALIFIED

    def test_won_closed_deals_is_qualified(self):
        record = {"activities_count": 1, "closed_deals_count": 2, "won_deals_count": 1}
        assert lead_status(record) is LeadStatus.QUALIFIED

    def test_empty_record_never_raises(self):
        assert lead_status({}) is LeadStatus.NEW


class TestDealStage:
    def test_terminal_statuses(self):
        assert deal_stage("won") is DealStage.CLOSED_WON
        assert deal_stage("lost") is DealStage.CLOSED_LOST

    def test_everything_else_is_prospecting(self):
        assert deal_stage("open") is DealStage.PROSPECTING
        assert deal_stage("deleted") is DealStage.PROSPECTING
        assert deal_stage(None) is DealStage.PROSPECTING
