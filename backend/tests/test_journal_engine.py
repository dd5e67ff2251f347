# tests/test_journal_engine.py
"""
Tests for the journal engine.

Tests cover:
- Entry validation (line count, amounts, balance, accounts)
- Document numbering
- DRAFT -> PENDING -> APPROVED | REJECTED workflow
- Balances applied exactly once, only on approval
"""

import pytest
from datetime import date
from decimal import Decimal

from django.core.exceptions import PermissionDenied
from django.db import OperationalError

from accounting.commands import (
    create_journal_entry,
    submit_journal_entry,
    approve_journal_entry,
    reject_journal_entry,
    update_account,
)
from accounting.journal import next_code, next_document_number
from accounting.models import BalanceMovement, JournalEntry, JournalLine
from events.models import BusinessEvent
from events.types import EventTypes


ENTRY_DATE = date(2026, 2, 14)


def _lines(chart, debit_code, credit_code, amount):
    return [
        {"account_id": chart[debit_code].pk, "debit": amount, "credit": "0"},
        {"account_id": chart[credit_code].pk, "debit": "0", "credit": amount},
    ]


# =============================================================================
# Validation
# =============================================================================

@pytest.mark.django_db
class TestEntryValidation:

    def test_single_line_rejected(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[{"account_id": chart["1000"].pk, "debit": "10.00", "credit": "0"}],
        )

        assert not result.success
        assert result.error_code == "validation_error"
        assert JournalEntry.objects.count() == 0

    def test_unbalanced_entry_persists_nothing(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_id": chart["1000"].pk, "debit": "100.00", "credit": "0"},
                {"account_id": chart["3000"].pk, "debit": "0", "credit": "99.00"},
            ],
        )

        assert not result.success
        assert result.error_code == "unbalanced_entry"
        assert JournalEntry.objects.count() == 0
        assert JournalLine.objects.count() == 0

    def test_difference_within_tolerance_accepted(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_id": chart["1000"].pk, "debit": "100.00", "credit": "0"},
                {"account_id": chart["3000"].pk, "debit": "0", "credit": "99.99"},
            ],
        )

        assert result.success, result.error

    def test_line_with_both_sides_rejected(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_id": chart["1000"].pk, "debit": "50.00", "credit": "50.00"},
                {"account_id": chart["3000"].pk, "debit": "0", "credit": "0"},
            ],
        )

        assert not result.success
        assert "both debit and credit" in result.error

    def test_negative_amount_rejected(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_id": chart["1000"].pk, "debit": "-50.00", "credit": "0"},
                {"account_id": chart["3000"].pk, "debit": "0", "credit": "-50.00"},
            ],
        )

        assert not result.success
        assert "negative" in result.error

    def test_sub_cent_amount_rejected(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=_lines(chart, "1000", "3000", "10.005"),
        )

        assert not result.success
        assert "decimal places" in result.error

    def test_unknown_account_not_found(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_id": 987654, "debit": "10.00", "credit": "0"},
                {"account_id": chart["3000"].pk, "debit": "0", "credit": "10.00"},
            ],
        )

        assert not result.success
        assert result.error_code == "not_found"

    def test_inactive_account_rejected(self, actor, chart):
        update_account(actor, chart["5300"].pk, is_active=False)

        result = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "5300", "1000", "80.00"))

        assert not result.success
        assert result.error_code == "validation_error"

    def test_lines_by_account_code(self, actor, chart):
        result = create_journal_entry(
            actor,
            date=ENTRY_DATE,
            lines=[
                {"account_code": "1000", "debit": "25.00", "credit": "0"},
                {"account_code": "3000", "debit": "0", "credit": "25.00"},
            ],
        )

        assert result.success, result.error
        assert [line.account.code for line in result.data.lines.order_by("line_no")] == ["1000", "3000"]


# =============================================================================
# Numbering
# =============================================================================

@pytest.mark.django_db
class TestNumbering:

    def test_entry_numbers_are_sequential_per_year(self, actor, chart):
        first = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "1.00")).data
        second = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "2.00")).data
        next_year = create_journal_entry(actor, date=date(2027, 1, 2), lines=_lines(chart, "1000", "3000", "3.00")).data

        assert first.entry_number == "JE-2026-00001"
        assert second.entry_number == "JE-2026-00002"
        assert next_year.entry_number == "JE-2027-00001"

    def test_document_and_master_codes(self, db):
        assert next_document_number("PAY", date(2026, 5, 1)) == "PAY-2026-00001"
        assert next_code("CUST") == "CUST-00001"
        assert next_code("CUST") == "CUST-00002"


# =============================================================================
# Workflow
# =============================================================================

@pytest.mark.django_db
class TestWorkflow:

    def test_draft_does_not_touch_balances(self, actor, chart, balance_of):
        result = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "500.00"))

        assert result.data.status == JournalEntry.Status.DRAFT
        assert balance_of("1000") == Decimal("0.00")
        assert BalanceMovement.objects.count() == 0

    def test_submit_then_approve_applies_balances(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "500.00")).data

        submitted = submit_journal_entry(actor, entry.pk)
        assert submitted.success
        assert submitted.data.status == JournalEntry.Status.PENDING
        assert submitted.data.submitted_at is not None

        approved = approve_journal_entry(actor, entry.pk)
        assert approved.success, approved.error
        assert approved.data.status == JournalEntry.Status.APPROVED
        assert approved.data.approved_by == actor.user
        assert balance_of("1000") == Decimal("500.00")
        assert balance_of("3000") == Decimal("500.00")
        assert approved.event.event_type == EventTypes.JOURNAL_ENTRY_APPROVED

    def test_draft_can_be_approved_directly(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "5100", "1000", "300.00")).data

        result = approve_journal_entry(actor, entry.pk)

        assert result.success
        assert balance_of("5100") == Decimal("300.00")
        assert balance_of("1000") == Decimal("-300.00")

    def test_second_approval_is_invalid_and_applies_once(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "200.00")).data
        approve_journal_entry(actor, entry.pk)

        again = approve_journal_entry(actor, entry.pk)

        assert not again.success
        assert again.error_code == "invalid_transition"
        assert balance_of("1000") == Decimal("200.00")
        assert BalanceMovement.objects.filter(entry=entry).count() == 2

    def test_submit_only_from_draft(self, actor, chart):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "10.00")).data
        submit_journal_entry(actor, entry.pk)

        result = submit_journal_entry(actor, entry.pk)

        assert not result.success
        assert result.error_code == "invalid_transition"

    def test_reject_stores_reason_without_balance_effect(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "75.00")).data
        submit_journal_entry(actor, entry.pk)

        result = reject_journal_entry(actor, entry.pk, reason="Wrong period")

        assert result.success
        assert result.data.status == JournalEntry.Status.REJECTED
        assert result.data.rejection_reason == "Wrong period"
        assert balance_of("1000") == Decimal("0.00")

    @pytest.mark.parametrize("terminal", ["approve", "reject"])
    def test_terminal_entries_cannot_be_rejected(self, actor, chart, terminal):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "10.00")).data
        if terminal == "approve":
            approve_journal_entry(actor, entry.pk)
        else:
            reject_journal_entry(actor, entry.pk, reason="No")

        result = reject_journal_entry(actor, entry.pk, reason="Again")

        assert not result.success
        assert result.error_code == "invalid_transition"

    def test_rejected_entry_cannot_be_approved(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "10.00")).data
        reject_journal_entry(actor, entry.pk)

        result = approve_journal_entry(actor, entry.pk)

        assert not result.success
        assert balance_of("1000") == Decimal("0.00")

    def test_account_deactivated_after_drafting_blocks_approval(self, actor, chart, balance_of):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "5300", "1000", "80.00")).data
        update_account(actor, chart["5300"].pk, is_active=False)

        result = approve_journal_entry(actor, entry.pk)

        assert not result.success
        assert result.error_code == "validation_error"
        assert "Line 1" in result.error
        entry.refresh_from_db()
        assert entry.status == JournalEntry.Status.DRAFT
        assert BalanceMovement.objects.count() == 0
        assert balance_of("1000") == Decimal("0.00")

    def test_auto_approve_applies_immediately(self, actor, chart, balance_of):
        result = create_journal_entry(
            actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "2500", "10000.00"), auto_approve=True,
        )

        assert result.success, result.error
        assert result.data.status == JournalEntry.Status.APPROVED
        assert result.data.approved_at is not None
        assert balance_of("1000") == Decimal("10000.00")
        assert balance_of("2500") == Decimal("10000.00")

    def test_unknown_entry_not_found(self, actor):
        result = approve_journal_entry(actor, 555)

        assert not result.success
        assert result.status_code == 404

    def test_project_manager_cannot_create_entries(self, pm_actor, chart):
        with pytest.raises(PermissionDenied):
            create_journal_entry(pm_actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "1.00"))

    def test_audit_trail_for_workflow(self, actor, chart):
        entry = create_journal_entry(actor, date=ENTRY_DATE, lines=_lines(chart, "1000", "3000", "10.00")).data
        submit_journal_entry(actor, entry.pk)
        approve_journal_entry(actor, entry.pk)

        event_types = set(
            BusinessEvent.objects.filter(aggregate_type="JournalEntry", aggregate_id=str(entry.pk))
            .values_list("event_type", flat=True)
        )
        assert event_types == {
            EventTypes.JOURNAL_ENTRY_CREATED,
            EventTypes.JOURNAL_ENTRY_SUBMITTED,
            EventTypes.JOURNAL_ENTRY_APPROVED,
        }


# =============================================================================
# Concurrency
# =============================================================================

@pytest.mark.django_db
class TestLockFailures:

    def test_database_lock_failure_is_retryable(self, actor, chart, monkeypatch):
        def busy(*args, **kwargs):
            raise OperationalError("could not obtain lock on row in relation \"accounting_account\"")

        monkeypatch.setattr("accounting.journal.create_entry", busy)

        result = create_journal_entry(actor, ENTRY_DATE, "Busy", _lines(chart, "1000", "3000", "10.00"))

        assert not result.success
        assert result.error_code == "concurrency_conflict"
        assert result.status_code == 409
        assert result.retryable
        assert not JournalEntry.objects.exists()
