# tests/test_posting_rules.py
"""
Tests for automatic postings.

Every business event must produce exactly one balanced, auto-approved
entry on the configured accounts, or fail as a whole.
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.balances import verify_balances
from accounting.exceptions import MissingConfiguration
from accounting.models import JournalEntry
from accounting.posting import PostingRules
from invoicing.commands import create_invoice, record_payment
from invoicing.models import Invoice, Payment
from projections.models import CashFlow


DEFAULT_CODES = {
    "CASH": "1000",
    "ACCOUNTS_RECEIVABLE": "1100",
    "ACCOUNTS_PAYABLE": "2000",
    "SERVICE_REVENUE": "4100",
    "COST_OF_SALES": "5000",
}


def _entry_lines(entry):
    return [
        (line.account.code, line.debit, line.credit)
        for line in entry.lines.select_related("account").order_by("line_no")
    ]


@pytest.mark.django_db
class TestPostingScenarios:

    def test_receivable_invoice_debits_ar_credits_revenue(self, make_invoice, balance_of):
        invoice = make_invoice("5000.00")

        entry = invoice.journal_entry
        assert entry.status == JournalEntry.Status.APPROVED
        assert entry.source_module == "invoicing"
        assert entry.source_document == invoice.invoice_number
        assert _entry_lines(entry) == [
            ("1100", Decimal("5000.00"), Decimal("0.00")),
            ("4100", Decimal("0.00"), Decimal("5000.00")),
        ]
        assert balance_of("1100") == Decimal("5000.00")
        assert balance_of("4100") == Decimal("5000.00")

    def test_payable_invoice_debits_cost_credits_ap(self, make_invoice, balance_of):
        invoice = make_invoice("1200.00", payable=True)

        assert _entry_lines(invoice.journal_entry) == [
            ("5000", Decimal("1200.00"), Decimal("0.00")),
            ("2000", Decimal("0.00"), Decimal("1200.00")),
        ]
        assert balance_of("5000") == Decimal("1200.00")
        assert balance_of("2000") == Decimal("1200.00")

    def test_payment_received_moves_ar_to_cash(self, actor, make_invoice, balance_of):
        invoice = make_invoice("5000.00")

        result = record_payment(actor, invoice.pk, "5000.00", date(2026, 3, 20))

        assert result.success, result.error
        entry = result.data.journal_entry
        assert entry.source_module == "payments"
        assert _entry_lines(entry) == [
            ("1000", Decimal("5000.00"), Decimal("0.00")),
            ("1100", Decimal("0.00"), Decimal("5000.00")),
        ]
        assert balance_of("1000") == Decimal("5000.00")
        assert balance_of("1100") == Decimal("0.00")

    def test_payment_made_reduces_ap_and_cash(self, actor, make_invoice, balance_of):
        bill = make_invoice("800.00", payable=True)

        result = record_payment(actor, bill.pk, "800.00", date(2026, 3, 10))

        assert result.success, result.error
        assert balance_of("2000") == Decimal("0.00")
        assert balance_of("1000") == Decimal("-800.00")

    def test_tax_is_included_in_posted_amount(self, make_invoice, balance_of):
        invoice = make_invoice("1000.00", tax="150.00")

        assert invoice.total == Decimal("1150.00")
        assert balance_of("1100") == Decimal("1150.00")

    def test_postings_keep_ledger_consistent(self, actor, make_invoice):
        invoice = make_invoice("2500.00")
        make_invoice("700.00", payable=True)
        record_payment(actor, invoice.pk, "1000.00", date(2026, 3, 15))

        assert verify_balances()["mismatches"] == []


@pytest.mark.django_db
class TestMissingConfiguration:

    def test_unmapped_role_aborts_invoice(self, actor, chart, vendor):
        rules = PostingRules({k: v for k, v in DEFAULT_CODES.items() if k != "COST_OF_SALES"})

        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.PAYABLE,
            vendor_id=vendor.pk,
            issue_date=date(2026, 3, 1),
            due_date=date(2026, 3, 31),
            items=[{"description": "Rebar", "quantity": "10", "unit_price": "45.00"}],
            rules=rules,
        )

        assert not result.success
        assert result.error_code == "missing_configuration"
        assert result.status_code == 422
        assert Invoice.objects.count() == 0
        assert JournalEntry.objects.count() == 0

    def test_missing_account_aborts_payment(self, actor, make_invoice, balance_of):
        invoice = make_invoice("300.00")
        rules = PostingRules({**DEFAULT_CODES, "CASH": "1999"})

        result = record_payment(actor, invoice.pk, "300.00", date(2026, 3, 5), rules=rules)

        assert not result.success
        assert result.error_code == "missing_configuration"
        assert Payment.objects.count() == 0
        assert CashFlow.objects.count() == 0
        invoice.refresh_from_db()
        assert invoice.status == Invoice.Status.SENT
        assert balance_of("1100") == Decimal("300.00")

    def test_inactive_account_is_missing(self, chart):
        chart["4100"].is_active = False
        chart["4100"].save()

        with pytest.raises(MissingConfiguration):
            PostingRules(DEFAULT_CODES).account_for(PostingRules.SERVICE_REVENUE)

    def test_missing_roles(self, chart):
        rules = PostingRules({"CASH": "1000", "ACCOUNTS_RECEIVABLE": "9999"})

        assert rules.missing_roles() == [
            PostingRules.ACCOUNTS_RECEIVABLE,
            PostingRules.ACCOUNTS_PAYABLE,
            PostingRules.SERVICE_REVENUE,
            PostingRules.COST_OF_SALES,
        ]

    def test_rules_follow_settings(self, settings, make_invoice, balance_of):
        settings.LEDGER_POSTING_ACCOUNTS = {**DEFAULT_CODES, "SERVICE_REVENUE": "4000"}

        make_invoice("640.00")

        assert balance_of("4000") == Decimal("640.00")
        assert balance_of("4100") == Decimal("0.00")
