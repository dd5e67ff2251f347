# tests/test_invoicing.py
"""
Tests for invoices, bills and payments.

Tests cover:
- Customer and vendor master data, including deletion guards
- Invoice issuance validation and numbering
- Status changes and cancellation
- Payments: partial, full, overpayment, cash flow log
- The invoicing API
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import PermissionDenied

from accounting.models import Account, JournalEntry
from accounting.posting import PostingRules
from invoicing.commands import (
    create_customer,
    update_customer,
    delete_customer,
    create_vendor,
    delete_vendor,
    create_invoice,
    update_invoice,
    cancel_invoice,
    record_payment,
)
from invoicing.models import Customer, Invoice, Payment
from projections.models import CashFlow
from events.models import BusinessEvent
from events.types import EventTypes


# =============================================================================
# Customers & Vendors
# =============================================================================

@pytest.mark.django_db
class TestCounterparties:

    def test_codes_are_allocated(self, actor):
        first = create_customer(actor, name="Harbor Homes").data
        second = create_customer(actor, name="Lakeside Mall").data
        vendor = create_vendor(actor, name="Steel Works").data

        assert first.code == "CUST-00001"
        assert second.code == "CUST-00002"
        assert vendor.code == "VEND-00001"

    def test_explicit_duplicate_code_rejected(self, actor, customer):
        result = create_customer(actor, name="Copy", code=customer.code)

        assert not result.success
        assert result.error_code == "duplicate_code"

    def test_update_records_changes(self, actor, customer):
        result = update_customer(actor, customer.pk, phone="555-0101", credit_limit=Decimal("25000.00"))

        assert result.success, result.error
        assert result.event.event_type == EventTypes.CUSTOMER_UPDATED
        assert set(result.event.data["changes"]) == {"phone", "credit_limit"}

    def test_unknown_customer(self, actor):
        result = update_customer(actor, 8080, phone="1")

        assert result.status_code == 404

    def test_viewer_cannot_create(self, viewer_actor):
        with pytest.raises(PermissionDenied):
            create_customer(viewer_actor, name="Nope")

    def test_delete_unreferenced_customer(self, actor, customer):
        result = delete_customer(actor, customer.pk)

        assert result.success, result.error
        assert result.event.event_type == EventTypes.CUSTOMER_DELETED
        assert result.event.data["code"] == customer.code
        assert not Customer.objects.filter(pk=customer.pk).exists()

    def test_customer_with_invoice_cannot_be_deleted(self, actor, customer, make_invoice):
        make_invoice("100.00")

        result = delete_customer(actor, customer.pk)

        assert not result.success
        assert result.error_code == "has_dependents"
        assert result.status_code == 409
        assert Customer.objects.filter(pk=customer.pk).exists()
        assert not BusinessEvent.objects.filter(event_type=EventTypes.CUSTOMER_DELETED).exists()

    def test_customer_with_project_cannot_be_deleted(self, actor, customer, project):
        result = delete_customer(actor, customer.pk)

        assert result.error_code == "has_dependents"
        assert "projects" in result.error

    def test_vendor_with_bill_cannot_be_deleted(self, actor, vendor, make_invoice):
        make_invoice("300.00", payable=True)

        result = delete_vendor(actor, vendor.pk)

        assert result.error_code == "has_dependents"

    def test_delete_unknown_vendor(self, actor):
        result = delete_vendor(actor, 8080)

        assert result.status_code == 404

    def test_viewer_cannot_delete(self, viewer_actor, customer):
        with pytest.raises(PermissionDenied):
            delete_customer(viewer_actor, customer.pk)


# =============================================================================
# Issuance
# =============================================================================

@pytest.mark.django_db
class TestCreateInvoice:

    def test_receivable_invoice_is_sent_with_items(self, make_invoice):
        invoice = make_invoice("1000.00")

        assert invoice.invoice_number == "INV-2026-00001"
        assert invoice.status == Invoice.Status.SENT
        assert invoice.subtotal == Decimal("1000.00")
        assert invoice.items.count() == 1
        assert invoice.journal_entry.entry_number == "JE-2026-00001"

    def test_bill_numbering_is_separate(self, make_invoice):
        make_invoice("1000.00")
        bill = make_invoice("300.00", payable=True)

        assert bill.invoice_number == "BILL-2026-00001"

    def test_items_are_summed_and_rounded(self, actor, chart, customer, issue_date):
        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.RECEIVABLE,
            customer_id=customer.pk,
            issue_date=issue_date,
            due_date=issue_date,
            items=[
                {"description": "Concrete pour", "quantity": "3", "unit_price": "333.33"},
                {"description": "Labor", "quantity": "2.5", "unit_price": "40.01"},
            ],
        )

        assert result.success, result.error
        invoice = result.data
        assert [item.amount for item in invoice.items.order_by("line_no")] == [
            Decimal("999.99"),
            Decimal("100.03"),
        ]
        assert invoice.total == Decimal("1100.02")

    def test_receivable_requires_customer(self, actor, chart, vendor, issue_date):
        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.RECEIVABLE,
            vendor_id=vendor.pk,
            issue_date=issue_date,
            due_date=issue_date,
            items=[{"description": "Works", "quantity": "1", "unit_price": "10.00"}],
        )

        assert not result.success
        assert result.error_code == "validation_error"

    def test_due_before_issue_rejected(self, actor, chart, customer, issue_date):
        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.RECEIVABLE,
            customer_id=customer.pk,
            issue_date=issue_date,
            due_date=issue_date - timedelta(days=1),
            items=[{"description": "Works", "quantity": "1", "unit_price": "10.00"}],
        )

        assert not result.success
        assert "Due date" in result.error

    @pytest.mark.parametrize("items", [
        [],
        [{"description": "", "quantity": "1", "unit_price": "10.00"}],
        [{"description": "Works", "quantity": "0", "unit_price": "10.00"}],
        [{"description": "Works", "quantity": "1", "unit_price": "-10.00"}],
        [{"description": "Free", "quantity": "1", "unit_price": "0"}],
    ])
    def test_invalid_items_rejected(self, actor, chart, customer, issue_date, items):
        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.RECEIVABLE,
            customer_id=customer.pk,
            issue_date=issue_date,
            due_date=issue_date,
            items=items,
        )

        assert not result.success
        assert result.error_code == "validation_error"
        assert Invoice.objects.count() == 0

    def test_linked_to_project(self, make_invoice, project):
        invoice = make_invoice("12000.00", project_id=project.pk)

        assert invoice.project == project

    def test_issuance_is_audited(self, make_invoice):
        invoice = make_invoice("450.00")

        event = BusinessEvent.objects.get(event_type=EventTypes.INVOICE_CREATED)
        assert event.aggregate_id == str(invoice.pk)
        assert event.data["total"] == "450.00"
        assert event.data["entry_number"] == invoice.journal_entry.entry_number


# =============================================================================
# Status & cancellation
# =============================================================================

@pytest.mark.django_db
class TestStatusAndCancel:

    def test_mark_overdue_and_back(self, actor, make_invoice):
        invoice = make_invoice("100.00")

        overdue = update_invoice(actor, invoice.pk, status=Invoice.Status.OVERDUE)
        assert overdue.success, overdue.error
        assert overdue.data.status == Invoice.Status.OVERDUE

        sent = update_invoice(actor, invoice.pk, status=Invoice.Status.SENT)
        assert sent.data.status == Invoice.Status.SENT

    def test_paid_status_cannot_be_set_manually(self, actor, make_invoice):
        invoice = make_invoice("100.00")

        result = update_invoice(actor, invoice.pk, status=Invoice.Status.PAID)

        assert not result.success
        assert result.error_code == "invalid_transition"

    def test_cancel_reverses_posting(self, actor, make_invoice, balance_of):
        invoice = make_invoice("2000.00")

        result = cancel_invoice(actor, invoice.pk, date=date(2026, 3, 5))

        assert result.success, result.error
        assert result.data.status == Invoice.Status.CANCELLED
        reversal = result.data.cancellation_entry
        assert reversal.status == JournalEntry.Status.APPROVED
        assert reversal.date == date(2026, 3, 5)
        assert balance_of("1100") == Decimal("0.00")
        assert balance_of("4100") == Decimal("0.00")

    def test_cancel_reverses_the_issued_accounts(self, actor, make_invoice, balance_of, settings):
        invoice = make_invoice("1000.00")
        rules = PostingRules({**settings.LEDGER_POSTING_ACCOUNTS, "SERVICE_REVENUE": "4000"})

        result = cancel_invoice(actor, invoice.pk, rules=rules)

        assert result.success, result.error
        reversal = result.data.cancellation_entry
        assert [
            (line.account.code, line.debit, line.credit)
            for line in reversal.lines.select_related("account").order_by("line_no")
        ] == [
            ("1100", Decimal("0.00"), Decimal("1000.00")),
            ("4100", Decimal("1000.00"), Decimal("0.00")),
        ]
        assert balance_of("4100") == Decimal("0.00")
        assert balance_of("4000") == Decimal("0.00")
        assert balance_of("1100") == Decimal("0.00")

    def test_cancel_after_posted_account_deactivated(self, actor, make_invoice, balance_of):
        invoice = make_invoice("750.00", payable=True)
        Account.objects.filter(code="5000").update(is_active=False)

        result = cancel_invoice(actor, invoice.pk)

        assert result.success, result.error
        assert balance_of("5000") == Decimal("0.00")
        assert balance_of("2000") == Decimal("0.00")

    def test_cancel_twice_rejected(self, actor, make_invoice):
        invoice = make_invoice("2000.00")
        cancel_invoice(actor, invoice.pk)

        result = cancel_invoice(actor, invoice.pk)

        assert not result.success
        assert result.error_code == "invalid_transition"

    def test_cancel_with_payments_rejected(self, actor, make_invoice):
        invoice = make_invoice("2000.00")
        record_payment(actor, invoice.pk, "500.00", date(2026, 3, 10))

        result = cancel_invoice(actor, invoice.pk)

        assert not result.success
        assert "payments" in result.error


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestPayments:

    def test_partial_then_full(self, actor, make_invoice):
        invoice = make_invoice("1000.00")

        first = record_payment(actor, invoice.pk, "400.00", date(2026, 3, 10))
        invoice.refresh_from_db()
        assert first.success, first.error
        assert first.data.payment_number == "PAY-2026-00001"
        assert invoice.status == Invoice.Status.PARTIAL
        assert invoice.balance_due == Decimal("600.00")

        second = record_payment(actor, invoice.pk, "600.00", date(2026, 3, 20))
        invoice.refresh_from_db()
        assert second.success, second.error
        assert invoice.status == Invoice.Status.PAID
        assert second.event.data["invoice_status"] == "PAID"
        assert second.event.data["amount_paid"] == "1000.00"

    def test_overpayment_rejected(self, actor, make_invoice, balance_of):
        invoice = make_invoice("1000.00")
        record_payment(actor, invoice.pk, "900.00", date(2026, 3, 10))

        result = record_payment(actor, invoice.pk, "100.01", date(2026, 3, 11))

        assert not result.success
        assert result.error_code == "overpayment"
        assert result.status_code == 409
        assert Payment.objects.count() == 1
        assert balance_of("1000") == Decimal("900.00")

    def test_paid_invoice_rejects_payments(self, actor, make_invoice):
        invoice = make_invoice("100.00")
        record_payment(actor, invoice.pk, "100.00", date(2026, 3, 10))

        result = record_payment(actor, invoice.pk, "1.00", date(2026, 3, 11))

        assert not result.success
        assert result.error_code == "invalid_transition"

    def test_cancelled_invoice_rejects_payments(self, actor, make_invoice):
        invoice = make_invoice("100.00")
        cancel_invoice(actor, invoice.pk)

        result = record_payment(actor, invoice.pk, "50.00", date(2026, 3, 11))

        assert not result.success
        assert result.error_code == "invalid_transition"

    @pytest.mark.parametrize("amount", ["0", "-5.00", "10.001", "abc"])
    def test_invalid_amounts(self, actor, make_invoice, amount):
        invoice = make_invoice("100.00")

        result = record_payment(actor, invoice.pk, amount, date(2026, 3, 11))

        assert not result.success
        assert result.error_code == "validation_error"

    def test_overdue_invoice_can_be_paid(self, actor, make_invoice):
        invoice = make_invoice("100.00")
        update_invoice(actor, invoice.pk, status=Invoice.Status.OVERDUE)

        result = record_payment(actor, invoice.pk, "100.00", date(2026, 4, 15))

        assert result.success, result.error
        invoice.refresh_from_db()
        assert invoice.status == Invoice.Status.PAID

    def test_payment_appends_cash_flow(self, actor, make_invoice, project):
        invoice = make_invoice("1000.00", project_id=project.pk)
        bill = make_invoice("250.00", payable=True)

        incoming = record_payment(actor, invoice.pk, "1000.00", date(2026, 3, 10)).data
        outgoing = record_payment(actor, bill.pk, "250.00", date(2026, 3, 12)).data

        inflow = CashFlow.objects.get(payment=incoming)
        assert inflow.flow_type == CashFlow.FlowType.INFLOW
        assert inflow.category == CashFlow.Category.OPERATING
        assert inflow.project == project
        assert inflow.signed_amount == Decimal("1000.00")

        outflow = CashFlow.objects.get(payment=outgoing)
        assert outflow.flow_type == CashFlow.FlowType.OUTFLOW
        assert outflow.signed_amount == Decimal("-250.00")

    def test_cash_flow_log_is_append_only(self, actor, make_invoice):
        invoice = make_invoice("100.00")
        record_payment(actor, invoice.pk, "100.00", date(2026, 3, 10))
        flow = CashFlow.objects.get()

        flow.description = "changed"
        with pytest.raises(ValueError):
            flow.save()
        with pytest.raises(ValueError):
            flow.delete()

    def test_project_manager_cannot_record(self, pm_actor, make_invoice):
        invoice = make_invoice("100.00")

        with pytest.raises(PermissionDenied):
            record_payment(pm_actor, invoice.pk, "100.00", date(2026, 3, 10))


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestInvoicingAPI:

    def test_issue_invoice(self, api_client, chart, customer):
        response = api_client.post("/api/invoicing/invoices/", {
            "invoice_type": "RECEIVABLE",
            "customer_id": customer.pk,
            "issue_date": "2026-05-01",
            "due_date": "2026-05-31",
            "items": [{"description": "Foundation works", "quantity": "1", "unit_price": "7500.00"}],
        }, format="json")

        assert response.status_code == 201, response.data
        assert response.data["status"] == "SENT"
        assert response.data["total"] == "7500.00"
        assert response.data["balance_due"] == "7500.00"
        assert response.data["counterparty_name"] == customer.name
        assert response.data["entry_number"] == "JE-2026-00001"

    def test_list_filters_by_type(self, api_client, make_invoice):
        make_invoice("100.00")
        make_invoice("200.00", payable=True)

        response = api_client.get("/api/invoicing/invoices/", {"type": "payable"})

        assert response.status_code == 200
        assert [row["invoice_number"] for row in response.data] == ["BILL-2026-00001"]

    def test_record_payment(self, api_client, make_invoice):
        invoice = make_invoice("800.00")

        response = api_client.post("/api/invoicing/payments/", {
            "invoice_id": invoice.pk,
            "amount": "300.00",
            "payment_date": "2026-03-15",
            "method": "CHECK",
        }, format="json")

        assert response.status_code == 201, response.data
        assert response.data["invoice_number"] == invoice.invoice_number
        detail = api_client.get(f"/api/invoicing/invoices/{invoice.pk}/")
        assert detail.data["status"] == "PARTIAL"
        assert detail.data["amount_paid"] == "300.00"

    def test_overpayment_is_conflict(self, api_client, make_invoice):
        invoice = make_invoice("800.00")

        response = api_client.post("/api/invoicing/payments/", {
            "invoice_id": invoice.pk,
            "amount": "800.01",
            "payment_date": "2026-03-15",
        }, format="json")

        assert response.status_code == 409
        assert response.data["code"] == "overpayment"

    def test_cancel_endpoint(self, api_client, make_invoice):
        invoice = make_invoice("800.00")

        response = api_client.post(f"/api/invoicing/invoices/{invoice.pk}/cancel/", {}, format="json")

        assert response.status_code == 200
        assert response.data["status"] == "CANCELLED"

    def test_viewer_can_read_but_not_write(self, viewer_client, make_invoice):
        invoice = make_invoice("800.00")

        assert viewer_client.get(f"/api/invoicing/invoices/{invoice.pk}/").status_code == 200
        response = viewer_client.patch(
            f"/api/invoicing/invoices/{invoice.pk}/", {"notes": "hi"}, format="json",
        )
        assert response.status_code == 403

    def test_payment_detail(self, api_client, actor, make_invoice):
        invoice = make_invoice("800.00")
        payment = record_payment(actor, invoice.pk, "300.00", date(2026, 3, 15)).data

        response = api_client.get(f"/api/invoicing/payments/{payment.pk}/")

        assert response.status_code == 200
        assert response.data["payment_number"] == payment.payment_number
        assert response.data["invoice_number"] == invoice.invoice_number
        assert response.data["amount"] == "300.00"
        assert api_client.get("/api/invoicing/payments/9999/").status_code == 404

    def test_delete_counterparty_endpoints(self, api_client, make_invoice):
        invoice = make_invoice("500.00")

        blocked = api_client.delete(f"/api/invoicing/customers/{invoice.customer_id}/")
        assert blocked.status_code == 409
        assert blocked.data["code"] == "has_dependents"

        spare = api_client.post("/api/invoicing/vendors/", {"name": "Scaffold Hire"}, format="json").data["id"]
        deleted = api_client.delete(f"/api/invoicing/vendors/{spare}/")
        assert deleted.status_code == 204
        assert api_client.get(f"/api/invoicing/vendors/{spare}/").status_code == 404

    def test_viewer_cannot_delete_counterparty(self, viewer_client, customer):
        response = viewer_client.delete(f"/api/invoicing/customers/{customer.pk}/")

        assert response.status_code == 403
        assert Customer.objects.filter(pk=customer.pk).exists()
