# invoicing/commands.py
"""
Command layer for invoicing operations.

Same contract as accounting/commands.py: permission check, one atomic
block, audit event, CommandResult. Issuing, cancelling and paying an
invoice post auto-approved journal entries through an injected
PostingRules object (defaults to PostingRules.from_settings()), inside the
same transaction as the business document.
"""

import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from django.conf import settings
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounting.commands import (
    CommandResult,
    emit_entry_created,
    ledger_transaction,
    save_validated,
    track_changes,
)
from accounting.exceptions import (
    DuplicateCode,
    HasDependents,
    InvalidTransition,
    LedgerError,
    LedgerValidationError,
    NotFound,
    Overpayment,
)
from accounting.journal import next_code, next_document_number
from accounting.posting import PostingRules
from events.emitter import emit_event
from events.types import (
    EventTypes,
    CounterpartyCreatedData,
    CounterpartyUpdatedData,
    CounterpartyDeletedData,
    InvoiceCreatedData,
    InvoiceUpdatedData,
    InvoiceCancelledData,
    PaymentRecordedData,
)
from invoicing.models import Customer, Vendor, Invoice, InvoiceItem, Payment, ZERO
from invoicing.policies import (
    can_cancel_invoice,
    can_change_invoice_status,
    can_delete_counterparty,
    can_record_payment,
)
from projections.models import CashFlow


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

COUNTERPARTY_FIELDS = {
    "name", "email", "phone", "address", "tax_id", "payment_terms", "is_active",
}


def _money(value, label: str) -> Decimal:
    try:
        amount = Decimal(str(value if value not in (None, "") else "0"))
    except InvalidOperation:
        raise LedgerValidationError(f"{label} is not a valid amount.")
    if not amount.is_finite():
        raise LedgerValidationError(f"{label} is not a valid amount.")
    return amount


# =============================================================================
# Customers & Vendors
# =============================================================================

def _create_counterparty(actor, model, prefix: str, event_type: str, code=None, **fields):
    try:
        with ledger_transaction():
            code = code or next_code(prefix)
            if model.objects.filter(code=code).exists():
                raise DuplicateCode(f"{model.__name__} code '{code}' already exists.")

            try:
                obj = model.objects.create(code=code, **fields)
            except IntegrityError:
                raise DuplicateCode(f"{model.__name__} code '{code}' already exists.")

            event = emit_event(
                actor=actor,
                event_type=event_type,
                aggregate_type=model.__name__,
                aggregate_id=obj.pk,
                idempotency_key=f"{event_type}:{obj.pk}",
                data=CounterpartyCreatedData(
                    counterparty_id=obj.pk,
                    code=obj.code,
                    name=obj.name,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(obj, event=event)


def _update_counterparty(actor, model, obj_id: int, event_type: str, allowed_fields: set, updates: dict):
    try:
        with ledger_transaction():
            try:
                obj = model.objects.select_for_update().get(pk=obj_id)
            except model.DoesNotExist:
                raise NotFound(f"{model.__name__} not found.")

            changes = track_changes(obj, updates, allowed_fields)
            if not changes:
                return CommandResult.ok(obj)

            obj.save()

            event = emit_event(
                actor=actor,
                event_type=event_type,
                aggregate_type=model.__name__,
                aggregate_id=obj.pk,
                idempotency_key=f"{event_type}:{obj.pk}:{uuid.uuid4()}",
                data=CounterpartyUpdatedData(
                    counterparty_id=obj.pk,
                    code=obj.code,
                    changes=changes,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(obj, event=event)


def _delete_counterparty(actor, model, obj_id: int, event_type: str):
    try:
        with ledger_transaction():
            try:
                obj = model.objects.select_for_update().get(pk=obj_id)
            except model.DoesNotExist:
                raise NotFound(f"{model.__name__} not found.")

            allowed, reason = can_delete_counterparty(actor, obj)
            if not allowed:
                raise HasDependents(reason)

            deleted_id, code, name = obj.pk, obj.code, obj.name
            try:
                obj.delete()
            except ProtectedError:
                raise HasDependents(f"{model.__name__} {code} is still referenced.")

            event = emit_event(
                actor=actor,
                event_type=event_type,
                aggregate_type=model.__name__,
                aggregate_id=deleted_id,
                idempotency_key=f"{event_type}:{deleted_id}:{code}",
                data=CounterpartyDeletedData(
                    counterparty_id=deleted_id,
                    code=code,
                    name=name,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok({"deleted": True}, event=event)


def create_customer(actor: ActorContext, name: str, code: str = None, **fields) -> CommandResult:
    """
    Create a customer. A code like CUST-00001 is allocated when omitted.

    Optional fields: email, phone, address, tax_id, payment_terms,
    credit_limit, is_active.
    """
    require(actor, "invoices.manage")
    return _create_counterparty(
        actor, Customer, "CUST", EventTypes.CUSTOMER_CREATED, code=code, name=name, **fields,
    )


def update_customer(actor: ActorContext, customer_id: int, **updates) -> CommandResult:
    require(actor, "invoices.manage")
    return _update_counterparty(
        actor, Customer, customer_id, EventTypes.CUSTOMER_UPDATED,
        COUNTERPARTY_FIELDS | {"credit_limit"}, updates,
    )


def delete_customer(actor: ActorContext, customer_id: int) -> CommandResult:
    """Delete a customer. Fails with HasDependents while invoices or projects reference it."""
    require(actor, "invoices.manage")
    return _delete_counterparty(actor, Customer, customer_id, EventTypes.CUSTOMER_DELETED)


def create_vendor(actor: ActorContext, name: str, code: str = None, **fields) -> CommandResult:
    """Create a vendor. A code like VEND-00001 is allocated when omitted."""
    require(actor, "invoices.manage")
    return _create_counterparty(
        actor, Vendor, "VEND", EventTypes.VENDOR_CREATED, code=code, name=name, **fields,
    )


def update_vendor(actor: ActorContext, vendor_id: int, **updates) -> CommandResult:
    require(actor, "invoices.manage")
    return _update_counterparty(
        actor, Vendor, vendor_id, EventTypes.VENDOR_UPDATED, COUNTERPARTY_FIELDS, updates,
    )


def delete_vendor(actor: ActorContext, vendor_id: int) -> CommandResult:
    """Delete a vendor. Fails with HasDependents while bills reference it."""
    require(actor, "invoices.manage")
    return _delete_counterparty(actor, Vendor, vendor_id, EventTypes.VENDOR_DELETED)


# =============================================================================
# Invoices
# =============================================================================

def _prepare_items(items) -> list:
    items = list(items or [])
    if not items:
        raise LedgerValidationError("An invoice requires at least one item.")

    prepared = []
    for line_no, item in enumerate(items, start=1):
        description = (item.get("description") or "").strip()
        if not description:
            raise LedgerValidationError(f"Item {line_no}: description is required.")

        quantity = _money(item.get("quantity", 1), f"Item {line_no} quantity")
        unit_price = _money(item.get("unit_price"), f"Item {line_no} unit price")
        if quantity <= 0:
            raise LedgerValidationError(f"Item {line_no}: quantity must be positive.")
        if unit_price < 0:
            raise LedgerValidationError(f"Item {line_no}: unit price cannot be negative.")

        prepared.append({
            "line_no": line_no,
            "description": description,
            "quantity": quantity,
            "unit_price": unit_price,
            "amount": (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP),
        })
    return prepared


def _resolve_counterparty(invoice_type: str, customer_id, vendor_id):
    if invoice_type == Invoice.InvoiceType.RECEIVABLE:
        if not customer_id or vendor_id:
            raise LedgerValidationError("A receivable invoice requires a customer and no vendor.")
        try:
            return {"customer": Customer.objects.get(pk=customer_id)}
        except Customer.DoesNotExist:
            raise NotFound("Customer not found.")

    if invoice_type == Invoice.InvoiceType.PAYABLE:
        if not vendor_id or customer_id:
            raise LedgerValidationError("A payable invoice requires a vendor and no customer.")
        try:
            return {"vendor": Vendor.objects.get(pk=vendor_id)}
        except Vendor.DoesNotExist:
            raise NotFound("Vendor not found.")

    raise LedgerValidationError(f"Invalid invoice type '{invoice_type}'.")


def create_invoice(
    actor: ActorContext,
    invoice_type: str,
    issue_date,
    due_date,
    items: list,
    customer_id: int = None,
    vendor_id: int = None,
    project_id: int = None,
    tax=ZERO,
    currency: str = None,
    notes: str = "",
    rules: PostingRules = None,
) -> CommandResult:
    """
    Issue an invoice (RECEIVABLE) or a bill (PAYABLE).

    The invoice, its items and the issuance posting are written in one
    transaction; the invoice is stored as SENT.

    Returns:
        CommandResult with the created Invoice or error
    """
    require(actor, "invoices.manage")
    rules = rules or PostingRules.from_settings()

    try:
        with ledger_transaction():
            counterparty = _resolve_counterparty(invoice_type, customer_id, vendor_id)

            project = None
            if project_id:
                from projects.models import Project
                try:
                    project = Project.objects.get(pk=project_id)
                except Project.DoesNotExist:
                    raise NotFound("Project not found.")

            if due_date < issue_date:
                raise LedgerValidationError("Due date cannot be before the issue date.")

            prepared = _prepare_items(items)
            tax = _money(tax, "Tax")
            if tax < 0:
                raise LedgerValidationError("Tax cannot be negative.")

            subtotal = sum((item["amount"] for item in prepared), ZERO)
            total = subtotal + tax
            if total <= 0:
                raise LedgerValidationError("Invoice total must be positive.")

            invoice = Invoice.objects.create(
                invoice_number=next_document_number(Invoice.NUMBER_PREFIX[invoice_type], issue_date),
                invoice_type=invoice_type,
                project=project,
                issue_date=issue_date,
                due_date=due_date,
                subtotal=subtotal,
                tax=tax,
                total=total,
                currency=(currency or settings.LEDGER_DEFAULT_CURRENCY).upper(),
                status=Invoice.Status.SENT,
                notes=notes or "",
                created_by=actor.user,
                **counterparty,
            )
            InvoiceItem.objects.bulk_create([
                InvoiceItem(invoice=invoice, **item) for item in prepared
            ])

            entry = rules.post_invoice_issued(actor, invoice)
            invoice.journal_entry = entry
            invoice.save(update_fields=["journal_entry", "updated_at"])
            emit_entry_created(actor, entry)

            event = emit_event(
                actor=actor,
                event_type=EventTypes.INVOICE_CREATED,
                aggregate_type="Invoice",
                aggregate_id=invoice.pk,
                idempotency_key=f"invoice.created:{invoice.pk}",
                data=InvoiceCreatedData(
                    invoice_id=invoice.pk,
                    invoice_number=invoice.invoice_number,
                    invoice_type=invoice.invoice_type,
                    issue_date=invoice.issue_date.isoformat(),
                    due_date=invoice.due_date.isoformat(),
                    subtotal=str(invoice.subtotal),
                    tax=str(invoice.tax),
                    total=str(invoice.total),
                    currency=invoice.currency,
                    entry_number=entry.entry_number,
                    customer_id=invoice.customer_id,
                    vendor_id=invoice.vendor_id,
                    project_id=invoice.project_id,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    logger.info(
        "Invoice issued",
        extra={
            "invoice_number": invoice.invoice_number,
            "amount": str(invoice.total),
            "entry_number": entry.entry_number,
        },
    )
    return CommandResult.ok(invoice, event=event)


def _get_invoice_for_update(invoice_id: int) -> Invoice:
    try:
        return Invoice.objects.select_for_update().get(pk=invoice_id)
    except Invoice.DoesNotExist:
        raise NotFound("Invoice not found.")


def update_invoice(
    actor: ActorContext,
    invoice_id: int,
    due_date=None,
    notes: str = None,
    status: str = None,
) -> CommandResult:
    """
    Update the editable parts of an issued invoice.

    Amounts are fixed once issued. Status may only move between SENT and
    OVERDUE here; PARTIAL and PAID follow from payments and CANCELLED
    goes through cancel_invoice.
    """
    require(actor, "invoices.manage")

    try:
        with ledger_transaction():
            invoice = _get_invoice_for_update(invoice_id)

            updates = {}
            if due_date is not None:
                if due_date < invoice.issue_date:
                    raise LedgerValidationError("Due date cannot be before the issue date.")
                updates["due_date"] = due_date
            if notes is not None:
                updates["notes"] = notes
            if status is not None:
                allowed, reason = can_change_invoice_status(actor, invoice, status)
                if not allowed:
                    raise InvalidTransition(reason)
                updates["status"] = status

            changes = track_changes(invoice, updates, {"due_date", "notes", "status"})
            if not changes:
                return CommandResult.ok(invoice)

            save_validated(invoice)

            event = emit_event(
                actor=actor,
                event_type=EventTypes.INVOICE_UPDATED,
                aggregate_type="Invoice",
                aggregate_id=invoice.pk,
                idempotency_key=f"invoice.updated:{invoice.pk}:{uuid.uuid4()}",
                data=InvoiceUpdatedData(
                    invoice_id=invoice.pk,
                    invoice_number=invoice.invoice_number,
                    changes=changes,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(invoice, event=event)


def cancel_invoice(
    actor: ActorContext,
    invoice_id: int,
    date=None,
    rules: PostingRules = None,
) -> CommandResult:
    """
    Cancel an unpaid invoice and reverse its issuance posting.

    Fails with InvalidTransition if the invoice is already cancelled or
    has payments.
    """
    require(actor, "invoices.manage")
    rules = rules or PostingRules.from_settings()

    try:
        with ledger_transaction():
            invoice = _get_invoice_for_update(invoice_id)

            allowed, reason = can_cancel_invoice(actor, invoice)
            if not allowed:
                raise InvalidTransition(reason)

            entry = rules.post_invoice_cancelled(actor, invoice, date or timezone.localdate())
            invoice.status = Invoice.Status.CANCELLED
            invoice.cancellation_entry = entry
            invoice.save(update_fields=["status", "cancellation_entry", "updated_at"])
            emit_entry_created(actor, entry)

            event = emit_event(
                actor=actor,
                event_type=EventTypes.INVOICE_CANCELLED,
                aggregate_type="Invoice",
                aggregate_id=invoice.pk,
                idempotency_key=f"invoice.cancelled:{invoice.pk}",
                data=InvoiceCancelledData(
                    invoice_id=invoice.pk,
                    invoice_number=invoice.invoice_number,
                    total=str(invoice.total),
                    reversal_entry_number=entry.entry_number,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    logger.info(
        "Invoice cancelled",
        extra={"invoice_number": invoice.invoice_number, "entry_number": entry.entry_number},
    )
    return CommandResult.ok(invoice, event=event)


# =============================================================================
# Payments
# =============================================================================

def record_payment(
    actor: ActorContext,
    invoice_id: int,
    amount,
    payment_date,
    method: str = Payment.Method.BANK_TRANSFER,
    reference: str = "",
    notes: str = "",
    rules: PostingRules = None,
) -> CommandResult:
    """
    Record a payment against an invoice.

    In one transaction:
    1. Lock the invoice and check it can still be paid
    2. Reject amounts that would exceed the invoice total
    3. Create the payment and post Cash against AR (or AP against Cash)
    4. Append an OPERATING cash flow record
    5. Derive the invoice status: PAID once fully covered, else PARTIAL

    Returns:
        CommandResult with the created Payment or error
    """
    require(actor, "payments.manage")
    rules = rules or PostingRules.from_settings()
    tolerance = getattr(settings, "LEDGER_BALANCE_TOLERANCE", CENT)

    try:
        with ledger_transaction():
            amount = _money(amount, "Payment amount")
            if amount <= 0:
                raise LedgerValidationError("Payment amount must be positive.")
            if amount != amount.quantize(CENT):
                raise LedgerValidationError("Payment amount has more than 2 decimal places.")

            if method not in Payment.Method.values:
                raise LedgerValidationError(f"Invalid payment method '{method}'.")

            invoice = _get_invoice_for_update(invoice_id)

            allowed, reason = can_record_payment(actor, invoice)
            if not allowed:
                raise InvalidTransition(reason)

            already_paid = invoice.amount_paid
            remaining = invoice.total - already_paid
            if amount > remaining:
                raise Overpayment(
                    f"Payment of {amount} exceeds the remaining balance of {remaining}.",
                    invoice_number=invoice.invoice_number,
                    amount=str(amount),
                    remaining=str(remaining),
                )

            payment = Payment.objects.create(
                payment_number=next_document_number("PAY", payment_date),
                invoice=invoice,
                amount=amount,
                payment_date=payment_date,
                method=method,
                reference=reference or "",
                currency=invoice.currency,
                notes=notes or "",
                created_by=actor.user,
            )

            entry = rules.post_payment(actor, payment)
            payment.journal_entry = entry
            payment.save(update_fields=["journal_entry"])
            emit_entry_created(actor, entry)

            CashFlow.objects.create(
                flow_type=CashFlow.FlowType.INFLOW if invoice.is_receivable else CashFlow.FlowType.OUTFLOW,
                category=CashFlow.Category.OPERATING,
                amount=amount,
                date=payment_date,
                description=entry.description,
                payment=payment,
                project=invoice.project,
                created_by=actor.user,
            )

            amount_paid = already_paid + amount
            if invoice.total - amount_paid <= tolerance:
                invoice.status = Invoice.Status.PAID
            else:
                invoice.status = Invoice.Status.PARTIAL
            invoice.save(update_fields=["status", "updated_at"])

            event = emit_event(
                actor=actor,
                event_type=EventTypes.PAYMENT_RECORDED,
                aggregate_type="Payment",
                aggregate_id=payment.pk,
                idempotency_key=f"payment.recorded:{payment.pk}",
                data=PaymentRecordedData(
                    payment_id=payment.pk,
                    payment_number=payment.payment_number,
                    invoice_id=invoice.pk,
                    invoice_number=invoice.invoice_number,
                    amount=str(payment.amount),
                    payment_date=payment.payment_date.isoformat(),
                    method=payment.method,
                    currency=payment.currency,
                    invoice_status=invoice.status,
                    amount_paid=str(amount_paid),
                    entry_number=entry.entry_number,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    logger.info(
        "Payment recorded",
        extra={
            "payment_number": payment.payment_number,
            "invoice_number": invoice.invoice_number,
            "amount": str(amount),
            "invoice_status": invoice.status,
        },
    )
    return CommandResult.ok(payment, event=event)
