# invoicing/models.py
"""
Invoicing models for BuildLedger.

Models:
- Customer / Vendor: Counterparties
- Invoice: Receivable invoices and payable bills
- InvoiceItem: Invoice lines (quantity x unit price)
- Payment: Money received against an invoice or paid against a bill

Issuing an invoice and recording a payment each produce an auto-approved
journal entry (accounting.posting.PostingRules). Mutations go through
invoicing/commands.py.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q, Sum


ZERO = Decimal("0.00")


class Counterparty(models.Model):
    """Fields shared by customers and vendors."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    tax_id = models.CharField(max_length=50, blank=True, default="")
    payment_terms = models.PositiveIntegerField(default=30, help_text="Days")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class Customer(Counterparty):
    credit_limit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)


class Vendor(Counterparty):
    pass


class Invoice(models.Model):
    """
    Receivable invoice (customer owes us) or payable bill (we owe a vendor).

    Status:
    - SENT: issued, nothing paid
    - PARTIAL / PAID: derived from cumulative payments
    - OVERDUE: set manually on an unpaid invoice past due
    - CANCELLED: issuance reversed, only possible without payments
    """

    class InvoiceType(models.TextChoices):
        RECEIVABLE = "RECEIVABLE", "Receivable"
        PAYABLE = "PAYABLE", "Payable"

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SENT = "SENT", "Sent"
        PARTIAL = "PARTIAL", "Partially Paid"
        PAID = "PAID", "Paid"
        OVERDUE = "OVERDUE", "Overdue"
        CANCELLED = "CANCELLED", "Cancelled"

    NUMBER_PREFIX = {
        InvoiceType.RECEIVABLE: "INV",
        InvoiceType.PAYABLE: "BILL",
    }

    invoice_number = models.CharField(max_length=30, unique=True)
    invoice_type = models.CharField(max_length=10, choices=InvoiceType.choices)

    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    vendor = models.ForeignKey(
        Vendor,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    issue_date = models.DateField()
    due_date = models.DateField()

    subtotal = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    tax = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    currency = models.CharField(max_length=3, default="USD")

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)
    notes = models.TextField(blank=True, default="")

    journal_entry = models.OneToOneField(
        "accounting.JournalEntry",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="issued_invoice",
    )
    cancellation_entry = models.OneToOneField(
        "accounting.JournalEntry",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="cancelled_invoice",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_invoices",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date", "-id"]
        indexes = [
            models.Index(fields=["invoice_type", "status"], name="inv_invoice_type_status_idx"),
            models.Index(fields=["due_date"], name="inv_invoice_due_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(invoice_type="RECEIVABLE", customer__isnull=False, vendor__isnull=True)
                    | Q(invoice_type="PAYABLE", vendor__isnull=False, customer__isnull=True)
                ),
                name="chk_invoice_counterparty_matches_type",
            ),
        ]

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"

    @property
    def is_receivable(self) -> bool:
        return self.invoice_type == self.InvoiceType.RECEIVABLE

    @property
    def counterparty(self):
        return self.customer if self.is_receivable else self.vendor

    @property
    def amount_paid(self) -> Decimal:
        return self.payments.aggregate(total=Sum("amount"))["total"] or ZERO

    @property
    def balance_due(self) -> Decimal:
        return self.total - self.amount_paid


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    line_no = models.PositiveIntegerField()
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        ordering = ["invoice", "line_no"]
        constraints = [
            models.UniqueConstraint(fields=["invoice", "line_no"], name="uniq_invoice_item_line_no"),
        ]

    def __str__(self):
        return f"{self.invoice.invoice_number} #{self.line_no}: {self.description}"


class Payment(models.Model):
    class Method(models.TextChoices):
        CASH = "CASH", "Cash"
        BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
        CHECK = "CHECK", "Check"
        CREDIT_CARD = "CREDIT_CARD", "Credit Card"
        OTHER = "OTHER", "Other"

    payment_number = models.CharField(max_length=30, unique=True)
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_date = models.DateField()
    method = models.CharField(max_length=20, choices=Method.choices, default=Method.BANK_TRANSFER)
    reference = models.CharField(max_length=100, blank=True, default="")
    currency = models.CharField(max_length=3, default="USD")
    notes = models.TextField(blank=True, default="")

    journal_entry = models.OneToOneField(
        "accounting.JournalEntry",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payment",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="recorded_payments",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="chk_payment_amount_positive"),
        ]

    def __str__(self):
        return f"{self.payment_number} {self.amount} -> {self.invoice.invoice_number}"
