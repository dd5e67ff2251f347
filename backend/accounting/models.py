# accounting/models.py
"""
Ledger models for BuildLedger.

Models:
- DocumentSequence: Per-document-type, per-year number counters
- Account: Chart of Accounts with hierarchy and cached balance
- JournalEntry: Journal entry headers (DRAFT -> PENDING -> APPROVED/REJECTED)
- JournalLine: Debit/credit lines
- BalanceMovement: Append-only record of every balance delta applied

Account.balance is a cached aggregate. It is written only by
accounting.balances (entry approval and administrative rebuild), always
together with a BalanceMovement row, so it can be replayed from history.

All other mutations go through the command layer (accounting/commands.py).
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum


ZERO = Decimal("0.00")


class DocumentSequence(models.Model):
    """
    Counters for sequential document numbers (JE-2026-00001, INV-2026-00001...).

    This is a write model used by commands to allocate unique numbers
    under concurrency; rows are locked with select_for_update.
    """

    name = models.CharField(max_length=20)
    year = models.PositiveIntegerField()
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["name", "year"],
                name="uniq_document_sequence_name_year",
            ),
        ]

    def __str__(self):
        return f"{self.name}-{self.year}={self.next_value}"


class AccountQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def of_type(self, account_type: str):
        return self.filter(account_type=account_type)


class Account(models.Model):
    """
    Chart of Accounts entry.

    Supports:
    - Hierarchical structure (parent/child) for reporting
    - Five account types with normal balance rules
    - Cached running balance stored as a positive-is-normal magnitude
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    # Map account types to their normal balance
    NORMAL_BALANCE_MAP = {
        AccountType.ASSET: NormalBalance.DEBIT,
        AccountType.EXPENSE: NormalBalance.DEBIT,
        AccountType.LIABILITY: NormalBalance.CREDIT,
        AccountType.EQUITY: NormalBalance.CREDIT,
        AccountType.REVENUE: NormalBalance.CREDIT,
    }

    objects = AccountQuerySet.as_manager()

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
    )

    normal_balance = models.CharField(
        max_length=10,
        choices=NormalBalance.choices,
        editable=False,
    )

    # Hierarchy
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=ZERO,
        editable=False,
        help_text="Cached sum of applied deltas; see BalanceMovement",
    )

    currency = models.CharField(max_length=3, default="USD")
    is_active = models.BooleanField(default=True)
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type"], name="acct_account_type_idx"),
            models.Index(fields=["parent"], name="acct_account_parent_idx"),
            models.Index(fields=["is_active"], name="acct_account_active_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        if self.parent_id and self.pk and self.parent_id == self.pk:
            raise ValidationError("An account cannot be its own parent.")
        if self.currency and (len(self.currency) != 3 or not self.currency.isalpha()):
            raise ValidationError("Currency must be a 3-letter code.")

    def save(self, *args, **kwargs):
        # Auto-set normal balance from account type
        self.normal_balance = self.NORMAL_BALANCE_MAP.get(
            self.account_type,
            self.NormalBalance.DEBIT,
        )
        self.currency = (self.currency or "").upper()
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.NormalBalance.DEBIT

    @property
    def full_code(self) -> str:
        """Returns the full hierarchical code (e.g., '1000.1100')."""
        if self.parent:
            return f"{self.parent.full_code}.{self.code}"
        return self.code

    @property
    def level(self) -> int:
        """Depth in the hierarchy (0 = root)."""
        if self.parent:
            return self.parent.level + 1
        return 0

    def get_descendants(self):
        """Get all descendant accounts (children, grandchildren, etc.)."""
        descendants = []
        for child in self.children.all():
            descendants.append(child)
            descendants.extend(child.get_descendants())
        return descendants

    def has_journal_lines(self) -> bool:
        return self.journal_lines.exists()


class JournalEntry(models.Model):
    """
    Journal Entry header.

    Workflow: DRAFT -> PENDING -> APPROVED | REJECTED
    - DRAFT: Entry saved, not yet submitted for approval
    - PENDING: Submitted, waiting for approval
    - APPROVED: Finalized, its lines have been applied to account balances
    - REJECTED: Terminal, never affects balances

    System postings (invoices, payments, project completion) are created
    directly in APPROVED.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PENDING = "PENDING", "Pending Approval"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    OPEN_STATUSES = (Status.DRAFT, Status.PENDING)
    TERMINAL_STATUSES = (Status.APPROVED, Status.REJECTED)

    entry_number = models.CharField(max_length=30, unique=True)
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT,
    )

    # Source tracking (which business document generated this entry)
    source_module = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Module that created this entry (e.g., 'invoicing', 'projects')",
    )
    source_document = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Reference to source document (e.g., invoice number)",
    )

    # Workflow metadata
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="approved_journal_entries",
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="rejected_journal_entries",
    )
    rejection_reason = models.TextField(blank=True, default="")

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journal_entries",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["date", "id"], name="acct_entry_date_idx"),
            models.Index(fields=["status"], name="acct_entry_status_idx"),
            models.Index(fields=["source_module", "source_document"], name="acct_entry_source_idx"),
        ]
        ordering = ["-date", "-id"]

    def __str__(self):
        return f"{self.entry_number} ({self.date}) {self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def total_debit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("debit"))["total"] or ZERO

    @property
    def total_credit(self) -> Decimal:
        return self.lines.aggregate(total=Sum("credit"))["total"] or ZERO

    @property
    def is_balanced(self) -> bool:
        tolerance = getattr(settings, "LEDGER_BALANCE_TOLERANCE", Decimal("0.01"))
        return abs(self.total_debit - self.total_credit) <= tolerance


class JournalLine(models.Model):
    """
    Individual line within a journal entry.
    Each line affects one account with either a debit or credit amount.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        ordering = ["entry", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["entry", "line_no"],
                name="uniq_journal_line_no",
            ),
            models.CheckConstraint(
                condition=~(Q(debit__gt=0) & Q(credit__gt=0)),
                name="chk_line_not_both_debit_credit",
            ),
            models.CheckConstraint(
                condition=~(Q(debit=0) & Q(credit=0)),
                name="chk_line_not_both_zero",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_line_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.entry.entry_number} L{self.line_no}"

    @property
    def amount(self) -> Decimal:
        """Returns the non-zero amount (debit or credit)."""
        return self.debit if self.debit > 0 else self.credit

    @property
    def is_debit(self) -> bool:
        """Returns True if this is a debit line."""
        return self.debit > 0


class BalanceMovement(models.Model):
    """
    Immutable record of one balance delta applied to an account.

    Exactly one movement exists per applied journal line (one-to-one on
    ``line``), which makes double application fail at the database level.
    Rebuild corrections have no line and carry a note instead.
    """

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="movements",
    )
    entry = models.ForeignKey(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="movements",
    )
    line = models.OneToOneField(
        JournalLine,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="movement",
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    balance_after = models.DecimalField(max_digits=18, decimal_places=2)
    note = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["account", "id"], name="acct_movement_account_idx"),
        ]

    def __str__(self):
        return f"{self.account.code} {self.amount:+} -> {self.balance_after}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Balance movements are immutable and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Balance movements are immutable and cannot be deleted.")
