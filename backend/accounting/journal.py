# accounting/journal.py
"""
Journal engine.

Creates balanced journal entries and moves them through their workflow:

    DRAFT -> PENDING -> APPROVED | REJECTED

DRAFT entries may also be approved or rejected directly. System postings
are created already APPROVED (auto_approve=True).

These functions raise accounting.exceptions errors and expect to run
inside transaction.atomic(). Permission checks and audit events belong
to the command layer (accounting/commands.py).
"""

import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.balances import apply_entry_balances
from accounting.exceptions import (
    InvalidTransition,
    LedgerValidationError,
    NotFound,
    UnbalancedEntry,
)
from accounting.models import Account, DocumentSequence, JournalEntry, JournalLine, ZERO
from accounting.policies import (
    can_approve_entry,
    can_post_to_account,
    can_reject_entry,
    can_submit_entry,
)


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# =============================================================================
# Document numbers
# =============================================================================

def next_sequence_value(name: str, year: int = 0) -> int:
    """
    Allocate the next sequence value for a name/year pair.
    Uses select_for_update to avoid concurrent duplicates.
    """
    try:
        seq = DocumentSequence.objects.select_for_update().get(name=name, year=year)
    except DocumentSequence.DoesNotExist:
        try:
            with transaction.atomic():
                seq = DocumentSequence.objects.create(name=name, year=year, next_value=1)
        except IntegrityError:
            seq = DocumentSequence.objects.select_for_update().get(name=name, year=year)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value


def next_document_number(prefix: str, on_date) -> str:
    """Return the next number for a dated document, e.g. JE-2026-00001."""
    year = on_date.year
    return f"{prefix}-{year}-{next_sequence_value(prefix, year):05d}"


def next_code(prefix: str) -> str:
    """Return the next master-data code, e.g. CUST-00001."""
    return f"{prefix}-{next_sequence_value(prefix):05d}"


# =============================================================================
# Line validation
# =============================================================================

def _to_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise LedgerValidationError(f"Invalid date: {value!r}.")


def _to_amount(value, line_no: int, side: str) -> Decimal:
    try:
        amount = Decimal(str(value if value not in (None, "") else "0"))
    except InvalidOperation:
        raise LedgerValidationError(f"Line {line_no}: {side} is not a valid amount.")

    if not amount.is_finite():
        raise LedgerValidationError(f"Line {line_no}: {side} is not a valid amount.")
    if amount < 0:
        raise LedgerValidationError(f"Line {line_no}: {side} cannot be negative.")
    if amount != amount.quantize(CENT):
        raise LedgerValidationError(f"Line {line_no}: {side} has more than 2 decimal places.")
    return amount.quantize(CENT)


def _resolve_account(line: dict, line_no: int) -> Account:
    account = line.get("account")
    if isinstance(account, Account):
        return account

    try:
        if line.get("account_id") is not None:
            return Account.objects.get(pk=line["account_id"])
        if line.get("account_code"):
            return Account.objects.get(code=line["account_code"])
    except Account.DoesNotExist:
        ref = line.get("account_id") or line.get("account_code")
        raise NotFound(f"Line {line_no}: account {ref} not found.")

    raise LedgerValidationError(f"Line {line_no}: account is required.")


def check_accounts_postable(accounts) -> None:
    """Raise LedgerValidationError naming the first inactive account."""
    for line_no, account in accounts:
        allowed, reason = can_post_to_account(account)
        if not allowed:
            raise LedgerValidationError(f"Line {line_no}: {reason}")


def prepare_lines(lines: Iterable[dict], allow_inactive: bool = False) -> list:
    """
    Validate raw line dicts and resolve their accounts.

    Each line dict carries an account ("account", "account_id" or
    "account_code"), "debit", "credit" and an optional "description".
    allow_inactive is for reversals, which only undo amounts already
    posted to an account.

    Returns a list of dicts ready for JournalLine creation.

    Raises:
        LedgerValidationError: fewer than two lines or an invalid line
        NotFound: a referenced account does not exist
        UnbalancedEntry: debits and credits differ beyond tolerance
    """
    lines = list(lines or [])
    if len(lines) < 2:
        raise LedgerValidationError("A journal entry requires at least 2 lines.")

    prepared = []
    total_debit = ZERO
    total_credit = ZERO

    for line_no, line in enumerate(lines, start=1):
        debit = _to_amount(line.get("debit"), line_no, "debit")
        credit = _to_amount(line.get("credit"), line_no, "credit")

        if debit > 0 and credit > 0:
            raise LedgerValidationError(f"Line {line_no}: cannot have both debit and credit.")
        if debit == 0 and credit == 0:
            raise LedgerValidationError(f"Line {line_no}: must have a debit or a credit.")

        account = _resolve_account(line, line_no)
        if not allow_inactive:
            check_accounts_postable([(line_no, account)])

        prepared.append({
            "line_no": line_no,
            "account": account,
            "debit": debit,
            "credit": credit,
            "description": line.get("description", "") or "",
        })
        total_debit += debit
        total_credit += credit

    tolerance = getattr(settings, "LEDGER_BALANCE_TOLERANCE", CENT)
    if abs(total_debit - total_credit) > tolerance:
        raise UnbalancedEntry(
            f"Entry is not balanced. Debit={total_debit} Credit={total_credit}",
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )

    return prepared


# =============================================================================
# Entry lifecycle
# =============================================================================

def _user(actor):
    return getattr(actor, "user", None) if actor is not None else None


def get_entry_for_update(entry_id: int) -> JournalEntry:
    try:
        return JournalEntry.objects.select_for_update().get(pk=entry_id)
    except JournalEntry.DoesNotExist:
        raise NotFound("Journal entry not found.")


def create_entry(
    actor,
    date,
    description: str,
    lines: Iterable[dict],
    auto_approve: bool = False,
    source_module: str = "",
    source_document: str = "",
    allow_inactive_accounts: bool = False,
) -> JournalEntry:
    """
    Create a journal entry with its lines.

    All validation happens before anything is written. With auto_approve
    the entry is stored APPROVED and its balances are applied at once.
    """
    entry_date = _to_date(date)
    prepared = prepare_lines(lines, allow_inactive=allow_inactive_accounts)

    user = _user(actor)
    now = timezone.now()

    entry = JournalEntry.objects.create(
        entry_number=next_document_number("JE", entry_date),
        date=entry_date,
        description=description or "",
        status=JournalEntry.Status.APPROVED if auto_approve else JournalEntry.Status.DRAFT,
        source_module=source_module,
        source_document=source_document,
        created_by=user,
        approved_at=now if auto_approve else None,
        approved_by=user if auto_approve else None,
    )

    JournalLine.objects.bulk_create([
        JournalLine(
            entry=entry,
            line_no=line["line_no"],
            account=line["account"],
            debit=line["debit"],
            credit=line["credit"],
            description=line["description"],
        )
        for line in prepared
    ])

    if auto_approve:
        apply_entry_balances(entry)

    logger.info(
        "Journal entry created",
        extra={
            "entry_number": entry.entry_number,
            "status": entry.status,
            "source_module": source_module,
            "source_document": source_document,
            "amount": str(sum((line["debit"] for line in prepared), ZERO)),
        },
    )
    return entry


def submit_entry(actor, entry_id: int) -> JournalEntry:
    """Move a DRAFT entry to PENDING."""
    entry = get_entry_for_update(entry_id)

    allowed, reason = can_submit_entry(actor, entry)
    if not allowed:
        raise InvalidTransition(reason)

    entry.status = JournalEntry.Status.PENDING
    entry.submitted_at = timezone.now()
    entry.save(update_fields=["status", "submitted_at", "updated_at"])

    logger.info("Journal entry submitted", extra={"entry_number": entry.entry_number})
    return entry


def approve_entry(actor, entry_id: int) -> JournalEntry:
    """
    Approve a DRAFT or PENDING entry and apply its balances.

    The row lock plus the terminal-state check make approval happen
    exactly once even under concurrent requests.
    """
    entry = get_entry_for_update(entry_id)

    allowed, reason = can_approve_entry(actor, entry)
    if not allowed:
        raise InvalidTransition(reason)

    # An account may have been deactivated since the entry was drafted.
    check_accounts_postable(
        (line.line_no, line.account)
        for line in entry.lines.select_related("account").order_by("line_no")
    )

    entry.status = JournalEntry.Status.APPROVED
    entry.approved_at = timezone.now()
    entry.approved_by = _user(actor)
    entry.save(update_fields=["status", "approved_at", "approved_by", "updated_at"])

    apply_entry_balances(entry)

    logger.info("Journal entry approved", extra={"entry_number": entry.entry_number})
    return entry


def reject_entry(actor, entry_id: int, reason: str = "") -> JournalEntry:
    """Reject a DRAFT or PENDING entry. Balances are not touched."""
    entry = get_entry_for_update(entry_id)

    allowed, message = can_reject_entry(actor, entry)
    if not allowed:
        raise InvalidTransition(message)

    entry.status = JournalEntry.Status.REJECTED
    entry.rejected_at = timezone.now()
    entry.rejected_by = _user(actor)
    entry.rejection_reason = reason or ""
    entry.save(update_fields=[
        "status", "rejected_at", "rejected_by", "rejection_reason", "updated_at",
    ])

    logger.info(
        "Journal entry rejected",
        extra={"entry_number": entry.entry_number, "reason": entry.rejection_reason},
    )
    return entry
