# accounting/commands.py
"""
Command layer for accounting operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and emit audit events.

Pattern:
1. Validate permissions (require)
2. Open one atomic block (ledger_transaction)
3. Apply business policies and perform the operation
4. Emit audit event (emit_event)
5. Return CommandResult

Ledger errors raised inside the atomic block roll the whole operation
back and come out as a failed CommandResult carrying the error code and
HTTP status. There is never a partial success.
"""

from contextlib import contextmanager
import logging
import uuid
from datetime import date as date_type, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction, IntegrityError, OperationalError
from django.db.models import ProtectedError

from accounts.authz import ActorContext, require
from accounting import journal
from accounting.exceptions import (
    ConcurrencyError,
    DuplicateCode,
    HasDependents,
    InvalidTransition,
    LedgerError,
    LedgerValidationError,
    NotFound,
)
from accounting.models import Account, JournalEntry
from accounting.policies import (
    can_change_account_type,
    can_delete_account,
    can_set_parent,
)
from events.emitter import emit_event
from events.types import (
    EventTypes,
    AccountCreatedData,
    AccountUpdatedData,
    AccountDeletedData,
    JournalLineData,
    JournalEntryCreatedData,
    JournalEntrySubmittedData,
    JournalEntryApprovedData,
    JournalEntryRejectedData,
)


logger = logging.getLogger(__name__)


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_account(actor, code="1000", ...)
        if result.success:
            account = result.data
            event = result.event
        else:
            error_message = result.error
            http_status = result.status_code
    """

    def __init__(
        self,
        success: bool,
        data=None,
        error: str = None,
        event=None,
        error_code: str = None,
        status_code: int = None,
        retryable: bool = False,
    ):
        self.success = success
        self.data = data
        self.error = error
        self.event = event  # The emitted event, if any
        self.error_code = error_code
        self.status_code = status_code
        self.retryable = retryable

    @classmethod
    def ok(cls, data=None, event=None):
        return cls(success=True, data=data, event=event)

    @classmethod
    def fail(cls, error: str, code: str = "validation_error", status_code: int = 400, retryable: bool = False):
        return cls(
            success=False,
            error=error,
            error_code=code,
            status_code=status_code,
            retryable=retryable,
        )

    @classmethod
    def from_exception(cls, exc: LedgerError):
        logger.warning(
            "Command failed",
            extra={"error_code": exc.code, "error": exc.message, **exc.context},
        )
        return cls.fail(
            exc.message,
            code=exc.code,
            status_code=exc.status_code,
            retryable=exc.retryable,
        )


@contextmanager
def ledger_transaction():
    """
    One atomic block for a ledger-affecting command.

    Lock timeouts and serialization failures from the database surface as
    OperationalError; they are re-raised as the retryable ConcurrencyError.
    """
    try:
        with transaction.atomic():
            yield
    except OperationalError as exc:
        raise ConcurrencyError("The ledger is busy; retry the request.") from exc


def jsonable(value):
    """Convert a field value for storage in an event's changes dict."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date_type, datetime)):
        return value.isoformat()
    if hasattr(value, "pk"):
        return value.pk
    return value


def track_changes(instance, updates: dict, allowed_fields: set) -> dict:
    """
    Apply allowed field updates to an instance.

    Returns {"field": {"old": x, "new": y}} for fields that actually changed.
    """
    changes = {}
    for field, value in updates.items():
        if field not in allowed_fields:
            continue
        old_value = getattr(instance, field)
        if old_value != value:
            changes[field] = {"old": jsonable(old_value), "new": jsonable(value)}
            setattr(instance, field, value)
    return changes


def save_validated(instance, **kwargs):
    """Save a model whose save() runs full_clean, mapping errors to the ledger taxonomy."""
    try:
        with transaction.atomic():
            instance.save(**kwargs)
    except DjangoValidationError as exc:
        raise LedgerValidationError("; ".join(exc.messages))


# =============================================================================
# Read helpers
# =============================================================================

def get_account(account_id: int) -> Account:
    try:
        return Account.objects.select_related("parent").get(pk=account_id)
    except Account.DoesNotExist:
        raise NotFound("Account not found.")


def list_accounts(account_type: str = None, is_active: bool = None):
    qs = Account.objects.select_related("parent")
    if account_type:
        qs = qs.of_type(account_type)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    return qs.order_by("code")


# =============================================================================
# Account Commands
# =============================================================================

def create_account(
    actor: ActorContext,
    code: str,
    name: str,
    account_type: str,
    parent_id: int = None,
    currency: str = "USD",
    description: str = "",
    is_active: bool = True,
) -> CommandResult:
    """
    Create a new account in the chart of accounts.

    Args:
        actor: The actor context
        code: Account code (unique)
        name: Account name
        account_type: One of Account.AccountType choices
        parent_id: Optional parent account ID
        currency: 3-letter currency code
        description: Description
        is_active: False to create the account disabled

    Returns:
        CommandResult with the created Account (balance 0) or error
    """
    require(actor, "accounts.manage")

    try:
        with ledger_transaction():
            if account_type not in Account.AccountType.values:
                raise LedgerValidationError(f"Invalid account type '{account_type}'.")

            if Account.objects.filter(code=code).exists():
                raise DuplicateCode(f"Account code '{code}' already exists.", code=code)

            parent = None
            if parent_id:
                try:
                    parent = Account.objects.get(pk=parent_id)
                except Account.DoesNotExist:
                    raise NotFound("Parent account not found.")

            account = Account(
                code=code,
                name=name,
                account_type=account_type,
                parent=parent,
                currency=currency or "USD",
                description=description or "",
                is_active=is_active,
            )
            try:
                save_validated(account)
            except IntegrityError:
                raise DuplicateCode(f"Account code '{code}' already exists.", code=code)

            event = emit_event(
                actor=actor,
                event_type=EventTypes.ACCOUNT_CREATED,
                aggregate_type="Account",
                aggregate_id=account.pk,
                idempotency_key=f"account.created:{account.pk}",
                data=AccountCreatedData(
                    account_id=account.pk,
                    code=account.code,
                    name=account.name,
                    account_type=account.account_type,
                    normal_balance=account.normal_balance,
                    currency=account.currency,
                    parent_id=account.parent_id,
                    description=account.description,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    logger.info("Account created", extra={"account_code": account.code})
    return CommandResult.ok(account, event=event)


def update_account(
    actor: ActorContext,
    account_id: int,
    **updates,
) -> CommandResult:
    """
    Update an existing account.

    Args:
        actor: The actor context
        account_id: ID of account to update
        **updates: Field updates (name, description, currency, parent_id,
            is_active, code, account_type)

    Returns:
        CommandResult with updated Account or error
    """
    require(actor, "accounts.manage")

    allowed_fields = {
        "name", "description", "currency", "is_active", "code", "account_type",
    }

    try:
        with ledger_transaction():
            try:
                account = Account.objects.select_for_update().get(pk=account_id)
            except Account.DoesNotExist:
                raise NotFound("Account not found.")

            if "code" in updates and updates["code"] != account.code:
                if Account.objects.filter(code=updates["code"]).exclude(pk=account.pk).exists():
                    raise DuplicateCode(f"Account code '{updates['code']}' already exists.")

            if "account_type" in updates and updates["account_type"] != account.account_type:
                if updates["account_type"] not in Account.AccountType.values:
                    raise LedgerValidationError(f"Invalid account type '{updates['account_type']}'.")
                allowed, reason = can_change_account_type(actor, account)
                if not allowed:
                    raise InvalidTransition(reason)

            if "currency" in updates and updates["currency"]:
                updates["currency"] = updates["currency"].upper()

            changes = track_changes(account, updates, allowed_fields)

            if "parent_id" in updates and updates["parent_id"] != account.parent_id:
                parent = None
                if updates["parent_id"] is not None:
                    try:
                        parent = Account.objects.get(pk=updates["parent_id"])
                    except Account.DoesNotExist:
                        raise NotFound("Parent account not found.")
                allowed, reason = can_set_parent(actor, account, parent)
                if not allowed:
                    raise LedgerValidationError(reason)
                changes["parent_id"] = {"old": account.parent_id, "new": updates["parent_id"]}
                account.parent = parent

            if not changes:
                return CommandResult.ok(account)  # No changes, no event

            save_validated(account)

            event = emit_event(
                actor=actor,
                event_type=EventTypes.ACCOUNT_UPDATED,
                aggregate_type="Account",
                aggregate_id=account.pk,
                idempotency_key=f"account.updated:{account.pk}:{uuid.uuid4()}",
                data=AccountUpdatedData(
                    account_id=account.pk,
                    code=account.code,
                    changes=changes,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(account, event=event)


def delete_account(actor: ActorContext, account_id: int) -> CommandResult:
    """
    Delete an account.

    Fails with HasDependents while journal lines or child accounts
    reference it.
    """
    require(actor, "accounts.manage")

    try:
        with ledger_transaction():
            try:
                account = Account.objects.select_for_update().get(pk=account_id)
            except Account.DoesNotExist:
                raise NotFound("Account not found.")

            allowed, reason = can_delete_account(actor, account)
            if not allowed:
                raise HasDependents(reason)

            deleted_id, code, name = account.pk, account.code, account.name
            try:
                account.delete()
            except ProtectedError:
                raise HasDependents("Account is still referenced by ledger records.")

            event = emit_event(
                actor=actor,
                event_type=EventTypes.ACCOUNT_DELETED,
                aggregate_type="Account",
                aggregate_id=deleted_id,
                idempotency_key=f"account.deleted:{deleted_id}:{code}",
                data=AccountDeletedData(
                    account_id=deleted_id,
                    code=code,
                    name=name,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok({"deleted": True}, event=event)


# =============================================================================
# Journal Entry Commands
# =============================================================================

def emit_entry_created(actor, entry: JournalEntry):
    """Record the audit event for a new entry (manual or system posting)."""
    lines = [
        JournalLineData(
            line_no=line.line_no,
            account_code=line.account.code,
            debit=str(line.debit),
            credit=str(line.credit),
            description=line.description,
        ).to_dict()
        for line in entry.lines.select_related("account").order_by("line_no")
    ]
    return emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_CREATED,
        aggregate_type="JournalEntry",
        aggregate_id=entry.pk,
        idempotency_key=f"journal_entry.created:{entry.pk}",
        data=JournalEntryCreatedData(
            entry_id=entry.pk,
            entry_number=entry.entry_number,
            date=entry.date.isoformat(),
            description=entry.description,
            status=entry.status,
            total_debit=str(entry.total_debit),
            total_credit=str(entry.total_credit),
            lines=lines,
            source_module=entry.source_module,
            source_document=entry.source_document,
        ).to_dict(),
    )


def create_journal_entry(
    actor: ActorContext,
    date,
    description: str = "",
    lines: list = None,
    auto_approve: bool = False,
) -> CommandResult:
    """
    Create a manual journal entry.

    Args:
        actor: The actor context
        date: Entry date
        description: Entry description
        lines: List of line dicts with account_id, debit, credit, description
        auto_approve: Store the entry APPROVED immediately (requires
            journal.approve)

    Returns:
        CommandResult with the created JournalEntry or error
    """
    require(actor, "journal.create")
    if auto_approve:
        require(actor, "journal.approve")

    try:
        with ledger_transaction():
            entry = journal.create_entry(
                actor,
                date=date,
                description=description,
                lines=lines or [],
                auto_approve=auto_approve,
            )
            event = emit_entry_created(actor, entry)
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(entry, event=event)


def submit_journal_entry(actor: ActorContext, entry_id: int) -> CommandResult:
    """Submit a DRAFT entry for approval."""
    require(actor, "journal.create")

    try:
        with ledger_transaction():
            entry = journal.submit_entry(actor, entry_id)
            event = emit_event(
                actor=actor,
                event_type=EventTypes.JOURNAL_ENTRY_SUBMITTED,
                aggregate_type="JournalEntry",
                aggregate_id=entry.pk,
                idempotency_key=f"journal_entry.submitted:{entry.pk}",
                data=JournalEntrySubmittedData(
                    entry_id=entry.pk,
                    entry_number=entry.entry_number,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(entry, event=event)


def approve_journal_entry(actor: ActorContext, entry_id: int) -> CommandResult:
    """
    Approve an entry, making it affect account balances.

    Args:
        actor: The actor context
        entry_id: ID of entry to approve

    Returns:
        CommandResult with approved JournalEntry or error
    """
    require(actor, "journal.approve")

    try:
        with ledger_transaction():
            entry = journal.approve_entry(actor, entry_id)
            event = emit_event(
                actor=actor,
                event_type=EventTypes.JOURNAL_ENTRY_APPROVED,
                aggregate_type="JournalEntry",
                aggregate_id=entry.pk,
                idempotency_key=f"journal_entry.approved:{entry.pk}",
                data=JournalEntryApprovedData(
                    entry_id=entry.pk,
                    entry_number=entry.entry_number,
                    approved_at=entry.approved_at.isoformat(),
                    total_debit=str(entry.total_debit),
                    total_credit=str(entry.total_credit),
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(entry, event=event)


def reject_journal_entry(actor: ActorContext, entry_id: int, reason: str = "") -> CommandResult:
    """Reject an entry. It never affects balances."""
    require(actor, "journal.approve")

    try:
        with ledger_transaction():
            entry = journal.reject_entry(actor, entry_id, reason=reason)
            event = emit_event(
                actor=actor,
                event_type=EventTypes.JOURNAL_ENTRY_REJECTED,
                aggregate_type="JournalEntry",
                aggregate_id=entry.pk,
                idempotency_key=f"journal_entry.rejected:{entry.pk}",
                data=JournalEntryRejectedData(
                    entry_id=entry.pk,
                    entry_number=entry.entry_number,
                    reason=entry.rejection_reason,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(entry, event=event)
