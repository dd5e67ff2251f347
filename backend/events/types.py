# events/types.py
"""
Event type definitions for BuildLedger.

This module defines THE CANONICAL SCHEMA for all audit event payloads.
These dataclasses are the CONTRACT, not a "helper". All event emission
MUST use these types, and validation is enforced at emission time.

Each event type defines:
- The event name (used in event_type field)
- The expected data schema (enforced at runtime)
- Documentation of what the event means

Naming Convention: {aggregate}.{action}
Examples:
- account.created
- journal_entry.approved
- payment.recorded
"""

from dataclasses import dataclass, asdict, field, fields as dataclass_fields, MISSING
from typing import Optional, List, Dict, Any, get_type_hints, get_origin, get_args, Union
from decimal import Decimal, InvalidOperation
from datetime import date, datetime


# =============================================================================
# Event Validation
# =============================================================================

class InvalidEventPayload(Exception):
    """
    Raised when an event payload fails validation.

    This exception is raised at event emission time when the provided
    data does not match the expected schema for the event type.
    """
    def __init__(self, event_type: str, errors: List[str]):
        self.event_type = event_type
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(
            f"Invalid payload for event '{event_type}':\n  - {error_list}"
        )


def _is_optional_type(type_hint) -> bool:
    """Check if a type hint is Optional[X] (i.e., Union[X, None])."""
    origin = get_origin(type_hint)
    if origin is Union:
        return type(None) in get_args(type_hint)
    return False


def _get_inner_type(type_hint):
    """Get the inner type from Optional[X]."""
    origin = get_origin(type_hint)
    if origin is Union:
        non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
        if len(non_none_args) == 1:
            return non_none_args[0]
    return type_hint


DECIMAL_FIELDS = {
    "debit",
    "credit",
    "amount",
    "total",
    "subtotal",
    "tax",
    "total_debit",
    "total_credit",
    "budget",
    "amount_paid",
}

CURRENCY_FIELDS = {"currency"}

DATE_FIELDS = {"date", "issue_date", "due_date", "payment_date", "start_date", "end_date"}


def validate_event_payload(event_type: str, data: Dict[str, Any]) -> None:
    """
    Validate that a data dict matches the expected schema for an event type.

    It validates:

    1. Required fields are present (fields without defaults)
    2. No unexpected fields are provided (strict schema)
    3. Field types are correct (basic type checking)
    4. Money fields are decimal strings, currency codes are 3 uppercase
       letters and dates are ISO strings

    Raises:
        InvalidEventPayload: If validation fails
        ValueError: If event_type has no registered schema
    """
    data_class = EVENT_DATA_CLASSES.get(event_type)
    if data_class is None:
        raise ValueError(
            f"No schema registered for event type '{event_type}'. "
            f"Add a dataclass to EVENT_DATA_CLASSES."
        )

    errors = []
    dc_fields = {f.name: f for f in dataclass_fields(data_class)}
    type_hints = get_type_hints(data_class)

    for field_name, field_info in dc_fields.items():
        required = (
            field_info.default is MISSING and
            field_info.default_factory is MISSING
        )
        if required and field_name not in data:
            errors.append(f"Missing required field: '{field_name}'")

    unexpected = set(data.keys()) - set(dc_fields.keys())
    if unexpected:
        errors.append(
            f"Unexpected fields: {sorted(unexpected)}. "
            f"Expected: {sorted(dc_fields.keys())}"
        )

    for field_name, value in data.items():
        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        if value is None:
            if not _is_optional_type(type_hint):
                errors.append(
                    f"Field '{field_name}' cannot be None (type: {type_hint})"
                )
            continue

        check_type = _get_inner_type(type_hint)
        origin = get_origin(check_type)

        if origin is list or check_type is list:
            if not isinstance(value, list):
                errors.append(
                    f"Field '{field_name}' must be a list, got {type(value).__name__}"
                )
        elif origin is dict or check_type is dict:
            if not isinstance(value, dict):
                errors.append(
                    f"Field '{field_name}' must be a dict, got {type(value).__name__}"
                )
        elif check_type is str:
            if not isinstance(value, str):
                errors.append(
                    f"Field '{field_name}' must be a string, got {type(value).__name__}"
                )
        elif check_type is int:
            if not isinstance(value, int) or isinstance(value, bool):
                errors.append(
                    f"Field '{field_name}' must be an int, got {type(value).__name__}"
                )
        elif check_type is bool:
            if not isinstance(value, bool):
                errors.append(
                    f"Field '{field_name}' must be a bool, got {type(value).__name__}"
                )

    def _validate_scalar(name: str, value: Any) -> None:
        if value is None or isinstance(value, (dict, list)):
            return
        if name in DECIMAL_FIELDS:
            if not isinstance(value, str):
                errors.append(f"Field '{name}' must be a decimal string, got {type(value).__name__}")
            else:
                try:
                    Decimal(value)
                except InvalidOperation:
                    errors.append(f"Field '{name}' must be a decimal string, got {value!r}")
        if name in CURRENCY_FIELDS:
            if (
                not isinstance(value, str)
                or len(value) != 3
                or not value.isalpha()
                or value != value.upper()
            ):
                errors.append(f"Field '{name}' must be a 3-letter uppercase currency code, got {value!r}")
        if name in DATE_FIELDS:
            try:
                date.fromisoformat(value)
            except (TypeError, ValueError):
                errors.append(f"Field '{name}' must be an ISO date string, got {value!r}")

    def _walk(name: str, value: Any) -> None:
        _validate_scalar(name, value)
        if isinstance(value, list):
            for item in value:
                if isinstance(item, dict):
                    for k, v in item.items():
                        _walk(k, v)

    for field_name, value in data.items():
        _walk(field_name, value)

    if errors:
        raise InvalidEventPayload(event_type, errors)


# =============================================================================
# Base Event Classes
# =============================================================================

@dataclass
class BaseEventData:
    """Base class for all event data."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        result = {}
        for key, value in asdict(self).items():
            if isinstance(value, Decimal):
                result[key] = str(value)
            elif isinstance(value, (date, datetime)):
                result[key] = value.isoformat()
            else:
                result[key] = value
        return result


# =============================================================================
# Account Events
# =============================================================================

@dataclass
class AccountCreatedData(BaseEventData):
    """Data for account.created event."""
    account_id: int
    code: str
    name: str
    account_type: str
    normal_balance: str
    currency: str
    parent_id: Optional[int] = None
    description: str = ""


@dataclass
class AccountUpdatedData(BaseEventData):
    """Data for account.updated event."""
    account_id: int
    code: str
    changes: Dict[str, Dict[str, Any]]  # {"field": {"old": x, "new": y}}


@dataclass
class AccountDeletedData(BaseEventData):
    """Data for account.deleted event."""
    account_id: int
    code: str
    name: str


# =============================================================================
# Journal Entry Events
# =============================================================================

@dataclass
class JournalLineData:
    """Journal line data for embedding in events."""
    line_no: int
    account_code: str
    debit: str  # String for JSON safety
    credit: str
    description: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class JournalEntryCreatedData(BaseEventData):
    """
    Data for journal_entry.created event.

    Emitted for manual entries and for system postings; status tells which
    (system postings are created APPROVED).
    """
    entry_id: int
    entry_number: str
    date: str
    description: str
    status: str
    total_debit: str
    total_credit: str
    lines: List[Dict[str, Any]] = field(default_factory=list)
    source_module: str = ""
    source_document: str = ""


@dataclass
class JournalEntrySubmittedData(BaseEventData):
    """Data for journal_entry.submitted event."""
    entry_id: int
    entry_number: str


@dataclass
class JournalEntryApprovedData(BaseEventData):
    """Data for journal_entry.approved event."""
    entry_id: int
    entry_number: str
    approved_at: str
    total_debit: str
    total_credit: str


@dataclass
class JournalEntryRejectedData(BaseEventData):
    """Data for journal_entry.rejected event."""
    entry_id: int
    entry_number: str
    reason: str = ""


# =============================================================================
# Counterparty Events
# =============================================================================

@dataclass
class CounterpartyCreatedData(BaseEventData):
    """Data for customer.created / vendor.created events."""
    counterparty_id: int
    code: str
    name: str


@dataclass
class CounterpartyUpdatedData(BaseEventData):
    """Data for customer.updated / vendor.updated events."""
    counterparty_id: int
    code: str
    changes: Dict[str, Dict[str, Any]]


@dataclass
class CounterpartyDeletedData(BaseEventData):
    """Data for customer.deleted / vendor.deleted events."""
    counterparty_id: int
    code: str
    name: str


# =============================================================================
# Invoice & Payment Events
# =============================================================================

@dataclass
class InvoiceCreatedData(BaseEventData):
    """Data for invoice.created event."""
    invoice_id: int
    invoice_number: str
    invoice_type: str
    issue_date: str
    due_date: str
    subtotal: str
    tax: str
    total: str
    currency: str
    entry_number: str
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    project_id: Optional[int] = None


@dataclass
class InvoiceUpdatedData(BaseEventData):
    """Data for invoice.updated event."""
    invoice_id: int
    invoice_number: str
    changes: Dict[str, Dict[str, Any]]


@dataclass
class InvoiceCancelledData(BaseEventData):
    """Data for invoice.cancelled event."""
    invoice_id: int
    invoice_number: str
    total: str
    reversal_entry_number: str


@dataclass
class PaymentRecordedData(BaseEventData):
    """Data for payment.recorded event."""
    payment_id: int
    payment_number: str
    invoice_id: int
    invoice_number: str
    amount: str
    payment_date: str
    method: str
    currency: str
    invoice_status: str
    amount_paid: str
    entry_number: str


# =============================================================================
# Project Events
# =============================================================================

@dataclass
class ProjectCreatedData(BaseEventData):
    """Data for project.created event."""
    project_id: int
    code: str
    name: str
    status: str
    budget: str
    customer_id: Optional[int] = None


@dataclass
class ProjectUpdatedData(BaseEventData):
    """Data for project.updated event."""
    project_id: int
    code: str
    changes: Dict[str, Dict[str, Any]]


@dataclass
class ProjectCompletedData(BaseEventData):
    """
    Data for project.completed event.

    entry_number is None when the project has no budget to recognize.
    """
    project_id: int
    code: str
    budget: str
    entry_number: Optional[str] = None


# =============================================================================
# Event Type Registry
# =============================================================================

class EventTypes:
    """
    Registry of all event types.

    Naming convention: {aggregate}.{past_tense_verb}
    - account.created (not account.create)
    - journal_entry.approved (not journal_entry.approve)
    """

    # Account events
    ACCOUNT_CREATED = "account.created"
    ACCOUNT_UPDATED = "account.updated"
    ACCOUNT_DELETED = "account.deleted"

    # Journal entry events
    JOURNAL_ENTRY_CREATED = "journal_entry.created"
    JOURNAL_ENTRY_SUBMITTED = "journal_entry.submitted"
    JOURNAL_ENTRY_APPROVED = "journal_entry.approved"
    JOURNAL_ENTRY_REJECTED = "journal_entry.rejected"

    # Counterparty events
    CUSTOMER_CREATED = "customer.created"
    CUSTOMER_UPDATED = "customer.updated"
    CUSTOMER_DELETED = "customer.deleted"
    VENDOR_CREATED = "vendor.created"
    VENDOR_UPDATED = "vendor.updated"
    VENDOR_DELETED = "vendor.deleted"

    # Invoice events
    INVOICE_CREATED = "invoice.created"
    INVOICE_UPDATED = "invoice.updated"
    INVOICE_CANCELLED = "invoice.cancelled"
    PAYMENT_RECORDED = "payment.recorded"

    # Project events
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_COMPLETED = "project.completed"

    @classmethod
    def all(cls) -> list:
        return [
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]

    @classmethod
    def choices(cls) -> list:
        return [(value, value) for value in cls.all()]


EVENT_DATA_CLASSES = {
    EventTypes.ACCOUNT_CREATED: AccountCreatedData,
    EventTypes.ACCOUNT_UPDATED: AccountUpdatedData,
    EventTypes.ACCOUNT_DELETED: AccountDeletedData,
    EventTypes.JOURNAL_ENTRY_CREATED: JournalEntryCreatedData,
    EventTypes.JOURNAL_ENTRY_SUBMITTED: JournalEntrySubmittedData,
    EventTypes.JOURNAL_ENTRY_APPROVED: JournalEntryApprovedData,
    EventTypes.JOURNAL_ENTRY_REJECTED: JournalEntryRejectedData,
    EventTypes.CUSTOMER_CREATED: CounterpartyCreatedData,
    EventTypes.CUSTOMER_UPDATED: CounterpartyUpdatedData,
    EventTypes.CUSTOMER_DELETED: CounterpartyDeletedData,
    EventTypes.VENDOR_CREATED: CounterpartyCreatedData,
    EventTypes.VENDOR_UPDATED: CounterpartyUpdatedData,
    EventTypes.VENDOR_DELETED: CounterpartyDeletedData,
    EventTypes.INVOICE_CREATED: InvoiceCreatedData,
    EventTypes.INVOICE_UPDATED: InvoiceUpdatedData,
    EventTypes.INVOICE_CANCELLED: InvoiceCancelledData,
    EventTypes.PAYMENT_RECORDED: PaymentRecordedData,
    EventTypes.PROJECT_CREATED: ProjectCreatedData,
    EventTypes.PROJECT_UPDATED: ProjectUpdatedData,
    EventTypes.PROJECT_COMPLETED: ProjectCompletedData,
}
