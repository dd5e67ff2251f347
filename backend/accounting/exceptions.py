# accounting/exceptions.py
"""
Ledger error taxonomy.

Internal ledger layers (journal, balances, posting) raise these.
Commands catch them outside their atomic block, so the transaction is
rolled back, and turn them into a failed CommandResult. Views map the
result to an HTTP response using ``status_code``.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "ledger_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str = "", **context):
        self.message = message or self.__class__.__doc__ or self.code
        self.context = context
        super().__init__(self.message)


class LedgerValidationError(LedgerError):
    """Input rejected before any write."""

    code = "validation_error"
    status_code = 400


class UnbalancedEntry(LedgerValidationError):
    """Total debits do not equal total credits."""

    code = "unbalanced_entry"


class DuplicateCode(LedgerValidationError):
    """A record with this code already exists."""

    code = "duplicate_code"


class NotFound(LedgerError):
    """Referenced record does not exist."""

    code = "not_found"
    status_code = 404


class InvalidTransition(LedgerError):
    """The requested state change is not allowed from the current state."""

    code = "invalid_transition"
    status_code = 409


class Overpayment(InvalidTransition):
    """Payment would exceed the invoice total."""

    code = "overpayment"


class HasDependents(LedgerError):
    """Record is still referenced and cannot be deleted."""

    code = "has_dependents"
    status_code = 409


class MissingConfiguration(LedgerError):
    """A posting rule references an account that is not provisioned."""

    code = "missing_configuration"
    status_code = 422


class ConcurrencyError(LedgerError):
    """Concurrent update conflict; the request can be retried."""

    code = "concurrency_conflict"
    status_code = 409
    retryable = True
