# invoicing/policies.py
"""
Business policy functions for invoicing operations.

Policies answer: "Is this action allowed given the current state?"
They return (allowed, reason) tuples; commands decide which error to raise.
"""

# Manual status changes an operator may make. PARTIAL and PAID are derived
# from payments; CANCELLED goes through cancel_invoice.
MANUAL_STATUS_TRANSITIONS = {
    ("SENT", "OVERDUE"),
    ("OVERDUE", "SENT"),
}


def can_change_invoice_status(actor, invoice, new_status: str) -> tuple[bool, str]:
    if new_status == invoice.status:
        return True, ""

    if (invoice.status, new_status) not in MANUAL_STATUS_TRANSITIONS:
        return False, f"Cannot change invoice status from {invoice.status} to {new_status}."

    return True, ""


def can_cancel_invoice(actor, invoice) -> tuple[bool, str]:
    """
    Rules:
    - Not already cancelled
    - No payments recorded against it
    """
    if invoice.status == invoice.Status.CANCELLED:
        return False, "Invoice is already cancelled."

    if invoice.payments.exists():
        return False, "Cannot cancel an invoice that has payments."

    return True, ""


def can_record_payment(actor, invoice) -> tuple[bool, str]:
    """
    Rules:
    - Invoice must not be cancelled
    - Invoice must not be fully paid
    """
    if invoice.status == invoice.Status.CANCELLED:
        return False, "Cannot record a payment on a cancelled invoice."

    if invoice.status == invoice.Status.PAID:
        return False, "Invoice is already fully paid."

    return True, ""


def can_delete_counterparty(actor, counterparty) -> tuple[bool, str]:
    """
    Rules:
    - No invoices or bills reference it
    - No projects reference it (customers only)
    """
    label = type(counterparty).__name__
    if counterparty.invoices.exists():
        return False, f"{label} {counterparty.code} has invoices."

    projects = getattr(counterparty, "projects", None)
    if projects is not None and projects.exists():
        return False, f"{label} {counterparty.code} is linked to projects."

    return True, ""
