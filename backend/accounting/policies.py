# accounting/policies.py
"""
State rules for the chart of accounts and the journal workflow.

Each policy returns ``(allowed, reason)`` and changes nothing; commands
turn a refusal into HasDependents, InvalidTransition or a validation
error. Model.save() keeps only the invariants that hold regardless of
workflow, such as normal_balance following account_type.

    allowed, reason = can_approve_entry(actor, entry)
    if not allowed:
        raise InvalidTransition(reason)
"""


# =============================================================================
# Account Policies
# =============================================================================

def can_delete_account(actor, account) -> tuple[bool, str]:
    """
    Check if an account can be deleted.

    Rules:
    - Cannot have journal lines
    - Cannot have child accounts
    """
    if account.journal_lines.exists():
        return False, "Cannot delete an account that has transactions."

    if account.children.exists():
        return False, "Cannot delete an account that has child accounts."

    return True, ""


def can_change_account_type(actor, account) -> tuple[bool, str]:
    """
    Check if account type can be changed.

    Rules:
    - Cannot change type once any journal line references the account,
      since the normal balance side of its history would flip
    """
    if account.journal_lines.exists():
        return False, "Cannot change type of an account with transactions."

    return True, ""


def can_set_parent(actor, account, parent) -> tuple[bool, str]:
    """
    Check if parent can be assigned to account.

    Rules:
    - An account cannot be its own parent
    - An account cannot be moved under one of its descendants
    """
    if parent is None:
        return True, ""

    if account.pk and parent.pk == account.pk:
        return False, "An account cannot be its own parent."

    if account.pk and parent.pk in {a.pk for a in account.get_descendants()}:
        return False, "An account cannot be moved under its own descendant."

    return True, ""


def can_post_to_account(account) -> tuple[bool, str]:
    """
    Check if journal lines can reference this account.

    Rules:
    - Account must be active
    """
    if not account.is_active:
        return False, f"Account {account.code} is inactive."

    return True, ""


# =============================================================================
# Journal Entry Policies
# =============================================================================

def can_submit_entry(actor, entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be submitted for approval.

    Rules:
    - Only DRAFT entries can be submitted
    """
    if entry.status != entry.Status.DRAFT:
        return False, f"Only DRAFT entries can be submitted (entry is {entry.status})."

    return True, ""


def can_approve_entry(actor, entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be approved.

    Rules:
    - Entry must be DRAFT or PENDING
    - APPROVED and REJECTED are terminal
    """
    if entry.status not in entry.OPEN_STATUSES:
        return False, f"Cannot approve an entry in status {entry.status}."

    return True, ""


def can_reject_entry(actor, entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be rejected.

    Rules:
    - Entry must be DRAFT or PENDING
    """
    if entry.status not in entry.OPEN_STATUSES:
        return False, f"Cannot reject an entry in status {entry.status}."

    return True, ""
