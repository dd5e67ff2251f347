# accounts/permission_defaults.py

ROLE_DEFAULTS = {
    "ADMIN": {
        # Chart of accounts
        "accounts.view",
        "accounts.manage",

        # Journal
        "journal.view",
        "journal.create",
        "journal.approve",

        # Invoicing
        "invoices.view",
        "invoices.manage",
        "payments.manage",

        # Projects
        "projects.view",
        "projects.manage",

        # Reports
        "reports.view",

        # Audit trail
        "audit.view",
    },
    "FINANCE_MANAGER": {
        "accounts.view",
        "accounts.manage",
        "journal.view",
        "journal.create",
        "journal.approve",

        "invoices.view",
        "invoices.manage",
        "payments.manage",

        "projects.view",
        "reports.view",
        "audit.view",
    },
    "PROJECT_MANAGER": {
        "accounts.view",
        "journal.view",

        "invoices.view",

        "projects.view",
        "projects.manage",

        "reports.view",
    },
    "VIEWER": {
        "accounts.view",
        "journal.view",
        "invoices.view",
        "projects.view",
        "reports.view",
    },
}

def all_permission_codes() -> set[str]:
    codes: set[str] = set()
    for s in ROLE_DEFAULTS.values():
        codes |= set(s)
    return codes


def permissions_for_user(user) -> frozenset[str]:
    """Resolve the permission codes granted to a user by role."""
    if getattr(user, "is_superuser", False):
        return frozenset(all_permission_codes())
    return frozenset(ROLE_DEFAULTS.get(getattr(user, "role", ""), set()))
