# accounting/checks.py
"""
System checks for ledger settings.

These run with ``manage.py check`` and before runserver/migrate. They only
look at settings; whether the configured accounts exist in the database
is reported by the /_health/full endpoint.
"""
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core import checks


@checks.register(checks.Tags.compatibility)
def check_posting_accounts(app_configs=None, **kwargs):
    from accounting.posting import PostingRules

    errors = []
    mapping = getattr(settings, "LEDGER_POSTING_ACCOUNTS", None)
    if not isinstance(mapping, dict):
        return [
            checks.Error(
                "LEDGER_POSTING_ACCOUNTS must be a dict of posting role to account code.",
                id="accounting.E001",
            )
        ]

    for role in PostingRules.ROLES:
        code = mapping.get(role)
        if not isinstance(code, str) or not code.strip():
            errors.append(
                checks.Error(
                    f"No account code configured for posting role {role}.",
                    hint=f"Set LEDGER_ACCOUNT_{role} in the environment.",
                    id="accounting.E002",
                )
            )

    unknown = sorted(set(mapping) - set(PostingRules.ROLES))
    if unknown:
        errors.append(
            checks.Warning(
                f"Unknown posting roles in LEDGER_POSTING_ACCOUNTS: {', '.join(unknown)}.",
                id="accounting.W001",
            )
        )
    return errors


@checks.register(checks.Tags.compatibility)
def check_balance_tolerance(app_configs=None, **kwargs):
    raw = getattr(settings, "LEDGER_BALANCE_TOLERANCE", Decimal("0.01"))
    try:
        tolerance = Decimal(str(raw))
    except InvalidOperation:
        tolerance = None
    if tolerance is None or tolerance < 0 or tolerance >= 1:
        return [
            checks.Error(
                f"LEDGER_BALANCE_TOLERANCE must be a decimal in [0, 1), got {raw!r}.",
                id="accounting.E003",
            )
        ]
    return []
