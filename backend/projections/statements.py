# projections/statements.py
"""
Financial statements built from cached account balances.

Balance Sheet, Profit & Loss and Trial Balance read Account.balance
directly; the Cash Flow statement sums the CashFlow log. All amounts are
returned as decimal strings.

Sub-classification (current vs fixed assets, current vs long-term
liabilities, cost of revenue vs operating expenses) uses account name
keywords and code prefixes. It is an approximation, not a classification
scheme.
"""

import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable

from django.conf import settings
from django.utils import timezone

from accounting.balances import verify_balances
from accounting.models import Account, ZERO
from projections.models import CashFlow


TOLERANCE = Decimal("0.01")

FIXED_ASSET_KEYWORDS = ("equipment", "property", "vehicle", "fixed")
FIXED_ASSET_PREFIXES = ("1004", "1005", "15")

LONG_TERM_LIABILITY_KEYWORDS = ("loan", "long-term", "debt")
LONG_TERM_LIABILITY_PREFIXES = ("2003", "2004", "25")

COST_OF_REVENUE_KEYWORDS = ("cost", "material", "labor")


def _matches(account: Account, keywords: Iterable[str], prefixes: Iterable[str] = ()) -> bool:
    name = account.name.lower()
    return any(k in name for k in keywords) or account.code.startswith(tuple(prefixes))


def _total(accounts) -> Decimal:
    return sum((a.balance for a in accounts), ZERO)


def _section(accounts) -> Dict[str, Any]:
    return {
        "items": [
            {"id": a.pk, "code": a.code, "name": a.name, "balance": str(a.balance)}
            for a in accounts
        ],
        "total": str(_total(accounts)),
    }


def _active_accounts(account_type: str) -> list:
    return list(Account.objects.active().of_type(account_type).order_by("code"))


# =============================================================================
# Balance Sheet
# =============================================================================

def get_balance_sheet(as_of=None) -> Dict[str, Any]:
    """
    Balance sheet of all active accounts.

    Balances are current; as_of is echoed for display. Net income
    (revenue - expenses) stands in for closing entries, so:

        assets = liabilities + equity + net_income
    """
    as_of = as_of or timezone.localdate()

    assets = _active_accounts(Account.AccountType.ASSET)
    liabilities = _active_accounts(Account.AccountType.LIABILITY)
    equity = _active_accounts(Account.AccountType.EQUITY)

    fixed_assets = [a for a in assets if _matches(a, FIXED_ASSET_KEYWORDS, FIXED_ASSET_PREFIXES)]
    current_assets = [a for a in assets if a not in fixed_assets]

    long_term = [
        a for a in liabilities
        if _matches(a, LONG_TERM_LIABILITY_KEYWORDS, LONG_TERM_LIABILITY_PREFIXES)
    ]
    current_liabilities = [a for a in liabilities if a not in long_term]

    total_assets = _total(assets)
    total_liabilities = _total(liabilities)
    total_equity = _total(equity)
    net_income = (
        _total(_active_accounts(Account.AccountType.REVENUE))
        - _total(_active_accounts(Account.AccountType.EXPENSE))
    )

    return {
        "as_of": as_of.isoformat(),
        "assets": {
            "current": _section(current_assets),
            "fixed": _section(fixed_assets),
            "total": str(total_assets),
        },
        "liabilities": {
            "current": _section(current_liabilities),
            "long_term": _section(long_term),
            "total": str(total_liabilities),
        },
        "equity": {
            **_section(equity),
            "net_income": str(net_income),
            "total_with_net_income": str(total_equity + net_income),
        },
        "total_liabilities_and_equity": str(total_liabilities + total_equity + net_income),
        "is_balanced": abs(total_assets - (total_liabilities + total_equity + net_income)) < TOLERANCE,
    }


# =============================================================================
# Profit & Loss
# =============================================================================

def get_profit_loss(start=None, end=None) -> Dict[str, Any]:
    """
    Profit & loss from all-time account balances.

    The period is echoed but not applied: balances are cumulative and the
    ledger has no period closing.
    """
    revenue = _active_accounts(Account.AccountType.REVENUE)
    expenses = _active_accounts(Account.AccountType.EXPENSE)

    cost_of_revenue = [a for a in expenses if _matches(a, COST_OF_REVENUE_KEYWORDS)]
    operating = [a for a in expenses if a not in cost_of_revenue]

    total_revenue = _total(revenue)
    total_cost = _total(cost_of_revenue)
    total_operating = _total(operating)
    gross_profit = total_revenue - total_cost
    operating_income = gross_profit - total_operating
    net_income = operating_income

    if total_revenue > 0:
        margin = (net_income / total_revenue * 100).quantize(TOLERANCE)
    else:
        margin = ZERO

    return {
        "period": {
            "start": start.isoformat() if start else None,
            "end": end.isoformat() if end else None,
        },
        "revenue": _section(revenue),
        "cost_of_revenue": _section(cost_of_revenue),
        "operating_expenses": _section(operating),
        "total_expenses": str(total_cost + total_operating),
        "gross_profit": str(gross_profit),
        "operating_income": str(operating_income),
        "net_income": str(net_income),
        "profit_margin": str(margin),
    }


# =============================================================================
# Cash Flow
# =============================================================================

def _cash_account():
    code = getattr(settings, "LEDGER_POSTING_ACCOUNTS", {}).get("CASH")
    if code:
        account = Account.objects.filter(code=code).first()
        if account is not None:
            return account
    return (
        Account.objects.of_type(Account.AccountType.ASSET)
        .filter(name__icontains="cash")
        .order_by("code")
        .first()
    )


def get_cash_flow_statement(start=None, end=None) -> Dict[str, Any]:
    """
    Cash flow statement from the CashFlow log.

    Defaults to January 1st of the current year through today. Inflows
    count positive, outflows negative. Beginning cash is derived from the
    current cash account balance minus the period's net change.
    """
    end = end or timezone.localdate()
    start = start or datetime.date(end.year, 1, 1)

    flows = CashFlow.objects.filter(date__gte=start, date__lte=end).order_by("date", "id")

    sections = {category: {"items": [], "total": ZERO} for category in CashFlow.Category.values}
    for flow in flows:
        section = sections[flow.category]
        section["items"].append({
            "date": flow.date.isoformat(),
            "description": flow.description,
            "flow_type": flow.flow_type,
            "amount": str(flow.signed_amount),
        })
        section["total"] += flow.signed_amount

    net_change = sum((s["total"] for s in sections.values()), ZERO)

    cash_account = _cash_account()
    ending_cash = cash_account.balance if cash_account else ZERO
    beginning_cash = ending_cash - net_change if cash_account else ZERO
    if cash_account is None:
        ending_cash = net_change

    def _render(category):
        section = sections[category]
        return {"items": section["items"], "total": str(section["total"])}

    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "operating_activities": _render(CashFlow.Category.OPERATING),
        "investing_activities": _render(CashFlow.Category.INVESTING),
        "financing_activities": _render(CashFlow.Category.FINANCING),
        "net_change": str(net_change),
        "beginning_cash": str(beginning_cash),
        "ending_cash": str(ending_cash),
    }


# =============================================================================
# Trial Balance & integrity
# =============================================================================

def get_trial_balance() -> Dict[str, Any]:
    """
    Trial balance from cached balances.

    Returns:
        {
            "as_of": "2026-01-26",
            "accounts": [
                {"code": "1000", "name": "Cash", "debit": "1000.00", "credit": "0.00", ...},
                ...
            ],
            "total_debit": "10000.00",
            "total_credit": "10000.00",
            "is_balanced": True,
        }
    """
    accounts = []
    total_debit = ZERO
    total_credit = ZERO

    for account in Account.objects.order_by("code"):
        if account.balance == 0:
            continue

        # A positive balance sits on the account's normal side
        if account.normal_balance == Account.NormalBalance.DEBIT:
            debit, credit = (account.balance, ZERO) if account.balance >= 0 else (ZERO, -account.balance)
        else:
            debit, credit = (ZERO, account.balance) if account.balance >= 0 else (-account.balance, ZERO)

        accounts.append({
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "normal_balance": account.normal_balance,
            "debit": str(debit),
            "credit": str(credit),
            "balance": str(account.balance),
        })
        total_debit += debit
        total_credit += credit

    return {
        "as_of": timezone.localdate().isoformat(),
        "accounts": accounts,
        "total_debit": str(total_debit),
        "total_credit": str(total_credit),
        "is_balanced": abs(total_debit - total_credit) < TOLERANCE,
    }


def get_ledger_integrity() -> Dict[str, Any]:
    """Replay summary plus a single is_consistent flag."""
    report = verify_balances()
    report["is_consistent"] = not report["mismatches"]
    return report
