# accounting/chart.py
"""
Standard construction chart of accounts.

The codes used by the default posting rules (1000, 1100, 2000, 4100,
5000) are part of this chart, so a freshly seeded ledger can post
invoices, payments and project completions immediately.
"""

import logging

from django.db import transaction

from accounting.models import Account


logger = logging.getLogger(__name__)


STANDARD_CHART = [
    # (code, name, type, description)
    ("1000", "Cash", Account.AccountType.ASSET, "Cash on hand and in bank"),
    ("1100", "Accounts Receivable", Account.AccountType.ASSET, "Money owed by customers"),
    ("1200", "Inventory", Account.AccountType.ASSET, "Construction materials inventory"),
    ("1500", "Fixed Assets", Account.AccountType.ASSET, "Equipment, vehicles and property"),
    ("2000", "Accounts Payable", Account.AccountType.LIABILITY, "Money owed to vendors"),
    ("2100", "Accrued Expenses", Account.AccountType.LIABILITY, "Expenses incurred but not yet paid"),
    ("2500", "Long-term Debt", Account.AccountType.LIABILITY, "Loans payable after one year"),
    ("3000", "Common Stock", Account.AccountType.EQUITY, "Owner contributions"),
    ("3100", "Retained Earnings", Account.AccountType.EQUITY, "Accumulated profits"),
    ("4000", "Sales Revenue", Account.AccountType.REVENUE, "Revenue from sales"),
    ("4100", "Service Revenue", Account.AccountType.REVENUE, "Revenue from construction services"),
    ("5000", "Cost of Goods Sold", Account.AccountType.EXPENSE, "Direct project costs"),
    ("5100", "Salaries Expense", Account.AccountType.EXPENSE, "Employee salaries"),
    ("5200", "Rent Expense", Account.AccountType.EXPENSE, "Office and yard rent"),
    ("5300", "Utilities Expense", Account.AccountType.EXPENSE, "Electricity, water and phone"),
]


@transaction.atomic
def seed_chart(currency: str = "USD") -> list:
    """
    Create any missing accounts of the standard chart.

    Existing codes are left untouched. Returns the accounts created.
    """
    created = []
    for code, name, account_type, description in STANDARD_CHART:
        account, was_created = Account.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "account_type": account_type,
                "description": description,
                "currency": currency,
            },
        )
        if was_created:
            created.append(account)
            logger.info("Seeded account", extra={"account_code": code})
    return created
