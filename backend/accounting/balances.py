# accounting/balances.py
"""
Account balance maintenance.

Account.balance is a cached aggregate of the signed deltas of every
APPROVED journal line. This module is the only writer of that field:

- apply_entry_balances: applied once when an entry becomes APPROVED
- rebuild_balances: administrative correction from a full replay

Every write is paired with a BalanceMovement row, so the movement log for
an account always sums to its cached balance. verify_balances replays the
approved lines and reports accounts where cache, replay and movement log
disagree.

Callers must already be inside transaction.atomic(); rows are locked with
select_for_update() in primary-key order.
"""

from decimal import Decimal
from typing import Dict, Any, Iterable
import logging

from django.db.models import F, Sum

from accounting.exceptions import InvalidTransition
from accounting.models import Account, BalanceMovement, JournalEntry, JournalLine, ZERO


logger = logging.getLogger(__name__)


def signed_delta(account_type: str, debit: Decimal, credit: Decimal) -> Decimal:
    """
    Balance change produced by a line on an account of the given type.

    Debit-normal accounts (ASSET, EXPENSE) grow with debits; credit-normal
    accounts (LIABILITY, EQUITY, REVENUE) grow with credits.
    """
    normal = Account.NORMAL_BALANCE_MAP.get(account_type, Account.NormalBalance.DEBIT)
    if normal == Account.NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


def lock_accounts(account_ids: Iterable[int]) -> Dict[int, Account]:
    """
    Lock the given accounts for update.

    Rows are always locked in ascending primary-key order so that two
    transactions touching the same accounts cannot deadlock.
    """
    ids = sorted(set(account_ids))
    accounts = Account.objects.select_for_update().filter(pk__in=ids).order_by("pk")
    return {account.pk: account for account in accounts}


def apply_balance_delta(account: Account, amount: Decimal, line: JournalLine = None, note: str = "") -> BalanceMovement:
    """
    Add a signed amount to an account's cached balance.

    The increment is done with an F() expression on the locked row and
    recorded as a BalanceMovement. Returns the movement.
    """
    Account.objects.filter(pk=account.pk).update(balance=F("balance") + amount)
    account.refresh_from_db(fields=["balance"])

    movement = BalanceMovement.objects.create(
        account=account,
        entry=line.entry if line is not None else None,
        line=line,
        amount=amount,
        balance_after=account.balance,
        note=note,
    )

    logger.debug(
        "Balance delta applied",
        extra={
            "account_code": account.code,
            "amount": str(amount),
            "balance_after": str(account.balance),
        },
    )
    return movement


def apply_entry_balances(entry: JournalEntry) -> list:
    """
    Apply every line of an approved entry to its account, in line order.

    Raises InvalidTransition if the entry is not APPROVED or has already
    been applied. The one-to-one BalanceMovement.line constraint backs
    this up at the database level.
    """
    if entry.status != JournalEntry.Status.APPROVED:
        raise InvalidTransition(
            f"Entry {entry.entry_number} is {entry.status}; only APPROVED entries affect balances."
        )

    if BalanceMovement.objects.filter(entry=entry).exists():
        raise InvalidTransition(f"Entry {entry.entry_number} has already been applied.")

    lines = list(entry.lines.order_by("line_no"))
    accounts = lock_accounts(line.account_id for line in lines)

    movements = []
    for line in lines:
        account = accounts[line.account_id]
        delta = signed_delta(account.account_type, line.debit, line.credit)
        movements.append(apply_balance_delta(account, delta, line=line))

    logger.info(
        "Entry balances applied",
        extra={
            "entry_number": entry.entry_number,
            "line_count": len(lines),
        },
    )
    return movements


# =============================================================================
# Replay & verification
# =============================================================================

def replay_balances() -> Dict[int, Decimal]:
    """
    Recompute every account balance from APPROVED journal lines.

    Returns {account_id: expected_balance} for accounts that have at
    least one approved line.
    """
    rows = (
        JournalLine.objects
        .filter(entry__status=JournalEntry.Status.APPROVED)
        .values("account_id", "account__account_type")
        .annotate(total_debit=Sum("debit"), total_credit=Sum("credit"))
    )

    expected = {}
    for row in rows:
        expected[row["account_id"]] = signed_delta(
            row["account__account_type"],
            row["total_debit"] or ZERO,
            row["total_credit"] or ZERO,
        )
    return expected


def _movement_totals() -> Dict[int, Decimal]:
    rows = BalanceMovement.objects.values("account_id").annotate(total=Sum("amount"))
    return {row["account_id"]: row["total"] or ZERO for row in rows}


def verify_balances() -> Dict[str, Any]:
    """
    Verify all cached balances by replaying approved journal lines.

    Returns:
        {
            "total_accounts": 15,
            "verified": 15,
            "mismatches": [],
            "lines_processed": 42,
        }

    Each mismatch lists the account code and the cached, expected
    (replayed) and movement-log balances as strings.
    """
    expected = replay_balances()
    movements = _movement_totals()
    lines_processed = JournalLine.objects.filter(
        entry__status=JournalEntry.Status.APPROVED,
    ).count()

    mismatches = []
    verified = 0
    accounts = Account.objects.order_by("code")

    for account in accounts:
        expected_balance = expected.get(account.pk, ZERO)
        movement_balance = movements.get(account.pk, ZERO)

        if account.balance != expected_balance or movement_balance != account.balance:
            mismatches.append({
                "account_id": account.pk,
                "account_code": account.code,
                "cached_balance": str(account.balance),
                "expected_balance": str(expected_balance),
                "movement_balance": str(movement_balance),
            })
        else:
            verified += 1

    if mismatches:
        logger.warning(
            "Balance verification found mismatches",
            extra={"mismatch_count": len(mismatches)},
        )

    return {
        "total_accounts": accounts.count(),
        "verified": verified,
        "mismatches": mismatches,
        "lines_processed": lines_processed,
    }


def rebuild_balances() -> list:
    """
    Reset cached balances to their replayed values.

    Each correction is recorded as an unlinked BalanceMovement noted
    "rebuild" whose amount brings the movement log back in line with the
    replayed balance. Must run inside transaction.atomic(). Returns the
    corrections made.
    """
    expected = replay_balances()
    accounts = lock_accounts(Account.objects.values_list("pk", flat=True))
    movements = _movement_totals()

    corrections = []
    for account_id, account in accounts.items():
        target = expected.get(account_id, ZERO)
        movement_total = movements.get(account_id, ZERO)
        if account.balance == target and movement_total == target:
            continue

        previous = account.balance
        Account.objects.filter(pk=account_id).update(balance=target)
        if movement_total != target:
            BalanceMovement.objects.create(
                account=account,
                amount=target - movement_total,
                balance_after=target,
                note="rebuild",
            )
        corrections.append({
            "account_code": account.code,
            "previous_balance": str(previous),
            "balance": str(target),
        })
        logger.info(
            "Balance rebuilt",
            extra={
                "account_code": account.code,
                "previous_balance": str(previous),
                "balance": str(target),
            },
        )

    return corrections
