# accounting/posting.py
"""
Automatic posting rules.

PostingRules turns business events into balanced, auto-approved journal
entries:

| Event                         | Debit               | Credit              |
|-------------------------------|---------------------|---------------------|
| Receivable invoice issued     | ACCOUNTS_RECEIVABLE | SERVICE_REVENUE     |
| Payable invoice (bill) issued | COST_OF_SALES       | ACCOUNTS_PAYABLE    |
| Payment received              | CASH                | ACCOUNTS_RECEIVABLE |
| Payment made                  | ACCOUNTS_PAYABLE    | CASH                |
| Project completed             | ACCOUNTS_RECEIVABLE | SERVICE_REVENUE     |
| Invoice cancelled             | issuance lines, sides swapped             |

A cancellation reverses the accounts the invoice was actually posted to,
whatever the role mapping says today.

The account for each role comes from the mapping the object is built
with (settings.LEDGER_POSTING_ACCOUNTS by default). A role whose account
is missing or inactive raises MissingConfiguration, which aborts the
operation that triggered the posting.

Usage:
    rules = PostingRules.from_settings()
    entry = rules.post_invoice_issued(actor, invoice)
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings
from django.utils.text import Truncator

from accounting.exceptions import InvalidTransition, LedgerValidationError, MissingConfiguration
from accounting.journal import create_entry
from accounting.models import Account, JournalEntry, JournalLine


logger = logging.getLogger(__name__)


def clip_description(text: str) -> str:
    """Fit a generated description into the journal description columns."""
    limit = min(
        JournalEntry._meta.get_field("description").max_length,
        JournalLine._meta.get_field("description").max_length,
    )
    return Truncator(text).chars(limit)


class PostingRules:
    """Selects accounts and amounts for system postings."""

    CASH = "CASH"
    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    SERVICE_REVENUE = "SERVICE_REVENUE"
    COST_OF_SALES = "COST_OF_SALES"

    ROLES = (CASH, ACCOUNTS_RECEIVABLE, ACCOUNTS_PAYABLE, SERVICE_REVENUE, COST_OF_SALES)

    def __init__(self, account_codes: Dict[str, str]):
        self.account_codes = dict(account_codes)

    @classmethod
    def from_settings(cls) -> "PostingRules":
        return cls(getattr(settings, "LEDGER_POSTING_ACCOUNTS", {}))

    def account_for(self, role: str) -> Account:
        """Resolve the active account configured for a posting role."""
        code = self.account_codes.get(role)
        if not code:
            raise MissingConfiguration(
                f"No account configured for posting role {role}.",
                role=role,
            )

        account = Account.objects.filter(code=code).first()
        if account is None:
            raise MissingConfiguration(
                f"Account {code} ({role}) does not exist.",
                role=role,
                account_code=code,
            )
        if not account.is_active:
            raise MissingConfiguration(
                f"Account {code} ({role}) is inactive.",
                role=role,
                account_code=code,
            )
        return account

    def missing_roles(self) -> list:
        """Roles whose account cannot be resolved. Used by health checks."""
        missing = []
        for role in self.ROLES:
            try:
                self.account_for(role)
            except MissingConfiguration:
                missing.append(role)
        return missing

    # -------------------------------------------------------------------------
    # Entry construction
    # -------------------------------------------------------------------------

    def _post(
        self,
        actor,
        date,
        description: str,
        debit_role: str,
        credit_role: str,
        amount: Decimal,
        source_module: str,
        source_document: str,
    ) -> JournalEntry:
        if amount is None or amount <= 0:
            raise LedgerValidationError("Posting amount must be positive.")

        debit_account = self.account_for(debit_role)
        credit_account = self.account_for(credit_role)
        description = clip_description(description)

        return create_entry(
            actor,
            date=date,
            description=description,
            lines=[
                {"account": debit_account, "debit": amount, "credit": 0, "description": description},
                {"account": credit_account, "debit": 0, "credit": amount, "description": description},
            ],
            auto_approve=True,
            source_module=source_module,
            source_document=source_document,
        )

    def post_invoice_issued(self, actor, invoice) -> JournalEntry:
        if invoice.is_receivable:
            debit_role, credit_role = self.ACCOUNTS_RECEIVABLE, self.SERVICE_REVENUE
            description = f"Invoice {invoice.invoice_number}"
        else:
            debit_role, credit_role = self.COST_OF_SALES, self.ACCOUNTS_PAYABLE
            description = f"Bill {invoice.invoice_number}"

        return self._post(
            actor,
            date=invoice.issue_date,
            description=description,
            debit_role=debit_role,
            credit_role=credit_role,
            amount=invoice.total,
            source_module="invoicing",
            source_document=invoice.invoice_number,
        )

    def post_invoice_cancelled(self, actor, invoice, date) -> JournalEntry:
        """
        Reverse the issuance posting of an invoice.

        The reversal mirrors the issuance entry line by line on the same
        accounts, so it neither consults the role mapping nor refuses an
        account deactivated since issuance.
        """
        issuance = invoice.journal_entry
        if issuance is None:
            raise InvalidTransition(f"Invoice {invoice.invoice_number} has no issuance posting to reverse.")

        description = clip_description(f"Cancellation of {invoice.invoice_number}")
        return create_entry(
            actor,
            date=date,
            description=description,
            lines=[
                {"account": line.account, "debit": line.credit, "credit": line.debit, "description": description}
                for line in issuance.lines.select_related("account").order_by("line_no")
            ],
            auto_approve=True,
            source_module="invoicing",
            source_document=invoice.invoice_number,
            allow_inactive_accounts=True,
        )

    def post_payment(self, actor, payment) -> JournalEntry:
        invoice = payment.invoice
        if invoice.is_receivable:
            debit_role, credit_role = self.CASH, self.ACCOUNTS_RECEIVABLE
            description = f"Payment {payment.payment_number} received for {invoice.invoice_number}"
        else:
            debit_role, credit_role = self.ACCOUNTS_PAYABLE, self.CASH
            description = f"Payment {payment.payment_number} made for {invoice.invoice_number}"

        return self._post(
            actor,
            date=payment.payment_date,
            description=description,
            debit_role=debit_role,
            credit_role=credit_role,
            amount=payment.amount,
            source_module="payments",
            source_document=payment.payment_number,
        )

    def post_project_completed(self, actor, project, date) -> Optional[JournalEntry]:
        """
        Recognize project revenue on completion.

        Returns None when the project has no budget to recognize.
        """
        if not project.budget or project.budget <= 0:
            logger.info(
                "Project completed without budget; no revenue posted",
                extra={"project_code": project.code},
            )
            return None

        return self._post(
            actor,
            date=date,
            description=f"Revenue recognition for project {project.code} {project.name}",
            debit_role=self.ACCOUNTS_RECEIVABLE,
            credit_role=self.SERVICE_REVENUE,
            amount=project.budget,
            source_module="projects",
            source_document=project.code,
        )
