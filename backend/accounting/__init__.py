# accounting/__init__.py
"""
Accounting app - Double-entry bookkeeping for BuildLedger.

This app provides:
- Account: Chart of Accounts with hierarchy and cached balances
- JournalEntry / JournalLine: Double-entry journal with approval workflow
- BalanceMovement: Audit trail of every balance change
- PostingRules: Automatic postings for invoices, payments and projects

Commands handle all mutations to ensure audit events are emitted.
"""
