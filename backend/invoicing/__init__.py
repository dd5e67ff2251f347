"""
Invoicing app - customers, vendors, invoices, bills and payments.

Issuing an invoice, cancelling it and recording a payment each post an
auto-approved journal entry through accounting.posting.PostingRules.
"""
