"""
Ledger read model.

Financial statements derived from cached account balances and the
append-only CashFlow log.
"""
