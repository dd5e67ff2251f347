# projections/urls.py
"""URL configuration for the reports API."""

from django.urls import path

from .views import (
    BalanceSheetView,
    ProfitLossView,
    CashFlowView,
    TrialBalanceView,
    LedgerIntegrityView,
)

app_name = "projections"

urlpatterns = [
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("profit-loss/", ProfitLossView.as_view(), name="profit-loss"),
    path("cash-flow/", CashFlowView.as_view(), name="cash-flow"),
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("ledger-integrity/", LedgerIntegrityView.as_view(), name="ledger-integrity"),
]
