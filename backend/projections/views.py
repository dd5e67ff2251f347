# projections/views.py
"""
Financial report views.

Reports read cached account balances and the CashFlow log; nothing is
computed from journal lines except the ledger integrity check, which
replays approved lines on demand.

Endpoints:
    GET /api/reports/balance-sheet/     (as_of)
    GET /api/reports/profit-loss/       (start, end)
    GET /api/reports/cash-flow/         (start, end)
    GET /api/reports/trial-balance/
    GET /api/reports/ledger-integrity/
"""

import datetime

from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from projections.statements import (
    get_balance_sheet,
    get_cash_flow_statement,
    get_ledger_integrity,
    get_profit_loss,
    get_trial_balance,
)


def _date_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise ValidationError({name: f"Invalid date '{value}'. Use YYYY-MM-DD."})


class _ReportView(APIView):
    permission_classes = [IsAuthenticated]

    def authorize(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return actor


class BalanceSheetView(_ReportView):
    """
    GET /api/reports/balance-sheet/

    Assets = Liabilities + Equity + Net income
    """

    def get(self, request):
        self.authorize(request)
        return Response(get_balance_sheet(as_of=_date_param(request, "as_of")))


class ProfitLossView(_ReportView):
    """GET /api/reports/profit-loss/ (the period is reported, balances are all-time)"""

    def get(self, request):
        self.authorize(request)
        return Response(get_profit_loss(
            start=_date_param(request, "start"),
            end=_date_param(request, "end"),
        ))


class CashFlowView(_ReportView):
    """GET /api/reports/cash-flow/"""

    def get(self, request):
        self.authorize(request)
        start = _date_param(request, "start")
        end = _date_param(request, "end")
        if start and end and end < start:
            raise ValidationError({"end": "End date cannot be before the start date."})
        return Response(get_cash_flow_statement(start=start, end=end))


class TrialBalanceView(_ReportView):
    """GET /api/reports/trial-balance/"""

    def get(self, request):
        self.authorize(request)
        return Response(get_trial_balance())


class LedgerIntegrityView(_ReportView):
    """
    GET /api/reports/ledger-integrity/

    Replays approved journal lines and compares them with cached balances
    and the balance movement log.
    """

    def get(self, request):
        self.authorize(request)
        return Response(get_ledger_integrity())
