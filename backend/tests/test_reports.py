# tests/test_reports.py
"""
Tests for financial statements.

A small construction ledger is built through the command layer:

    owner contribution      100,000  Cash / Common Stock
    invoice issued           50,000  AR / Service Revenue
    bill received            12,000  Cost of Goods Sold / AP
    customer payment         20,000  Cash / AR
    vendor payment            5,000  AP / Cash
    salaries                  3,000  Salaries Expense / Cash
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.commands import create_journal_entry
from accounting.models import Account
from invoicing.commands import record_payment
from projections.statements import (
    get_balance_sheet,
    get_cash_flow_statement,
    get_ledger_integrity,
    get_profit_loss,
    get_trial_balance,
)


def _post(actor, chart, on, debit_code, credit_code, amount, description=""):
    result = create_journal_entry(
        actor,
        date=on,
        description=description,
        lines=[
            {"account_id": chart[debit_code].pk, "debit": amount, "credit": "0"},
            {"account_id": chart[credit_code].pk, "debit": "0", "credit": amount},
        ],
        auto_approve=True,
    )
    assert result.success, result.error
    return result.data


@pytest.fixture
def ledger(actor, chart, make_invoice):
    _post(actor, chart, date(2026, 1, 2), "1000", "3000", "100000.00", "Owner contribution")
    invoice = make_invoice("50000.00")
    bill = make_invoice("12000.00", payable=True)
    assert record_payment(actor, invoice.pk, "20000.00", date(2026, 3, 10)).success
    assert record_payment(actor, bill.pk, "5000.00", date(2026, 3, 12)).success
    _post(actor, chart, date(2026, 3, 31), "5100", "1000", "3000.00", "March salaries")
    return chart


@pytest.mark.django_db
class TestBalanceSheet:

    def test_equation_holds(self, ledger):
        sheet = get_balance_sheet(as_of=date(2026, 3, 31))

        assert sheet["as_of"] == "2026-03-31"
        assert sheet["assets"]["total"] == "142000.00"
        assert sheet["liabilities"]["total"] == "7000.00"
        assert sheet["equity"]["total"] == "100000.00"
        assert sheet["equity"]["net_income"] == "35000.00"
        assert sheet["total_liabilities_and_equity"] == "142000.00"
        assert sheet["is_balanced"] is True

    def test_sub_classification(self, ledger):
        sheet = get_balance_sheet()

        fixed_codes = [item["code"] for item in sheet["assets"]["fixed"]["items"]]
        current_codes = [item["code"] for item in sheet["assets"]["current"]["items"]]
        long_term_codes = [item["code"] for item in sheet["liabilities"]["long_term"]["items"]]

        assert fixed_codes == ["1500"]
        assert current_codes == ["1000", "1100", "1200"]
        assert long_term_codes == ["2500"]
        assert sheet["assets"]["current"]["total"] == "142000.00"

    def test_inactive_accounts_are_excluded(self, actor, ledger):
        Account.objects.filter(code="1200").update(is_active=False)

        sheet = get_balance_sheet()

        codes = [item["code"] for item in sheet["assets"]["current"]["items"]]
        assert "1200" not in codes

    def test_empty_ledger_is_balanced(self, chart):
        assert get_balance_sheet()["is_balanced"] is True


@pytest.mark.django_db
class TestProfitLoss:

    def test_statement(self, ledger):
        pnl = get_profit_loss(start=date(2026, 1, 1), end=date(2026, 3, 31))

        assert pnl["period"] == {"start": "2026-01-01", "end": "2026-03-31"}
        assert pnl["revenue"]["total"] == "50000.00"
        assert [item["code"] for item in pnl["cost_of_revenue"]["items"]] == ["5000"]
        assert pnl["cost_of_revenue"]["total"] == "12000.00"
        assert pnl["operating_expenses"]["total"] == "3000.00"
        assert pnl["total_expenses"] == "15000.00"
        assert pnl["gross_profit"] == "38000.00"
        assert pnl["operating_income"] == "35000.00"
        assert pnl["net_income"] == "35000.00"
        assert pnl["profit_margin"] == "70.00"

    def test_no_revenue_has_zero_margin(self, chart):
        pnl = get_profit_loss()

        assert pnl["period"] == {"start": None, "end": None}
        assert pnl["profit_margin"] == "0.00"


@pytest.mark.django_db
class TestCashFlow:

    def test_statement_from_payments(self, ledger):
        statement = get_cash_flow_statement(start=date(2026, 1, 1), end=date(2026, 12, 31))

        operating = statement["operating_activities"]
        assert [item["amount"] for item in operating["items"]] == ["20000.00", "-5000.00"]
        assert operating["total"] == "15000.00"
        assert statement["investing_activities"]["total"] == "0.00"
        assert statement["financing_activities"]["items"] == []
        assert statement["net_change"] == "15000.00"
        assert statement["ending_cash"] == "112000.00"
        assert statement["beginning_cash"] == "97000.00"

    def test_period_filters_flows(self, ledger):
        statement = get_cash_flow_statement(start=date(2026, 3, 11), end=date(2026, 3, 31))

        assert statement["net_change"] == "-5000.00"
        assert statement["beginning_cash"] == "117000.00"

    def test_defaults_to_year_to_date(self, chart):
        statement = get_cash_flow_statement()

        start = date.fromisoformat(statement["period"]["start"])
        assert start.month == 1 and start.day == 1
        assert statement["net_change"] == "0.00"


@pytest.mark.django_db
class TestTrialBalanceAndIntegrity:

    def test_trial_balance(self, ledger):
        trial = get_trial_balance()

        rows = {row["code"]: row for row in trial["accounts"]}
        assert set(rows) == {"1000", "1100", "2000", "3000", "4100", "5000", "5100"}
        assert rows["1000"]["debit"] == "112000.00"
        assert rows["2000"]["credit"] == "7000.00"
        assert trial["total_debit"] == trial["total_credit"] == "157000.00"
        assert trial["is_balanced"] is True

    def test_negative_balance_moves_to_the_other_side(self, actor, chart):
        _post(actor, chart, date(2026, 2, 1), "5200", "1000", "900.00")

        rows = {row["code"]: row for row in get_trial_balance()["accounts"]}

        assert rows["1000"]["credit"] == "900.00"
        assert rows["1000"]["debit"] == "0.00"

    def test_integrity(self, ledger):
        report = get_ledger_integrity()

        assert report["is_consistent"] is True
        assert report["mismatches"] == []


@pytest.mark.django_db
class TestReportAPI:

    @pytest.mark.parametrize("path", [
        "balance-sheet/",
        "profit-loss/",
        "cash-flow/",
        "trial-balance/",
        "ledger-integrity/",
    ])
    def test_viewer_can_read_reports(self, viewer_client, chart, path):
        response = viewer_client.get(f"/api/reports/{path}")

        assert response.status_code == 200

    def test_balance_sheet_as_of(self, api_client, ledger):
        response = api_client.get("/api/reports/balance-sheet/", {"as_of": "2026-03-31"})

        assert response.status_code == 200
        assert response.data["as_of"] == "2026-03-31"
        assert response.data["is_balanced"] is True

    def test_invalid_date(self, api_client, chart):
        response = api_client.get("/api/reports/profit-loss/", {"start": "31/03/2026"})

        assert response.status_code == 400

    def test_cash_flow_end_before_start(self, api_client, chart):
        response = api_client.get("/api/reports/cash-flow/", {"start": "2026-03-01", "end": "2026-02-01"})

        assert response.status_code == 400

    def test_requires_authentication(self, chart):
        from rest_framework.test import APIClient

        response = APIClient().get("/api/reports/trial-balance/")

        assert response.status_code == 401
