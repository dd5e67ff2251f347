# tests/conftest.py
"""
Pytest fixtures for BuildLedger tests.

- Users for each role and their ActorContexts (actor_for_user)
- The standard chart of accounts (seed_chart)
- Customers, vendors and projects created through the command layer
- An authenticated DRF APIClient
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.authz import actor_for_user
from accounting.chart import seed_chart
from accounting.models import Account


User = get_user_model()


# =============================================================================
# Users & Actors
# =============================================================================

def _make_user(email, role, **extra):
    return User.objects.create_user(
        email=email,
        password="testpass123",
        name=email.split("@")[0].title(),
        role=role,
        **extra,
    )


@pytest.fixture
def admin_user(db):
    return _make_user("admin@test.com", User.Role.ADMIN)


@pytest.fixture
def finance_user(db):
    return _make_user("finance@test.com", User.Role.FINANCE_MANAGER)


@pytest.fixture
def pm_user(db):
    return _make_user("pm@test.com", User.Role.PROJECT_MANAGER)


@pytest.fixture
def viewer_user(db):
    return _make_user("viewer@test.com", User.Role.VIEWER)


@pytest.fixture
def actor(finance_user):
    """Finance manager: may post, approve and record payments."""
    return actor_for_user(finance_user)


@pytest.fixture
def admin_actor(admin_user):
    return actor_for_user(admin_user)


@pytest.fixture
def pm_actor(pm_user):
    return actor_for_user(pm_user)


@pytest.fixture
def viewer_actor(viewer_user):
    return actor_for_user(viewer_user)


# =============================================================================
# Chart of Accounts
# =============================================================================

@pytest.fixture
def chart(db):
    """Seed the standard construction chart. Returns {code: Account}."""
    seed_chart()
    return {a.code: a for a in Account.objects.all()}


@pytest.fixture
def balance_of():
    """Return a helper reading an account's current cached balance by code."""
    def _balance(code):
        return Account.objects.get(code=code).balance
    return _balance


# =============================================================================
# Invoicing & Projects
# =============================================================================

@pytest.fixture
def customer(actor):
    from invoicing.commands import create_customer

    result = create_customer(actor, name="Acme Developments", email="ap@acme.test")
    assert result.success, result.error
    return result.data


@pytest.fixture
def vendor(actor):
    from invoicing.commands import create_vendor

    result = create_vendor(actor, name="Concrete Supply Co")
    assert result.success, result.error
    return result.data


@pytest.fixture
def project(admin_actor, customer):
    from projects.commands import create_project

    result = create_project(
        admin_actor,
        name="Riverside Office Block",
        budget=Decimal("50000.00"),
        customer_id=customer.pk,
        start_date=date(2026, 1, 5),
    )
    assert result.success, result.error
    return result.data


@pytest.fixture
def issue_date():
    return date(2026, 3, 1)


@pytest.fixture
def make_invoice(actor, chart, customer, vendor, issue_date):
    """
    Factory issuing an invoice through create_invoice.

    make_invoice("1000.00") issues a receivable for the customer;
    make_invoice("400.00", payable=True) issues a bill from the vendor.
    """
    from invoicing.commands import create_invoice
    from invoicing.models import Invoice

    def _make(amount, payable=False, tax="0", **kwargs):
        counterparty = {"vendor_id": vendor.pk} if payable else {"customer_id": customer.pk}
        result = create_invoice(
            actor,
            invoice_type=Invoice.InvoiceType.PAYABLE if payable else Invoice.InvoiceType.RECEIVABLE,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=30),
            items=[{"description": "Site works", "quantity": "1", "unit_price": amount}],
            tax=tax,
            **counterparty,
            **kwargs,
        )
        assert result.success, result.error
        return result.data

    return _make


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def api_client(finance_user):
    client = APIClient()
    client.force_authenticate(user=finance_user)
    return client


@pytest.fixture
def viewer_client(viewer_user):
    client = APIClient()
    client.force_authenticate(user=viewer_user)
    return client
