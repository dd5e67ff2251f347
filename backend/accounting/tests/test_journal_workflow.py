# accounting/tests/test_journal_workflow.py
"""
Integration tests for journal entry workflow.

These tests use API-level testing to verify the full lifecycle
of journal entries: create -> submit -> approve, and the rejection path.

Tests verify the API responses, plus the cached balances that approval
is supposed to change.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, JournalEntry


class TestJournalEntryThinFlow(TestCase):
    """
    Thin integration test (API-level):
    - Create JE (DRAFT)
    - Submit -> PENDING
    - Approve -> APPROVED, balances applied
    - Reject path leaves balances untouched
    """

    def setUp(self):
        self.client = APIClient()
        User = get_user_model()

        # 1) Finance manager may create and approve entries
        self.user = User.objects.create_user(
            email="tester@example.com",
            password="pass12345",
            name="Tester",
            role=User.Role.FINANCE_MANAGER,
        )

        # 2) Authenticate
        self.client.force_authenticate(user=self.user)

        # 3) Accounts through the API so creation is audited
        r = self.client.post("/api/accounting/accounts/", {
            "code": "1000", "name": "Cash", "account_type": "ASSET",
        }, format="json")
        self.assertEqual(r.status_code, 201, r.data)
        self.cash_id = r.data["id"]

        r = self.client.post("/api/accounting/accounts/", {
            "code": "4000", "name": "Sales", "account_type": "REVENUE",
        }, format="json")
        self.assertEqual(r.status_code, 201, r.data)
        self.sales_id = r.data["id"]

    def _payload(self, debit="100.00", credit="100.00"):
        return {
            "date": "2026-01-17",
            "description": "Test JE",
            "lines": [
                {"account_id": self.cash_id, "description": "Cash", "debit": debit, "credit": "0.00"},
                {"account_id": self.sales_id, "description": "Sales", "debit": "0.00", "credit": credit},
            ],
        }

    def test_journal_entry_full_lifecycle(self):
        """Test complete JE lifecycle: create -> submit -> approve"""

        # 1) Create JE -> DRAFT
        r = self.client.post("/api/accounting/journal-entries/", self._payload(), format="json")
        self.assertEqual(r.status_code, 201, r.data)

        je_id = r.data["id"]
        self.assertEqual(r.data["status"], JournalEntry.Status.DRAFT)
        self.assertEqual(r.data["entry_number"], "JE-2026-00001")
        self.assertTrue(r.data["is_balanced"])

        # Lines exist in response
        self.assertEqual(len(r.data["lines"]), 2)
        line1 = next(l for l in r.data["lines"] if l["line_no"] == 1)
        line2 = next(l for l in r.data["lines"] if l["line_no"] == 2)
        self.assertEqual(line1["account"], self.cash_id)
        self.assertEqual(Decimal(line1["debit"]), Decimal("100.00"))
        self.assertEqual(line2["account_code"], "4000")
        self.assertEqual(Decimal(line2["credit"]), Decimal("100.00"))

        # 2) Submit -> PENDING
        r = self.client.post(f"/api/accounting/journal-entries/{je_id}/submit/", {}, format="json")
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual(r.data["status"], JournalEntry.Status.PENDING)
        self.assertIsNotNone(r.data["submitted_at"])

        # Balances are untouched until approval
        r = self.client.get(f"/api/accounting/accounts/{self.cash_id}/")
        self.assertEqual(Decimal(r.data["balance"]), Decimal("0.00"))

        # 3) Approve -> APPROVED
        r = self.client.post(f"/api/accounting/journal-entries/{je_id}/approve/", {}, format="json")
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual(r.data["status"], JournalEntry.Status.APPROVED)
        self.assertEqual(r.data["approved_by"], self.user.id)
        self.assertIsNotNone(r.data["approved_at"])

        # 4) Balances follow the normal side of each account
        r = self.client.get(f"/api/accounting/accounts/{self.cash_id}/")
        self.assertEqual(Decimal(r.data["balance"]), Decimal("100.00"))
        self.assertTrue(r.data["has_transactions"])
        r = self.client.get(f"/api/accounting/accounts/{self.sales_id}/")
        self.assertEqual(Decimal(r.data["balance"]), Decimal("100.00"))

        # 5) Approving again is a conflict
        r = self.client.post(f"/api/accounting/journal-entries/{je_id}/approve/", {}, format="json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "invalid_transition")
        self.assertEqual(Account.objects.get(pk=self.cash_id).balance, Decimal("100.00"))

    def test_unbalanced_entry_is_rejected(self):
        """Unbalanced entries fail validation and nothing is stored"""
        r = self.client.post(
            "/api/accounting/journal-entries/",
            self._payload(debit="100.00", credit="50.00"),
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data["code"], "unbalanced_entry")
        self.assertIn("balanced", r.data["detail"].lower())

        r = self.client.get("/api/accounting/journal-entries/")
        self.assertEqual(r.data, [])

    def test_rejected_entry_keeps_balances(self):
        """Rejection records the reason and never touches balances"""
        r = self.client.post("/api/accounting/journal-entries/", self._payload(), format="json")
        je_id = r.data["id"]

        r = self.client.post(
            f"/api/accounting/journal-entries/{je_id}/reject/",
            {"reason": "Duplicate"},
            format="json",
        )
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual(r.data["status"], JournalEntry.Status.REJECTED)
        self.assertEqual(r.data["rejection_reason"], "Duplicate")

        r = self.client.get("/api/accounting/journal-entries/", {"status": "rejected"})
        self.assertEqual([e["id"] for e in r.data], [je_id])

        r = self.client.get(f"/api/accounting/accounts/{self.cash_id}/")
        self.assertEqual(Decimal(r.data["balance"]), Decimal("0.00"))

    def test_account_with_entries_cannot_be_deleted(self):
        """Deleting an account referenced by journal lines is a conflict"""
        self.client.post("/api/accounting/journal-entries/", self._payload(), format="json")

        r = self.client.delete(f"/api/accounting/accounts/{self.sales_id}/")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "has_dependents")

    def test_auto_approve_requires_approver(self):
        """A project manager may not post entries at all"""
        User = get_user_model()
        pm = User.objects.create_user(
            email="pm@example.com",
            password="pass12345",
            name="PM",
            role=User.Role.PROJECT_MANAGER,
        )
        client = APIClient()
        client.force_authenticate(user=pm)

        payload = {**self._payload(), "auto_approve": True}
        r = client.post("/api/accounting/journal-entries/", payload, format="json")
        self.assertEqual(r.status_code, 403)

        r = client.get("/api/accounting/journal-entries/")
        self.assertEqual(r.status_code, 200)

    def test_lines_by_account_code(self):
        """Lines may name accounts by code instead of id"""
        payload = self._payload()
        payload["lines"] = [
            {"account_code": "1000", "debit": "40.00"},
            {"account_code": "4000", "credit": "40.00"},
        ]

        r = self.client.post("/api/accounting/journal-entries/", payload, format="json")
        self.assertEqual(r.status_code, 201, r.data)
        self.assertEqual([l["account"] for l in r.data["lines"]], [self.cash_id, self.sales_id])

    def test_line_needs_exactly_one_account_reference(self):
        payload = self._payload()
        payload["lines"][0]["account_code"] = "1000"

        r = self.client.post("/api/accounting/journal-entries/", payload, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertFalse(JournalEntry.objects.exists())
