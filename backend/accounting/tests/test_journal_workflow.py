# accounting/tests/test_journal_workflow.py
"""
Integration tests for the journal entry approval workflow.

These tests use API-level testing to verify the full lifecycle
of journal entries: create -> submit -> reject -> fix -> submit ->
approve -> confirm.

Tests verify the API responses rather than direct database queries
to avoid transaction isolation issues between the API client and
test database connections.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TransactionTestCase
from rest_framework.test import APIClient

from accounts.models import Company, CompanyMembership
from accounting.models import Account


class TestJournalEntryApprovalFlow(TransactionTestCase):
    """
    Thin integration test (API-level):
    - USER creates an unbalanced DRAFT, cannot submit it
    - USER fixes it and submits -> PENDING
    - MANAGER rejects with a reason -> DRAFT
    - USER fixes and resubmits, MANAGER approves and confirms
    - History shows both submissions and the rejection
    """

    def setUp(self):
        User = get_user_model()

        self.company = Company.objects.create(
            name="Test Co",
            slug="testco",
            default_currency="JPY",
        )

        self.clerk = User.objects.create_user(
            email="clerk@example.com",
            password="pass12345",
            name="Clerk",
            active_company=self.company,
        )
        CompanyMembership.objects.create(
            user=self.clerk,
            company=self.company,
            role=CompanyMembership.Role.USER,
        )

        self.manager = User.objects.create_user(
            email="manager@example.com",
            password="pass12345",
            name="Manager",
            active_company=self.company,
        )
        CompanyMembership.objects.create(
            user=self.manager,
            company=self.company,
            role=CompanyMembership.Role.MANAGER,
        )

        self.clerk_client = APIClient()
        self.clerk_client.force_authenticate(user=self.clerk)
        self.manager_client = APIClient()
        self.manager_client.force_authenticate(user=self.manager)

        self.cash = Account.objects.create(
            company=self.company,
            code="1000",
            name="Cash",
            account_type=Account.AccountType.ASSET,
        )
        self.sales = Account.objects.create(
            company=self.company,
            code="4000",
            name="Sales",
            account_type=Account.AccountType.REVENUE,
        )

    def _post(self, client, path, payload):
        return client.post(f"/api/accounting/journal-entries/{path}", payload, format="json")

    def test_reject_and_resubmit_flow(self):
        # 1) Create an unbalanced draft
        res = self._post(self.clerk_client, "", {
            "date": "2024-01-10",
            "memo": "Cash sale",
            "lines": [
                {"account_id": self.cash.id, "debit": "1000"},
                {"account_id": self.sales.id, "credit": "900"},
            ],
        })
        self.assertEqual(res.status_code, 201, res.data)
        entry_id = res.data["id"]
        self.assertEqual(res.data["status"], "DRAFT")
        self.assertFalse(res.data["is_balanced"])

        # 2) Submitting it fails and leaves the entry alone
        res = self._post(self.clerk_client, f"{entry_id}/submit/", {"version": 1})
        self.assertEqual(res.status_code, 400, res.data)
        self.assertEqual(res.data["code"], "UNBALANCED")
        self.assertEqual(Decimal(res.data["difference"]), Decimal("100"))

        # 3) Fix the credit line and submit
        res = self.clerk_client.patch(
            f"/api/accounting/journal-entries/{entry_id}/",
            {
                "version": 1,
                "lines": [
                    {"account_id": self.cash.id, "debit": "1000"},
                    {"account_id": self.sales.id, "credit": "1000"},
                ],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["version"], 2)

        res = self._post(self.clerk_client, f"{entry_id}/submit/", {"version": 2})
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "PENDING")

        # 4) The clerk cannot approve their own entry
        res = self._post(self.clerk_client, f"{entry_id}/approve/", {"version": 3})
        self.assertEqual(res.status_code, 403, res.data)
        self.assertEqual(res.data["code"], "FORBIDDEN")

        # 5) Manager rejects
        res = self._post(self.manager_client, f"{entry_id}/reject/", {"version": 3, "reason": "amount error"})
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "DRAFT")
        self.assertEqual(res.data["rejection_reason"], "amount error")
        self.assertEqual(res.data["rejected_by_email"], "manager@example.com")

        # 6) A second manager action with the stale version conflicts
        res = self._post(self.manager_client, f"{entry_id}/approve/", {"version": 3})
        self.assertEqual(res.status_code, 409, res.data)
        self.assertEqual(res.data["code"], "CONFLICT")

        # 7) Resubmit, approve, confirm
        res = self._post(self.clerk_client, f"{entry_id}/submit/", {"version": 4})
        self.assertEqual(res.status_code, 200, res.data)
        res = self._post(self.manager_client, f"{entry_id}/approve/", {"version": 5})
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "APPROVED")
        res = self._post(self.manager_client, f"{entry_id}/confirm/", {"version": 6})
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "CONFIRMED")
        self.assertEqual(res.data["version"], 7)

        # 8) CONFIRMED is terminal
        res = self.manager_client.patch(
            f"/api/accounting/journal-entries/{entry_id}/",
            {"version": 7, "memo": "too late"},
            format="json",
        )
        self.assertEqual(res.status_code, 409, res.data)
        self.assertEqual(res.data["code"], "ILLEGAL_TRANSITION")

        # 9) History keeps every step, including the rejection
        res = self.clerk_client.get(f"/api/accounting/journal-entries/{entry_id}/history/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(
            [e["event_type"] for e in res.data["events"]],
            [
                "journal_entry.created",
                "journal_entry.updated",
                "journal_entry.submitted",
                "journal_entry.rejected",
                "journal_entry.submitted",
                "journal_entry.approved",
                "journal_entry.confirmed",
            ],
        )
        self.assertEqual(len(res.data["rejections"]), 1)
        self.assertEqual(res.data["rejections"][0]["reason"], "amount error")
