# tests/conftest.py
"""
Pytest fixtures for JournalFlow tests.

- One company with one member per role (VIEWER, USER, MANAGER, ADMIN)
- ActorContext fixtures built from those memberships
- A small chart of accounts (cash, revenue, an inactive account)
- A second company for tenant-boundary tests
- DRF APIClient fixtures authenticated as each role
"""

from decimal import Decimal
from datetime import date

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.authz import ActorContext
from accounts.models import Company, CompanyMembership
from accounts.roles import Role
from accounting.commands import (
    approve_journal_entry,
    create_journal_entry,
    submit_journal_entry,
)
from accounting.models import Account


User = get_user_model()


# =============================================================================
# Company & User Fixtures
# =============================================================================

@pytest.fixture
def company(db):
    return Company.objects.create(name="Test Company", slug="test-company")


@pytest.fixture
def second_company(db):
    return Company.objects.create(name="Second Company", slug="second-company")


def _member(company, email, role, is_active=True):
    user = User.objects.create_user(
        email=email,
        password="testpass123",
        name=email.split("@")[0].title(),
        active_company=company,
    )
    membership = CompanyMembership.objects.create(
        company=company,
        user=user,
        role=role,
        is_active=is_active,
    )
    return membership


@pytest.fixture
def viewer_membership(company):
    return _member(company, "viewer@test.com", Role.VIEWER)


@pytest.fixture
def user_membership(company):
    return _member(company, "user@test.com", Role.USER)


@pytest.fixture
def manager_membership(company):
    return _member(company, "manager@test.com", Role.MANAGER)


@pytest.fixture
def admin_membership(company):
    return _member(company, "admin@test.com", Role.ADMIN)


@pytest.fixture
def second_company_membership(second_company):
    return _member(second_company, "other@test.com", Role.ADMIN)


# =============================================================================
# Actor Context Fixtures
# =============================================================================

def _actor(membership):
    return ActorContext(user=membership.user, company=membership.company, membership=membership)


@pytest.fixture
def viewer_actor(viewer_membership):
    return _actor(viewer_membership)


@pytest.fixture
def user_actor(user_membership):
    return _actor(user_membership)


@pytest.fixture
def manager_actor(manager_membership):
    return _actor(manager_membership)


@pytest.fixture
def admin_actor(admin_membership):
    return _actor(admin_membership)


@pytest.fixture
def other_company_actor(second_company_membership):
    return _actor(second_company_membership)


# =============================================================================
# Chart of Accounts Fixtures
# =============================================================================

@pytest.fixture
def cash_account(company):
    return Account.objects.create(
        company=company, code="1000", name="Cash", account_type=Account.AccountType.ASSET,
    )


@pytest.fixture
def revenue_account(company):
    return Account.objects.create(
        company=company, code="4000", name="Sales", account_type=Account.AccountType.REVENUE,
    )


@pytest.fixture
def inactive_account(company):
    return Account.objects.create(
        company=company, code="9999", name="Old Suspense", is_active=False,
    )


@pytest.fixture
def foreign_account(second_company):
    return Account.objects.create(company=second_company, code="1000", name="Cash")


@pytest.fixture
def balanced_lines(cash_account, revenue_account):
    return [
        {"account_id": cash_account.id, "debit": Decimal("100"), "credit": None, "description": "Cash sale"},
        {"account_id": revenue_account.id, "debit": None, "credit": Decimal("100")},
    ]


# =============================================================================
# Journal Entry Fixtures
# =============================================================================

@pytest.fixture
def draft_entry(user_actor, balanced_lines):
    """A balanced DRAFT at version 1, created by the USER member."""
    result = create_journal_entry(
        user_actor,
        date=date(2024, 1, 15),
        memo="Cash sale",
        lines=balanced_lines,
    )
    assert result.success, result.error
    return result.data


@pytest.fixture
def pending_entry(user_actor, draft_entry):
    result = submit_journal_entry(user_actor, draft_entry.id, expected_version=draft_entry.version)
    assert result.success, result.error
    return result.data


@pytest.fixture
def approved_entry(manager_actor, pending_entry):
    result = approve_journal_entry(manager_actor, pending_entry.id, expected_version=pending_entry.version)
    assert result.success, result.error
    return result.data


# =============================================================================
# API Client Fixtures
# =============================================================================

def _client(membership):
    client = APIClient()
    client.force_authenticate(user=membership.user)
    return client


@pytest.fixture
def viewer_client(viewer_membership):
    return _client(viewer_membership)


@pytest.fixture
def user_client(user_membership):
    return _client(user_membership)


@pytest.fixture
def manager_client(manager_membership):
    return _client(manager_membership)


@pytest.fixture
def admin_client(admin_membership):
    return _client(admin_membership)


@pytest.fixture
def anon_client():
    return APIClient()
