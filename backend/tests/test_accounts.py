# tests/test_accounts.py
"""
Tests for the accounts module.

Tests cover:
- Membership is_active checks and role resolution
- resolve_actor (fresh membership on every request)
- User / membership administration commands
- /api/auth/ and /api/users/ endpoints
"""

import pytest
from django.core.exceptions import PermissionDenied
from django.urls import reverse
from rest_framework.exceptions import NotAuthenticated
from rest_framework.test import APIRequestFactory

from accounts.authz import ActorContext, require_role, resolve_actor
from accounts.commands import (
    create_user_with_membership,
    deactivate_membership,
    update_membership_role,
)
from accounts.models import CompanyMembership
from accounts.roles import Role
from events.models import BusinessEvent
from events.types import EventTypes


# =============================================================================
# Membership & Actor Tests
# =============================================================================

@pytest.mark.django_db
class TestMembershipRoles:
    def test_has_role_follows_hierarchy(self, manager_membership):
        assert manager_membership.has_role(Role.USER)
        assert manager_membership.has_role(Role.MANAGER)
        assert not manager_membership.has_role(Role.ADMIN)

    def test_deactivated_membership_satisfies_nothing(self, admin_membership):
        admin_membership.is_active = False
        admin_membership.save()
        assert admin_membership.has_role(Role.VIEWER) is False

        actor = ActorContext(user=admin_membership.user, company=admin_membership.company, membership=admin_membership)
        assert actor.role == Role.VIEWER
        assert not actor.is_admin

    def test_get_active_membership(self, user_membership):
        user = user_membership.user
        assert user.get_active_membership() == user_membership

        user_membership.is_active = False
        user_membership.save()
        assert user.get_active_membership() is None


@pytest.mark.django_db
class TestResolveActor:
    def _request(self, user):
        request = APIRequestFactory().get("/")
        request.user = user
        return request

    def test_resolves_role_from_membership(self, manager_membership):
        actor = resolve_actor(self._request(manager_membership.user))
        assert actor.company == manager_membership.company
        assert actor.role == Role.MANAGER

    def test_role_change_applies_to_next_request(self, manager_membership):
        manager_membership.role = Role.VIEWER
        manager_membership.save()
        assert resolve_actor(self._request(manager_membership.user)).role == Role.VIEWER

    def test_anonymous(self):
        from django.contrib.auth.models import AnonymousUser

        with pytest.raises(NotAuthenticated):
            resolve_actor(self._request(AnonymousUser()))

    def test_no_active_company(self, user_membership):
        user = user_membership.user
        user.active_company = None
        user.save()
        with pytest.raises(PermissionDenied):
            resolve_actor(self._request(user))

    def test_deactivated_member_is_denied(self, user_membership):
        user_membership.is_active = False
        user_membership.save()
        with pytest.raises(PermissionDenied):
            resolve_actor(self._request(user_membership.user))

    def test_require_role(self, user_actor, admin_actor):
        require_role(admin_actor, Role.ADMIN)
        with pytest.raises(PermissionDenied):
            require_role(user_actor, Role.MANAGER)


# =============================================================================
# Administration Commands
# =============================================================================

@pytest.mark.django_db
class TestCreateUserWithMembership:
    def test_creates_user_membership_and_events(self, admin_actor):
        result = create_user_with_membership(
            admin_actor, email=" New.Person@Test.com ", name="New Person", password="longpassword", role=Role.MANAGER,
        )
        assert result.success
        user = result.data["user"]
        membership = result.data["membership"]
        assert user.email == "new.person@test.com"
        assert user.active_company == admin_actor.company
        assert user.check_password("longpassword")
        assert membership.role == Role.MANAGER
        assert [event.event_type for event in result.events] == [
            EventTypes.USER_CREATED,
            EventTypes.MEMBERSHIP_CREATED,
        ]

    def test_duplicate_email(self, admin_actor, user_membership):
        result = create_user_with_membership(admin_actor, email="user@test.com", name="Dup", password="longpassword")
        assert not result.success
        assert "already exists" in result.error

    def test_requires_admin(self, manager_actor):
        with pytest.raises(PermissionDenied):
            create_user_with_membership(manager_actor, email="x@test.com", name="X", password="longpassword")


@pytest.mark.django_db
class TestUpdateMembershipRole:
    def test_change_role_emits_event(self, admin_actor, user_membership):
        result = update_membership_role(admin_actor, user_membership.id, Role.MANAGER)
        assert result.success
        user_membership.refresh_from_db()
        assert user_membership.role == Role.MANAGER
        assert result.event.data == {
            "membership_public_id": str(user_membership.public_id),
            "user_public_id": str(user_membership.user.public_id),
            "old_role": "USER",
            "new_role": "MANAGER",
        }

    def test_same_role_is_a_no_op(self, admin_actor, user_membership):
        result = update_membership_role(admin_actor, user_membership.id, Role.USER)
        assert result.success
        assert result.event is None
        assert not BusinessEvent.objects.filter(event_type=EventTypes.MEMBERSHIP_ROLE_CHANGED).exists()

    def test_last_admin_cannot_demote_self(self, admin_actor, admin_membership):
        result = update_membership_role(admin_actor, admin_membership.id, Role.MANAGER)
        assert not result.success
        admin_membership.refresh_from_db()
        assert admin_membership.role == Role.ADMIN

    def test_other_company_membership_is_not_found(self, admin_actor, second_company_membership):
        result = update_membership_role(admin_actor, second_company_membership.id, Role.VIEWER)
        assert result.error == "Membership not found."


@pytest.mark.django_db
class TestDeactivateMembership:
    def test_deactivate(self, admin_actor, user_membership):
        result = deactivate_membership(admin_actor, user_membership.id)
        assert result.success
        user_membership.refresh_from_db()
        assert user_membership.is_active is False
        assert result.event.event_type == EventTypes.MEMBERSHIP_DEACTIVATED

        again = deactivate_membership(admin_actor, user_membership.id)
        assert again.success
        assert again.event is None

    def test_cannot_deactivate_self(self, admin_actor, admin_membership):
        result = deactivate_membership(admin_actor, admin_membership.id)
        assert not result.success


# =============================================================================
# Endpoints
# =============================================================================

@pytest.mark.django_db
class TestAccountsApi:
    def test_login_returns_tokens(self, anon_client, user_membership):
        response = anon_client.post(
            reverse("accounts:login"),
            {"email": "user@test.com", "password": "testpass123"},
            format="json",
        )
        assert response.status_code == 200
        assert {"access", "refresh"} <= set(response.json())

    def test_login_with_bad_password(self, anon_client, user_membership):
        response = anon_client.post(
            reverse("accounts:login"),
            {"email": "user@test.com", "password": "wrong-password"},
            format="json",
        )
        assert response.status_code == 401

    def test_me(self, manager_client):
        body = manager_client.get(reverse("accounts:me")).json()
        assert body["role"] == "MANAGER"
        assert body["user"]["email"] == "manager@test.com"
        assert body["allowed_operations"] == [
            "create", "edit", "delete", "submit", "approve", "reject", "confirm",
        ]

    def test_user_admin_endpoints(self, admin_client, user_client, user_membership):
        assert user_client.get(reverse("accounts:user-list")).status_code == 403

        response = admin_client.post(
            reverse("accounts:user-list"),
            {"email": "clerk@test.com", "name": "Clerk", "password": "longpassword", "role": "VIEWER"},
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["role"] == "VIEWER"

        response = admin_client.patch(
            reverse("accounts:membership-role", kwargs={"pk": user_membership.id}),
            {"role": "MANAGER"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["role"] == "MANAGER"

        response = admin_client.delete(reverse("accounts:membership-detail", kwargs={"pk": user_membership.id}))
        assert response.status_code == 204
        assert CompanyMembership.objects.get(pk=user_membership.id).is_active is False
