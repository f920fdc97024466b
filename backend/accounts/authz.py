# accounts/authz.py
"""
Authorization utilities.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require_role: Check the actor's role and raise if insufficient

Journal workflow commands do NOT use require_role: they hand actor.role
to accounting.policies.authorize() and return a typed Forbidden result.
require_role is for administration endpoints where a 403 is all the
caller needs.
"""

from dataclasses import dataclass

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated

from accounts.models import CompanyMembership, Company
from accounts.roles import Role, coerce_role


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor (user + company).

    This is passed to commands and policies to provide context
    about who is performing an action and in which company.

    Attributes:
        user: The authenticated user
        company: The active company (tenant)
        membership: The user's membership in the company
    """
    user: object  # User model
    company: Company
    membership: CompanyMembership

    @property
    def role(self) -> Role:
        """Effective role. A deactivated membership is treated as VIEWER."""
        if not self.membership.is_active:
            return Role.VIEWER
        return coerce_role(self.membership.role)

    def has_role(self, required_role) -> bool:
        return self.membership.has_role(required_role)

    @property
    def is_authenticated(self) -> bool:
        """Mirror Django's user.is_authenticated for compatibility."""
        return bool(getattr(self.user, "is_authenticated", False))

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Membership (and so the role) is loaded FRESH from the database on
    every request, so role changes take effect immediately.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If user has no active company or membership
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    company = getattr(user, "active_company", None)

    if not company:
        raise PermissionDenied("No active company selected. Please select a company first.")

    try:
        membership = CompanyMembership.objects.select_related("company").get(
            user=user,
            company=company,
            is_active=True,
        )
    except CompanyMembership.DoesNotExist:
        raise PermissionDenied("You are not an active member of the selected company.")

    return ActorContext(user=user, company=company, membership=membership)


def require_role(actor: ActorContext, required_role) -> None:
    """
    Require that the actor's role satisfies `required_role`.

    Raises:
        PermissionDenied: If the role is insufficient
    """
    if not actor.has_role(required_role):
        raise PermissionDenied(f"Permission denied: requires {coerce_role(required_role).value} role.")
