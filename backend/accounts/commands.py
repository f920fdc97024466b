# accounts/commands.py
"""
Command layer for user and membership administration.

ALL membership mutations MUST go through these commands:
- User creation (with membership in the actor's company)
- Role changes
- Deactivation

Every command requires the ADMIN role (accounts.authz.require_role) and
emits an audit event.
"""

import logging
import uuid

from django.contrib.auth import get_user_model
from django.db import transaction

from accounts.authz import ActorContext, require_role
from accounts.models import CompanyMembership
from accounts.roles import Role
from events.emitter import emit_event
from events.types import (
    EventTypes,
    MembershipCreatedData,
    MembershipDeactivatedData,
    MembershipRoleChangedData,
    UserCreatedData,
)

User = get_user_model()
logger = logging.getLogger(__name__)


class CommandResult:
    def __init__(self, success: bool, data=None, error: str = None, event=None, events=None):
        self.success = success
        self.data = data
        self.error = error
        self.event = event

        if events is None:
            self.events = ([] if event is None else [event])
        else:
            self.events = list(events)

    @classmethod
    def ok(cls, data=None, event=None, events=None):
        return cls(success=True, data=data, event=event, events=events)

    @classmethod
    def fail(cls, error: str):
        return cls(success=False, error=error)


@transaction.atomic
def create_user_with_membership(
    actor: ActorContext,
    email: str,
    name: str,
    password: str,
    role: str = Role.USER,
) -> CommandResult:
    """
    Create a new user and add them to the actor's company.

    The new user's active company is set to the actor's company so they
    can work immediately.

    Returns:
        CommandResult with {"user", "membership"}
    """
    require_role(actor, Role.ADMIN)

    email = (email or "").strip().lower()
    if not email:
        return CommandResult.fail("Email is required.")
    if User.objects.filter(email=email).exists():
        return CommandResult.fail(f"User with email '{email}' already exists.")

    if role not in Role.values:
        return CommandResult.fail(f"Invalid role. Must be one of: {Role.values}")

    user = User.objects.create_user(
        email=email,
        password=password,
        name=name,
        active_company=actor.company,
    )
    membership = CompanyMembership.objects.create(
        company=actor.company,
        user=user,
        role=role,
    )

    event_user = emit_event(
        actor=actor,
        event_type=EventTypes.USER_CREATED,
        aggregate_type="User",
        aggregate_id=str(user.public_id),
        idempotency_key=f"user.created:{user.public_id}",
        data=UserCreatedData(
            user_public_id=str(user.public_id),
            email=email,
            name=name,
            created_by_user_public_id=str(actor.user.public_id),
        ),
        metadata={"source": "admin"},
    )
    event_membership = emit_event(
        actor=actor,
        event_type=EventTypes.MEMBERSHIP_CREATED,
        aggregate_type="CompanyMembership",
        aggregate_id=str(membership.public_id),
        idempotency_key=f"membership.created:{membership.public_id}",
        data=MembershipCreatedData(
            membership_public_id=str(membership.public_id),
            company_public_id=str(actor.company.public_id),
            user_public_id=str(user.public_id),
            role=role,
        ),
    )

    logger.info(
        "Created user %s with role %s", email, role,
        extra={"company_id": actor.company.id, "actor_id": actor.user.id},
    )
    return CommandResult.ok(
        {"user": user, "membership": membership},
        event=event_membership,
        events=[event_user, event_membership],
    )


@transaction.atomic
def update_membership_role(
    actor: ActorContext,
    membership_id: int,
    new_role: str,
) -> CommandResult:
    """
    Change a membership's role. Takes effect on the member's next request.
    """
    require_role(actor, Role.ADMIN)

    try:
        membership = CompanyMembership.objects.select_for_update().select_related("user").get(
            pk=membership_id, company=actor.company
        )
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    if new_role not in Role.values:
        return CommandResult.fail(f"Invalid role. Must be one of: {Role.values}")

    # The last admin cannot demote themselves
    if (
        membership.user_id == actor.user.id
        and new_role != Role.ADMIN
        and not CompanyMembership.objects.filter(
            company=actor.company, role=Role.ADMIN, is_active=True
        ).exclude(pk=membership.pk).exists()
    ):
        return CommandResult.fail("Cannot demote the only admin of the company.")

    old_role = membership.role
    if old_role == new_role:
        return CommandResult.ok(membership)

    membership.role = new_role
    membership.save(update_fields=["role"])

    event = emit_event(
        actor=actor,
        event_type=EventTypes.MEMBERSHIP_ROLE_CHANGED,
        aggregate_type="CompanyMembership",
        aggregate_id=str(membership.public_id),
        idempotency_key=f"membership.role_changed:{membership.public_id}:{uuid.uuid4()}",
        data=MembershipRoleChangedData(
            membership_public_id=str(membership.public_id),
            user_public_id=str(membership.user.public_id),
            old_role=old_role,
            new_role=new_role,
        ),
    )

    logger.info(
        "Membership %s role changed %s -> %s", membership.public_id, old_role, new_role,
        extra={"company_id": actor.company.id, "actor_id": actor.user.id},
    )
    return CommandResult.ok(membership, event=event)


@transaction.atomic
def deactivate_membership(
    actor: ActorContext,
    membership_id: int,
) -> CommandResult:
    """
    Deactivate a membership (soft delete). A deactivated member resolves
    to no actor at all on the next request.
    """
    require_role(actor, Role.ADMIN)

    try:
        membership = CompanyMembership.objects.select_for_update().select_related("user").get(
            pk=membership_id, company=actor.company
        )
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    if membership.user_id == actor.user.id:
        return CommandResult.fail("Cannot deactivate your own membership.")

    if not membership.is_active:
        return CommandResult.ok({"deactivated": True})

    membership.is_active = False
    membership.save(update_fields=["is_active"])

    event = emit_event(
        actor=actor,
        event_type=EventTypes.MEMBERSHIP_DEACTIVATED,
        aggregate_type="CompanyMembership",
        aggregate_id=str(membership.public_id),
        idempotency_key=f"membership.deactivated:{membership.public_id}",
        data=MembershipDeactivatedData(
            membership_public_id=str(membership.public_id),
            user_public_id=str(membership.user.public_id),
            user_email=membership.user.email,
            company_public_id=str(actor.company.public_id),
        ),
    )

    logger.info(
        "Membership %s deactivated", membership.public_id,
        extra={"company_id": actor.company.id, "actor_id": actor.user.id},
    )
    return CommandResult.ok({"deactivated": True}, event=event)
