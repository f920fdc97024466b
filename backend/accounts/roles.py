# accounts/roles.py
"""
Role hierarchy for journal workflow authorization.

Roles are ordered from least to most privileged:

    VIEWER < USER < MANAGER < ADMIN

Every role check in the codebase goes through satisfies(). ADMIN sits at
the top of the order, so it passes every check without special-casing.
"""

from django.db import models


class Role(models.TextChoices):
    VIEWER = "VIEWER", "Viewer"
    USER = "USER", "User"
    MANAGER = "MANAGER", "Manager"
    ADMIN = "ADMIN", "Admin"


ROLE_ORDER = (Role.VIEWER, Role.USER, Role.MANAGER, Role.ADMIN)
ROLE_RANK = {role: rank for rank, role in enumerate(ROLE_ORDER)}


def coerce_role(value) -> Role:
    """Return the Role for a Role or its string value. Raises ValueError otherwise."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}")


def satisfies(acting_role, required_role) -> bool:
    """True if acting_role is at least as privileged as required_role."""
    return ROLE_RANK[coerce_role(acting_role)] >= ROLE_RANK[coerce_role(required_role)]
