# accounting/policies.py
"""
Business policy functions for journal workflow operations.

Policies answer: "Is this actor allowed to do this?"
They do NOT perform the action - that's the command's job.

Authorization Gate vs State Machine
===================================
The gate here maps (role, operation) -> permit/deny and NEVER looks at
entry content or status. Legality of the operation from the entry's
current status is accounting.lifecycle's job.

Commands run the gate FIRST, then the state machine. An unauthorized
caller therefore gets Forbidden without learning anything about the
entry's state.

Usage:
    from accounting.policies import authorize

    allowed, error = authorize(actor.role, Operation.APPROVE)
    if not allowed:
        return CommandResult.fail(error)

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, error) tuples, error is a JournalError or None
3. Policies check ONE thing conceptually
4. Commands compose policies as needed
"""

from typing import Optional, Tuple

from accounts.roles import Role, coerce_role, satisfies
from accounting.errors import Forbidden, IncompleteLine, JournalError
from accounting.lifecycle import Operation, coerce_operation


REQUIRED_ROLE = {
    Operation.CREATE: Role.USER,
    Operation.EDIT: Role.USER,
    Operation.DELETE: Role.USER,
    Operation.SUBMIT: Role.USER,
    Operation.APPROVE: Role.MANAGER,
    Operation.REJECT: Role.MANAGER,
    Operation.CONFIRM: Role.MANAGER,
}


# =============================================================================
# Authorization Gate
# =============================================================================

def required_role(operation) -> Role:
    return REQUIRED_ROLE[coerce_operation(operation)]


def authorize(role, operation) -> Tuple[bool, Optional[JournalError]]:
    """
    Check if `role` may perform `operation`.

    Returns:
        (True, None) if allowed
        (False, Forbidden) if not allowed
    """
    operation = coerce_operation(operation)
    role = coerce_role(role)
    needed = REQUIRED_ROLE[operation]
    if satisfies(role, needed):
        return True, None
    return False, Forbidden(role=role.value, operation=operation.value, required_role=needed.value)


def allowed_operations(role) -> list:
    """Operations this role may perform at all, regardless of entry state."""
    return [op.value for op in REQUIRED_ROLE if satisfies(role, REQUIRED_ROLE[op])]


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(account, line_index: int) -> Tuple[bool, Optional[JournalError]]:
    """
    Check if a journal line may reference this account.

    Rules:
    - The account must exist in the actor's company
    - The account must be active
    """
    if account is None:
        return False, IncompleteLine(line_index=line_index, reason="unknown account")
    if not account.is_active:
        return False, IncompleteLine(line_index=line_index, reason=f"account {account.code} is inactive")
    return True, None
