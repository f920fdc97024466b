# tests/test_lifecycle.py
"""
Tests for the lifecycle state machine and the role authorization gate.
"""

from datetime import date

import pytest

from accounts.roles import Role, satisfies
from accounting.errors import ErrorCode, IllegalTransition, MissingField
from accounting.lifecycle import (
    EntryStatus,
    Operation,
    TRANSITIONS,
    available_operations,
    is_mutable,
    next_state,
)
from accounting.policies import allowed_operations, authorize, required_role


BALANCED_ENTRY = {
    "date": date(2024, 1, 1),
    "memo": "Sale",
    "lines": [
        {"account_id": 1, "debit": "50"},
        {"account_id": 2, "credit": "50"},
    ],
}

TRANSITION_OPERATIONS = [op for op in Operation if op != Operation.CREATE]


# =============================================================================
# State Machine
# =============================================================================

class TestTransitionTable:
    def test_happy_path(self):
        transition, error = next_state(None, Operation.CREATE)
        assert error is None and transition.to_state == EntryStatus.DRAFT

        transition, error = next_state(EntryStatus.DRAFT, Operation.SUBMIT, entry=BALANCED_ENTRY)
        assert error is None and transition.to_state == EntryStatus.PENDING

        transition, _ = next_state(EntryStatus.PENDING, Operation.APPROVE)
        assert transition.to_state == EntryStatus.APPROVED

        transition, _ = next_state(EntryStatus.APPROVED, Operation.CONFIRM)
        assert transition.to_state == EntryStatus.CONFIRMED

    def test_reject_returns_to_draft_with_reason(self):
        transition, error = next_state(EntryStatus.PENDING, Operation.REJECT, reason="  wrong account ")
        assert error is None
        assert transition.to_state == EntryStatus.DRAFT
        assert transition.rejection_reason == "wrong account"
        assert transition.side_record_prefix == "rejected"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_a_reason(self, reason):
        transition, error = next_state(EntryStatus.PENDING, Operation.REJECT, reason=reason)
        assert transition is None
        assert error == MissingField("rejection_reason")

    def test_delete_removes_the_entry(self):
        transition, error = next_state(EntryStatus.DRAFT, Operation.DELETE)
        assert error is None
        assert transition.removed
        assert transition.to_state is None

    def test_edit_keeps_draft(self):
        transition, _ = next_state(EntryStatus.DRAFT, Operation.EDIT)
        assert transition.to_state == EntryStatus.DRAFT
        assert transition.side_record_prefix is None

    def test_create_on_an_existing_entry_is_illegal(self):
        _, error = next_state(EntryStatus.DRAFT, Operation.CREATE)
        assert isinstance(error, IllegalTransition)

    @pytest.mark.parametrize("status", list(EntryStatus))
    @pytest.mark.parametrize("operation", TRANSITION_OPERATIONS)
    def test_table_is_total(self, status, operation):
        """Every (status, operation) pair yields a transition or IllegalTransition."""
        transition, error = next_state(
            status, operation, entry=BALANCED_ENTRY, reason="because",
        )
        if (status, operation) in TRANSITIONS:
            assert error is None
            assert transition.from_state == status
        else:
            assert transition is None
            assert error == IllegalTransition(current_state=status.value, operation=operation.value)

    @pytest.mark.parametrize("operation", TRANSITION_OPERATIONS)
    def test_confirmed_is_terminal(self, operation):
        _, error = next_state(EntryStatus.CONFIRMED, operation, entry=BALANCED_ENTRY, reason="x")
        assert error.code == ErrorCode.ILLEGAL_TRANSITION

    def test_submit_validates_content(self):
        unbalanced = dict(BALANCED_ENTRY, lines=[{"account_id": 1, "debit": "50"}, {"account_id": 2, "credit": "40"}])
        transition, error = next_state(EntryStatus.DRAFT, Operation.SUBMIT, entry=unbalanced)
        assert transition is None
        assert error.code == ErrorCode.UNBALANCED

    def test_missing_current_state_is_a_caller_bug(self):
        with pytest.raises(ValueError):
            next_state(None, Operation.APPROVE)

    def test_unknown_operation_is_a_caller_bug(self):
        with pytest.raises(ValueError):
            next_state(EntryStatus.DRAFT, "post")

    def test_string_inputs_are_accepted(self):
        transition, _ = next_state("pending", "APPROVE")
        assert transition.to_state == EntryStatus.APPROVED


class TestAvailableOperations:
    def test_per_status(self):
        assert available_operations(EntryStatus.DRAFT) == ["edit", "delete", "submit"]
        assert available_operations(EntryStatus.PENDING) == ["approve", "reject"]
        assert available_operations(EntryStatus.APPROVED) == ["confirm"]
        assert available_operations(EntryStatus.CONFIRMED) == []

    def test_only_draft_is_mutable(self):
        assert is_mutable(EntryStatus.DRAFT)
        for status in (EntryStatus.PENDING, EntryStatus.APPROVED, EntryStatus.CONFIRMED):
            assert not is_mutable(status)


# =============================================================================
# Authorization Gate
# =============================================================================

class TestRoles:
    def test_order(self):
        assert satisfies(Role.ADMIN, Role.MANAGER)
        assert satisfies(Role.MANAGER, Role.USER)
        assert not satisfies(Role.USER, Role.MANAGER)
        assert not satisfies(Role.VIEWER, Role.USER)


class TestAuthorize:
    @pytest.mark.parametrize("operation", list(Operation))
    def test_viewer_can_do_nothing(self, operation):
        allowed, error = authorize(Role.VIEWER, operation)
        assert not allowed
        assert error.code == ErrorCode.FORBIDDEN
        assert error.required_role == required_role(operation).value

    @pytest.mark.parametrize("operation", ["create", "edit", "delete", "submit"])
    def test_user_drafts_and_submits(self, operation):
        assert authorize(Role.USER, operation) == (True, None)

    @pytest.mark.parametrize("operation", ["approve", "reject", "confirm"])
    def test_user_cannot_review(self, operation):
        allowed, error = authorize(Role.USER, operation)
        assert not allowed
        assert error.role == "USER"
        assert error.required_role == "MANAGER"

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.ADMIN])
    @pytest.mark.parametrize("operation", list(Operation))
    def test_managers_and_admins_can_do_everything(self, role, operation):
        assert authorize(role, operation) == (True, None)

    def test_allowed_operations(self):
        assert allowed_operations(Role.VIEWER) == []
        assert allowed_operations(Role.USER) == ["create", "edit", "delete", "submit"]
        assert allowed_operations(Role.ADMIN) == [op.value for op in Operation]

    def test_unknown_role_is_a_caller_bug(self):
        with pytest.raises(ValueError):
            authorize("OWNER", Operation.CREATE)
