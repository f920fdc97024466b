# tests/test_workflow.py
"""
Library-level workflow scenarios for accounting.workflow.evaluate.

evaluate() never touches the database, so nothing here needs django_db.
"""

from decimal import Decimal

import pytest

from accounting.errors import (
    ErrorCode,
    Forbidden,
    IllegalTransition,
    MissingField,
    Unbalanced,
)
from accounting.lifecycle import EntryStatus
from accounting.workflow import WorkflowOutcome, WorkflowRequest, evaluate


def _request(**overrides) -> dict:
    payload = {
        "header": {"date": "2024-03-01", "description": "Office rent"},
        "lines": [
            {"account_id": 1, "debit": 1000},
            {"account_id": 2, "credit": 1000},
        ],
        "current_state": EntryStatus.DRAFT,
        "version": 3,
        "acting_role": "USER",
        "operation": "submit",
    }
    payload.update(overrides)
    return payload


class TestScenarios:
    def test_balanced_draft_submits_to_pending(self):
        outcome = evaluate(_request())
        assert isinstance(outcome, WorkflowOutcome)
        assert outcome.new_state == EntryStatus.PENDING
        assert [line.line_no for line in outcome.normalized_lines] == [1, 2]
        assert outcome.side_record_fields == ("submitted_by", "submitted_at")

    def test_unbalanced_draft_cannot_submit(self):
        outcome = evaluate(_request(lines=[
            {"account_id": 1, "debit": 1000},
            {"account_id": 2, "credit": 900},
        ]))
        assert isinstance(outcome, Unbalanced)
        assert outcome.difference == Decimal("100")

    def test_reject_needs_a_reason(self):
        pending = dict(current_state=EntryStatus.PENDING, acting_role="MANAGER", operation="reject")

        assert evaluate(_request(reason="", **pending)) == MissingField("rejection_reason")

        outcome = evaluate(_request(reason="amount error", **pending))
        assert outcome.new_state == EntryStatus.DRAFT
        assert outcome.transition.rejection_reason == "amount error"
        assert outcome.side_record_fields == ("rejected_by", "rejected_at")

    @pytest.mark.parametrize("role", ["USER", "MANAGER", "ADMIN"])
    def test_confirmed_entry_cannot_be_edited(self, role):
        outcome = evaluate(_request(current_state=EntryStatus.CONFIRMED, acting_role=role, operation="edit"))
        assert outcome == IllegalTransition(current_state="CONFIRMED", operation="edit")

    def test_user_cannot_approve(self):
        outcome = evaluate(_request(current_state=EntryStatus.PENDING, operation="approve"))
        assert isinstance(outcome, Forbidden)
        assert outcome.required_role == "MANAGER"

    def test_forbidden_is_reported_before_illegal_transition(self):
        # USER approving a CONFIRMED entry: both checks would fail
        outcome = evaluate(_request(current_state=EntryStatus.CONFIRMED, operation="approve"))
        assert outcome.code == ErrorCode.FORBIDDEN

    def test_manager_approving_an_approved_entry_is_illegal(self):
        outcome = evaluate(_request(
            current_state=EntryStatus.APPROVED, acting_role="MANAGER", operation="approve",
        ))
        assert outcome.code == ErrorCode.ILLEGAL_TRANSITION


class TestAuthorizationIndependence:
    @pytest.mark.parametrize("lines", [
        [],
        [{"account_id": None, "debit": "abc"}],
        [{"account_id": 1, "debit": 5}],
    ])
    def test_denial_does_not_depend_on_content(self, lines):
        outcome = evaluate(_request(acting_role="VIEWER", lines=lines, header={}))
        assert outcome.code == ErrorCode.FORBIDDEN


class TestDraftOperations:
    def test_create_accepts_an_unbalanced_draft(self):
        outcome = evaluate(_request(
            current_state=None,
            operation="create",
            lines=[{"account_id": 1, "debit": 10}],
        ))
        assert outcome.new_state == EntryStatus.DRAFT
        assert outcome.side_record_fields == ()

    def test_create_requires_a_header(self):
        outcome = evaluate(_request(current_state=None, operation="create", header={"date": "2024-03-01"}))
        assert outcome == MissingField("memo")

    def test_memo_is_trimmed(self):
        outcome = evaluate(_request(
            current_state=None, operation="create", header={"date": "2024-03-01", "memo": "  Rent "},
        ))
        assert outcome.memo == "Rent"

    def test_delete_marks_removal(self):
        outcome = evaluate(_request(operation="delete"))
        assert outcome.removed
        assert outcome.new_state is None

    def test_request_object_is_accepted(self):
        outcome = evaluate(WorkflowRequest(
            acting_role="ADMIN",
            operation="confirm",
            current_state="APPROVED",
        ))
        assert outcome.new_state == EntryStatus.CONFIRMED

    def test_missing_request_is_a_caller_bug(self):
        with pytest.raises(ValueError):
            evaluate(None)
