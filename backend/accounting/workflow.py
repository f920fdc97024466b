# accounting/workflow.py
"""
Single entry point for "is this operation legal and what does it produce?"

evaluate() composes the three pure pieces in the required order:

1. Authorization gate (accounting.policies.authorize)
2. Header validation for create/edit (accounting.validation.validate_for)
3. State machine (accounting.lifecycle.next_state), which runs the full
   validator for submit

It never touches the database. The version carried in the request is
passed through untouched; comparing it with the stored version is the
store's job (see accounting.commands).
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from accounting.balance import NormalizedLine, normalize_lines
from accounting.errors import JournalError
from accounting.lifecycle import EntryStatus, Operation, Transition, coerce_operation, next_state
from accounting.policies import authorize
from accounting.validation import validate_for


@dataclass(frozen=True)
class WorkflowRequest:
    acting_role: Any
    operation: Any
    date: Any = None
    memo: str = ""
    lines: List[Any] = field(default_factory=list)
    current_state: Optional[Any] = None
    version: Optional[int] = None
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "WorkflowRequest":
        header = payload.get("header") or {}
        return cls(
            acting_role=payload.get("acting_role"),
            operation=payload.get("operation"),
            date=header.get("date", payload.get("date")),
            memo=header.get("memo", header.get("description", payload.get("memo", ""))),
            lines=list(payload.get("lines") or []),
            current_state=payload.get("current_state"),
            version=payload.get("version"),
            reason=payload.get("reason"),
        )


@dataclass(frozen=True)
class WorkflowOutcome:
    transition: Transition
    normalized_lines: List[NormalizedLine]
    memo: str = ""

    @property
    def new_state(self) -> Optional[EntryStatus]:
        return self.transition.to_state

    @property
    def removed(self) -> bool:
        return self.transition.removed

    @property
    def side_record_fields(self) -> tuple:
        """("<prefix>_by", "<prefix>_at") the caller stamps, or () for create/edit/delete."""
        prefix = self.transition.side_record_prefix
        if prefix is None:
            return ()
        return (f"{prefix}_by", f"{prefix}_at")


def evaluate(request: Union[WorkflowRequest, dict]) -> Union[WorkflowOutcome, JournalError]:
    """
    Decide whether `request` is legal.

    Returns a WorkflowOutcome on success, otherwise the first JournalError
    (Forbidden before IllegalTransition before content errors).
    """
    if request is None:
        raise ValueError("evaluate() requires a request.")
    if isinstance(request, dict):
        request = WorkflowRequest.from_dict(request)

    operation = coerce_operation(request.operation)

    allowed, error = authorize(request.acting_role, operation)
    if not allowed:
        return error

    normalized = normalize_lines(request.lines)
    memo = (request.memo or "").strip()

    if operation in (Operation.CREATE, Operation.EDIT):
        # legality first: a CONFIRMED entry reports IllegalTransition, not a header problem
        transition, error = next_state(request.current_state, operation)
        if error:
            return error
        error = validate_for(operation, request.date, memo, normalized)
        if error:
            return error
        return WorkflowOutcome(transition=transition, normalized_lines=normalized, memo=memo)

    transition, error = next_state(
        request.current_state,
        operation,
        entry={"date": request.date, "memo": memo, "lines": normalized},
        reason=request.reason,
    )
    if error:
        return error
    return WorkflowOutcome(transition=transition, normalized_lines=normalized, memo=memo)
