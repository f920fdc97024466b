# accounting/lifecycle.py
"""
Journal entry lifecycle state machine.

    DRAFT --submit--> PENDING --approve--> APPROVED --confirm--> CONFIRMED
      ^                  |
      +------reject------+

- DRAFT is the only mutable (edit) and deletable state.
- CONFIRMED is terminal.
- Rejection is not a status: it sends the entry back to DRAFT and the
  caller records who rejected it and why.

The machine is a pure function of (current_state, operation, payload).
It holds no state; callers must pass the state they just loaded from the
store, never a cached one.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from django.db import models

from accounting.errors import IllegalTransition, JournalError, MissingField
from accounting.validation import validate_for


class EntryStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    PENDING = "PENDING", "Pending approval"
    APPROVED = "APPROVED", "Approved"
    CONFIRMED = "CONFIRMED", "Confirmed"


class Operation(models.TextChoices):
    CREATE = "create", "Create"
    EDIT = "edit", "Edit"
    DELETE = "delete", "Delete"
    SUBMIT = "submit", "Submit for approval"
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"
    CONFIRM = "confirm", "Confirm"


# Marker target for operations that remove the entry.
REMOVED = "REMOVED"

TRANSITIONS = {
    (EntryStatus.DRAFT, Operation.EDIT): EntryStatus.DRAFT,
    (EntryStatus.DRAFT, Operation.DELETE): REMOVED,
    (EntryStatus.DRAFT, Operation.SUBMIT): EntryStatus.PENDING,
    (EntryStatus.PENDING, Operation.APPROVE): EntryStatus.APPROVED,
    (EntryStatus.PENDING, Operation.REJECT): EntryStatus.DRAFT,
    (EntryStatus.APPROVED, Operation.CONFIRM): EntryStatus.CONFIRMED,
}

# Operations that stamp "<prefix>_by" / "<prefix>_at" on the entry.
SIDE_RECORD_PREFIX = {
    Operation.SUBMIT: "submitted",
    Operation.APPROVE: "approved",
    Operation.REJECT: "rejected",
    Operation.CONFIRM: "confirmed",
}


@dataclass(frozen=True)
class Transition:
    operation: Operation
    from_state: Optional[EntryStatus]
    to_state: Optional[EntryStatus]
    rejection_reason: str = ""

    @property
    def removed(self) -> bool:
        return self.to_state is None

    @property
    def side_record_prefix(self) -> Optional[str]:
        return SIDE_RECORD_PREFIX.get(self.operation)


def coerce_operation(value) -> Operation:
    try:
        return Operation(str(value).lower())
    except ValueError:
        raise ValueError(f"Unknown journal operation: {value!r}")


def coerce_status(value) -> EntryStatus:
    try:
        return EntryStatus(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown journal entry status: {value!r}")


def _entry_content(entry):
    if isinstance(entry, dict):
        return entry.get("date"), entry.get("memo"), entry.get("lines") or []
    return getattr(entry, "date", None), getattr(entry, "memo", None), getattr(entry, "lines", None) or []


def next_state(
    current,
    operation,
    *,
    entry=None,
    reason: Optional[str] = None,
) -> Tuple[Optional[Transition], Optional[JournalError]]:
    """
    Compute the transition for `operation` from `current`.

    Returns:
        (Transition, None) if the operation is legal
        (None, error) if not

    Raises:
        ValueError: unknown operation/status, a missing current state, or
            submit called without the entry content. These are caller bugs.
    """
    operation = coerce_operation(operation)

    if operation == Operation.CREATE:
        if current is not None:
            return None, IllegalTransition(current_state=coerce_status(current).value, operation=operation.value)
        return Transition(operation, None, EntryStatus.DRAFT), None

    if current is None:
        raise ValueError(f"Cannot {operation.value} an entry without a current status.")
    current = coerce_status(current)

    target = TRANSITIONS.get((current, operation))
    if target is None:
        return None, IllegalTransition(current_state=current.value, operation=operation.value)

    if operation == Operation.REJECT:
        reason = (reason or "").strip()
        if not reason:
            return None, MissingField("rejection_reason")
        return Transition(operation, current, target, rejection_reason=reason), None

    if operation == Operation.SUBMIT:
        if entry is None:
            raise ValueError("submit requires the entry content to validate.")
        date, memo, lines = _entry_content(entry)
        error = validate_for(operation, date, memo, lines)
        if error:
            return None, error

    to_state = None if target == REMOVED else target
    return Transition(operation, current, to_state), None


def available_operations(current) -> list:
    """Operations that are legal from `current`, in table order."""
    current = coerce_status(current)
    return [op.value for (state, op) in TRANSITIONS if state == current]


def is_mutable(current) -> bool:
    return coerce_status(current) == EntryStatus.DRAFT
