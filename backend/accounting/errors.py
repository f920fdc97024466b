# accounting/errors.py
"""
Typed workflow errors.

These are expected outcomes of normal use (a user typed an unbalanced
entry, a viewer clicked approve, two managers raced on the same entry).
They are RETURNED by validators, policies and commands, never raised.

Each error carries:
- code: stable machine-readable ErrorCode
- message: human readable text for display
- context fields (field name, line index, states, versions) so the caller
  can point at the exact offending input.

Programming-contract violations (e.g. asking the state machine to approve
an entry with no state) raise ValueError instead.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    MISSING_FIELD = "MISSING_FIELD"
    INCOMPLETE_LINE = "INCOMPLETE_LINE"
    EMPTY_LINE_SET = "EMPTY_LINE_SET"
    UNBALANCED = "UNBALANCED"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class JournalError:
    """Base class for every workflow error."""

    code = None

    @property
    def message(self) -> str:
        return self.code.value

    def to_dict(self) -> Dict[str, Any]:
        payload = {"code": self.code.value, "detail": self.message}
        for key, value in asdict(self).items():
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, Enum):
                value = value.value
            payload[key] = value
        return payload

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class MissingField(JournalError):
    field: str

    code = ErrorCode.MISSING_FIELD

    @property
    def message(self) -> str:
        return f"The field '{self.field}' is required."


@dataclass(frozen=True)
class IncompleteLine(JournalError):
    line_index: int
    reason: str

    code = ErrorCode.INCOMPLETE_LINE

    @property
    def message(self) -> str:
        return f"Line {self.line_index + 1}: {self.reason}."


@dataclass(frozen=True)
class EmptyLineSet(JournalError):
    code = ErrorCode.EMPTY_LINE_SET

    @property
    def message(self) -> str:
        return "A journal entry needs at least one line."


@dataclass(frozen=True)
class Unbalanced(JournalError):
    difference: Decimal

    code = ErrorCode.UNBALANCED

    @property
    def message(self) -> str:
        return f"Debits and credits differ by {abs(self.difference)}."


@dataclass(frozen=True)
class IllegalTransition(JournalError):
    current_state: Optional[str]
    operation: str

    code = ErrorCode.ILLEGAL_TRANSITION

    @property
    def message(self) -> str:
        return f"Cannot {self.operation} an entry in {self.current_state} status."


@dataclass(frozen=True)
class Forbidden(JournalError):
    role: str
    operation: str
    required_role: str

    code = ErrorCode.FORBIDDEN

    @property
    def message(self) -> str:
        return f"Role {self.role} may not {self.operation} journal entries (requires {self.required_role})."


@dataclass(frozen=True)
class Conflict(JournalError):
    expected_version: Optional[int]
    actual_version: int

    code = ErrorCode.CONFLICT

    @property
    def message(self) -> str:
        return (
            f"The entry was modified by someone else (you have version "
            f"{self.expected_version}, current is {self.actual_version}). Reload and retry."
        )


@dataclass(frozen=True)
class NotFound(JournalError):
    entity: str
    identifier: Any

    code = ErrorCode.NOT_FOUND

    @property
    def message(self) -> str:
        return f"{self.entity} {self.identifier} not found."
