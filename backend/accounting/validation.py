# accounting/validation.py
"""
Entry validator.

Decides whether a candidate entry (header + lines) is well-formed enough
for the operation being attempted. Every function returns the FIRST
blocking error or None; callers surface one error at a time and
re-validate after each correction.

    validate_entry = validate_header ?? validate_lines ?? validate_balance

No database access, no side effects. The same rules run in the command
layer and anywhere a client wants immediate feedback.
"""

from typing import Iterable, Optional

from accounting.balance import LineInput, ZERO, compute_totals, is_balanced, Totals
from accounting.errors import (
    EmptyLineSet,
    IncompleteLine,
    JournalError,
    MissingField,
    Unbalanced,
)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_header(date, memo) -> Optional[JournalError]:
    if _is_blank(date):
        return MissingField("date")
    if _is_blank(memo):
        return MissingField("memo")
    return None


def check_line(line) -> Optional[str]:
    """Return why a single line is incomplete, or None if it is fine."""
    line = LineInput.from_raw(line)
    if _is_blank(line.account_id):
        return "account is required"

    debit = line.debit_amount
    credit = line.credit_amount
    if debit < ZERO or credit < ZERO:
        return "amounts cannot be negative"
    if debit > ZERO and credit > ZERO:
        return "enter either a debit or a credit, not both"
    if debit == ZERO and credit == ZERO:
        return "a positive debit or credit amount is required"
    return None


def validate_lines(lines: Iterable) -> Optional[JournalError]:
    lines = list(lines or [])
    if not lines:
        return EmptyLineSet()

    for index, line in enumerate(lines):
        reason = check_line(line)
        if reason:
            return IncompleteLine(line_index=index, reason=reason)
    return None


def validate_balance(totals: Totals) -> Optional[JournalError]:
    if not is_balanced(totals):
        return Unbalanced(difference=totals.difference)
    return None


def validate_entry(date, memo, lines: Iterable) -> Optional[JournalError]:
    lines = list(lines or [])
    return (
        validate_header(date, memo)
        or validate_lines(lines)
        or validate_balance(compute_totals(lines))
    )


def validate_for(operation, date, memo, lines: Iterable) -> Optional[JournalError]:
    """
    Operation-aware entry point.

    - create/edit: header only. Drafts may be saved incomplete or
      unbalanced so users can work incrementally.
    - submit: the full header + lines + balance check.
    - anything else: content is frozen once out of DRAFT, nothing to check.
    """
    from accounting.lifecycle import Operation

    operation = Operation(operation)
    if operation in (Operation.CREATE, Operation.EDIT):
        return validate_header(date, memo)
    if operation == Operation.SUBMIT:
        return validate_entry(date, memo, lines)
    return None
