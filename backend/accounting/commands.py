# accounting/commands.py
"""
Command layer for journal entry workflow.

ALL journal entry mutations MUST go through these commands. Each command
runs, in this order:

1. Authorization gate (accounting.policies.authorize) on actor.role
2. Load the entry with select_for_update() inside the transaction
   (NotFound if it is not in the actor's company)
3. Optimistic concurrency: stored version == expected_version (Conflict)
4. Lifecycle state machine + validator (accounting.workflow.evaluate)
5. Account checks: every referenced account exists in the company and is
   active
6. Write: status, side records, lines, version + 1
7. Audit event (events.emitter.emit_event)

Expected failures are RETURNED as CommandResult.fail(JournalError) and
logged at WARNING. Nothing is written when a command fails.

Usage:
    result = approve_journal_entry(actor, entry_id, expected_version=3)
    if not result.success:
        return error_response(result.error)
    entry = result.data
"""

import logging

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.balance import compute_totals
from accounting.errors import Conflict, IncompleteLine, JournalError, MissingField, NotFound
from accounting.lifecycle import Operation
from accounting.models import Account, JournalEntry, JournalLine
from accounting.policies import authorize, can_post_to_account
from accounting.workflow import WorkflowRequest, evaluate
from events.emitter import emit_event
from events.types import (
    EventTypes,
    JournalEntryApprovedData,
    JournalEntryConfirmedData,
    JournalEntryCreatedData,
    JournalEntryDeletedData,
    JournalEntryRejectedData,
    JournalEntrySubmittedData,
    JournalEntryUpdatedData,
)

logger = logging.getLogger(__name__)

AGGREGATE_TYPE = "JournalEntry"


class CommandResult:
    """
    Outcome of a command.

    On success `data` holds the affected entry (or a small dict for
    delete). On failure `error` holds a JournalError.
    """

    def __init__(self, success: bool, data=None, error: JournalError = None, event=None):
        self.success = success
        self.data = data
        self.error = error
        self.event = event

    @classmethod
    def ok(cls, data=None, event=None):
        return cls(success=True, data=data, event=event)

    @classmethod
    def fail(cls, error: JournalError):
        return cls(success=False, error=error)

    @property
    def error_code(self):
        return self.error.code if self.error is not None else None


# =============================================================================
# Helpers
# =============================================================================

def _fail(actor, operation, error: JournalError, entry_id=None) -> CommandResult:
    logger.warning(
        "Journal %s rejected: %s", operation.value, error.message,
        extra={
            "operation": operation.value,
            "error_code": error.code.value,
            "entry_id": entry_id,
            "company_id": actor.company.id,
            "actor_id": actor.user.id,
            "role": actor.role.value,
        },
    )
    return CommandResult.fail(error)


def _accepted(actor, operation, entry: JournalEntry, from_state=None) -> None:
    logger.info(
        "Journal %s accepted for entry %s", operation.value, entry.id,
        extra={
            "operation": operation.value,
            "entry_id": entry.id,
            "from_state": from_state,
            "to_state": entry.status,
            "version": entry.version,
            "company_id": actor.company.id,
            "actor_id": actor.user.id,
        },
    )


def _as_date(value):
    if isinstance(value, str):
        try:
            return parse_date(value.strip())
        except ValueError:
            # well formed but impossible, e.g. 2024-02-30
            return None
    return value


def _load_for_update(actor, entry_id):
    """Lock the entry row for the rest of the transaction."""
    try:
        return JournalEntry.objects.select_for_update().get(pk=entry_id, company=actor.company), None
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        return None, NotFound(entity="JournalEntry", identifier=str(entry_id))


def _check_version(entry: JournalEntry, expected_version):
    if expected_version is None:
        return MissingField("version")
    try:
        expected = int(expected_version)
    except (TypeError, ValueError):
        return MissingField("version")
    if expected != entry.version:
        return Conflict(expected_version=expected, actual_version=entry.version)
    return None


def _stored_lines(entry: JournalEntry) -> list:
    return [
        {
            "account_id": line.account_id,
            "debit": line.debit,
            "credit": line.credit,
            "description": line.description,
        }
        for line in entry.lines.order_by("line_no")
    ]


def _account_pk(account_id):
    """Account primary key from an int or a string of digits, else None."""
    if isinstance(account_id, bool):
        return None
    if isinstance(account_id, int):
        return account_id
    if isinstance(account_id, str) and account_id.isascii() and account_id.isdigit():
        return int(account_id)
    return None


def _resolve_accounts(actor, normalized_lines, *, require_all: bool = False):
    """
    Map each referenced account id to an Account of the actor's company.

    Lines without an account are allowed in drafts; with require_all the
    caller wants every line resolved (submit).

    Returns (accounts_by_line_no, error).
    """
    wanted = {}
    for index, line in enumerate(normalized_lines):
        if line.account_id is None:
            if require_all:
                return None, IncompleteLine(line_index=index, reason="account is required")
            continue
        account_pk = _account_pk(line.account_id)
        if account_pk is None:
            return None, IncompleteLine(line_index=index, reason="unknown account")
        wanted[index] = account_pk

    found = Account.objects.filter(company=actor.company, pk__in=set(wanted.values())).in_bulk()

    resolved = {}
    for index, account_pk in wanted.items():
        allowed, error = can_post_to_account(found.get(account_pk), index)
        if not allowed:
            return None, error
        resolved[normalized_lines[index].line_no] = found[account_pk]
    return resolved, None


def _check_draft_amounts(normalized_lines):
    for index, line in enumerate(normalized_lines):
        if line.debit < 0 or line.credit < 0:
            return IncompleteLine(line_index=index, reason="amounts cannot be negative")
    return None


def _write_lines(actor, entry: JournalEntry, normalized_lines, accounts) -> None:
    entry.lines.all().delete()
    JournalLine.objects.bulk_create([
        JournalLine(
            entry=entry,
            company=actor.company,
            line_no=line.line_no,
            account=accounts.get(line.line_no),
            description=line.description,
            debit=line.debit,
            credit=line.credit,
        )
        for line in normalized_lines
    ])


def _event_lines(normalized_lines) -> list:
    return [line.to_dict() for line in normalized_lines]


def _idempotency_key(operation: Operation, entry: JournalEntry) -> str:
    return f"journal_entry.{operation.value}:{entry.public_id}:v{entry.version}"


# =============================================================================
# Draft Commands
# =============================================================================

@transaction.atomic
def create_journal_entry(actor, date, memo, lines=None) -> CommandResult:
    """
    Create a DRAFT journal entry.

    Drafts may be incomplete or unbalanced; only the header (date, memo)
    is required. Referenced accounts must exist and be active.
    """
    operation = Operation.CREATE
    date = _as_date(date)
    outcome = evaluate(WorkflowRequest(
        acting_role=actor.role,
        operation=operation,
        date=date,
        memo=memo,
        lines=list(lines or []),
    ))
    if isinstance(outcome, JournalError):
        return _fail(actor, operation, outcome)

    error = _check_draft_amounts(outcome.normalized_lines)
    if error:
        return _fail(actor, operation, error)
    accounts, error = _resolve_accounts(actor, outcome.normalized_lines)
    if error:
        return _fail(actor, operation, error)

    entry = JournalEntry.objects.create(
        company=actor.company,
        date=date,
        memo=outcome.memo,
        status=outcome.new_state,
        version=1,
        created_by=actor.user,
    )
    _write_lines(actor, entry, outcome.normalized_lines, accounts)

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_CREATED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryCreatedData(
            entry_public_id=str(entry.public_id),
            date=entry.date.isoformat(),
            memo=entry.memo,
            status=entry.status,
            version=entry.version,
            created_by_email=actor.user.email,
            lines=_event_lines(outcome.normalized_lines),
        ),
    )

    _accepted(actor, operation, entry)
    return CommandResult.ok(entry, event=event)


@transaction.atomic
def update_journal_entry(
    actor,
    entry_id,
    expected_version,
    date=None,
    memo=None,
    lines=None,
) -> CommandResult:
    """
    Edit a DRAFT entry. Arguments left as None keep their stored value;
    `lines`, when given, replaces every line.
    """
    operation = Operation.EDIT
    allowed, error = authorize(actor.role, operation)
    if not allowed:
        return _fail(actor, operation, error, entry_id)

    entry, error = _load_for_update(actor, entry_id)
    if error:
        return _fail(actor, operation, error, entry_id)
    error = _check_version(entry, expected_version)
    if error:
        return _fail(actor, operation, error, entry_id)

    new_date = entry.date if date is None else _as_date(date)
    new_memo = entry.memo if memo is None else memo
    new_lines = _stored_lines(entry) if lines is None else list(lines)

    outcome = evaluate(WorkflowRequest(
        acting_role=actor.role,
        operation=operation,
        date=new_date,
        memo=new_memo,
        lines=new_lines,
        current_state=entry.status,
        version=entry.version,
    ))
    if isinstance(outcome, JournalError):
        return _fail(actor, operation, outcome, entry_id)

    if lines is not None:
        error = _check_draft_amounts(outcome.normalized_lines)
        if error:
            return _fail(actor, operation, error, entry_id)
        accounts, error = _resolve_accounts(actor, outcome.normalized_lines)
        if error:
            return _fail(actor, operation, error, entry_id)

    changes = {}
    if new_date != entry.date:
        changes["date"] = {"old": entry.date.isoformat(), "new": new_date.isoformat()}
    if outcome.memo != entry.memo:
        changes["memo"] = {"old": entry.memo, "new": outcome.memo}

    entry.date = new_date
    entry.memo = outcome.memo
    entry.version += 1
    entry.save(update_fields=["date", "memo", "version", "updated_at"])
    if lines is not None:
        _write_lines(actor, entry, outcome.normalized_lines, accounts)

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_UPDATED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryUpdatedData(
            entry_public_id=str(entry.public_id),
            version=entry.version,
            changes=changes,
            lines=_event_lines(outcome.normalized_lines) if lines is not None else None,
        ),
    )

    _accepted(actor, operation, entry, from_state=entry.status)
    return CommandResult.ok(entry, event=event)


@transaction.atomic
def delete_journal_entry(actor, entry_id, expected_version) -> CommandResult:
    """Delete a DRAFT entry and its lines. The audit events survive it."""
    operation = Operation.DELETE
    allowed, error = authorize(actor.role, operation)
    if not allowed:
        return _fail(actor, operation, error, entry_id)

    entry, error = _load_for_update(actor, entry_id)
    if error:
        return _fail(actor, operation, error, entry_id)
    error = _check_version(entry, expected_version)
    if error:
        return _fail(actor, operation, error, entry_id)

    outcome = evaluate(WorkflowRequest(
        acting_role=actor.role,
        operation=operation,
        date=entry.date,
        memo=entry.memo,
        current_state=entry.status,
        version=entry.version,
    ))
    if isinstance(outcome, JournalError):
        return _fail(actor, operation, outcome, entry_id)

    public_id = entry.public_id
    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_DELETED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryDeletedData(
            entry_public_id=str(public_id),
            date=entry.date.isoformat(),
            memo=entry.memo,
            status=entry.status,
            version=entry.version,
        ),
    )

    _accepted(actor, operation, entry, from_state=entry.status)
    entry.delete()
    return CommandResult.ok({"deleted": True, "public_id": str(public_id)}, event=event)


# =============================================================================
# Workflow Transitions
# =============================================================================

def _transition(actor, entry_id, expected_version, operation: Operation, reason=None):
    """
    Shared path for submit/approve/reject/confirm.

    Returns (entry, outcome, totals, error_result). On success the entry
    has its new status, side records and version but is not yet saved.
    """
    allowed, error = authorize(actor.role, operation)
    if not allowed:
        return None, None, None, _fail(actor, operation, error, entry_id)

    entry, error = _load_for_update(actor, entry_id)
    if error:
        return None, None, None, _fail(actor, operation, error, entry_id)
    error = _check_version(entry, expected_version)
    if error:
        return None, None, None, _fail(actor, operation, error, entry_id)

    stored_lines = _stored_lines(entry)
    outcome = evaluate(WorkflowRequest(
        acting_role=actor.role,
        operation=operation,
        date=entry.date,
        memo=entry.memo,
        lines=stored_lines,
        current_state=entry.status,
        version=entry.version,
        reason=reason,
    ))
    if isinstance(outcome, JournalError):
        return None, None, None, _fail(actor, operation, outcome, entry_id)

    if operation == Operation.SUBMIT:
        # Accounts may have been deactivated since the draft was saved
        _, error = _resolve_accounts(actor, outcome.normalized_lines, require_all=True)
        if error:
            return None, None, None, _fail(actor, operation, error, entry_id)

    now = timezone.now()
    by_field, at_field = outcome.side_record_fields
    setattr(entry, by_field, actor.user)
    setattr(entry, at_field, now)
    if operation == Operation.REJECT:
        entry.rejection_reason = outcome.transition.rejection_reason

    entry.status = outcome.new_state
    entry.version += 1
    entry.save()

    return entry, outcome, compute_totals(stored_lines), None


@transaction.atomic
def submit_journal_entry(actor, entry_id, expected_version) -> CommandResult:
    """DRAFT -> PENDING. The entry must be complete and balanced."""
    operation = Operation.SUBMIT
    entry, outcome, totals, failed = _transition(actor, entry_id, expected_version, operation)
    if failed:
        return failed

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_SUBMITTED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntrySubmittedData(
            entry_public_id=str(entry.public_id),
            version=entry.version,
            submitted_at=entry.submitted_at.isoformat(),
            submitted_by_email=actor.user.email,
            total_debit=str(totals.total_debit),
            total_credit=str(totals.total_credit),
        ),
    )
    _accepted(actor, operation, entry, from_state=outcome.transition.from_state)
    return CommandResult.ok(entry, event=event)


@transaction.atomic
def approve_journal_entry(actor, entry_id, expected_version) -> CommandResult:
    """PENDING -> APPROVED. Requires MANAGER."""
    operation = Operation.APPROVE
    entry, outcome, _, failed = _transition(actor, entry_id, expected_version, operation)
    if failed:
        return failed

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_APPROVED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryApprovedData(
            entry_public_id=str(entry.public_id),
            version=entry.version,
            approved_at=entry.approved_at.isoformat(),
            approved_by_email=actor.user.email,
        ),
    )
    _accepted(actor, operation, entry, from_state=outcome.transition.from_state)
    return CommandResult.ok(entry, event=event)


@transaction.atomic
def reject_journal_entry(actor, entry_id, expected_version, reason) -> CommandResult:
    """
    PENDING -> DRAFT with a mandatory reason. Requires MANAGER.

    The entry keeps only the latest reason; every rejection is kept in
    the journal_entry.rejected events (see accounting.queries.rejection_history).
    """
    operation = Operation.REJECT
    entry, outcome, _, failed = _transition(actor, entry_id, expected_version, operation, reason=reason)
    if failed:
        return failed

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_REJECTED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryRejectedData(
            entry_public_id=str(entry.public_id),
            version=entry.version,
            rejected_at=entry.rejected_at.isoformat(),
            rejected_by_email=actor.user.email,
            reason=entry.rejection_reason,
        ),
    )
    _accepted(actor, operation, entry, from_state=outcome.transition.from_state)
    return CommandResult.ok(entry, event=event)


@transaction.atomic
def confirm_journal_entry(actor, entry_id, expected_version) -> CommandResult:
    """APPROVED -> CONFIRMED. Terminal. Requires MANAGER."""
    operation = Operation.CONFIRM
    entry, outcome, totals, failed = _transition(actor, entry_id, expected_version, operation)
    if failed:
        return failed

    event = emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_CONFIRMED,
        aggregate_type=AGGREGATE_TYPE,
        aggregate_id=str(entry.public_id),
        idempotency_key=_idempotency_key(operation, entry),
        data=JournalEntryConfirmedData(
            entry_public_id=str(entry.public_id),
            version=entry.version,
            confirmed_at=entry.confirmed_at.isoformat(),
            confirmed_by_email=actor.user.email,
            total_debit=str(totals.total_debit),
            total_credit=str(totals.total_credit),
        ),
    )
    _accepted(actor, operation, entry, from_state=outcome.transition.from_state)
    return CommandResult.ok(entry, event=event)


TRANSITION_COMMANDS = {
    Operation.SUBMIT: submit_journal_entry,
    Operation.APPROVE: approve_journal_entry,
    Operation.CONFIRM: confirm_journal_entry,
}
