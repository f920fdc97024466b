# events/types.py
"""
Event type definitions for JournalFlow.

This module defines THE CANONICAL SCHEMA for all audit event payloads.
These dataclasses are the CONTRACT, not a "helper". All event emission
MUST use these types, and validation is enforced at emission time.

Naming Convention: {aggregate}.{past_tense_verb}
Examples:
- journal_entry.submitted
- membership.role_changed

IMPORTANT: Events are a STABLE API
============================================
- Adding optional fields with defaults is safe
- Removing or renaming fields breaks history readers
  (accounting.queries.rejection_history reads journal_entry.rejected)
"""

from dataclasses import dataclass, asdict, field, fields as dataclass_fields, MISSING
from typing import Optional, List, Dict, Any, get_type_hints, get_origin, get_args, Union
from decimal import Decimal, InvalidOperation
from datetime import date, datetime


# =============================================================================
# Event Validation
# =============================================================================

class InvalidEventPayload(Exception):
    """
    Raised when an event payload fails validation.

    This exception is raised at event emission time when the provided
    data does not match the expected schema for the event type.
    """
    def __init__(self, event_type: str, errors: List[str]):
        self.event_type = event_type
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(
            f"Invalid payload for event '{event_type}':\n  - {error_list}"
        )


def _is_optional_type(type_hint) -> bool:
    """Check if a type hint is Optional[X] (i.e., Union[X, None])."""
    origin = get_origin(type_hint)
    if origin is Union:
        return type(None) in get_args(type_hint)
    return False


def _get_inner_type(type_hint):
    """Get the inner type from Optional[X]."""
    origin = get_origin(type_hint)
    if origin is Union:
        non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
        if len(non_none_args) == 1:
            return non_none_args[0]
    return type_hint


STATUS_VALUES = {"DRAFT", "PENDING", "APPROVED", "CONFIRMED"}
ROLE_VALUES = {"VIEWER", "USER", "MANAGER", "ADMIN"}
DECIMAL_FIELDS = {"debit", "credit", "total_debit", "total_credit"}
DATE_FIELDS = {"date"}
DATETIME_FIELDS = {"submitted_at", "approved_at", "rejected_at", "confirmed_at"}


def validate_event_payload(event_type: str, data: Dict[str, Any]) -> None:
    """
    Validate that a data dict matches the expected schema for an event type.

    It validates:

    1. Required fields are present (fields without defaults)
    2. No unexpected fields are provided (strict schema)
    3. Field types are correct (basic type checking)
    4. Domain values: statuses, roles, decimal strings, ISO dates

    Raises:
        InvalidEventPayload: If validation fails
        ValueError: If event_type has no registered schema
    """
    data_class = EVENT_DATA_CLASSES.get(event_type)
    if data_class is None:
        raise ValueError(
            f"No schema registered for event type '{event_type}'. "
            f"Add a dataclass to EVENT_DATA_CLASSES."
        )

    errors = []
    dc_fields = {f.name: f for f in dataclass_fields(data_class)}
    type_hints = get_type_hints(data_class)

    for field_name, field_info in dc_fields.items():
        required = (
            field_info.default is MISSING and
            field_info.default_factory is MISSING
        )
        if required and field_name not in data:
            errors.append(f"Missing required field: '{field_name}'")

    unexpected = set(data.keys()) - set(dc_fields.keys())
    if unexpected:
        errors.append(
            f"Unexpected fields: {sorted(unexpected)}. "
            f"Expected: {sorted(dc_fields.keys())}"
        )

    for field_name, value in data.items():
        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        if value is None:
            if not _is_optional_type(type_hint):
                errors.append(f"Field '{field_name}' cannot be None (type: {type_hint})")
            continue

        check_type = _get_inner_type(type_hint) if _is_optional_type(type_hint) else type_hint
        origin = get_origin(check_type)

        if origin is list or check_type is list:
            if not isinstance(value, list):
                errors.append(f"Field '{field_name}' must be a list, got {type(value).__name__}")
            else:
                for idx, item in enumerate(value):
                    if not isinstance(item, dict):
                        errors.append(
                            f"Field '{field_name}[{idx}]' must be a dict, got {type(item).__name__}"
                        )
        elif origin is dict or check_type is dict:
            if not isinstance(value, dict):
                errors.append(f"Field '{field_name}' must be a dict, got {type(value).__name__}")
        elif check_type is str:
            if not isinstance(value, str):
                errors.append(f"Field '{field_name}' must be a string, got {type(value).__name__}")
        elif check_type is int:
            if not isinstance(value, int) or isinstance(value, bool):
                errors.append(f"Field '{field_name}' must be an int, got {type(value).__name__}")
        elif check_type is bool:
            if not isinstance(value, bool):
                errors.append(f"Field '{field_name}' must be a bool, got {type(value).__name__}")

    def _validate_scalar(name: str, value: Any) -> None:
        if value is None or isinstance(value, (dict, list)):
            return
        if name in ("status", "old_status", "new_status") and value not in STATUS_VALUES:
            errors.append(f"Field '{name}' must be one of {sorted(STATUS_VALUES)}, got {value!r}")
        if name in ("role", "old_role", "new_role") and value not in ROLE_VALUES:
            errors.append(f"Field '{name}' must be one of {sorted(ROLE_VALUES)}, got {value!r}")
        if name in DECIMAL_FIELDS:
            if isinstance(value, bool) or not isinstance(value, (int, Decimal, str)):
                errors.append(f"Field '{name}' must be a decimal string, got {type(value).__name__}")
            else:
                try:
                    Decimal(str(value))
                except (InvalidOperation, ValueError):
                    errors.append(f"Field '{name}' must be a decimal string, got {value!r}")
        if name in DATE_FIELDS:
            try:
                date.fromisoformat(value)
            except (TypeError, ValueError):
                errors.append(f"Field '{name}' must be an ISO date string, got {value!r}")
        if name in DATETIME_FIELDS:
            try:
                datetime.fromisoformat(value)
            except (TypeError, ValueError):
                errors.append(f"Field '{name}' must be an ISO datetime string, got {value!r}")

    def _walk(name: str, value: Any) -> None:
        _validate_scalar(name, value)
        if isinstance(value, dict):
            for k, v in value.items():
                _walk(k, v)
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, (dict, list)):
                    _walk(name, item)

    for field_name, value in data.items():
        _walk(field_name, value)

    if errors:
        raise InvalidEventPayload(event_type, errors)


# =============================================================================
# Base Event Classes
# =============================================================================

@dataclass
class BaseEventData:
    """Base class for all event data."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        result = {}
        for key, value in asdict(self).items():
            if isinstance(value, Decimal):
                result[key] = str(value)
            elif isinstance(value, (date, datetime)):
                result[key] = value.isoformat()
            else:
                result[key] = value
        return result


# =============================================================================
# Journal Entry Events
# =============================================================================

@dataclass
class JournalEntryCreatedData(BaseEventData):
    """Data for journal_entry.created event."""
    entry_public_id: str
    date: str  # ISO format
    memo: str
    status: str = "DRAFT"
    version: int = 1
    created_by_email: str = ""
    lines: List[dict] = field(default_factory=list)


@dataclass
class JournalEntryUpdatedData(BaseEventData):
    """Data for journal_entry.updated event."""
    entry_public_id: str
    version: int
    changes: Dict[str, Dict[str, Any]]
    lines: Optional[List[dict]] = None


@dataclass
class JournalEntryDeletedData(BaseEventData):
    """Data for journal_entry.deleted event."""
    entry_public_id: str
    date: str
    memo: str
    status: str
    version: int


@dataclass
class JournalEntrySubmittedData(BaseEventData):
    """Data for journal_entry.submitted event (DRAFT -> PENDING)."""
    entry_public_id: str
    version: int
    submitted_at: str
    submitted_by_email: str
    total_debit: str
    total_credit: str
    old_status: str = "DRAFT"
    new_status: str = "PENDING"


@dataclass
class JournalEntryApprovedData(BaseEventData):
    """Data for journal_entry.approved event (PENDING -> APPROVED)."""
    entry_public_id: str
    version: int
    approved_at: str
    approved_by_email: str
    old_status: str = "PENDING"
    new_status: str = "APPROVED"


@dataclass
class JournalEntryRejectedData(BaseEventData):
    """
    Data for journal_entry.rejected event (PENDING -> DRAFT).

    This event is the rejection history: the entry row only keeps the
    latest rejection.
    """
    entry_public_id: str
    version: int
    rejected_at: str
    rejected_by_email: str
    reason: str
    old_status: str = "PENDING"
    new_status: str = "DRAFT"


@dataclass
class JournalEntryConfirmedData(BaseEventData):
    """Data for journal_entry.confirmed event (APPROVED -> CONFIRMED)."""
    entry_public_id: str
    version: int
    confirmed_at: str
    confirmed_by_email: str
    total_debit: str
    total_credit: str
    old_status: str = "APPROVED"
    new_status: str = "CONFIRMED"


# =============================================================================
# User & Membership Events
# =============================================================================

@dataclass
class UserCreatedData(BaseEventData):
    user_public_id: str
    email: str
    name: str
    created_by_user_public_id: Optional[str] = None


@dataclass
class MembershipCreatedData(BaseEventData):
    membership_public_id: str
    company_public_id: str
    user_public_id: str
    role: str


@dataclass
class MembershipRoleChangedData(BaseEventData):
    membership_public_id: str
    user_public_id: str
    old_role: str
    new_role: str


@dataclass
class MembershipDeactivatedData(BaseEventData):
    membership_public_id: str
    user_public_id: str
    user_email: str
    company_public_id: str


# =============================================================================
# Event Type Registry
# =============================================================================

class EventTypes:
    """
    Registry of all event types.

    Naming convention: {aggregate}.{past_tense_verb}
    - journal_entry.approved (not journal_entry.approve)
    """

    # Journal entry events
    JOURNAL_ENTRY_CREATED = "journal_entry.created"
    JOURNAL_ENTRY_UPDATED = "journal_entry.updated"
    JOURNAL_ENTRY_DELETED = "journal_entry.deleted"
    JOURNAL_ENTRY_SUBMITTED = "journal_entry.submitted"
    JOURNAL_ENTRY_APPROVED = "journal_entry.approved"
    JOURNAL_ENTRY_REJECTED = "journal_entry.rejected"
    JOURNAL_ENTRY_CONFIRMED = "journal_entry.confirmed"

    # User & membership events
    USER_CREATED = "user.created"
    MEMBERSHIP_CREATED = "membership.created"
    MEMBERSHIP_ROLE_CHANGED = "membership.role_changed"
    MEMBERSHIP_DEACTIVATED = "membership.deactivated"


EVENT_DATA_CLASSES = {
    EventTypes.JOURNAL_ENTRY_CREATED: JournalEntryCreatedData,
    EventTypes.JOURNAL_ENTRY_UPDATED: JournalEntryUpdatedData,
    EventTypes.JOURNAL_ENTRY_DELETED: JournalEntryDeletedData,
    EventTypes.JOURNAL_ENTRY_SUBMITTED: JournalEntrySubmittedData,
    EventTypes.JOURNAL_ENTRY_APPROVED: JournalEntryApprovedData,
    EventTypes.JOURNAL_ENTRY_REJECTED: JournalEntryRejectedData,
    EventTypes.JOURNAL_ENTRY_CONFIRMED: JournalEntryConfirmedData,

    EventTypes.USER_CREATED: UserCreatedData,
    EventTypes.MEMBERSHIP_CREATED: MembershipCreatedData,
    EventTypes.MEMBERSHIP_ROLE_CHANGED: MembershipRoleChangedData,
    EventTypes.MEMBERSHIP_DEACTIVATED: MembershipDeactivatedData,
}
