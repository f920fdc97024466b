# events/emitter.py
"""
Event emission functions.

This module provides the primary interface for emitting audit events.
All events MUST be emitted through these functions to ensure:
1. Payload validation against canonical schemas (events/types.py)
2. Idempotency handling
3. Proper sequencing
4. Audit trail (caused_by_user, metadata)

IMPORTANT: Events are validated at emission time.
==============================================
If you get an InvalidEventPayload error, it means the data dict
does not match the schema defined in events/types.py. Fix the
data being passed, don't disable validation.
"""

from __future__ import annotations

import logging
from typing import Optional, Any, Dict, Union
from datetime import datetime

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from events.models import BusinessEvent
from events.types import validate_event_payload, BaseEventData


logger = logging.getLogger(__name__)


def _emit_event_core(
    *,
    company,
    user,
    event_type: str,
    aggregate_type: str,
    aggregate_id: Any,
    data: Union[Dict[str, Any], BaseEventData],
    occurred_at: Optional[datetime],
    idempotency_key: str,
    metadata: Optional[Dict[str, Any]],
) -> BusinessEvent:
    """
    Core event emission logic.

    Validates the payload, handles idempotency and persists the event.

    Returns:
        The created (or existing, if idempotent) BusinessEvent

    Raises:
        InvalidEventPayload: If data doesn't match the schema
        ValueError: If idempotency_key is missing
    """
    if not idempotency_key or not str(idempotency_key).strip():
        raise ValueError("idempotency_key is required")

    if isinstance(data, BaseEventData):
        data = data.to_dict()

    if not getattr(settings, "DISABLE_EVENT_VALIDATION", False):
        validate_event_payload(event_type, data)

    if occurred_at is None:
        occurred_at = timezone.now()

    # Quick idempotency check (common case)
    existing = BusinessEvent.objects.filter(company=company, idempotency_key=idempotency_key).first()
    if existing:
        logger.debug(
            "Idempotent replay of %s", event_type,
            extra={"idempotency_key": idempotency_key, "event_id": str(existing.id)},
        )
        return existing

    # Retry on sequence collisions; an idempotency collision returns the existing row
    for attempt in range(3):
        try:
            with transaction.atomic():
                return BusinessEvent.objects.create(
                    company=company,
                    event_type=event_type,
                    aggregate_type=aggregate_type,
                    aggregate_id=str(aggregate_id),
                    data=data,
                    metadata=metadata or {},
                    caused_by_user=user,
                    occurred_at=occurred_at,
                    idempotency_key=idempotency_key,
                )
        except IntegrityError:
            existing = BusinessEvent.objects.filter(company=company, idempotency_key=idempotency_key).first()
            if existing:
                return existing

            if attempt == 2:
                raise

    raise RuntimeError("Failed to emit event after retries")


def emit_event(
    actor=None,
    *,
    event_type: str,
    aggregate_type: str,
    aggregate_id: Any,
    data: Union[Dict[str, Any], BaseEventData],
    idempotency_key: str,
    company=None,
    user=None,
    occurred_at: Optional[datetime] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> BusinessEvent:
    """
    Emit an audit event with payload validation.

    Pass either `actor` (an ActorContext) or an explicit `company`
    (and optionally `user`) for system-initiated events.

    Example:
        from events.types import EventTypes, JournalEntryApprovedData

        emit_event(
            actor=actor,
            event_type=EventTypes.JOURNAL_ENTRY_APPROVED,
            aggregate_type="JournalEntry",
            aggregate_id=entry.public_id,
            data=JournalEntryApprovedData(
                entry_public_id=str(entry.public_id),
                version=entry.version,
                approved_at=entry.approved_at.isoformat(),
                approved_by_email=actor.user.email,
            ),
            idempotency_key=f"journal_entry.approved:{entry.public_id}:{entry.version}",
        )

    Raises:
        InvalidEventPayload: If data doesn't match the event type schema
        TypeError: If neither actor nor company is given
    """
    if actor is not None:
        company = actor.company
        user = actor.user
    elif company is None:
        raise TypeError("emit_event() requires company when actor is not provided")

    return _emit_event_core(
        company=company,
        user=user,
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        data=data,
        occurred_at=occurred_at,
        idempotency_key=idempotency_key,
        metadata=metadata,
    )


def get_aggregate_events(company, aggregate_type: str, aggregate_id: Any, event_types=None) -> list[BusinessEvent]:
    """
    Aggregate stream ordering.

    Uses the per-aggregate sequence so history reads are deterministic
    within the aggregate.
    """
    qs = BusinessEvent.objects.filter(
        company=company,
        aggregate_type=aggregate_type,
        aggregate_id=str(aggregate_id),
    )
    if event_types:
        qs = qs.filter(event_type__in=list(event_types))
    return list(qs.select_related("caused_by_user").order_by("sequence"))
