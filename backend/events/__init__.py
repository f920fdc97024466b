# events/__init__.py
"""
Events app - Append-only audit trail for JournalFlow.

This app provides:
- BusinessEvent: Immutable event records
- emit_event: Validated, idempotent emission
- Event type definitions with CANONICAL SCHEMAS (events/types.py)

Usage:
    from events.emitter import emit_event
    from events.types import EventTypes, JournalEntryRejectedData

    emit_event(
        actor=actor,
        event_type=EventTypes.JOURNAL_ENTRY_REJECTED,
        aggregate_type="JournalEntry",
        aggregate_id=entry.public_id,
        data=JournalEntryRejectedData(...),
        idempotency_key=f"journal_entry.reject:{entry.public_id}:v{entry.version}",
    )

Handling validation errors:
    try:
        emit_event(...)
    except InvalidEventPayload as e:
        # e.event_type - the event type that failed
        # e.errors - list of validation error messages
        logger.error("Invalid event payload: %s", e)
"""

default_app_config = "events.apps.EventsConfig"
