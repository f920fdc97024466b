# accounting/queries.py
"""
Read-side helpers for journal entries.

Everything here is scoped to the actor's company and never writes.
"""

from django.db.models import Q
from django.utils.dateparse import parse_date

from accounting.lifecycle import coerce_status
from accounting.models import Account, JournalEntry
from events.emitter import get_aggregate_events
from events.types import EventTypes


JOURNAL_EVENT_TYPES = [
    EventTypes.JOURNAL_ENTRY_CREATED,
    EventTypes.JOURNAL_ENTRY_UPDATED,
    EventTypes.JOURNAL_ENTRY_DELETED,
    EventTypes.JOURNAL_ENTRY_SUBMITTED,
    EventTypes.JOURNAL_ENTRY_APPROVED,
    EventTypes.JOURNAL_ENTRY_REJECTED,
    EventTypes.JOURNAL_ENTRY_CONFIRMED,
]


def list_journal_entries(actor, status=None, date_from=None, date_to=None, q=None):
    """
    Journal entries of the actor's company, newest first.

    Raises:
        ValueError: unknown status or malformed date filter
    """
    qs = JournalEntry.objects.filter(company=actor.company).prefetch_related("lines")

    if status:
        qs = qs.filter(status=coerce_status(status))
    if date_from:
        parsed = parse_date(str(date_from))
        if parsed is None:
            raise ValueError(f"Invalid date_from: {date_from!r}")
        qs = qs.filter(date__gte=parsed)
    if date_to:
        parsed = parse_date(str(date_to))
        if parsed is None:
            raise ValueError(f"Invalid date_to: {date_to!r}")
        qs = qs.filter(date__lte=parsed)
    if q:
        qs = qs.filter(Q(memo__icontains=q) | Q(lines__description__icontains=q)).distinct()

    return qs.order_by("-date", "-id")


def get_journal_entry(actor, entry_id):
    """The entry, or None when it does not exist in the actor's company."""
    return (
        JournalEntry.objects.filter(company=actor.company, pk=entry_id)
        .prefetch_related("lines__account")
        .first()
    )


def list_accounts(actor, include_inactive: bool = False):
    qs = Account.objects.filter(company=actor.company)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")


def entry_history(actor, entry: JournalEntry) -> list:
    """Audit events of an entry in the order they happened."""
    return get_aggregate_events(
        actor.company,
        aggregate_type="JournalEntry",
        aggregate_id=str(entry.public_id),
        event_types=JOURNAL_EVENT_TYPES,
    )


def rejection_history(actor, entry: JournalEntry) -> list:
    """
    Every rejection the entry went through, oldest first.

    The entry row only keeps the latest rejection_reason; the full trail
    comes from journal_entry.rejected events.
    """
    events = get_aggregate_events(
        actor.company,
        aggregate_type="JournalEntry",
        aggregate_id=str(entry.public_id),
        event_types=[EventTypes.JOURNAL_ENTRY_REJECTED],
    )
    return [
        {
            "version": event.data.get("version"),
            "reason": event.data.get("reason", ""),
            "rejected_at": event.data.get("rejected_at"),
            "rejected_by_email": event.data.get("rejected_by_email", ""),
        }
        for event in events
    ]
