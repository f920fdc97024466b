# events/admin.py
"""
Django admin configuration for the audit event store.

Events are read-only in admin (they're immutable).
"""

import json

from django.contrib import admin
from django.utils.html import format_html

from .models import BusinessEvent


@admin.register(BusinessEvent)
class BusinessEventAdmin(admin.ModelAdmin):
    list_display = [
        "id_short", "event_type", "aggregate_display",
        "caused_by_user", "occurred_at", "company",
    ]
    list_filter = ["company", "event_type", "aggregate_type", "occurred_at"]
    search_fields = ["event_type", "aggregate_id", "caused_by_user__email"]
    date_hierarchy = "occurred_at"
    list_select_related = ["company", "caused_by_user"]
    ordering = ["-occurred_at"]
    readonly_fields = [
        "id", "company", "event_type", "aggregate_type", "aggregate_id",
        "sequence", "company_sequence", "data_formatted", "metadata",
        "payload_hash", "caused_by_user", "occurred_at",
    ]
    exclude = ["data"]

    def id_short(self, obj):
        return str(obj.id)[:8] + "..."
    id_short.short_description = "ID"

    def aggregate_display(self, obj):
        return f"{obj.aggregate_type}#{obj.aggregate_id}"
    aggregate_display.short_description = "Aggregate"

    def data_formatted(self, obj):
        return format_html(
            "<pre style='white-space: pre-wrap; max-width: 600px;'>{}</pre>",
            json.dumps(obj.data, indent=2, default=str),
        )
    data_formatted.short_description = "Data"

    def has_add_permission(self, request):
        return False  # Events created through commands only

    def has_change_permission(self, request, obj=None):
        return False  # Events are immutable

    def has_delete_permission(self, request, obj=None):
        return False  # Events are immutable
