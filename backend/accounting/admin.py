# accounting/admin.py
"""
Django admin configuration for accounting models.

The chart of accounts is maintained here. Journal entries are view-only:
every change MUST go through the command layer (accounting/commands.py),
which enforces roles, the lifecycle and versions and records audit events.
"""

from django.contrib import admin

from .models import Account, JournalEntry, JournalLine


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Base admin class for models only the command layer may write."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class JournalLineInline(admin.TabularInline):
    """Inline display of journal lines within journal entry (read-only)."""
    model = JournalLine
    extra = 0
    readonly_fields = ["line_no", "account", "description", "debit", "credit"]
    fields = ["line_no", "account", "description", "debit", "credit"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "account_type", "is_active", "company"]
    list_filter = ["company", "account_type", "is_active"]
    search_fields = ["code", "name"]
    ordering = ["company", "code"]


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    list_display = ["id", "date", "memo", "status", "version", "company", "created_by"]
    list_filter = ["company", "status", "date"]
    search_fields = ["memo", "public_id"]
    date_hierarchy = "date"
    inlines = [JournalLineInline]
