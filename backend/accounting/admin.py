# accounting/admin.py
"""
Django admin configuration for accounting models.

The admin interface is for viewing only. All mutations MUST go through
the command layer (accounting/commands.py) so that balances, movements
and audit events stay consistent.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    Account,
    BalanceMovement,
    DocumentSequence,
    JournalEntry,
    JournalLine,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for read-only models.

    To modify these models, use the command layer (accounting/commands.py).
    """

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
class AccountAdmin(ReadOnlyModelAdmin):
    list_display = [
        "code", "name", "account_type", "normal_balance",
        "balance", "currency", "is_active", "parent",
    ]
    list_filter = ["account_type", "is_active", "currency"]
    search_fields = ["code", "name", "description"]
    list_select_related = ["parent"]
    ordering = ["code"]


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    list_display = [
        "entry_number", "date", "description", "status_colored",
        "source_module", "source_document", "created_by",
    ]
    list_filter = ["status", "source_module", "date"]
    search_fields = ["entry_number", "description", "source_document"]
    date_hierarchy = "date"
    list_select_related = ["created_by"]
    ordering = ["-date", "-id"]
    inlines = [JournalLineInline]

    STATUS_COLORS = {
        JournalEntry.Status.DRAFT: "gray",
        JournalEntry.Status.PENDING: "orange",
        JournalEntry.Status.APPROVED: "green",
        JournalEntry.Status.REJECTED: "red",
    }

    def status_colored(self, obj):
        return format_html(
            '<span style="color: {};">{}</span>',
            self.STATUS_COLORS.get(obj.status, "black"),
            obj.get_status_display(),
        )
    status_colored.short_description = "Status"


@admin.register(BalanceMovement)
class BalanceMovementAdmin(ReadOnlyModelAdmin):
    list_display = ["id", "account", "entry", "amount", "balance_after", "note", "created_at"]
    list_filter = ["account"]
    list_select_related = ["account", "entry"]
    ordering = ["-id"]


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(ReadOnlyModelAdmin):
    list_display = ["name", "year", "next_value", "updated_at"]
    ordering = ["name", "year"]
