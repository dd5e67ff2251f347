import json

from django.contrib import admin
from django.utils.html import format_html

from .models import BusinessEvent


def _pretty(value):
    return format_html("<pre style='white-space: pre-wrap'>{}</pre>", json.dumps(value, indent=2, default=str))


@admin.register(BusinessEvent)
class BusinessEventAdmin(admin.ModelAdmin):
    """The audit log is write-once; the admin only browses it."""

    list_display = ["occurred_at", "event_type", "aggregate", "caused_by_user"]
    list_filter = ["aggregate_type", "event_type"]
    search_fields = ["aggregate_id", "idempotency_key", "caused_by_user__email"]
    date_hierarchy = "occurred_at"
    list_select_related = ["caused_by_user"]
    fields = [
        "id", "event_type", "aggregate", "caused_by_user",
        "occurred_at", "recorded_at", "idempotency_key", "payload", "context",
    ]
    readonly_fields = fields

    @admin.display(description="Aggregate", ordering="aggregate_type")
    def aggregate(self, obj):
        return f"{obj.aggregate_type}#{obj.aggregate_id}"

    @admin.display(description="Data")
    def payload(self, obj):
        return _pretty(obj.data)

    @admin.display(description="Metadata")
    def context(self, obj):
        return _pretty(obj.metadata)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
