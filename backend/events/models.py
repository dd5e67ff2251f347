# events/models.py
"""
The audit log.

Every command that changes ledger state records one BusinessEvent: who
did what, to which aggregate, with which payload. Rows are write-once.
Ledger state lives in the accounting tables; this is the trail, not the
source of truth.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class EventQuerySet(models.QuerySet):

    def for_aggregate(self, aggregate_type: str, aggregate_id) -> "EventQuerySet":
        return self.filter(aggregate_type=aggregate_type, aggregate_id=str(aggregate_id))

    def of_type(self, *event_types: str) -> "EventQuerySet":
        return self.filter(event_type__in=event_types)

    def between(self, start=None, end=None) -> "EventQuerySet":
        qs = self
        if start is not None:
            qs = qs.filter(occurred_at__gte=start)
        if end is not None:
            qs = qs.filter(occurred_at__lte=end)
        return qs

    def history(self) -> "EventQuerySet":
        """Oldest first, the order an aggregate's story is read in."""
        return self.order_by("occurred_at", "recorded_at")


class BusinessEvent(models.Model):
    """
    One immutable audit record.

    idempotency_key is unique: emitting the same logical event twice
    returns the first row (see events.emitter).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_type = models.CharField(
        max_length=100, db_index=True, help_text="Event type, e.g. 'journal_entry.approved'",
    )
    aggregate_type = models.CharField(max_length=50, help_text="Aggregate name, e.g. 'JournalEntry'")
    aggregate_id = models.CharField(max_length=64, help_text="Primary key of the aggregate instance")

    data = models.JSONField(default=dict, help_text="Event data payload")
    metadata = models.JSONField(default=dict, blank=True, help_text="Additional context (request path, etc.)")

    caused_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="caused_events",
        help_text="User who triggered this event",
    )
    idempotency_key = models.CharField(max_length=255, unique=True)

    occurred_at = models.DateTimeField(default=timezone.now, db_index=True)
    recorded_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["-recorded_at"]
        indexes = [
            models.Index(fields=["aggregate_type", "aggregate_id"], name="events_busi_aggrega_6d0c1e_idx"),
            models.Index(fields=["event_type", "occurred_at"], name="events_busi_event_t_a1f2b3_idx"),
        ]

    def __str__(self):
        return f"{self.event_type} {self.aggregate_type}#{self.aggregate_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Events are immutable and cannot be modified.")
        if not (self.idempotency_key or "").strip():
            raise ValueError("idempotency_key is required")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Events are immutable and cannot be deleted.")
