import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="BusinessEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("event_type", models.CharField(db_index=True, help_text="Event type, e.g. 'journal_entry.approved'", max_length=100)),
                ("aggregate_type", models.CharField(help_text="Aggregate name, e.g. 'JournalEntry'", max_length=50)),
                ("aggregate_id", models.CharField(help_text="Primary key of the aggregate instance", max_length=64)),
                ("data", models.JSONField(default=dict, help_text="Event data payload")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Additional context (request path, etc.)")),
                ("idempotency_key", models.CharField(max_length=255, unique=True)),
                ("recorded_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("occurred_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "caused_by_user",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who triggered this event",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="caused_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-recorded_at"],
                "indexes": [
                    models.Index(fields=["aggregate_type", "aggregate_id"], name="events_busi_aggrega_6d0c1e_idx"),
                    models.Index(fields=["event_type", "occurred_at"], name="events_busi_event_t_a1f2b3_idx"),
                ],
            },
        ),
    ]
