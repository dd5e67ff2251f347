# events/serializers.py
from rest_framework import serializers

from events.models import BusinessEvent


class BusinessEventListSerializer(serializers.ModelSerializer):
    caused_by_user_email = serializers.EmailField(source="caused_by_user.email", read_only=True, default=None)
    actor = serializers.SerializerMethodField()

    class Meta:
        model = BusinessEvent
        fields = [
            "id",
            "event_type",
            "aggregate_type",
            "aggregate_id",
            "occurred_at",
            "recorded_at",
            "caused_by_user_email",
            "actor",
        ]
        read_only_fields = fields

    def get_actor(self, event):
        user = event.caused_by_user
        return (user.name or user.email) if user else "system"


class BusinessEventDetailSerializer(BusinessEventListSerializer):
    """Adds the payload and request context."""

    class Meta(BusinessEventListSerializer.Meta):
        fields = BusinessEventListSerializer.Meta.fields + ["idempotency_key", "data", "metadata"]
        read_only_fields = fields


class EventFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the event list."""

    event_type = serializers.CharField(required=False)
    aggregate_type = serializers.CharField(required=False)
    aggregate_id = serializers.CharField(required=False)
    occurred_at__gte = serializers.DateTimeField(required=False)
    occurred_at__lte = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000, default=200)

    def validate(self, attrs):
        start, end = attrs.get("occurred_at__gte"), attrs.get("occurred_at__lte")
        if start and end and end < start:
            raise serializers.ValidationError("occurred_at__lte must not be before occurred_at__gte.")
        if "aggregate_id" in attrs and "aggregate_type" not in attrs:
            raise serializers.ValidationError("aggregate_id requires aggregate_type.")
        return attrs
