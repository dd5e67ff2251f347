# events/views.py
"""
Audit log API. Every endpoint requires audit.view.

GET /api/events/                                  filtered list, newest first
GET /api/events/<uuid>/                           one event with payload
GET /api/events/history/<aggregate>/<id>/         one aggregate's events, oldest first
"""

from rest_framework import generics
from rest_framework.permissions import IsAuthenticated

from accounts.authz import require, resolve_actor
from events.models import BusinessEvent
from events.serializers import (
    BusinessEventDetailSerializer,
    BusinessEventListSerializer,
    EventFilterSerializer,
)


class AuditViewMixin:
    permission_classes = [IsAuthenticated]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        require(resolve_actor(request), "audit.view")

    def base_queryset(self):
        return BusinessEvent.objects.select_related("caused_by_user")


class EventListView(AuditViewMixin, generics.ListAPIView):
    serializer_class = BusinessEventListSerializer

    def get_queryset(self):
        params = EventFilterSerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)
        f = params.validated_data

        qs = self.base_queryset()
        if "event_type" in f:
            qs = qs.of_type(f["event_type"])
        if "aggregate_id" in f:
            qs = qs.for_aggregate(f["aggregate_type"], f["aggregate_id"])
        elif "aggregate_type" in f:
            qs = qs.filter(aggregate_type=f["aggregate_type"])
        qs = qs.between(f.get("occurred_at__gte"), f.get("occurred_at__lte"))

        return qs.order_by("-recorded_at")[:f["limit"]]


class EventDetailView(AuditViewMixin, generics.RetrieveAPIView):
    serializer_class = BusinessEventDetailSerializer
    lookup_field = "id"

    def get_queryset(self):
        return self.base_queryset()


class AggregateHistoryView(AuditViewMixin, generics.ListAPIView):
    """Everything that happened to one journal entry, invoice, project, ..."""

    serializer_class = BusinessEventDetailSerializer

    def get_queryset(self):
        return self.base_queryset().for_aggregate(
            self.kwargs["aggregate_type"], self.kwargs["aggregate_id"],
        ).history()
