from django.urls import path

from events import views

app_name = "events"

urlpatterns = [
    path("", views.EventListView.as_view(), name="event-list"),
    path("<uuid:id>/", views.EventDetailView.as_view(), name="event-detail"),
    path(
        "history/<str:aggregate_type>/<str:aggregate_id>/",
        views.AggregateHistoryView.as_view(),
        name="aggregate-history",
    ),
]
