from django.urls import path

from ops import health

urlpatterns = [
    path("live", health.LivenessView.as_view(), name="health-live"),
    path("ready", health.ReadinessView.as_view(), name="health-ready"),
    path("full", health.FullHealthView.as_view(), name="health-full"),
]
