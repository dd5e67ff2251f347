from django.apps import AppConfig


class EventsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "events"
    verbose_name = "Audit Log"

    def ready(self):
        from events import checks  # noqa: F401
