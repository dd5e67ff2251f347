# events/checks.py
from django.core import checks


@checks.register()
def check_event_registry(app_configs=None, **kwargs):
    """Every event type must have a payload schema, or emission fails at runtime."""
    from events.types import EVENT_DATA_CLASSES, EventTypes

    return [
        checks.Error(
            f"Event type {event_type!r} has no payload class in EVENT_DATA_CLASSES.",
            id="events.E001",
        )
        for event_type in EventTypes.all()
        if event_type not in EVENT_DATA_CLASSES
    ]
