# events/emitter.py
"""
emit_event: the one way an audit record gets written.

Every call validates the payload against its dataclass in events.types,
attributes it to the acting user, and is idempotent on idempotency_key
(the second call with a key returns the first row). An InvalidEventPayload
means the command built the wrong payload; fix the command.

The insert runs in its own savepoint. If the audit row cannot be written
the failure is logged and the ledger operation that triggered it stands.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from events.models import BusinessEvent
from events.types import BaseEventData, validate_event_payload


logger = logging.getLogger(__name__)


def emit_event(
    *,
    actor,
    event_type: str,
    aggregate_type: str,
    aggregate_id: Any,
    data: Union[Dict[str, Any], BaseEventData],
    idempotency_key: str,
    occurred_at: Optional[datetime] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[BusinessEvent]:
    """
    Record one audit event.

    ``actor`` is the ActorContext behind the change, or None for system
    work such as management commands. ``data`` is a payload dict or a
    BaseEventData instance. Returns the stored (or previously stored)
    event, or None when the database refused the insert.

    Raises InvalidEventPayload for a payload that does not match its
    schema and ValueError for a blank idempotency key.
    """
    if not str(idempotency_key or "").strip():
        raise ValueError("idempotency_key is required")

    if isinstance(data, BaseEventData):
        data = data.to_dict()

    if not getattr(settings, "DISABLE_EVENT_VALIDATION", False):
        validate_event_payload(event_type, data)

    user = getattr(actor, "user", None) if actor is not None else None

    existing = BusinessEvent.objects.filter(idempotency_key=idempotency_key).first()
    if existing:
        return existing

    try:
        with transaction.atomic():
            event = BusinessEvent.objects.create(
                event_type=event_type,
                aggregate_type=aggregate_type,
                aggregate_id=str(aggregate_id),
                data=data,
                metadata=metadata or {},
                caused_by_user=user,
                occurred_at=occurred_at or timezone.now(),
                idempotency_key=idempotency_key,
            )
    except IntegrityError:
        # Another request inserted the same key concurrently
        return BusinessEvent.objects.filter(idempotency_key=idempotency_key).first()
    except DatabaseError:
        logger.exception(
            "Failed to record audit event",
            extra={
                "event_type": event_type,
                "aggregate_type": aggregate_type,
                "aggregate_id": str(aggregate_id),
            },
        )
        return None

    logger.debug(
        "Audit event recorded",
        extra={
            "event_type": event_type,
            "aggregate_type": aggregate_type,
            "aggregate_id": str(aggregate_id),
        },
    )
    return event
