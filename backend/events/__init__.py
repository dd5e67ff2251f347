# events/__init__.py
"""
Events app - audit trail for BuildLedger.

This app provides:
- BusinessEvent: Immutable audit records
- emit_event: The single emission function used by commands
- Event type definitions with CANONICAL SCHEMAS
- Payload validation at emission time

Usage:
    from events.emitter import emit_event
    from events.types import EventTypes, AccountCreatedData

    emit_event(
        actor=actor,
        event_type=EventTypes.ACCOUNT_CREATED,
        aggregate_type="Account",
        aggregate_id=account.pk,
        data=AccountCreatedData(
            account_id=account.pk,
            code="1000",
            name="Cash",
            account_type="ASSET",
            normal_balance="DEBIT",
            currency="USD",
        ),
        idempotency_key=f"account.created:{account.pk}",
    )
"""
