"""Idempotency helpers."""
from typing import Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskshare.models import PSPWebhookEvent
from taskshare.utils.time import utcnow

T = TypeVar("T")


def get_existing_by_key(
    db: Session,
    model: Type[T],
    key_value: str | None,
    *,
    key_field: str = "idempotency_key",
) -> Optional[T]:
    """Return the first record whose ``key_field`` equals ``key_value``."""
    if not key_value:
        return None
    if not hasattr(model, key_field):
        raise AttributeError(f"{model.__name__} has no field '{key_field}'")

    column = getattr(model, key_field)
    stmt = select(model).where(column == key_value).limit(1)
    return db.scalars(stmt).first()


def register_webhook_event(
    db: Session,
    *,
    provider: str,
    event_id: str,
    kind: str,
    session_id: str | None,
    payload: dict,
) -> Optional[PSPWebhookEvent]:
    """Record a webhook event once; return ``None`` if it was already recorded."""

    stmt = (
        select(PSPWebhookEvent)
        .where(PSPWebhookEvent.provider == provider, PSPWebhookEvent.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    if db.scalars(stmt).first() is not None:
        return None

    event = PSPWebhookEvent(
        provider=provider,
        event_id=event_id,
        kind=kind,
        session_id=session_id,
        raw_json=payload,
    )
    try:
        db.add(event)
        db.flush()
    except IntegrityError:
        # Concurrent delivery of the same event won the insert.
        db.rollback()
        return None
    return event


def session_already_processed(db: Session, *, provider: str, session_id: str | None) -> bool:
    """True when another event for the same checkout session was already processed."""

    if not session_id:
        return False
    stmt = (
        select(PSPWebhookEvent.id)
        .where(
            PSPWebhookEvent.provider == provider,
            PSPWebhookEvent.session_id == session_id,
            PSPWebhookEvent.processed_at.is_not(None),
        )
        .limit(1)
    )
    return db.scalars(stmt).first() is not None


def mark_processed(event: PSPWebhookEvent) -> None:
    event.processed_at = utcnow()


__all__ = ["get_existing_by_key", "register_webhook_event", "session_already_processed", "mark_processed"]
