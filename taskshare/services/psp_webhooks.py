"""Services handling Stripe webhook callbacks."""
from __future__ import annotations

import json
import logging
from typing import Any

import stripe
from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.services import payments as payments_service
from taskshare.services.idempotency import mark_processed, register_webhook_event, session_already_processed
from taskshare.services.notifications import NotificationOutbox
from taskshare.services.psp_stripe import StripeClient
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)

PROVIDER = "stripe"


def _current_settings():
    return get_settings()


def _as_dict(obj: Any) -> dict[str, Any]:
    """Plain JSON-compatible copy of a Stripe object or mapping."""

    if isinstance(obj, dict):
        return json.loads(json.dumps(obj, default=str))
    return json.loads(str(obj))


async def handle_stripe_webhook(
    request: Request, db: Session, outbox: NotificationOutbox
) -> dict[str, bool]:
    """Verify a Stripe callback and book completed checkout sessions exactly once."""

    settings = _current_settings()
    if not settings.STRIPE_ENABLED:
        logger.warning("Stripe webhook received while Stripe is disabled")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_response("STRIPE_DISABLED", "Stripe integration is disabled."),
        )

    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature")
    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("STRIPE_SIGNATURE_MISSING", "Stripe-Signature header is required."),
        )

    try:
        client = StripeClient(settings)
        event = client.construct_webhook_event(payload, sig_header)
    except RuntimeError as exc:
        logger.error("Stripe webhook configuration error", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_response("STRIPE_NOT_CONFIGURED", str(exc)),
        )
    except stripe.SignatureVerificationError:
        logger.warning("Stripe signature verification failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("STRIPE_SIGNATURE_INVALID", "Invalid Stripe signature."),
        )
    except ValueError:
        logger.exception("Failed to parse Stripe webhook event")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("STRIPE_EVENT_INVALID", "Invalid Stripe webhook payload."),
        )

    event_type = event.get("type") or ""
    event_id = event.get("id")
    logger.info("Stripe webhook received", extra={"event_type": event_type, "event_id": event_id})

    if event_type != "checkout.session.completed":
        logger.info("Unhandled Stripe event type", extra={"event_type": event_type})
        return {"received": True}

    if not event_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("MISSING_EVENT_ID", "Stripe event id is missing."),
        )

    checkout_session = _as_dict(event["data"]["object"])
    recorded = register_webhook_event(
        db,
        provider=PROVIDER,
        event_id=event_id,
        kind=event_type,
        session_id=checkout_session.get("id"),
        payload=checkout_session,
    )
    if recorded is None:
        logger.info("Duplicate Stripe event ignored", extra={"event_id": event_id})
        return {"received": True, "duplicate": True}

    if session_already_processed(db, provider=PROVIDER, session_id=checkout_session.get("id")):
        logger.info("Checkout session already processed", extra={"event_id": event_id})
        mark_processed(recorded)
        db.commit()
        return {"received": True, "duplicate": True}

    payments_service.record_checkout_completed(db, checkout_session, outbox=outbox)
    mark_processed(recorded)
    db.commit()
    logger.info(
        "Stripe webhook processed",
        extra={"event_id": event_id, "session_id": checkout_session.get("id")},
    )
    return {"received": True}


__all__ = ["handle_stripe_webhook"]
