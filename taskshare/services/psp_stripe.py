"""Stripe SDK wrapper for hosted checkout."""
from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict

import stripe

from taskshare.config import Settings
from taskshare.utils.money import to_cents

if TYPE_CHECKING:  # pragma: no cover - hints only
    from taskshare.models import TaskRequest


class StripeClient:
    """Wrapper around the Stripe Python SDK to isolate PSP concerns."""

    def __init__(self, settings: Settings) -> None:
        """Initialise the client and set the API key when enabled."""

        self.settings = settings
        self._ensure_enabled()
        self._secret_key = settings.STRIPE_SECRET_KEY
        self._webhook_secret = settings.STRIPE_WEBHOOK_SECRET

        if not self._secret_key:
            raise RuntimeError("Stripe secret key is missing; configure STRIPE_SECRET_KEY.")

        stripe.api_key = self._secret_key

    def _ensure_enabled(self) -> None:
        if not self.settings.STRIPE_ENABLED:
            raise RuntimeError("Stripe integration is disabled; enable STRIPE_ENABLED to proceed.")

    def _return_url(self, outcome: str) -> str:
        base = self.settings.PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/api/payments/{outcome}?session_id={{CHECKOUT_SESSION_ID}}"

    def create_checkout_session(
        self, task_request: "TaskRequest", amount: Decimal, currency: str
    ) -> stripe.checkout.Session:
        """Create a hosted Checkout Session paying ``amount`` for ``task_request``.

        The metadata round-trips to the ``checkout.session.completed`` webhook,
        which books the ledger rows from it.
        """

        metadata: Dict[str, Any] = {
            "task_id": str(task_request.id),
            "amount": str(amount),
            "sender_id": str(task_request.sender_id),
            "tasker_id": str(task_request.tasker_id),
            "duration": str(task_request.duration),
        }
        return stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {
                            "name": f"Task #{task_request.id}",
                            "description": task_request.description[:250],
                        },
                        "unit_amount": to_cents(amount),
                    },
                    "quantity": 1,
                }
            ],
            success_url=self._return_url("success"),
            cancel_url=self._return_url("cancel"),
            metadata=metadata,
        )

    def retrieve_checkout_session(self, session_id: str) -> stripe.checkout.Session:
        return stripe.checkout.Session.retrieve(session_id)

    def construct_webhook_event(self, payload: bytes, sig_header: str) -> stripe.Event:
        """Verify and construct a Stripe webhook event."""

        if not self._webhook_secret:
            raise RuntimeError(
                "Stripe webhook secret is missing; configure STRIPE_WEBHOOK_SECRET for verification."
            )

        return stripe.Webhook.construct_event(payload, sig_header, self._webhook_secret)
