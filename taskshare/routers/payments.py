"""Checkout, Stripe webhook and checkout return pages."""
import html
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.db import get_db
from taskshare.models import User
from taskshare.schemas.payment import CardCheckoutResult, CheckoutRequest, WalletCheckoutResult
from taskshare.security import get_current_user
from taskshare.services import payments as payments_service
from taskshare.services import psp_webhooks
from taskshare.services.notifications import NotificationOutbox, flush_outbox, get_outbox
from taskshare.utils.money import format_cents

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-checkout-session",
    response_model=WalletCheckoutResult | CardCheckoutResult,
    status_code=status.HTTP_200_OK,
)
def create_checkout_session(
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> WalletCheckoutResult | CardCheckoutResult:
    """Pay for a task from the wallet, or open a Stripe checkout for card payment."""

    if payload.type == "Wallet":
        remaining = payments_service.wallet_checkout(
            db, user=user, task_id=payload.task_id, amount=payload.amount, outbox=outbox
        )
        flush_outbox(background_tasks, outbox)
        return WalletCheckoutResult(
            message=f"Payment successful. Remaining balance: {format_cents(remaining)}",
            remaining_balance=remaining,
        )

    session_id, url = payments_service.create_card_checkout(
        db, user=user, task_id=payload.task_id, amount=payload.amount
    )
    return CardCheckoutResult(session_id=session_id, url=url)


@router.post("/webhook", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> dict[str, bool]:
    result = await psp_webhooks.handle_stripe_webhook(request, db, outbox)
    flush_outbox(background_tasks, outbox)
    return result


def _return_page(title: str, message: str, link: str) -> HTMLResponse:
    body = f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <meta http-equiv="refresh" content="0;url={html.escape(link, quote=True)}">
    <title>{html.escape(title)}</title>
  </head>
  <body style="font-family: sans-serif; text-align: center; padding: 48px 16px;">
    <h1>{html.escape(title)}</h1>
    <p>{html.escape(message)}</p>
    <p><a href="{html.escape(link, quote=True)}">Return to the app</a></p>
  </body>
</html>
"""
    return HTMLResponse(content=body)


def _deep_link(outcome: str, session_id: str | None) -> str:
    params = {"status": outcome}
    if session_id:
        params["session_id"] = session_id
    return f"{get_settings().APP_DEEP_LINK}?{urlencode(params)}"


@router.get("/success", response_class=HTMLResponse)
def checkout_success(session_id: str | None = Query(default=None)) -> HTMLResponse:
    summary = payments_service.checkout_session_summary(session_id) if session_id else None
    message = "Your payment was received. You can return to the app."
    if summary and summary.get("payment_status") != "paid":
        message = "Your payment is being processed. You can return to the app."
    logger.info("Checkout success page served", extra={"session_id": session_id})
    return _return_page("Payment successful", message, _deep_link("success", session_id))


@router.get("/cancel", response_class=HTMLResponse)
def checkout_cancel(session_id: str | None = Query(default=None)) -> HTMLResponse:
    logger.info("Checkout cancel page served", extra={"session_id": session_id})
    return _return_page(
        "Payment canceled",
        "No payment was taken. You can try again from the app.",
        _deep_link("cancel", session_id),
    )
