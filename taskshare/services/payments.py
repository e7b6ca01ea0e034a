"""Task payment ledger: wallet and card checkout, completion and refunds.

Each paid task carries exactly one debit row (``is_payment=True``, negative
amount, sender) and one credit row (positive amount, tasker). Wallet checkout
moves the money immediately and books both rows ``completed``; card checkout
books the rows from the Stripe webhook with the debit ``on hold`` and the credit
``pending`` until the task is completed.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

import stripe
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.models import (
    INACTIVE_PAYMENT_STATUSES,
    Payment,
    PaymentStatus,
    TaskRequest,
    TaskRequestStatus,
    User,
)
from taskshare.services.idempotency import get_existing_by_key
from taskshare.services.notifications import NotificationOutbox
from taskshare.services.psp_stripe import StripeClient
from taskshare.services.wallet import adjust_wallet
from taskshare.utils.audit import log_audit
from taskshare.utils.errors import InsufficientFunds, error_response
from taskshare.utils.money import CENT, format_cents, from_cents, quantize, to_cents

logger = logging.getLogger(__name__)


def _current_settings():
    return get_settings()


def active_ledger_rows(db: Session, task_request_id: int) -> tuple[Payment | None, Payment | None]:
    """Return the active ``(debit, credit)`` rows of a task, either may be ``None``."""

    stmt = (
        select(Payment)
        .where(Payment.task_request_id == task_request_id)
        .where(Payment.status.not_in(INACTIVE_PAYMENT_STATUSES))
        .order_by(Payment.id)
    )
    debit: Payment | None = None
    credit: Payment | None = None
    for row in db.scalars(stmt):
        if row.is_payment and debit is None:
            debit = row
        elif not row.is_payment and credit is None:
            credit = row
    return debit, credit


def _load_payable_task(db: Session, *, user: User, task_id: int, amount: Decimal) -> TaskRequest:
    task_request = db.get(TaskRequest, task_id)
    if task_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("TASK_REQUEST_NOT_FOUND", "Task request not found."),
        )
    if task_request.sender_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_SENDER", "Only the sender can pay for this task."),
        )
    if task_request.status != TaskRequestStatus.WAITING_FOR_PAYMENT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response(
                "TASK_NOT_PAYABLE",
                "Task request is not waiting for payment.",
                {"status": task_request.status.value},
            ),
        )
    debit, _ = active_ledger_rows(db, task_request.id)
    if debit is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("ALREADY_PAID", "Task request already has a payment."),
        )
    if quantize(amount) != task_request.total_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response(
                "AMOUNT_MISMATCH",
                "Amount does not match the task price.",
                {"expected": str(task_request.total_amount), "received": str(quantize(amount))},
            ),
        )
    return task_request


def wallet_checkout(
    db: Session,
    *,
    user: User,
    task_id: int,
    amount: Decimal,
    outbox: NotificationOutbox,
) -> int:
    """Pay a task from the sender's wallet; return the sender's remaining balance in cents."""

    task_request = _load_payable_task(db, user=user, task_id=task_id, amount=amount)
    amount = quantize(amount)
    cents = to_cents(amount)
    currency = _current_settings().PAYMENT_CURRENCY
    actor = f"user:{user.id}"

    try:
        sender = adjust_wallet(
            db,
            task_request.sender_id,
            -cents,
            reason="WALLET_PAYMENT_DEBIT",
            actor=actor,
            entity="TaskRequest",
            entity_id=task_request.id,
        )
        adjust_wallet(
            db,
            task_request.tasker_id,
            cents,
            reason="WALLET_PAYMENT_CREDIT",
            actor=actor,
            entity="TaskRequest",
            entity_id=task_request.id,
        )
    except InsufficientFunds:
        db.rollback()
        logger.info(
            "Wallet payment rejected: insufficient funds",
            extra={"task_request_id": task_request.id, "user_id": user.id, "required": cents},
        )
        raise

    db.add_all(
        [
            Payment(
                task_request_id=task_request.id,
                user_id=task_request.sender_id,
                amount=-amount,
                currency=currency,
                status=PaymentStatus.COMPLETED,
                is_payment=True,
            ),
            Payment(
                task_request_id=task_request.id,
                user_id=task_request.tasker_id,
                amount=amount,
                currency=currency,
                status=PaymentStatus.COMPLETED,
                is_payment=False,
            ),
        ]
    )
    task_request.status = TaskRequestStatus.PAID
    db.commit()
    db.refresh(sender)

    outbox.add(
        task_request.tasker_id,
        "Payment received",
        f"{user.display_name} paid {format_cents(cents)} {currency} for task #{task_request.id}.",
        type="payment_received",
        task_request_id=task_request.id,
    )
    logger.info(
        "Wallet payment completed",
        extra={"task_request_id": task_request.id, "amount_cents": cents, "sender_id": user.id},
    )
    return sender.wallet_amount


def create_card_checkout(db: Session, *, user: User, task_id: int, amount: Decimal) -> tuple[str, str | None]:
    """Open a Stripe hosted checkout for a task; return ``(session_id, url)``."""

    task_request = _load_payable_task(db, user=user, task_id=task_id, amount=amount)
    settings = _current_settings()
    try:
        client = StripeClient(settings)
        session = client.create_checkout_session(task_request, quantize(amount), settings.PAYMENT_CURRENCY)
    except RuntimeError as exc:
        logger.error("Stripe checkout configuration error", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_response("STRIPE_NOT_CONFIGURED", str(exc)),
        )
    except stripe.StripeError:
        logger.exception("Stripe checkout session creation failed", extra={"task_request_id": task_id})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_response("STRIPE_ERROR", "Payment provider error."),
        )

    logger.info(
        "Stripe checkout session created",
        extra={"task_request_id": task_request.id, "session_id": session.id},
    )
    return session.id, getattr(session, "url", None)


def _refund_unbookable_checkout(
    db: Session,
    *,
    session_id: str | None,
    task_id: int,
    sender_id: int,
    amount: Decimal,
    reason: str,
    task_request: TaskRequest | None,
    outbox: NotificationOutbox,
) -> None:
    """Credit a card payment that cannot pay its task to the sender's wallet.

    When the task still exists the money is booked as an inactive pair
    (debit ``refunded``, credit ``canceled``) so the session stays traceable.
    """

    settings = _current_settings()
    cents = to_cents(amount)
    adjust_wallet(
        db,
        sender_id,
        cents,
        reason="CARD_PAYMENT_REFUND",
        actor="stripe",
        entity="TaskRequest",
        entity_id=task_id,
    )
    if task_request is not None:
        db.add_all(
            [
                Payment(
                    task_request_id=task_request.id,
                    user_id=sender_id,
                    amount=-amount,
                    currency=settings.PAYMENT_CURRENCY,
                    stripe_session_id=session_id,
                    status=PaymentStatus.REFUNDED,
                    is_payment=True,
                ),
                Payment(
                    task_request_id=task_request.id,
                    user_id=task_request.tasker_id,
                    amount=amount,
                    currency=settings.PAYMENT_CURRENCY,
                    stripe_session_id=session_id,
                    status=PaymentStatus.CANCELED,
                    is_payment=False,
                ),
            ]
        )
    log_audit(
        db,
        actor="stripe",
        action="CARD_PAYMENT_UNBOOKABLE",
        entity="TaskRequest",
        entity_id=task_id,
        data={"stripe_session_id": session_id, "reason": reason, "amount_cents": cents},
    )
    db.flush()

    outbox.add(
        sender_id,
        "Payment refunded",
        f"Your card payment of {format_cents(cents)} {settings.PAYMENT_CURRENCY} for task #{task_id} "
        "could not be applied and was added to your wallet.",
        type="payment_refunded",
        task_request_id=task_id,
    )
    logger.warning(
        "Card payment refunded to wallet",
        extra={"session_id": session_id, "task_request_id": task_id, "reason": reason, "amount_cents": cents},
    )


def record_checkout_completed(
    db: Session, checkout_session: Mapping[str, Any], *, outbox: NotificationOutbox
) -> bool:
    """Book the ledger rows for a completed card checkout.

    Returns ``True`` when the payment was applied to its task. A session that
    can no longer pay its task (deleted, no longer waiting for payment,
    already paid, or charged a different price) is credited to the sender's
    wallet instead and ``False`` is returned. Sessions already booked and
    sessions without usable metadata write nothing. The caller commits.
    """

    session_id = checkout_session.get("id")
    metadata = checkout_session.get("metadata") or {}
    try:
        task_id = int(metadata["task_id"])
        amount = quantize(metadata["amount"])
        duration = int(metadata.get("duration") or 0)
        sender_id = int(metadata["sender_id"]) if metadata.get("sender_id") else None
    except (KeyError, TypeError, ValueError, ArithmeticError):
        logger.warning("Checkout session metadata incomplete", extra={"session_id": session_id})
        return False

    amount_total = checkout_session.get("amount_total")
    if amount_total is not None and int(amount_total) != to_cents(amount):
        logger.warning(
            "Checkout amount differs from session metadata",
            extra={"session_id": session_id, "metadata_amount": str(amount), "amount_total": amount_total},
        )
        amount = from_cents(int(amount_total))

    if get_existing_by_key(db, Payment, session_id, key_field="stripe_session_id") is not None:
        logger.info("Checkout session already booked", extra={"session_id": session_id})
        return False

    task_request = db.get(TaskRequest, task_id)
    refusal: str | None = None
    if task_request is None:
        refusal = "task_missing"
    elif task_request.status != TaskRequestStatus.WAITING_FOR_PAYMENT:
        refusal = "task_not_payable"
    elif active_ledger_rows(db, task_request.id)[0] is not None:
        refusal = "already_paid"
    elif amount != task_request.total_amount:
        refusal = "amount_mismatch"

    if refusal is not None:
        payer_id = task_request.sender_id if task_request is not None else sender_id
        if payer_id is None:
            logger.error(
                "Unbookable checkout session without sender",
                extra={"session_id": session_id, "task_id": task_id, "reason": refusal},
            )
            return False
        _refund_unbookable_checkout(
            db,
            session_id=session_id,
            task_id=task_id,
            sender_id=payer_id,
            amount=amount,
            reason=refusal,
            task_request=task_request,
            outbox=outbox,
        )
        return False

    settings = _current_settings()
    fee = quantize(settings.SERVICE_FEE_PER_HOUR * duration)
    fee = min(fee, amount - CENT)
    tasker_amount = amount - fee

    db.add_all(
        [
            Payment(
                task_request_id=task_request.id,
                user_id=task_request.sender_id,
                amount=-amount,
                currency=settings.PAYMENT_CURRENCY,
                stripe_session_id=session_id,
                status=PaymentStatus.ON_HOLD,
                is_payment=True,
            ),
            Payment(
                task_request_id=task_request.id,
                user_id=task_request.tasker_id,
                amount=tasker_amount,
                currency=settings.PAYMENT_CURRENCY,
                stripe_session_id=session_id,
                status=PaymentStatus.PENDING,
                is_payment=False,
            ),
        ]
    )
    task_request.status = TaskRequestStatus.PAID
    db.flush()

    outbox.add(
        task_request.tasker_id,
        "Task paid",
        f"Task #{task_request.id} has been paid by card.",
        type="payment_received",
        task_request_id=task_request.id,
    )
    outbox.add(
        task_request.sender_id,
        "Payment confirmed",
        f"Your card payment for task #{task_request.id} was received.",
        type="payment_confirmed",
        task_request_id=task_request.id,
    )
    logger.info(
        "Card payment booked",
        extra={"task_request_id": task_request.id, "session_id": session_id, "fee": str(fee)},
    )
    return True


def complete_task_payment(db: Session, task_request: TaskRequest, *, actor: str) -> int:
    """Release the payment of a completed task; return the cents credited to the tasker.

    A credit row that is already ``completed`` (wallet checkout) has moved its
    money and is not credited again. The caller commits.
    """

    debit, credit = active_ledger_rows(db, task_request.id)
    if debit is None or credit is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("PAYMENT_NOT_FOUND", "No payment recorded for this task."),
        )

    credited = 0
    if credit.status != PaymentStatus.COMPLETED:
        credited = to_cents(credit.amount)
        adjust_wallet(
            db,
            credit.user_id,
            credited,
            reason="TASK_COMPLETED_CREDIT",
            actor=actor,
            entity="TaskRequest",
            entity_id=task_request.id,
        )
    debit.status = PaymentStatus.COMPLETED
    credit.status = PaymentStatus.COMPLETED
    db.flush()
    logger.info(
        "Task payment released",
        extra={"task_request_id": task_request.id, "credited_cents": credited},
    )
    return credited


def refund_task_payment(db: Session, task_request: TaskRequest, *, actor: str) -> bool:
    """Reverse the wallet effects of a task payment.

    The sender gets the debited amount back in their wallet; if the tasker was
    already credited, that credit is taken back. Returns ``False`` when the task
    has no active payment. The caller commits.
    """

    debit, credit = active_ledger_rows(db, task_request.id)
    if debit is None:
        logger.info("No active payment to refund", extra={"task_request_id": task_request.id})
        return False

    refund_cents = to_cents(abs(debit.amount))
    adjust_wallet(
        db,
        debit.user_id,
        refund_cents,
        reason="REFUND_CREDIT",
        actor=actor,
        entity="TaskRequest",
        entity_id=task_request.id,
    )
    if credit is not None:
        if credit.status == PaymentStatus.COMPLETED:
            adjust_wallet(
                db,
                credit.user_id,
                -to_cents(credit.amount),
                reason="REFUND_REVERSAL",
                actor=actor,
                entity="TaskRequest",
                entity_id=task_request.id,
            )
        credit.status = PaymentStatus.CANCELED
    debit.status = PaymentStatus.REFUNDED
    db.flush()
    logger.info(
        "Task payment refunded",
        extra={"task_request_id": task_request.id, "refund_cents": refund_cents},
    )
    return True


def checkout_session_summary(session_id: str) -> dict[str, Any] | None:
    """Best-effort lookup of a checkout session for the return pages."""

    try:
        session = StripeClient(_current_settings()).retrieve_checkout_session(session_id)
    except (RuntimeError, stripe.StripeError):
        logger.warning("Checkout session lookup failed", extra={"session_id": session_id}, exc_info=True)
        return None
    return {
        "id": session.get("id"),
        "payment_status": session.get("payment_status"),
        "amount_total": session.get("amount_total"),
        "currency": session.get("currency"),
    }


__all__ = [
    "active_ledger_rows",
    "wallet_checkout",
    "create_card_checkout",
    "record_checkout_completed",
    "complete_task_payment",
    "refund_task_payment",
    "checkout_session_summary",
]
