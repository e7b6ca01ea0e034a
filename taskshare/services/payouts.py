"""Wallet withdrawals to the user's bank account."""
from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskshare.models import PayoutRequest, PayoutStatus, User
from taskshare.services.wallet import adjust_wallet
from taskshare.utils.audit import log_audit
from taskshare.utils.errors import error_response
from taskshare.utils.money import quantize, to_cents
from taskshare.utils.time import utcnow

logger = logging.getLogger(__name__)


def request_payout(db: Session, *, user: User, amount: Decimal) -> PayoutRequest:
    """Debit the wallet now and record a ``waiting`` payout for manual transfer."""

    if not user.wallet_bank_iban:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("IBAN_REQUIRED", "Add a bank IBAN to your profile first."),
        )

    amount = quantize(amount)
    payout = PayoutRequest(user_id=user.id, amount=amount, iban=user.wallet_bank_iban, status=PayoutStatus.WAITING)
    db.add(payout)
    db.flush()
    adjust_wallet(
        db,
        user.id,
        -to_cents(amount),
        reason="PAYOUT_REQUESTED",
        actor=f"user:{user.id}",
        entity="PayoutRequest",
        entity_id=payout.id,
    )
    db.commit()
    db.refresh(payout)
    logger.info("Payout requested", extra={"payout_id": payout.id, "user_id": user.id, "amount": str(amount)})
    return payout


def list_requests(db: Session, *, user: User) -> list[PayoutRequest]:
    stmt = select(PayoutRequest).where(PayoutRequest.user_id == user.id).order_by(PayoutRequest.created_at.desc())
    return list(db.scalars(stmt))


def mark_paid(db: Session, payout_id: int, *, actor: str) -> PayoutRequest:
    payout = db.get(PayoutRequest, payout_id)
    if payout is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("PAYOUT_NOT_FOUND", "Payout request not found."),
        )
    if payout.status == PayoutStatus.PAID:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("PAYOUT_ALREADY_PAID", "Payout request is already paid."),
        )
    payout.status = PayoutStatus.PAID
    payout.paid_at = utcnow()
    log_audit(db, actor=actor, action="PAYOUT_MARKED_PAID", entity="PayoutRequest", entity_id=payout.id)
    db.commit()
    db.refresh(payout)
    logger.info("Payout marked paid", extra={"payout_id": payout.id})
    return payout


__all__ = ["request_payout", "list_requests", "mark_paid"]
