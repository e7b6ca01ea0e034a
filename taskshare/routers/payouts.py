"""Payout request endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import PayoutRequest, User
from taskshare.schemas.payout import PayoutCreate, PayoutRead
from taskshare.security import get_current_user, require_admin
from taskshare.services import payouts as payouts_service
from taskshare.utils.audit import actor_from_user

router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.post("/request", response_model=PayoutRead, status_code=status.HTTP_201_CREATED)
def request_payout(
    payload: PayoutCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> PayoutRequest:
    """Withdraw wallet balance to the bank account on the profile."""

    return payouts_service.request_payout(db, user=user, amount=payload.amount)


@router.get("/requests", response_model=list[PayoutRead])
def list_requests(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[PayoutRequest]:
    return payouts_service.list_requests(db, user=user)


@router.post("/requests/{payout_id}/mark-paid", response_model=PayoutRead)
def mark_paid(
    payout_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)
) -> PayoutRequest:
    return payouts_service.mark_paid(db, payout_id, actor=actor_from_user(admin))
