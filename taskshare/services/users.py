"""Account profile, wallet balance and account removal."""
from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import delete
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.models import User, UserDevice
from taskshare.schemas.user import ProfileUpdate, UserRead, WalletBalance
from taskshare.services.task_requests import has_active_tasks
from taskshare.utils.audit import log_audit
from taskshare.utils.errors import error_response
from taskshare.utils.money import format_cents

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> UserRead:
    return UserRead.model_validate(user, from_attributes=True)


def get_public_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("USER_NOT_FOUND", "User not found."),
        )
    return user


def update_profile(db: Session, user: User, payload: ProfileUpdate, *, profile_photo: str | None = None) -> User:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value.strip() if isinstance(value, str) else value)
    if profile_photo is not None:
        user.profile_photo = profile_photo
    if "wallet_bank_iban" in changes:
        log_audit(
            db,
            actor=f"user:{user.id}",
            action="BANK_IBAN_UPDATED",
            entity="User",
            entity_id=user.id,
            data={"wallet_bank_iban": changes["wallet_bank_iban"]},
        )
    db.commit()
    db.refresh(user)
    logger.info("Profile updated", extra={"user_id": user.id, "fields": sorted(changes)})
    return user


def wallet_balance(user: User) -> WalletBalance:
    return WalletBalance(
        wallet_amount=user.wallet_amount,
        balance=format_cents(user.wallet_amount),
        currency=get_settings().PAYMENT_CURRENCY,
    )


def delete_account(db: Session, user: User) -> None:
    """Deactivate the account; refused while the user has tasks in progress."""

    if has_active_tasks(db, user.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("ACTIVE_TASKS", "Finish or cancel your active tasks first."),
        )
    user.is_active = False
    user.current_token = None
    db.execute(delete(UserDevice).where(UserDevice.user_id == user.id))
    log_audit(db, actor=f"user:{user.id}", action="ACCOUNT_DEACTIVATED", entity="User", entity_id=user.id)
    db.commit()
    logger.info("Account deactivated", extra={"user_id": user.id})


__all__ = ["serialize_user", "get_public_user", "update_profile", "wallet_balance", "delete_account"]
