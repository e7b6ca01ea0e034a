"""Wallet balance mutations.

Every change to ``users.wallet_amount`` goes through :func:`adjust_wallet`, which
locks the row, refuses to go below zero and writes an audit entry in the
caller's transaction. Callers own the commit.
"""
from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskshare.models import User
from taskshare.utils.audit import log_audit
from taskshare.utils.errors import InsufficientFunds, error_response

logger = logging.getLogger(__name__)


def lock_user(db: Session, user_id: int) -> User:
    """Load ``user_id`` with a row lock (no-op on SQLite)."""

    stmt = (
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = db.scalars(stmt).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("USER_NOT_FOUND", "User not found."),
        )
    return user


def adjust_wallet(
    db: Session,
    user_id: int,
    delta_cents: int,
    *,
    reason: str,
    actor: str = "system",
    entity: str = "User",
    entity_id: int | None = None,
) -> User:
    """Apply ``delta_cents`` to the user's wallet; raise :class:`InsufficientFunds` on overdraft."""

    user = lock_user(db, user_id)
    before = user.wallet_amount or 0
    after = before + delta_cents
    if after < 0:
        raise InsufficientFunds(required=-delta_cents, available=before)

    user.wallet_amount = after
    log_audit(
        db,
        actor=actor,
        action=reason,
        entity=entity,
        entity_id=entity_id if entity_id is not None else user.id,
        data={"user_id": user.id, "delta_cents": delta_cents, "balance_before": before, "balance_after": after},
    )
    db.flush()
    logger.info(
        "Wallet adjusted",
        extra={"user_id": user.id, "delta_cents": delta_cents, "reason": reason, "balance": after},
    )
    return user


__all__ = ["lock_user", "adjust_wallet"]
