"""Push device token registration."""
import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskshare.models import User, UserDevice
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)


def register_token(db: Session, *, user: User, token: str, platform: str | None = None) -> UserDevice:
    """Upsert ``token`` for ``user``; a token held by another account moves to this one."""

    device = db.scalars(select(UserDevice).where(UserDevice.device_token == token)).first()
    if device is None:
        device = UserDevice(user_id=user.id, device_token=token, platform=platform)
        db.add(device)
    else:
        if device.user_id != user.id:
            logger.info("Device token reassigned", extra={"from_user_id": device.user_id, "to_user_id": user.id})
        device.user_id = user.id
        if platform:
            device.platform = platform
    db.commit()
    db.refresh(device)
    return device


def remove_token(db: Session, *, user: User, token: str) -> None:
    device = db.scalars(
        select(UserDevice).where(UserDevice.device_token == token, UserDevice.user_id == user.id)
    ).first()
    if device is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("DEVICE_NOT_FOUND", "Device token not registered."),
        )
    db.delete(device)
    db.commit()
    logger.info("Device token removed", extra={"user_id": user.id})
