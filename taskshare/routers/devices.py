"""Push device token endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import User
from taskshare.schemas.device import DeviceTokenIn, DeviceTokenRemove
from taskshare.security import get_current_user
from taskshare.services import devices as devices_service

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("/token", status_code=status.HTTP_200_OK)
def register_token(
    payload: DeviceTokenIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> dict[str, object]:
    device = devices_service.register_token(db, user=user, token=payload.token, platform=payload.platform)
    return {"success": True, "device_id": device.id}


@router.delete("/token", status_code=status.HTTP_200_OK)
def remove_token(
    payload: DeviceTokenRemove, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> dict[str, bool]:
    devices_service.remove_token(db, user=user, token=payload.token)
    return {"success": True}
