"""Account endpoints for the authenticated user."""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import User
from taskshare.schemas.auth import ChangePasswordRequest
from taskshare.schemas.user import ProfileUpdate, UserPublic, UserRead, WalletBalance
from taskshare.security import get_current_user
from taskshare.services import auth as auth_service
from taskshare.services import users as users_service
from taskshare.services.storage import save_image
from taskshare.utils.forms import build_model

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/profile", response_model=UserRead)
def get_profile(user: User = Depends(get_current_user)) -> UserRead:
    return users_service.serialize_user(user)


@router.put("/profile", response_model=UserRead)
async def update_profile(
    name: str | None = Form(default=None),
    surname: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    city: str | None = Form(default=None),
    wallet_bank_iban: str | None = Form(default=None),
    profile_photo: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> UserRead:
    payload = build_model(
        ProfileUpdate,
        name=name,
        surname=surname,
        phone=phone,
        city=city,
        wallet_bank_iban=wallet_bank_iban,
    )

    photo_path = None
    if profile_photo is not None and profile_photo.filename:
        photo_path = await save_image(profile_photo, "profiles")
    updated = users_service.update_profile(db, user, payload, profile_photo=photo_path)
    return users_service.serialize_user(updated)


@router.get("/wallet/balance", response_model=WalletBalance)
def wallet_balance(user: User = Depends(get_current_user)) -> WalletBalance:
    return users_service.wallet_balance(user)


@router.post("/change-password", status_code=status.HTTP_200_OK)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, bool]:
    auth_service.change_password(
        db, user, current_password=payload.current_password, new_password=payload.new_password
    )
    return {"success": True}


@router.delete("/account", status_code=status.HTTP_200_OK)
def delete_account(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> dict[str, bool]:
    users_service.delete_account(db, user)
    return {"success": True}


@router.get("/{user_id}", response_model=UserPublic)
def public_profile(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> User:
    return users_service.get_public_user(db, user_id)
