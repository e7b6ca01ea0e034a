"""Registration and login endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from taskshare.services import auth as auth_service
from taskshare.services.users import serialize_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token = auth_service.register_user(db, payload)
    return AuthResponse(token=token, user=serialize_user(user), isTasker=user.is_tasker)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token = auth_service.login_user(db, payload)
    return AuthResponse(token=token, user=serialize_user(user), isTasker=user.is_tasker)
