"""Account registration, login and JWT handling."""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any

import jwt
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.models import User
from taskshare.schemas.auth import LoginRequest, RegisterRequest
from taskshare.utils.errors import error_response
from taskshare.utils.time import utcnow

logger = logging.getLogger(__name__)


def _current_settings():
    return get_settings()


def issue_token(user: User) -> str:
    """Sign a bearer token for ``user``."""

    settings = _current_settings()
    now = utcnow()
    payload = {
        "id": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRES_DAYS),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify ``token``; raise 401 on any failure."""

    settings = _current_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("TOKEN_EXPIRED", "Token has expired."),
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("INVALID_TOKEN", "Invalid token."),
        )


def _find_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    return db.scalars(stmt).first()


def register_user(db: Session, payload: RegisterRequest) -> tuple[User, str]:
    """Create an account and log it in."""

    if _find_by_email(db, payload.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("EMAIL_TAKEN", "A user with this email already exists."),
        )

    user = User(
        name=payload.name.strip(),
        surname=payload.surname.strip(),
        email=payload.email.lower(),
        date_of_birth=payload.date_of_birth,
        wallet_amount=0,
    )
    user.set_password(payload.password)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("EMAIL_TAKEN", "A user with this email already exists."),
        )
    token = issue_token(user)
    user.current_token = token
    db.commit()
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})
    return user, token


def login_user(db: Session, payload: LoginRequest) -> tuple[User, str]:
    user = _find_by_email(db, payload.email)
    if user is None or not user.is_active or not user.check_password(payload.password):
        logger.info("Login rejected", extra={"email_domain": payload.email.split("@")[-1]})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("INVALID_CREDENTIALS", "Invalid email or password."),
        )

    token = issue_token(user)
    user.current_token = token
    db.commit()
    db.refresh(user)
    logger.info("User logged in", extra={"user_id": user.id})
    return user, token


def change_password(db: Session, user: User, *, current_password: str, new_password: str) -> None:
    if not user.check_password(current_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("INVALID_PASSWORD", "Current password is incorrect."),
        )
    user.set_password(new_password)
    db.commit()
    logger.info("Password changed", extra={"user_id": user.id})


__all__ = [
    "issue_token",
    "decode_token",
    "register_user",
    "login_user",
    "change_password",
]
