"""Bearer-token authentication dependencies."""
from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import User
from taskshare.services.auth import decode_token
from taskshare.utils.errors import error_response


def _extract_token(authorization: str | None = Header(default=None)) -> str | None:
    """Read the token from ``Authorization: Bearer ...``."""
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


def get_current_user(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_token),
) -> User:
    """Resolve the authenticated user; only the most recently issued token is accepted."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("NO_TOKEN", "Authentication token required."),
        )

    claims = decode_token(token)
    user = db.get(User, claims.get("id"))
    if user is None or user.current_token != token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("INVALID_TOKEN", "Invalid token."),
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("ACCOUNT_DEACTIVATED", "Account is deactivated."),
        )
    return user


def require_tasker(user: User = Depends(get_current_user)) -> User:
    if not user.is_tasker:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("TASKER_PROFILE_REQUIRED", "A tasker profile is required."),
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("INSUFFICIENT_SCOPE", "Admin access required."),
        )
    return user


__all__ = ["get_current_user", "require_tasker", "require_admin"]
