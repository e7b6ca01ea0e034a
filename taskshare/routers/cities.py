"""City endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import City, User
from taskshare.schemas.catalog import CityRead
from taskshare.security import require_admin
from taskshare.services import catalog as catalog_service
from taskshare.utils.audit import actor_from_user

router = APIRouter(prefix="/cities", tags=["catalog"])


@router.get("", response_model=list[CityRead])
def list_cities(db: Session = Depends(get_db)) -> list[City]:
    return catalog_service.list_cities(db)


@router.post("/reset", response_model=list[CityRead])
def reset_cities(db: Session = Depends(get_db), admin: User = Depends(require_admin)) -> list[City]:
    """Restore the default city list."""

    return catalog_service.reset_cities(db, actor=actor_from_user(admin))
