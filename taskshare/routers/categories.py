"""Category endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import Category, User
from taskshare.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate
from taskshare.security import require_admin
from taskshare.services import catalog as catalog_service
from taskshare.utils.audit import actor_from_user

router = APIRouter(prefix="/categories", tags=["catalog"])


@router.get("", response_model=list[CategoryRead])
def list_categories(db: Session = Depends(get_db)) -> list[Category]:
    return catalog_service.list_categories(db)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(category_id: int, db: Session = Depends(get_db)) -> Category:
    return catalog_service.get_category_or_404(db, category_id)


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)
) -> Category:
    return catalog_service.create_category(db, payload, actor=actor_from_user(admin))


@router.put("/{category_id}", response_model=CategoryRead)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> Category:
    return catalog_service.update_category(db, category_id, payload, actor=actor_from_user(admin))


@router.delete("/{category_id}", status_code=status.HTTP_200_OK)
def delete_category(
    category_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)
) -> dict[str, bool]:
    catalog_service.delete_category(db, category_id, actor=actor_from_user(admin))
    return {"success": True}
