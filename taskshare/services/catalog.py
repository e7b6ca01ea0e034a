"""Cities and categories reference data."""
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskshare.models import Category, City
from taskshare.schemas.catalog import CategoryCreate, CategoryUpdate
from taskshare.utils.audit import log_audit
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)

DEFAULT_CITIES = (
    "Berlin",
    "Hamburg",
    "Munich",
    "Cologne",
    "Frankfurt",
    "Stuttgart",
    "Düsseldorf",
    "Leipzig",
    "Dortmund",
    "Essen",
    "Bremen",
    "Dresden",
    "Hanover",
    "Nuremberg",
)

DEFAULT_CATEGORIES = (
    ("Cleaning", "Home and office cleaning"),
    ("Moving", "Help with moving and heavy lifting"),
    ("Handyman", "Small repairs and furniture assembly"),
    ("Gardening", "Lawn care, planting and yard work"),
    ("Delivery", "Pick-up and delivery errands"),
    ("Pet care", "Dog walking and pet sitting"),
    ("Tutoring", "Lessons and homework help"),
    ("IT help", "Computer and phone setup"),
)


def get_city_or_404(db: Session, city_id: int) -> City:
    city = db.get(City, city_id)
    if city is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("CITY_NOT_FOUND", "City not found.", {"city_id": city_id}),
        )
    return city


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("CATEGORY_NOT_FOUND", "Category not found.", {"category_id": category_id}),
        )
    return category


def load_categories(db: Session, category_ids: Iterable[int]) -> list[Category]:
    """Load every id in ``category_ids``; 404 on the first unknown one."""

    return [get_category_or_404(db, category_id) for category_id in dict.fromkeys(category_ids)]


def load_cities(db: Session, city_ids: Iterable[int]) -> list[City]:
    return [get_city_or_404(db, city_id) for city_id in dict.fromkeys(city_ids)]


def list_cities(db: Session) -> list[City]:
    return list(db.scalars(select(City).order_by(City.name)))


def list_categories(db: Session) -> list[Category]:
    return list(db.scalars(select(Category).order_by(Category.name)))


def _duplicate_name(name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response("CATEGORY_EXISTS", "A category with this name already exists.", {"name": name}),
    )


def create_category(db: Session, payload: CategoryCreate, *, actor: str) -> Category:
    name = payload.name.strip()
    if db.scalars(select(Category).where(Category.name == name)).first() is not None:
        raise _duplicate_name(name)

    category = Category(name=name, description=payload.description, image_url=payload.image_url)
    db.add(category)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise _duplicate_name(name)
    log_audit(db, actor=actor, action="CATEGORY_CREATED", entity="Category", entity_id=category.id, data={"name": name})
    db.commit()
    db.refresh(category)
    logger.info("Category created", extra={"category_id": category.id})
    return category


def update_category(db: Session, category_id: int, payload: CategoryUpdate, *, actor: str) -> Category:
    category = get_category_or_404(db, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
        clash = db.scalars(
            select(Category).where(Category.name == changes["name"], Category.id != category.id)
        ).first()
        if clash is not None:
            raise _duplicate_name(changes["name"])
    for field, value in changes.items():
        setattr(category, field, value)
    log_audit(db, actor=actor, action="CATEGORY_UPDATED", entity="Category", entity_id=category.id, data=changes)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int, *, actor: str) -> None:
    category = get_category_or_404(db, category_id)
    db.delete(category)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("CATEGORY_IN_USE", "Category is referenced by open tasks."),
        )
    log_audit(db, actor=actor, action="CATEGORY_DELETED", entity="Category", entity_id=category_id)
    db.commit()
    logger.info("Category deleted", extra={"category_id": category_id})


def reset_cities(db: Session, *, actor: str = "system") -> list[City]:
    """Replace the city table with the default list, keeping ids of cities still referenced."""

    existing = {city.name: city for city in db.scalars(select(City))}
    wanted = set(DEFAULT_CITIES)
    stale = [city.id for name, city in existing.items() if name not in wanted]
    if stale:
        try:
            db.execute(delete(City).where(City.id.in_(stale)))
            db.flush()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=error_response("CITY_IN_USE", "Some cities are still referenced by open tasks."),
            )

    for name in DEFAULT_CITIES:
        if name not in existing:
            db.add(City(name=name))
    log_audit(db, actor=actor, action="CITIES_RESET", entity="City", entity_id=None, data={"removed": len(stale)})
    db.commit()
    logger.info("Cities reset", extra={"removed": len(stale), "total": len(DEFAULT_CITIES)})
    return list_cities(db)


def seed_categories(db: Session) -> int:
    """Insert missing default categories; return how many were added."""

    existing = set(db.scalars(select(Category.name)))
    added = 0
    for name, description in DEFAULT_CATEGORIES:
        if name not in existing:
            db.add(Category(name=name, description=description))
            added += 1
    db.commit()
    return added


__all__ = [
    "DEFAULT_CITIES",
    "DEFAULT_CATEGORIES",
    "get_city_or_404",
    "get_category_or_404",
    "load_categories",
    "load_cities",
    "list_cities",
    "list_categories",
    "create_category",
    "update_category",
    "delete_category",
    "reset_cities",
    "seed_categories",
]
