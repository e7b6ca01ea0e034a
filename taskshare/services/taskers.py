"""Tasker profiles and availability."""
from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from taskshare.models import (
    Review,
    TaskerAvailability,
    TaskerGalleryImage,
    TaskerProfile,
    User,
    tasker_profile_categories,
    tasker_profile_cities,
)
from taskshare.schemas.catalog import CategoryRead, CityRead
from taskshare.schemas.tasker import AvailabilitySlot, TaskerProfileRead
from taskshare.services.catalog import load_categories, load_cities
from taskshare.utils.errors import error_response
from taskshare.utils.time import today

logger = logging.getLogger(__name__)


def rating_summary(db: Session, tasker_id: int) -> tuple[float | None, int]:
    """Return ``(average, count)`` of the tasker's reviews."""

    average, count = db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.tasker_id == tasker_id)
    ).one()
    return (round(float(average), 2) if average is not None else None), int(count or 0)


def serialize_profile(db: Session, profile: TaskerProfile) -> TaskerProfileRead:
    average, count = rating_summary(db, profile.user_id)
    return TaskerProfileRead(
        id=profile.id,
        user_id=profile.user_id,
        name=profile.user.name,
        surname=profile.user.surname,
        description=profile.description,
        hourly_rate=profile.hourly_rate,
        profile_photo=profile.profile_photo or profile.user.profile_photo,
        categories=[CategoryRead.model_validate(item) for item in profile.categories],
        cities=[CityRead.model_validate(item) for item in profile.cities],
        availability=[AvailabilitySlot.model_validate(item) for item in profile.availability],
        gallery=[image.image_url for image in profile.gallery],
        rating=average,
        review_count=count,
    )


def _profile_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error_response("TASKER_PROFILE_NOT_FOUND", "Tasker profile not found."),
    )


def get_own_profile(user: User) -> TaskerProfile:
    if user.tasker_profile is None:
        raise _profile_not_found()
    return user.tasker_profile


def get_profile(db: Session, profile_id: int) -> TaskerProfile:
    profile = db.get(TaskerProfile, profile_id)
    if profile is None or not profile.user.is_active:
        raise _profile_not_found()
    return profile


def create_profile(
    db: Session,
    user: User,
    *,
    description: str | None,
    hourly_rate: Decimal,
    category_ids: Iterable[int],
    city_ids: Iterable[int],
    profile_photo: str | None = None,
    gallery: Iterable[str] = (),
) -> TaskerProfile:
    if user.tasker_profile is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("TASKER_PROFILE_EXISTS", "You already have a tasker profile."),
        )

    profile = TaskerProfile(
        user_id=user.id,
        description=description,
        hourly_rate=hourly_rate,
        profile_photo=profile_photo,
    )
    profile.categories = load_categories(db, category_ids)
    profile.cities = load_cities(db, city_ids)
    profile.gallery = [TaskerGalleryImage(image_url=path) for path in gallery]
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Tasker profile created", extra={"user_id": user.id, "tasker_profile_id": profile.id})
    return profile


def update_profile(
    db: Session,
    user: User,
    *,
    description: str | None = None,
    hourly_rate: Decimal | None = None,
    category_ids: Iterable[int] | None = None,
    city_ids: Iterable[int] | None = None,
    profile_photo: str | None = None,
    gallery: Iterable[str] = (),
) -> TaskerProfile:
    """Apply the given fields; new gallery images are appended."""

    profile = get_own_profile(user)
    if description is not None:
        profile.description = description
    if hourly_rate is not None:
        profile.hourly_rate = hourly_rate
    if category_ids is not None:
        profile.categories = load_categories(db, category_ids)
    if city_ids is not None:
        profile.cities = load_cities(db, city_ids)
    if profile_photo is not None:
        profile.profile_photo = profile_photo
    for path in gallery:
        profile.gallery.append(TaskerGalleryImage(image_url=path))
    db.commit()
    db.refresh(profile)
    return profile


def delete_profile(db: Session, user: User) -> None:
    profile = get_own_profile(user)
    db.delete(profile)
    db.commit()
    db.expire(user, ["tasker_profile"])
    logger.info("Tasker profile deleted", extra={"user_id": user.id})


def replace_availability(db: Session, user: User, slots: Iterable[AvailabilitySlot]) -> TaskerProfile:
    """Replace every availability row of the caller's profile."""

    profile = get_own_profile(user)
    unique = {(slot.date, slot.time_slot) for slot in slots}
    profile.availability.clear()
    db.flush()
    profile.availability.extend(
        TaskerAvailability(date=day, time_slot=time_slot) for day, time_slot in sorted(unique)
    )
    db.commit()
    db.refresh(profile)
    logger.info("Tasker availability replaced", extra={"user_id": user.id, "slots": len(unique)})
    return profile


def list_profiles(
    db: Session, *, category_id: int | None = None, city_id: int | None = None
) -> list[TaskerProfile]:
    stmt = (
        select(TaskerProfile)
        .join(User, User.id == TaskerProfile.user_id)
        .where(User.is_active.is_(True))
        .options(
            selectinload(TaskerProfile.categories),
            selectinload(TaskerProfile.cities),
            selectinload(TaskerProfile.availability),
            selectinload(TaskerProfile.gallery),
        )
    )
    if category_id is not None:
        stmt = stmt.where(
            TaskerProfile.id.in_(
                select(tasker_profile_categories.c.tasker_profile_id).where(
                    tasker_profile_categories.c.category_id == category_id
                )
            )
        )
    if city_id is not None:
        stmt = stmt.where(
            TaskerProfile.id.in_(
                select(tasker_profile_cities.c.tasker_profile_id).where(tasker_profile_cities.c.city_id == city_id)
            )
        )
    return list(db.scalars(stmt.order_by(TaskerProfile.id)))


def delete_expired_availability(db: Session, *, as_of: dt.date | None = None) -> int:
    cutoff = as_of or today()
    result = db.execute(delete(TaskerAvailability).where(TaskerAvailability.date < cutoff))
    db.commit()
    removed = result.rowcount or 0
    logger.info("Expired tasker availability removed", extra={"removed": removed})
    return removed


__all__ = [
    "rating_summary",
    "serialize_profile",
    "get_own_profile",
    "get_profile",
    "create_profile",
    "update_profile",
    "delete_profile",
    "replace_availability",
    "list_profiles",
    "delete_expired_availability",
]
