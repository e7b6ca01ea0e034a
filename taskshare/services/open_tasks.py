"""Open tasks, their offers, and conversion of an accepted offer into a task request."""
from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from taskshare.models import (
    OfferStatus,
    OpenTask,
    OpenTaskDate,
    OpenTaskOffer,
    OpenTaskPhoto,
    OpenTaskStatus,
    TaskRequest,
    TaskRequestAvailability,
    TaskRequestGalleryImage,
    TaskRequestStatus,
    User,
)
from taskshare.schemas.catalog import CategoryRead, CityRead
from taskshare.schemas.open_task import (
    OfferCreate,
    OfferRead,
    OpenTaskDateIn,
    OpenTaskDateRead,
    OpenTaskFilters,
    OpenTaskRead,
)
from taskshare.schemas.user import UserPublic
from taskshare.services.catalog import get_category_or_404, get_city_or_404
from taskshare.services.notifications import NotificationOutbox
from taskshare.services.storage import image_path
from taskshare.utils.errors import error_response
from taskshare.utils.time import today

logger = logging.getLogger(__name__)

TASK_IMAGE_KIND = "tasks"


def serialize_open_task(task: OpenTask) -> OpenTaskRead:
    return OpenTaskRead(
        id=task.id,
        description=task.description,
        budget=task.budget,
        duration=task.duration,
        status=task.status,
        location=CityRead.model_validate(task.location),
        category=CategoryRead.model_validate(task.category),
        creator=UserPublic.model_validate(task.creator),
        photos=[photo.photo_url for photo in task.photos],
        dates=[OpenTaskDateRead.model_validate(item) for item in task.dates],
        offer_count=len(task.offers),
        created_at=task.created_at,
    )


def serialize_offer(offer: OpenTaskOffer) -> OfferRead:
    return OfferRead.model_validate(offer)


def create_open_task(
    db: Session,
    *,
    creator: User,
    description: str,
    budget: Decimal,
    duration: int,
    location_id: int,
    category_id: int,
    dates: Iterable[OpenTaskDateIn],
    photos: Iterable[str] = (),
) -> OpenTask:
    get_city_or_404(db, location_id)
    get_category_or_404(db, category_id)

    task = OpenTask(
        description=description.strip(),
        budget=budget,
        duration=duration,
        location_id=location_id,
        creator_id=creator.id,
        category_id=category_id,
        status=OpenTaskStatus.OPEN,
    )
    task.dates = [OpenTaskDate(date=item.date, time=item.time) for item in dates]
    task.photos = [OpenTaskPhoto(photo_url=path) for path in photos]
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(
        "Open task created",
        extra={"open_task_id": task.id, "creator_id": creator.id, "dates": len(task.dates)},
    )
    return task


def list_open_tasks(db: Session, filters: OpenTaskFilters) -> list[OpenTask]:
    """Open tasks matching ``filters``, newest first."""

    stmt = (
        select(OpenTask)
        .where(OpenTask.status == OpenTaskStatus.OPEN)
        .options(selectinload(OpenTask.photos), selectinload(OpenTask.dates), selectinload(OpenTask.offers))
    )
    if filters.category is not None:
        stmt = stmt.where(OpenTask.category_id == filters.category)
    if filters.cities:
        stmt = stmt.where(OpenTask.location_id.in_(filters.cities))
    if filters.date is not None:
        stmt = stmt.where(
            exists().where(OpenTaskDate.open_task_id == OpenTask.id, OpenTaskDate.date == filters.date)
        )
    if filters.min_budget is not None:
        stmt = stmt.where(OpenTask.budget >= filters.min_budget)
    if filters.max_budget is not None:
        stmt = stmt.where(OpenTask.budget <= filters.max_budget)
    if filters.duration is not None:
        stmt = stmt.where(OpenTask.duration == filters.duration)
    if filters.exclude_user_id is not None:
        stmt = stmt.where(OpenTask.creator_id != filters.exclude_user_id)
    stmt = stmt.order_by(OpenTask.created_at.desc(), OpenTask.id.desc())
    return list(db.scalars(stmt))


def get_open_task(db: Session, task_id: int) -> OpenTask:
    task = db.get(OpenTask, task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("OPEN_TASK_NOT_FOUND", "Open task not found."),
        )
    return task


def list_by_category(db: Session, category_id: int) -> list[OpenTask]:
    get_category_or_404(db, category_id)
    return list_open_tasks(db, OpenTaskFilters(category=category_id))


def list_dates(db: Session, task_id: int) -> list[OpenTaskDate]:
    return list(get_open_task(db, task_id).dates)


def delete_open_task(db: Session, task_id: int, *, user: User) -> None:
    task = get_open_task(db, task_id)
    if task.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_CREATOR", "Only the creator can delete this task."),
        )
    db.delete(task)
    db.commit()
    logger.info("Open task deleted", extra={"open_task_id": task_id, "user_id": user.id})


def delete_expired_dates(db: Session, *, as_of: dt.date | None = None) -> int:
    """Remove open-task dates before ``as_of`` (today by default)."""

    cutoff = as_of or today()
    result = db.execute(delete(OpenTaskDate).where(OpenTaskDate.date < cutoff))
    db.commit()
    removed = result.rowcount or 0
    logger.info("Expired open task dates removed", extra={"removed": removed, "cutoff": cutoff.isoformat()})
    return removed


def delete_open_tasks_without_dates(db: Session) -> int:
    """Remove ``open`` tasks that no longer have any date."""

    has_dates = exists().where(OpenTaskDate.open_task_id == OpenTask.id)
    stale = list(
        db.scalars(select(OpenTask).where(OpenTask.status == OpenTaskStatus.OPEN).where(~has_dates))
    )
    for task in stale:
        db.delete(task)
    db.commit()
    if stale:
        logger.info("Open tasks without dates removed", extra={"removed": len(stale)})
    return len(stale)


def create_offer(
    db: Session, task_id: int, payload: OfferCreate, *, tasker: User, outbox: NotificationOutbox
) -> OpenTaskOffer:
    task = get_open_task(db, task_id)
    if task.status != OpenTaskStatus.OPEN:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("OPEN_TASK_NOT_OPEN", "This task no longer accepts offers."),
        )
    if task.creator_id == tasker.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("OWN_TASK", "You cannot make an offer on your own task."),
        )

    duplicate = select(OpenTaskOffer.id).where(
        OpenTaskOffer.task_id == task.id, OpenTaskOffer.tasker_id == tasker.id
    )
    if db.scalars(duplicate).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("OFFER_EXISTS", "You already made an offer on this task."),
        )

    offer = OpenTaskOffer(
        task_id=task.id,
        tasker_id=tasker.id,
        description=payload.description.strip(),
        hourly_rate=payload.hourly_rate,
        duration=payload.duration,
        preferred_date=payload.preferred_date,
        preferred_time=payload.preferred_time,
        status=OfferStatus.PENDING,
    )
    db.add(offer)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("OFFER_EXISTS", "You already made an offer on this task."),
        )
    db.commit()
    db.refresh(offer)

    outbox.add(
        task.creator_id,
        "New offer",
        f"{tasker.display_name} made an offer on your task.",
        type="new_offer",
        open_task_id=task.id,
        offer_id=offer.id,
    )
    logger.info("Offer created", extra={"offer_id": offer.id, "open_task_id": task.id, "tasker_id": tasker.id})
    return offer


def list_offers(db: Session, task_id: int, *, user: User) -> list[OpenTaskOffer]:
    task = get_open_task(db, task_id)
    if task.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_CREATOR", "Only the creator can list offers."),
        )
    return list(task.offers)


def get_offer(db: Session, offer_id: int, *, user: User) -> OpenTaskOffer:
    offer = db.get(OpenTaskOffer, offer_id)
    if offer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("OFFER_NOT_FOUND", "Offer not found."),
        )
    if user.id not in (offer.tasker_id, offer.task.creator_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("OFFER_FORBIDDEN", "You cannot view this offer."),
        )
    return offer


def accept_offer(db: Session, offer_id: int, *, user: User, outbox: NotificationOutbox) -> TaskRequest:
    """Accept a pending offer and turn its open task into a task request.

    Task fields are copied by value; later edits to the open task do not reach
    the task request. Photos move to the task request gallery.
    """

    offer = db.get(OpenTaskOffer, offer_id)
    if offer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("OFFER_NOT_FOUND", "Offer not found."),
        )

    task = db.scalars(
        select(OpenTask)
        .where(OpenTask.id == offer.task_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).one()
    if task.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_CREATOR", "Only the creator can accept offers."),
        )
    if task.status != OpenTaskStatus.OPEN:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response(
                "OPEN_TASK_NOT_OPEN", "This task is no longer open.", {"status": task.status.value}
            ),
        )
    if offer.status != OfferStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response("OFFER_NOT_PENDING", "Offer is not pending.", {"status": offer.status.value}),
        )

    offer.status = OfferStatus.ACCEPTED
    for other in task.offers:
        if other.id != offer.id and other.status == OfferStatus.PENDING:
            other.status = OfferStatus.REJECTED
    task.status = OpenTaskStatus.ASSIGNED

    task_request = TaskRequest(
        description=task.description,
        city_id=task.location_id,
        duration=offer.duration,
        sender_id=task.creator_id,
        tasker_id=offer.tasker_id,
        hourly_rate=offer.hourly_rate,
        status=TaskRequestStatus.WAITING_FOR_PAYMENT,
        is_open_task=True,
        open_task_id=task.id,
    )
    task_request.categories = [task.category]
    task_request.availability = [
        TaskRequestAvailability(date=offer.preferred_date, time_slot=offer.preferred_time)
    ]
    task_request.gallery = [
        TaskRequestGalleryImage(image_url=image_path(TASK_IMAGE_KIND, photo.photo_url)) for photo in task.photos
    ]
    task.photos.clear()
    db.add(task_request)
    db.commit()
    db.refresh(task_request)

    outbox.add(
        offer.tasker_id,
        "Offer accepted",
        f"Your offer for '{task.description[:40]}' was accepted.",
        type="offer_accepted",
        task_request_id=task_request.id,
        open_task_id=task.id,
    )
    logger.info(
        "Offer accepted",
        extra={"offer_id": offer.id, "open_task_id": task.id, "task_request_id": task_request.id},
    )
    return task_request


def revert_to_open_task(db: Session, task_request: TaskRequest) -> OpenTask | None:
    """Reopen the open task behind ``task_request`` and hand its photos back.

    The accepted offer is removed so the tasker may bid again, and offers
    rejected by the acceptance become pending again. The caller commits.
    """

    task = db.get(OpenTask, task_request.open_task_id) if task_request.open_task_id else None
    if task is None:
        logger.warning(
            "Open task missing for revert",
            extra={"task_request_id": task_request.id, "open_task_id": task_request.open_task_id},
        )
        return None

    task.status = OpenTaskStatus.OPEN
    for offer in [offer for offer in task.offers if offer.status == OfferStatus.ACCEPTED]:
        task.offers.remove(offer)
        db.delete(offer)
    for offer in task.offers:
        if offer.status == OfferStatus.REJECTED:
            offer.status = OfferStatus.PENDING
    for image in list(task_request.gallery):
        task.photos.append(OpenTaskPhoto(photo_url=image_path(TASK_IMAGE_KIND, image.image_url)))
        task_request.gallery.remove(image)
    db.flush()
    logger.info(
        "Open task reverted",
        extra={"open_task_id": task.id, "task_request_id": task_request.id},
    )
    return task


def complete_open_task(db: Session, task_request: TaskRequest) -> None:
    """Close the open task behind a completed task request and drop its offers. The caller commits."""

    task = db.get(OpenTask, task_request.open_task_id) if task_request.open_task_id else None
    if task is None:
        return
    task.status = OpenTaskStatus.COMPLETED
    removed = db.execute(delete(OpenTaskOffer).where(OpenTaskOffer.task_id == task.id)).rowcount or 0
    db.expire(task, ["offers"])
    logger.info("Open task completed", extra={"open_task_id": task.id, "offers_removed": removed})


__all__ = [
    "TASK_IMAGE_KIND",
    "serialize_open_task",
    "serialize_offer",
    "create_open_task",
    "list_open_tasks",
    "get_open_task",
    "list_by_category",
    "list_dates",
    "delete_open_task",
    "delete_expired_dates",
    "delete_open_tasks_without_dates",
    "create_offer",
    "list_offers",
    "get_offer",
    "accept_offer",
    "revert_to_open_task",
    "complete_open_task",
]
