"""Reviews of completed tasks."""
from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskshare.models import Review, TaskRequest, TaskRequestStatus, User
from taskshare.schemas.review import RatingSummary, ReviewCreate, ReviewStatus
from taskshare.services.notifications import NotificationOutbox
from taskshare.services.taskers import rating_summary
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)


def _already_reviewed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response("ALREADY_REVIEWED", "This task has already been reviewed."),
    )


def create_review(db: Session, payload: ReviewCreate, *, user: User, outbox: NotificationOutbox) -> Review:
    task_request = db.get(TaskRequest, payload.task_request_id)
    if task_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("TASK_REQUEST_NOT_FOUND", "Task request not found."),
        )
    if task_request.sender_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_SENDER", "Only the sender can review this task."),
        )
    if task_request.status != TaskRequestStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("TASK_NOT_COMPLETED", "Only completed tasks can be reviewed."),
        )
    if get_for_task_request(db, task_request.id) is not None:
        raise _already_reviewed()

    review = Review(
        task_request_id=task_request.id,
        reviewer_id=user.id,
        tasker_id=task_request.tasker_id,
        rating=payload.rating,
        review=payload.review,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _already_reviewed()
    db.refresh(review)

    outbox.add(
        task_request.tasker_id,
        "New review",
        f"{user.display_name} rated your work {payload.rating}/5.",
        type="review",
        task_request_id=task_request.id,
    )
    logger.info("Review created", extra={"review_id": review.id, "tasker_id": review.tasker_id})
    return review


def list_for_tasker(db: Session, tasker_id: int) -> list[Review]:
    stmt = select(Review).where(Review.tasker_id == tasker_id).order_by(Review.created_at.desc(), Review.id.desc())
    return list(db.scalars(stmt))


def tasker_rating(db: Session, tasker_id: int) -> RatingSummary:
    average, count = rating_summary(db, tasker_id)
    return RatingSummary(tasker_id=tasker_id, average=average, count=count)


def get_for_task_request(db: Session, task_request_id: int) -> Review | None:
    return db.scalars(select(Review).where(Review.task_request_id == task_request_id)).first()


def review_status(db: Session, task_request_id: int, *, user: User) -> ReviewStatus:
    task_request = db.get(TaskRequest, task_request_id)
    if task_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("TASK_REQUEST_NOT_FOUND", "Task request not found."),
        )
    has_review = get_for_task_request(db, task_request_id) is not None
    can_review = (
        task_request.sender_id == user.id
        and task_request.status == TaskRequestStatus.COMPLETED
        and not has_review
    )
    return ReviewStatus(task_request_id=task_request_id, can_review=can_review, has_review=has_review)


__all__ = ["create_review", "list_for_tasker", "tasker_rating", "get_for_task_request", "review_status"]
