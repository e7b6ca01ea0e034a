"""Review endpoints."""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import Review, User
from taskshare.schemas.review import RatingSummary, ReviewCreate, ReviewRead, ReviewStatus
from taskshare.security import get_current_user
from taskshare.services import reviews as reviews_service
from taskshare.services.notifications import NotificationOutbox, flush_outbox, get_outbox
from taskshare.utils.errors import error_response

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> Review:
    review = reviews_service.create_review(db, payload, user=user, outbox=outbox)
    flush_outbox(background_tasks, outbox)
    return review


@router.get("/tasker/{tasker_id}", response_model=list[ReviewRead])
def list_for_tasker(tasker_id: int, db: Session = Depends(get_db)) -> list[Review]:
    return reviews_service.list_for_tasker(db, tasker_id)


@router.get("/tasker/{tasker_id}/rating", response_model=RatingSummary)
def tasker_rating(tasker_id: int, db: Session = Depends(get_db)) -> RatingSummary:
    return reviews_service.tasker_rating(db, tasker_id)


@router.get("/task-request/{task_request_id}", response_model=ReviewRead)
def get_for_task_request(task_request_id: int, db: Session = Depends(get_db)) -> Review:
    review = reviews_service.get_for_task_request(db, task_request_id)
    if review is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("REVIEW_NOT_FOUND", "No review for this task request."),
        )
    return review


@router.get("/task-request/{task_request_id}/status", response_model=ReviewStatus)
def review_status(
    task_request_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> ReviewStatus:
    return reviews_service.review_status(db, task_request_id, user=user)
