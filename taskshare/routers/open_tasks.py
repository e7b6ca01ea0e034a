"""Open task and offer endpoints."""
import datetime as dt
from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import User
from taskshare.schemas.open_task import (
    OfferCreate,
    OfferRead,
    OpenTaskDateIn,
    OpenTaskDateRead,
    OpenTaskFilters,
    OpenTaskRead,
)
from taskshare.schemas.task_request import TaskRequestRead
from taskshare.security import get_current_user, require_admin, require_tasker
from taskshare.services import open_tasks as open_tasks_service
from taskshare.services.notifications import NotificationOutbox, flush_outbox, get_outbox
from taskshare.services.storage import save_images
from taskshare.services.task_requests import serialize_task_request
from taskshare.utils.audit import actor_from_user, log_audit
from taskshare.utils.forms import parse_id_list, parse_json_field

router = APIRouter(prefix="/open-tasks", tags=["open-tasks"])

_dates = TypeAdapter(list[OpenTaskDateIn])


@router.post("", response_model=OpenTaskRead, status_code=status.HTTP_201_CREATED)
async def create_open_task(
    description: str = Form(..., min_length=1, max_length=5000),
    budget: Decimal = Form(..., gt=0),
    duration: int = Form(..., gt=0),
    location: int = Form(...),
    category: int = Form(...),
    dates: str | None = Form(default=None, description="JSON list of {date, time}"),
    photos: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OpenTaskRead:
    task = open_tasks_service.create_open_task(
        db,
        creator=user,
        description=description,
        budget=budget,
        duration=duration,
        location_id=location,
        category_id=category,
        dates=parse_json_field(dates, _dates, field="dates", default=[]),
        photos=await save_images(photos, open_tasks_service.TASK_IMAGE_KIND),
    )
    return open_tasks_service.serialize_open_task(task)


@router.get("", response_model=list[OpenTaskRead])
def list_open_tasks(
    category: int | None = Query(default=None),
    cities: str | None = Query(default=None, description="Comma-separated city ids"),
    date: dt.date | None = Query(default=None),
    min_budget: Decimal | None = Query(default=None, alias="minBudget"),
    max_budget: Decimal | None = Query(default=None, alias="maxBudget"),
    duration: int | None = Query(default=None),
    exclude_user_id: int | None = Query(default=None, alias="excludeUserId"),
    db: Session = Depends(get_db),
) -> list[OpenTaskRead]:
    filters = OpenTaskFilters(
        category=category,
        cities=parse_id_list(cities, field="cities"),
        date=date,
        min_budget=min_budget,
        max_budget=max_budget,
        duration=duration,
        exclude_user_id=exclude_user_id,
    )
    tasks = open_tasks_service.list_open_tasks(db, filters)
    return [open_tasks_service.serialize_open_task(task) for task in tasks]


@router.delete("/dates/expired", status_code=status.HTTP_200_OK)
def delete_expired_dates(
    db: Session = Depends(get_db), admin: User = Depends(require_admin)
) -> dict[str, int]:
    removed = open_tasks_service.delete_expired_dates(db)
    log_audit(
        db,
        actor=actor_from_user(admin),
        action="OPEN_TASK_DATES_SWEPT",
        entity="OpenTaskDate",
        entity_id=None,
        data={"removed": removed},
    )
    db.commit()
    return {"removed": removed}


@router.get("/category/{category_id}", response_model=list[OpenTaskRead])
def list_by_category(category_id: int, db: Session = Depends(get_db)) -> list[OpenTaskRead]:
    tasks = open_tasks_service.list_by_category(db, category_id)
    return [open_tasks_service.serialize_open_task(task) for task in tasks]


@router.get("/offers/{offer_id}", response_model=OfferRead)
def get_offer(offer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> OfferRead:
    return open_tasks_service.serialize_offer(open_tasks_service.get_offer(db, offer_id, user=user))


@router.post("/offers/{offer_id}/accept", response_model=TaskRequestRead)
def accept_offer(
    offer_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> TaskRequestRead:
    task_request = open_tasks_service.accept_offer(db, offer_id, user=user, outbox=outbox)
    flush_outbox(background_tasks, outbox)
    return serialize_task_request(task_request)


@router.get("/{task_id}", response_model=OpenTaskRead)
def get_open_task(task_id: int, db: Session = Depends(get_db)) -> OpenTaskRead:
    return open_tasks_service.serialize_open_task(open_tasks_service.get_open_task(db, task_id))


@router.get("/{task_id}/dates", response_model=list[OpenTaskDateRead])
def list_dates(task_id: int, db: Session = Depends(get_db)) -> list[OpenTaskDateRead]:
    return [OpenTaskDateRead.model_validate(item) for item in open_tasks_service.list_dates(db, task_id)]


@router.delete("/{task_id}", status_code=status.HTTP_200_OK)
def delete_open_task(
    task_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> dict[str, bool]:
    open_tasks_service.delete_open_task(db, task_id, user=user)
    return {"success": True}


@router.post("/{task_id}/offers", response_model=OfferRead, status_code=status.HTTP_201_CREATED)
def create_offer(
    task_id: int,
    payload: OfferCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_tasker),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> OfferRead:
    offer = open_tasks_service.create_offer(db, task_id, payload, tasker=user, outbox=outbox)
    flush_outbox(background_tasks, outbox)
    return open_tasks_service.serialize_offer(offer)


@router.get("/{task_id}/offers", response_model=list[OfferRead])
def list_offers(
    task_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> list[OfferRead]:
    return [open_tasks_service.serialize_offer(offer) for offer in open_tasks_service.list_offers(db, task_id, user=user)]
