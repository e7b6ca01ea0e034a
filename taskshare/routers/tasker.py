"""Tasker profile and task request endpoints."""
from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import TaskRequestStatus, User
from taskshare.schemas.task_request import StatusUpdate, StatusUpdateResult, TaskRequestRead
from taskshare.schemas.tasker import AvailabilitySlot, AvailabilityUpdate, TaskerProfileRead
from taskshare.security import get_current_user, require_tasker
from taskshare.services import task_requests as task_requests_service
from taskshare.services import taskers as taskers_service
from taskshare.services.notifications import NotificationOutbox, flush_outbox, get_outbox
from taskshare.services.open_tasks import TASK_IMAGE_KIND
from taskshare.services.storage import save_image, save_images
from taskshare.utils.forms import parse_json_field

router = APIRouter(prefix="/tasker", tags=["tasker"])

_slots = TypeAdapter(list[AvailabilitySlot])
_ids = TypeAdapter(list[int])


# --- Profile ---------------------------------------------------------------
@router.post("/profile", response_model=TaskerProfileRead, status_code=status.HTTP_201_CREATED)
async def create_profile(
    hourly_rate: Decimal = Form(..., gt=0),
    description: str | None = Form(default=None, max_length=2000),
    categories: str | None = Form(default=None, description="JSON list of category ids"),
    cities: str | None = Form(default=None, description="JSON list of city ids"),
    profile_photo: UploadFile | None = File(default=None),
    gallery: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> TaskerProfileRead:
    photo = await save_image(profile_photo, "profiles") if profile_photo and profile_photo.filename else None
    profile = taskers_service.create_profile(
        db,
        user,
        description=description,
        hourly_rate=hourly_rate,
        category_ids=parse_json_field(categories, _ids, field="categories", default=[]),
        city_ids=parse_json_field(cities, _ids, field="cities", default=[]),
        profile_photo=photo,
        gallery=await save_images(gallery, "gallery"),
    )
    return taskers_service.serialize_profile(db, profile)


@router.get("/profile", response_model=TaskerProfileRead)
def get_own_profile(db: Session = Depends(get_db), user: User = Depends(require_tasker)) -> TaskerProfileRead:
    return taskers_service.serialize_profile(db, taskers_service.get_own_profile(user))


@router.put("/profile", response_model=TaskerProfileRead)
async def update_profile(
    hourly_rate: Decimal | None = Form(default=None, gt=0),
    description: str | None = Form(default=None, max_length=2000),
    categories: str | None = Form(default=None),
    cities: str | None = Form(default=None),
    profile_photo: UploadFile | None = File(default=None),
    gallery: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_tasker),
) -> TaskerProfileRead:
    photo = await save_image(profile_photo, "profiles") if profile_photo and profile_photo.filename else None
    profile = taskers_service.update_profile(
        db,
        user,
        description=description,
        hourly_rate=hourly_rate,
        category_ids=parse_json_field(categories, _ids, field="categories", default=None),
        city_ids=parse_json_field(cities, _ids, field="cities", default=None),
        profile_photo=photo,
        gallery=await save_images(gallery, "gallery"),
    )
    return taskers_service.serialize_profile(db, profile)


@router.delete("/profile", status_code=status.HTTP_200_OK)
def delete_profile(db: Session = Depends(get_db), user: User = Depends(require_tasker)) -> dict[str, bool]:
    taskers_service.delete_profile(db, user)
    return {"success": True}


@router.put("/profile/availability", response_model=TaskerProfileRead)
def replace_availability(
    payload: AvailabilityUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_tasker),
) -> TaskerProfileRead:
    profile = taskers_service.replace_availability(db, user, payload.slots)
    return taskers_service.serialize_profile(db, profile)


@router.get("/profiles", response_model=list[TaskerProfileRead])
def list_profiles(
    category: int | None = Query(default=None),
    city: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[TaskerProfileRead]:
    profiles = taskers_service.list_profiles(db, category_id=category, city_id=city)
    return [taskers_service.serialize_profile(db, profile) for profile in profiles]


@router.get("/profiles/{profile_id}", response_model=TaskerProfileRead)
def get_profile(profile_id: int, db: Session = Depends(get_db)) -> TaskerProfileRead:
    return taskers_service.serialize_profile(db, taskers_service.get_profile(db, profile_id))


# --- Task requests -----------------------------------------------------------
@router.post("/send-request", response_model=TaskRequestRead, status_code=status.HTTP_201_CREATED)
async def send_request(
    background_tasks: BackgroundTasks,
    tasker_id: int = Form(...),
    description: str = Form(..., min_length=1, max_length=5000),
    duration: int = Form(..., gt=0),
    hourly_rate: Decimal | None = Form(default=None, gt=0),
    city_id: int | None = Form(default=None),
    categories: str | None = Form(default=None, description="JSON list of category ids"),
    availability: str | None = Form(default=None, description="JSON list of {date, time_slot}"),
    gallery: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> TaskRequestRead:
    category_ids = parse_json_field(categories, _ids, field="categories", default=[])
    slots = parse_json_field(availability, _slots, field="availability", default=[])
    task_request = task_requests_service.create_task_request(
        db,
        sender=user,
        tasker_id=tasker_id,
        description=description,
        duration=duration,
        hourly_rate=hourly_rate,
        city_id=city_id,
        category_ids=category_ids,
        availability=slots,
        gallery=await save_images(gallery, TASK_IMAGE_KIND),
        outbox=outbox,
    )
    flush_outbox(background_tasks, outbox)
    return task_requests_service.serialize_task_request(task_request)


@router.get("/tasks/sent", response_model=list[TaskRequestRead])
def list_sent(
    status_filter: TaskRequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[TaskRequestRead]:
    items = task_requests_service.list_sent(db, user, status_filter=status_filter)
    return [task_requests_service.serialize_task_request(item) for item in items]


@router.get("/tasks/sent/{task_request_id}", response_model=TaskRequestRead)
def get_sent(
    task_request_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> TaskRequestRead:
    return task_requests_service.serialize_task_request(task_requests_service.get_sent(db, task_request_id, user))


@router.get("/tasks/received", response_model=list[TaskRequestRead])
def list_received(
    status_filter: TaskRequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[TaskRequestRead]:
    items = task_requests_service.list_received(db, user, status_filter=status_filter)
    return [task_requests_service.serialize_task_request(item) for item in items]


@router.get("/tasks/received/{task_request_id}", response_model=TaskRequestRead)
def get_received(
    task_request_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> TaskRequestRead:
    return task_requests_service.serialize_task_request(
        task_requests_service.get_received(db, task_request_id, user)
    )


@router.put("/tasks/received/{task_request_id}/status", response_model=StatusUpdateResult)
def update_status(
    task_request_id: int,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> StatusUpdateResult:
    """Move a task request along its lifecycle; either participant may call this."""

    result = task_requests_service.update_task_request_status(
        db, task_request_id, payload.status, user=user, outbox=outbox
    )
    flush_outbox(background_tasks, outbox)
    return result
