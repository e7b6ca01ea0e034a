"""Task request schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from taskshare.models.task_request import TaskRequestStatus

from .catalog import CategoryRead, CityRead
from .tasker import AvailabilitySlot
from .user import UserPublic


class TaskRequestRead(BaseModel):
    id: int
    description: str
    city: CityRead | None = None
    duration: int
    hourly_rate: Decimal
    total_amount: Decimal
    status: TaskRequestStatus
    is_open_task: bool
    open_task_id: int | None = None
    sender: UserPublic
    tasker: UserPublic
    categories: list[CategoryRead] = []
    availability: list[AvailabilitySlot] = []
    gallery: list[str] = []
    created_at: datetime


class StatusUpdate(BaseModel):
    status: TaskRequestStatus


class StatusUpdateResult(BaseModel):
    id: int
    status: TaskRequestStatus | None = None
    deleted: bool = False
    refunded: bool = False
    open_task_id: int | None = None
    task_request: TaskRequestRead | None = None

    model_config = ConfigDict(use_enum_values=True)
