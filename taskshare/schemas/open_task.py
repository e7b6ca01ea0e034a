"""Open task and offer schemas."""
import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from taskshare.models.open_task import OfferStatus, OpenTaskStatus

from .catalog import CategoryRead, CityRead
from .user import UserPublic


class OpenTaskDateIn(BaseModel):
    date: dt.date
    time: str = Field(min_length=1, max_length=20)


class OpenTaskDateRead(OpenTaskDateIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class OpenTaskRead(BaseModel):
    id: int
    description: str
    budget: Decimal
    duration: int
    status: OpenTaskStatus
    location: CityRead
    category: CategoryRead
    creator: UserPublic
    photos: list[str] = []
    dates: list[OpenTaskDateRead] = []
    offer_count: int = 0
    created_at: dt.datetime


class OpenTaskFilters(BaseModel):
    category: int | None = None
    cities: list[int] = []
    date: dt.date | None = None
    min_budget: Decimal | None = None
    max_budget: Decimal | None = None
    duration: int | None = None
    exclude_user_id: int | None = None


class OfferCreate(BaseModel):
    description: str = Field(min_length=10, max_length=2000)
    hourly_rate: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    duration: int = Field(gt=0)
    preferred_date: dt.date
    preferred_time: str = Field(min_length=1, max_length=20)


class OfferRead(BaseModel):
    id: int
    task_id: int
    tasker: UserPublic
    description: str
    hourly_rate: Decimal
    duration: int
    preferred_date: dt.date
    preferred_time: str
    status: OfferStatus
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)
