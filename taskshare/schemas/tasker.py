"""Tasker profile schemas."""
import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .catalog import CategoryRead, CityRead


class AvailabilitySlot(BaseModel):
    date: dt.date
    time_slot: str = Field(min_length=1, max_length=20)

    model_config = ConfigDict(from_attributes=True)


class AvailabilityUpdate(BaseModel):
    slots: list[AvailabilitySlot]


class TaskerProfileRead(BaseModel):
    id: int
    user_id: int
    name: str
    surname: str
    description: str | None = None
    hourly_rate: Decimal
    profile_photo: str | None = None
    categories: list[CategoryRead] = []
    cities: list[CityRead] = []
    availability: list[AvailabilitySlot] = []
    gallery: list[str] = []
    rating: float | None = None
    review_count: int = 0
