"""Review schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class ReviewCreate(BaseModel):
    task_request_id: int
    rating: int = Field(ge=1, le=5)
    review: str | None = Field(default=None, max_length=1000)


class ReviewRead(BaseModel):
    id: int
    task_request_id: int
    tasker_id: int
    rating: int
    review: str | None = None
    reviewer: UserPublic
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RatingSummary(BaseModel):
    tasker_id: int
    average: float | None = None
    count: int


class ReviewStatus(BaseModel):
    task_request_id: int
    can_review: bool
    has_review: bool
