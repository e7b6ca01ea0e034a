"""Support ticket schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SupportTicketCreate(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    content: str = Field(min_length=1, max_length=5000)


class SupportTicketRead(BaseModel):
    id: int
    type: str
    content: str
    status: str
    sender_name: str
    sender_surname: str
    sender_email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
