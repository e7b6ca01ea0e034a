"""Direct message schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class MessageCreate(BaseModel):
    receiver_id: int
    content: str = Field(min_length=1, max_length=4000)


class MessageRead(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    seen: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationRead(BaseModel):
    user: UserPublic
    last_message: MessageRead
    unread_count: int
