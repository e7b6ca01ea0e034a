"""Device token schemas."""
from pydantic import BaseModel, Field


class DeviceTokenIn(BaseModel):
    token: str = Field(min_length=10, max_length=512)
    platform: str | None = Field(default=None, max_length=20)


class DeviceTokenRemove(BaseModel):
    token: str = Field(min_length=1, max_length=512)
