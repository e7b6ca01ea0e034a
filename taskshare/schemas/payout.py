"""Payout request schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from taskshare.models.payout import PayoutStatus


class PayoutCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class PayoutRead(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    iban: str
    status: PayoutStatus
    paid_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("iban")
    def _mask_iban(self, value: str) -> str:
        compact = value.replace(" ", "")
        return "*" * max(len(compact) - 4, 0) + compact[-4:]
