"""Schemas for checkout and payment ledger rows."""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from taskshare.models.payment import PaymentStatus


class CheckoutRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    task_id: int
    type: Literal["Card", "Wallet"]


class WalletCheckoutResult(BaseModel):
    success: bool = True
    message: str
    remaining_balance: int


class CardCheckoutResult(BaseModel):
    session_id: str
    url: str | None = None


class PaymentRead(BaseModel):
    id: int
    task_request_id: int
    user_id: int
    amount: Decimal
    currency: str
    status: PaymentStatus
    is_payment: bool
    stripe_session_id: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
