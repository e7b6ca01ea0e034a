"""Payout request model."""
import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, value_enum


class PayoutStatus(str, enum.Enum):
    WAITING = "waiting"
    PAID = "paid"


class PayoutRequest(Base):
    """Withdrawal of wallet balance to the user's bank account."""

    __tablename__ = "payout_requests"
    __table_args__ = (CheckConstraint("amount > 0", name="amount_positive"),)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    iban: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[PayoutStatus] = mapped_column(
        value_enum(PayoutStatus, "payout_status"), nullable=False, default=PayoutStatus.WAITING
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user = relationship("User")
