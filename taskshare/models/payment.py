"""Payment ledger model definitions."""
import enum
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, value_enum


class PaymentStatus(str, enum.Enum):
    """Possible statuses for a ledger row."""

    WAITING = "waiting"
    ON_HOLD = "on hold"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"
    REFUNDED = "refunded"


INACTIVE_PAYMENT_STATUSES = (PaymentStatus.CANCELED, PaymentStatus.REFUNDED)


class Payment(Base):
    """One ledger row per task and direction.

    ``amount`` is signed: negative rows debit the sender (``is_payment``),
    positive rows credit the tasker.
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount <> 0", name="amount_non_zero"),
        UniqueConstraint("task_request_id", "is_payment", name="uq_payments_task_direction"),
        Index("ix_payments_status", "status"),
        Index("ix_payments_user_status", "user_id", "status"),
    )

    task_request_id: Mapped[int] = mapped_column(
        ForeignKey("task_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    status: Mapped[PaymentStatus] = mapped_column(
        value_enum(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.WAITING
    )
    is_payment: Mapped[bool] = mapped_column(Boolean, nullable=False)

    task_request = relationship("TaskRequest", back_populates="payments")
    user = relationship("User")

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_PAYMENT_STATUSES
