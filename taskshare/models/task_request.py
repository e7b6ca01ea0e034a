"""Task request models."""
import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Integer, Numeric, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, value_enum


class TaskRequestStatus(str, enum.Enum):
    """Lifecycle states of a task request.

    ``ACCEPTED`` is only ever sent by clients; it is stored as
    ``WAITING_FOR_PAYMENT``.
    """

    PENDING = "pending"
    WAITING_FOR_PAYMENT = "Waiting for Payment"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    PAID = "paid"
    COMPLETED = "Completed"
    CANCELED = "Canceled"
    CANCELED_BY_SENDER = "Canceled by sender"
    REFUNDED = "refunded"


task_request_categories = Table(
    "task_request_categories",
    Base.metadata,
    Column("task_request_id", ForeignKey("task_requests.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class TaskRequest(Base):
    """A task engagement between a sender and one specific tasker."""

    __tablename__ = "task_requests"
    __table_args__ = (
        Index("ix_task_requests_sender_status", "sender_id", "status"),
        Index("ix_task_requests_tasker_status", "tasker_id", "status"),
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    city_id: Mapped[int | None] = mapped_column(ForeignKey("cities.id", ondelete="SET NULL"), nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    tasker_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[TaskRequestStatus] = mapped_column(
        value_enum(TaskRequestStatus, "task_request_status"),
        nullable=False,
        default=TaskRequestStatus.PENDING,
    )
    is_open_task: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    open_task_id: Mapped[int | None] = mapped_column(
        ForeignKey("open_tasks.id", ondelete="SET NULL"), nullable=True, index=True
    )

    city = relationship("City")
    sender = relationship("User", foreign_keys=[sender_id])
    tasker = relationship("User", foreign_keys=[tasker_id])
    open_task = relationship("OpenTask")
    categories = relationship("Category", secondary="task_request_categories")
    availability = relationship(
        "TaskRequestAvailability", back_populates="task_request", cascade="all, delete-orphan"
    )
    gallery = relationship(
        "TaskRequestGalleryImage", back_populates="task_request", cascade="all, delete-orphan"
    )
    payments = relationship(
        "Payment",
        back_populates="task_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Payment.id",
    )

    @property
    def total_amount(self) -> Decimal:
        return (Decimal(self.hourly_rate) * self.duration).quantize(Decimal("0.01"))


class TaskRequestAvailability(Base):
    __tablename__ = "task_request_availability"

    task_request_id: Mapped[int] = mapped_column(
        ForeignKey("task_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(20), nullable=False)

    task_request = relationship("TaskRequest", back_populates="availability")


class TaskRequestGalleryImage(Base):
    __tablename__ = "task_request_gallery_images"

    task_request_id: Mapped[int] = mapped_column(
        ForeignKey("task_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url: Mapped[str] = mapped_column(String(255), nullable=False)

    task_request = relationship("TaskRequest", back_populates="gallery")
