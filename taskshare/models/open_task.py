"""Open task (public posting) models."""
import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, value_enum


class OpenTaskStatus(str, enum.Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OfferStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class OpenTask(Base):
    """A task posted without a tasker; taskers bid on it with offers."""

    __tablename__ = "open_tasks"
    __table_args__ = (
        CheckConstraint("budget > 0", name="budget_positive"),
        Index("ix_open_tasks_status_created", "status", "created_at"),
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    budget: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    location_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    status: Mapped[OpenTaskStatus] = mapped_column(
        value_enum(OpenTaskStatus, "open_task_status"), nullable=False, default=OpenTaskStatus.OPEN
    )

    location = relationship("City")
    category = relationship("Category")
    creator = relationship("User")
    photos = relationship("OpenTaskPhoto", back_populates="task", cascade="all, delete-orphan")
    dates = relationship(
        "OpenTaskDate",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="OpenTaskDate.date",
    )
    offers = relationship(
        "OpenTaskOffer",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OpenTaskOffer.id",
    )


class OpenTaskPhoto(Base):
    __tablename__ = "open_task_photos"

    open_task_id: Mapped[int] = mapped_column(
        ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    photo_url: Mapped[str] = mapped_column(String(255), nullable=False)

    task = relationship("OpenTask", back_populates="photos")


class OpenTaskDate(Base):
    __tablename__ = "open_task_dates"

    open_task_id: Mapped[int] = mapped_column(
        ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(20), nullable=False)

    task = relationship("OpenTask", back_populates="dates")


class OpenTaskOffer(Base):
    """A tasker's bid on an open task."""

    __tablename__ = "open_task_offers"
    __table_args__ = (
        UniqueConstraint("task_id", "tasker_id", name="uq_open_task_offers_task_tasker"),
        CheckConstraint("hourly_rate > 0", name="rate_positive"),
        CheckConstraint("duration > 0", name="duration_positive"),
    )

    task_id: Mapped[int] = mapped_column(ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    tasker_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    preferred_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    preferred_time: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[OfferStatus] = mapped_column(
        value_enum(OfferStatus, "open_task_offer_status"), nullable=False, default=OfferStatus.PENDING
    )

    task = relationship("OpenTask", back_populates="offers")
    tasker = relationship("User")
