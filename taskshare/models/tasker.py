"""Tasker profile models."""
import datetime as dt
from decimal import Decimal

from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

tasker_profile_categories = Table(
    "tasker_profile_categories",
    Base.metadata,
    Column("tasker_profile_id", ForeignKey("tasker_profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

tasker_profile_cities = Table(
    "tasker_profile_cities",
    Base.metadata,
    Column("tasker_profile_id", ForeignKey("tasker_profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("city_id", ForeignKey("cities.id", ondelete="CASCADE"), primary_key=True),
)


class TaskerProfile(Base):
    """Public profile a user fills in to receive task requests."""

    __tablename__ = "tasker_profiles"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    profile_photo: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user = relationship("User", back_populates="tasker_profile")
    categories = relationship("Category", secondary=tasker_profile_categories, order_by="Category.name")
    cities = relationship("City", secondary=tasker_profile_cities, order_by="City.name")
    availability = relationship(
        "TaskerAvailability",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="TaskerAvailability.date",
    )
    gallery = relationship(
        "TaskerGalleryImage", back_populates="profile", cascade="all, delete-orphan"
    )


class TaskerAvailability(Base):
    __tablename__ = "tasker_availability"
    __table_args__ = (
        UniqueConstraint("tasker_profile_id", "date", "time_slot", name="uq_tasker_availability_slot"),
    )

    tasker_profile_id: Mapped[int] = mapped_column(
        ForeignKey("tasker_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(20), nullable=False)

    profile = relationship("TaskerProfile", back_populates="availability")


class TaskerGalleryImage(Base):
    __tablename__ = "tasker_gallery_images"

    tasker_profile_id: Mapped[int] = mapped_column(
        ForeignKey("tasker_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url: Mapped[str] = mapped_column(String(255), nullable=False)

    profile = relationship("TaskerProfile", back_populates="gallery")
