"""User model."""
from datetime import date

from sqlalchemy import Boolean, CheckConstraint, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from werkzeug.security import check_password_hash, generate_password_hash

from .base import Base


class User(Base):
    """Represents a marketplace account (customer and, optionally, tasker)."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_amount >= 0", name="wallet_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    profile_photo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Integer cents; only mutated through services.wallet.
    wallet_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wallet_bank_iban: Mapped[str | None] = mapped_column(String(64), nullable=True)
    current_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    tasker_profile = relationship(
        "TaskerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    devices = relationship("UserDevice", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_tasker(self) -> bool:
        return self.tasker_profile is not None

    @property
    def display_name(self) -> str:
        initial = f" {self.surname[0]}." if self.surname else ""
        return f"{self.name}{initial}"
