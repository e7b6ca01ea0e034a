"""User schemas."""
from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer


class UserPublic(BaseModel):
    id: int
    name: str
    surname: str
    profile_photo: str | None = None
    city: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserRead(UserPublic):
    email: EmailStr
    phone: str | None = None
    date_of_birth: date | None = None
    is_tasker: bool
    is_admin: bool
    wallet_amount: int
    wallet_bank_iban: str | None = None

    @field_serializer("wallet_bank_iban")
    def _mask_iban(self, value: str | None) -> str | None:
        if not value:
            return value
        compact = value.replace(" ", "")
        return "*" * max(len(compact) - 4, 0) + compact[-4:]


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    city: str | None = Field(default=None, max_length=100)
    wallet_bank_iban: str | None = Field(default=None, min_length=15, max_length=64)


class WalletBalance(BaseModel):
    wallet_amount: int
    balance: str
    currency: str
