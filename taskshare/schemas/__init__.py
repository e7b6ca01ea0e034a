"""Schema package exports."""
from .auth import AuthResponse, ChangePasswordRequest, LoginRequest, RegisterRequest
from .catalog import CategoryCreate, CategoryRead, CategoryUpdate, CityRead
from .device import DeviceTokenIn, DeviceTokenRemove
from .message import ConversationRead, MessageCreate, MessageRead
from .open_task import (
    OfferCreate,
    OfferRead,
    OpenTaskDateIn,
    OpenTaskDateRead,
    OpenTaskFilters,
    OpenTaskRead,
)
from .payment import CardCheckoutResult, CheckoutRequest, PaymentRead, WalletCheckoutResult
from .payout import PayoutCreate, PayoutRead
from .review import RatingSummary, ReviewCreate, ReviewRead, ReviewStatus
from .support import SupportTicketCreate, SupportTicketRead
from .task_request import StatusUpdate, StatusUpdateResult, TaskRequestRead
from .tasker import AvailabilitySlot, AvailabilityUpdate, TaskerProfileRead
from .user import ProfileUpdate, UserPublic, UserRead, WalletBalance

__all__ = [
    "AuthResponse",
    "AvailabilitySlot",
    "AvailabilityUpdate",
    "CardCheckoutResult",
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "ChangePasswordRequest",
    "CheckoutRequest",
    "CityRead",
    "ConversationRead",
    "DeviceTokenIn",
    "DeviceTokenRemove",
    "LoginRequest",
    "MessageCreate",
    "MessageRead",
    "OfferCreate",
    "OfferRead",
    "OpenTaskDateIn",
    "OpenTaskDateRead",
    "OpenTaskFilters",
    "OpenTaskRead",
    "PaymentRead",
    "PayoutCreate",
    "PayoutRead",
    "ProfileUpdate",
    "RatingSummary",
    "RegisterRequest",
    "ReviewCreate",
    "ReviewRead",
    "ReviewStatus",
    "StatusUpdate",
    "StatusUpdateResult",
    "SupportTicketCreate",
    "SupportTicketRead",
    "TaskRequestRead",
    "TaskerProfileRead",
    "UserPublic",
    "UserRead",
    "WalletBalance",
]
