"""ORM models package."""
from .audit import AuditLog
from .base import Base
from .catalog import Category, City
from .device import UserDevice
from .message import Message
from .open_task import OfferStatus, OpenTask, OpenTaskDate, OpenTaskOffer, OpenTaskPhoto, OpenTaskStatus
from .payment import INACTIVE_PAYMENT_STATUSES, Payment, PaymentStatus
from .payout import PayoutRequest, PayoutStatus
from .psp_webhook import PSPWebhookEvent
from .review import Review
from .support import SupportTicket
from .task_request import (
    TaskRequest,
    TaskRequestAvailability,
    TaskRequestGalleryImage,
    TaskRequestStatus,
    task_request_categories,
)
from .tasker import (
    TaskerAvailability,
    TaskerGalleryImage,
    TaskerProfile,
    tasker_profile_categories,
    tasker_profile_cities,
)
from .user import User

__all__ = [
    "AuditLog",
    "Base",
    "Category",
    "City",
    "INACTIVE_PAYMENT_STATUSES",
    "Message",
    "OfferStatus",
    "OpenTask",
    "OpenTaskDate",
    "OpenTaskOffer",
    "OpenTaskPhoto",
    "OpenTaskStatus",
    "Payment",
    "PaymentStatus",
    "PayoutRequest",
    "PayoutStatus",
    "PSPWebhookEvent",
    "Review",
    "SupportTicket",
    "TaskRequest",
    "TaskRequestAvailability",
    "TaskRequestGalleryImage",
    "TaskRequestStatus",
    "TaskerAvailability",
    "TaskerGalleryImage",
    "TaskerProfile",
    "User",
    "UserDevice",
    "task_request_categories",
    "tasker_profile_categories",
    "tasker_profile_cities",
]
