"""API routers for the Taskshare backend."""
from fastapi import APIRouter

from . import (
    auth,
    categories,
    cities,
    devices,
    health,
    messages,
    open_tasks,
    payments,
    payouts,
    reviews,
    support_tickets,
    tasker,
    users,
)


def get_api_router() -> APIRouter:
    """Return the ``/api`` router."""

    api_router = APIRouter(prefix="/api")
    api_router.include_router(auth.router)
    api_router.include_router(users.router)
    api_router.include_router(tasker.router)
    api_router.include_router(open_tasks.router)
    api_router.include_router(payments.router)
    api_router.include_router(payouts.router)
    api_router.include_router(reviews.router)
    api_router.include_router(messages.router)
    api_router.include_router(support_tickets.router)
    api_router.include_router(devices.router)
    api_router.include_router(categories.router)
    api_router.include_router(cities.router)
    return api_router


__all__ = ["get_api_router", "health"]
