"""Process-wide runtime flags shared across modules."""
from __future__ import annotations

_scheduler_active = False
_push_configured = False


def set_scheduler_active(active: bool) -> None:
    global _scheduler_active
    _scheduler_active = active


def is_scheduler_active() -> bool:
    return _scheduler_active


def set_push_configured(configured: bool) -> None:
    global _push_configured
    _push_configured = configured


def is_push_configured() -> bool:
    return _push_configured
