"""Push notifications.

Services queue messages on a :class:`NotificationOutbox` while they run; routers
hand the drained outbox to :func:`dispatch_notifications` as a background task
once the transaction is committed. Delivery problems are logged and never
propagate, and device tokens rejected by the provider are pruned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache

from fastapi import BackgroundTasks
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from taskshare.config import get_settings
from taskshare.core.runtime_state import set_push_configured
from taskshare.db import get_sessionmaker
from taskshare.models import UserDevice

logger = logging.getLogger(__name__)


@dataclass
class PushMessage:
    user_id: int
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


class NotificationOutbox:
    """Messages collected during a request, delivered after commit."""

    def __init__(self) -> None:
        self._messages: list[PushMessage] = []

    def add(self, user_id: int, title: str, body: str, **data: object) -> None:
        self._messages.append(
            PushMessage(
                user_id=user_id,
                title=title,
                body=body,
                data={key: str(value) for key, value in data.items() if value is not None},
            )
        )

    def drain(self) -> list[PushMessage]:
        messages, self._messages = self._messages, []
        return messages

    def __len__(self) -> int:
        return len(self._messages)


class InvalidDeviceToken(Exception):
    """The provider reports the token as unregistered or malformed."""


class LoggingPushSender:
    """Used when no push provider is configured."""

    def send(self, token: str, message: PushMessage) -> None:
        logger.info(
            "Push delivery skipped (no provider configured)",
            extra={"user_id": message.user_id, "title": message.title},
        )


class FirebasePushSender:
    """Firebase Cloud Messaging sender backed by ``firebase-admin``."""

    def __init__(self, credentials_file: str) -> None:
        import firebase_admin
        from firebase_admin import credentials, exceptions, messaging

        self._messaging = messaging
        self._unregistered = (messaging.UnregisteredError, exceptions.InvalidArgumentError)
        try:
            self._app = firebase_admin.get_app()
        except ValueError:
            self._app = firebase_admin.initialize_app(credentials.Certificate(credentials_file))

    def send(self, token: str, message: PushMessage) -> None:
        payload = self._messaging.Message(
            token=token,
            notification=self._messaging.Notification(title=message.title, body=message.body),
            data=message.data,
        )
        try:
            self._messaging.send(payload, app=self._app)
        except self._unregistered as exc:
            raise InvalidDeviceToken(str(exc)) from exc


@lru_cache
def get_push_sender():
    """Return the process-wide sender, chosen from settings."""

    settings = get_settings()
    if settings.FIREBASE_CREDENTIALS_FILE:
        sender = FirebasePushSender(settings.FIREBASE_CREDENTIALS_FILE)
        set_push_configured(True)
        logger.info("Firebase push sender initialised")
        return sender
    set_push_configured(False)
    return LoggingPushSender()


def _device_tokens(db: Session, user_id: int) -> list[str]:
    stmt = select(UserDevice.device_token).where(UserDevice.user_id == user_id)
    return list(db.scalars(stmt))


def deliver(db: Session, messages: list[PushMessage], sender=None) -> int:
    """Send ``messages`` to every registered device; return the number of tokens pruned."""

    sender = sender or get_push_sender()
    invalid: set[str] = set()
    for message in messages:
        for token in _device_tokens(db, message.user_id):
            if token in invalid:
                continue
            try:
                sender.send(token, message)
            except InvalidDeviceToken:
                invalid.add(token)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Push delivery failed",
                    exc_info=True,
                    extra={"user_id": message.user_id, "title": message.title},
                )

    if invalid:
        db.execute(delete(UserDevice).where(UserDevice.device_token.in_(sorted(invalid))))
        db.commit()
        logger.info("Pruned invalid device tokens", extra={"count": len(invalid)})
    return len(invalid)


def dispatch_notifications(messages: list[PushMessage]) -> None:
    """Background task entry point; opens its own session."""

    if not messages:
        return
    db = get_sessionmaker()()
    try:
        deliver(db, messages)
    except Exception:  # noqa: BLE001
        logger.exception("Notification dispatch failed", extra={"count": len(messages)})
    finally:
        db.close()


def get_outbox() -> NotificationOutbox:
    """Request-scoped outbox dependency."""
    return NotificationOutbox()


def flush_outbox(background_tasks: BackgroundTasks, outbox: NotificationOutbox) -> None:
    """Hand queued messages to a background task; call after the commit."""

    messages = outbox.drain()
    if messages:
        background_tasks.add_task(dispatch_notifications, messages)


__all__ = [
    "PushMessage",
    "NotificationOutbox",
    "InvalidDeviceToken",
    "LoggingPushSender",
    "FirebasePushSender",
    "get_push_sender",
    "deliver",
    "dispatch_notifications",
    "get_outbox",
    "flush_outbox",
]
