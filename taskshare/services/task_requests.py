"""Task requests and their status lifecycle.

Status changes are resolved against ``TRANSITIONS``, keyed by
``(current, requested)``. A pair missing from the table raises
:class:`InvalidStatusTransition`. Each rule names who may request it and which
side effects run. Unpaid cancellations of open-task requests delete the request
and reopen the task, while paid cancellations refund and keep the request as
``refunded``.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from taskshare.models import (
    TaskRequest,
    TaskRequestAvailability,
    TaskRequestGalleryImage,
    TaskRequestStatus,
    User,
)
from taskshare.schemas.catalog import CategoryRead, CityRead
from taskshare.schemas.task_request import StatusUpdateResult, TaskRequestRead
from taskshare.schemas.tasker import AvailabilitySlot
from taskshare.schemas.user import UserPublic
from taskshare.services import open_tasks as open_tasks_service
from taskshare.services import payments as payments_service
from taskshare.services.catalog import get_city_or_404, load_categories
from taskshare.services.notifications import NotificationOutbox
from taskshare.utils.audit import actor_from_user, log_audit
from taskshare.utils.errors import InvalidStatusTransition, error_response

logger = logging.getLogger(__name__)

SENDER = "sender"
TASKER = "tasker"

S = TaskRequestStatus


class Effect(str, enum.Enum):
    REFUND = "refund"
    COMPLETE = "complete"
    REVERT_AND_DELETE = "revert_and_delete"
    REVERT = "revert"


@dataclass(frozen=True)
class Rule:
    target: TaskRequestStatus
    actors: frozenset[str]
    effects: tuple[Effect, ...] = ()
    # Applied in addition to ``effects`` when the request came from an open task.
    open_task_effects: tuple[Effect, ...] = ()


_BOTH = frozenset({SENDER, TASKER})
_SENDER_ONLY = frozenset({SENDER})
_TASKER_ONLY = frozenset({TASKER})

TRANSITIONS: dict[tuple[TaskRequestStatus, TaskRequestStatus], Rule] = {
    (S.PENDING, S.WAITING_FOR_PAYMENT): Rule(S.WAITING_FOR_PAYMENT, _TASKER_ONLY),
    (S.PENDING, S.DECLINED): Rule(S.DECLINED, _TASKER_ONLY, open_task_effects=(Effect.REVERT_AND_DELETE,)),
    (S.PENDING, S.CANCELED): Rule(S.CANCELED, _BOTH, open_task_effects=(Effect.REVERT_AND_DELETE,)),
    (S.PENDING, S.CANCELED_BY_SENDER): Rule(
        S.CANCELED_BY_SENDER, _SENDER_ONLY, open_task_effects=(Effect.REVERT_AND_DELETE,)
    ),
    (S.WAITING_FOR_PAYMENT, S.DECLINED): Rule(
        S.DECLINED, _TASKER_ONLY, open_task_effects=(Effect.REVERT_AND_DELETE,)
    ),
    (S.WAITING_FOR_PAYMENT, S.CANCELED): Rule(
        S.CANCELED, _BOTH, open_task_effects=(Effect.REVERT_AND_DELETE,)
    ),
    (S.WAITING_FOR_PAYMENT, S.CANCELED_BY_SENDER): Rule(
        S.CANCELED_BY_SENDER, _SENDER_ONLY, open_task_effects=(Effect.REVERT_AND_DELETE,)
    ),
    (S.PAID, S.CANCELED): Rule(S.REFUNDED, _BOTH, (Effect.REFUND,), (Effect.REVERT,)),
    (S.PAID, S.CANCELED_BY_SENDER): Rule(S.REFUNDED, _SENDER_ONLY, (Effect.REFUND,), (Effect.REVERT,)),
    (S.PAID, S.COMPLETED): Rule(S.COMPLETED, _BOTH, (Effect.COMPLETE,)),
}


def normalize_status(requested: TaskRequestStatus) -> TaskRequestStatus:
    """Map the client-facing ``Accepted`` onto the stored ``Waiting for Payment``."""

    if requested == S.ACCEPTED:
        return S.WAITING_FOR_PAYMENT
    return requested


def resolve_transition(current: TaskRequestStatus, requested: TaskRequestStatus) -> Rule:
    rule = TRANSITIONS.get((current, normalize_status(requested)))
    if rule is None:
        raise InvalidStatusTransition(current.value, requested.value)
    return rule


def serialize_task_request(task_request: TaskRequest) -> TaskRequestRead:
    return TaskRequestRead(
        id=task_request.id,
        description=task_request.description,
        city=CityRead.model_validate(task_request.city) if task_request.city else None,
        duration=task_request.duration,
        hourly_rate=task_request.hourly_rate,
        total_amount=task_request.total_amount,
        status=task_request.status,
        is_open_task=task_request.is_open_task,
        open_task_id=task_request.open_task_id,
        sender=UserPublic.model_validate(task_request.sender),
        tasker=UserPublic.model_validate(task_request.tasker),
        categories=[CategoryRead.model_validate(item) for item in task_request.categories],
        availability=[AvailabilitySlot.model_validate(item) for item in task_request.availability],
        gallery=[image.image_url for image in task_request.gallery],
        created_at=task_request.created_at,
    )


def create_task_request(
    db: Session,
    *,
    sender: User,
    tasker_id: int,
    description: str,
    duration: int,
    hourly_rate: Decimal | None,
    city_id: int | None,
    category_ids: Iterable[int],
    availability: Iterable[AvailabilitySlot],
    gallery: Iterable[str],
    outbox: NotificationOutbox,
) -> TaskRequest:
    """Send a task request directly to a tasker."""

    tasker = db.get(User, tasker_id)
    if tasker is None or not tasker.is_active or tasker.tasker_profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("TASKER_NOT_FOUND", "Tasker not found.", {"tasker_id": tasker_id}),
        )
    if tasker.id == sender.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("SELF_REQUEST", "You cannot send a task request to yourself."),
        )
    if city_id is not None:
        get_city_or_404(db, city_id)

    task_request = TaskRequest(
        description=description.strip(),
        city_id=city_id,
        duration=duration,
        sender_id=sender.id,
        tasker_id=tasker.id,
        hourly_rate=hourly_rate if hourly_rate is not None else tasker.tasker_profile.hourly_rate,
        status=S.PENDING,
        is_open_task=False,
    )
    task_request.categories = load_categories(db, category_ids)
    task_request.availability = [
        TaskRequestAvailability(date=slot.date, time_slot=slot.time_slot) for slot in availability
    ]
    task_request.gallery = [TaskRequestGalleryImage(image_url=path) for path in gallery]
    db.add(task_request)
    db.commit()
    db.refresh(task_request)

    outbox.add(
        tasker.id,
        "New task request",
        f"{sender.display_name} sent you a task request.",
        type="task_request",
        task_request_id=task_request.id,
    )
    logger.info(
        "Task request created",
        extra={"task_request_id": task_request.id, "sender_id": sender.id, "tasker_id": tasker.id},
    )
    return task_request


def list_sent(db: Session, user: User, *, status_filter: TaskRequestStatus | None = None) -> list[TaskRequest]:
    stmt = select(TaskRequest).where(TaskRequest.sender_id == user.id)
    if status_filter is not None:
        stmt = stmt.where(TaskRequest.status == status_filter)
    return list(db.scalars(stmt.order_by(TaskRequest.created_at.desc(), TaskRequest.id.desc())))


def list_received(
    db: Session, user: User, *, status_filter: TaskRequestStatus | None = None
) -> list[TaskRequest]:
    stmt = select(TaskRequest).where(TaskRequest.tasker_id == user.id)
    if status_filter is not None:
        stmt = stmt.where(TaskRequest.status == status_filter)
    return list(db.scalars(stmt.order_by(TaskRequest.created_at.desc(), TaskRequest.id.desc())))


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error_response("TASK_REQUEST_NOT_FOUND", "Task request not found."),
    )


def get_sent(db: Session, task_request_id: int, user: User) -> TaskRequest:
    task_request = db.get(TaskRequest, task_request_id)
    if task_request is None or task_request.sender_id != user.id:
        raise _not_found()
    return task_request


def get_received(db: Session, task_request_id: int, user: User) -> TaskRequest:
    task_request = db.get(TaskRequest, task_request_id)
    if task_request is None or task_request.tasker_id != user.id:
        raise _not_found()
    return task_request


def has_active_tasks(db: Session, user_id: int) -> bool:
    """True while the user takes part in a pending, unpaid or paid request."""

    stmt = (
        select(TaskRequest.id)
        .where(or_(TaskRequest.sender_id == user_id, TaskRequest.tasker_id == user_id))
        .where(TaskRequest.status.in_([S.PENDING, S.WAITING_FOR_PAYMENT, S.PAID]))
        .limit(1)
    )
    return db.scalars(stmt).first() is not None


def _lock_task_request(db: Session, task_request_id: int) -> TaskRequest:
    stmt = (
        select(TaskRequest)
        .where(TaskRequest.id == task_request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    task_request = db.scalars(stmt).first()
    if task_request is None:
        raise _not_found()
    return task_request


def _roles(task_request: TaskRequest, user: User) -> set[str]:
    roles: set[str] = set()
    if task_request.sender_id == user.id:
        roles.add(SENDER)
    if task_request.tasker_id == user.id:
        roles.add(TASKER)
    return roles


_STATUS_MESSAGES = {
    S.WAITING_FOR_PAYMENT: ("Task request accepted", "Your task request #{id} was accepted. Please pay to confirm."),
    S.DECLINED: ("Task request declined", "Your task request #{id} was declined."),
    S.CANCELED: ("Task canceled", "Task #{id} was canceled."),
    S.CANCELED_BY_SENDER: ("Task canceled", "Task #{id} was canceled by the sender."),
    S.REFUNDED: ("Task canceled", "Task #{id} was canceled and the payment refunded."),
    S.COMPLETED: ("Task completed", "Task #{id} was marked as completed."),
}


def _notify(outbox: NotificationOutbox, task_request: TaskRequest, target: TaskRequestStatus, roles: set[str]) -> None:
    title, body = _STATUS_MESSAGES[target]
    recipients = []
    if SENDER not in roles:
        recipients.append(task_request.sender_id)
    if TASKER not in roles:
        recipients.append(task_request.tasker_id)
    if target == S.REFUNDED:
        # Both parties see the money movement.
        recipients = [task_request.sender_id, task_request.tasker_id]
    for user_id in recipients:
        outbox.add(
            user_id,
            title,
            body.format(id=task_request.id),
            type="task_status",
            task_request_id=task_request.id,
            status=target.value,
        )


def update_task_request_status(
    db: Session,
    task_request_id: int,
    requested: TaskRequestStatus,
    *,
    user: User,
    outbox: NotificationOutbox,
) -> StatusUpdateResult:
    """Apply a status change requested by a participant of the task.

    Runs in one transaction. Notifications are only queued on ``outbox``.
    """

    task_request = _lock_task_request(db, task_request_id)
    roles = _roles(task_request, user)
    if not roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("NOT_TASK_PARTICIPANT", "You are not part of this task."),
        )

    current = task_request.status
    rule = resolve_transition(current, requested)
    if not roles & rule.actors:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response(
                "STATUS_CHANGE_FORBIDDEN",
                "You are not allowed to make this status change.",
                {"requested_status": requested.value, "allowed": sorted(rule.actors)},
            ),
        )

    effects = rule.effects + (rule.open_task_effects if task_request.is_open_task else ())
    actor = actor_from_user(user)
    refunded = False
    deleted = False

    if Effect.REFUND in effects:
        refunded = payments_service.refund_task_payment(db, task_request, actor=actor)
    if Effect.COMPLETE in effects:
        payments_service.complete_task_payment(db, task_request, actor=actor)
        if task_request.is_open_task:
            open_tasks_service.complete_open_task(db, task_request)
    if Effect.REVERT in effects or Effect.REVERT_AND_DELETE in effects:
        open_tasks_service.revert_to_open_task(db, task_request)

    log_audit(
        db,
        actor=actor,
        action="TASK_REQUEST_STATUS_CHANGED",
        entity="TaskRequest",
        entity_id=task_request.id,
        data={"from": current.value, "to": rule.target.value, "effects": [effect.value for effect in effects]},
    )
    _notify(outbox, task_request, rule.target, roles)

    open_task_id = task_request.open_task_id
    if Effect.REVERT_AND_DELETE in effects:
        db.delete(task_request)
        deleted = True
    else:
        task_request.status = rule.target
    db.commit()

    logger.info(
        "Task request status changed",
        extra={
            "task_request_id": task_request_id,
            "from": current.value,
            "to": rule.target.value,
            "deleted": deleted,
            "refunded": refunded,
        },
    )
    if deleted:
        return StatusUpdateResult(
            id=task_request_id, status=rule.target, deleted=True, open_task_id=open_task_id
        )

    db.refresh(task_request)
    return StatusUpdateResult(
        id=task_request.id,
        status=task_request.status,
        refunded=refunded,
        open_task_id=open_task_id,
        task_request=serialize_task_request(task_request),
    )


__all__ = [
    "Effect",
    "Rule",
    "TRANSITIONS",
    "normalize_status",
    "resolve_transition",
    "serialize_task_request",
    "create_task_request",
    "list_sent",
    "list_received",
    "get_sent",
    "get_received",
    "has_active_tasks",
    "update_task_request_status",
]
