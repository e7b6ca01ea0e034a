"""Direct messages between users."""
from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from taskshare.models import Message, User
from taskshare.schemas.message import ConversationRead, MessageRead
from taskshare.schemas.user import UserPublic
from taskshare.services.notifications import NotificationOutbox
from taskshare.utils.errors import error_response

logger = logging.getLogger(__name__)


def send_message(
    db: Session, *, sender: User, receiver_id: int, content: str, outbox: NotificationOutbox
) -> Message:
    if receiver_id == sender.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("SELF_MESSAGE", "You cannot message yourself."),
        )
    receiver = db.get(User, receiver_id)
    if receiver is None or not receiver.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("USER_NOT_FOUND", "Receiver not found."),
        )

    message = Message(sender_id=sender.id, receiver_id=receiver.id, content=content.strip())
    db.add(message)
    db.commit()
    db.refresh(message)

    outbox.add(
        receiver.id,
        sender.display_name,
        content[:100],
        type="message",
        sender_id=sender.id,
        message_id=message.id,
    )
    logger.info("Message sent", extra={"message_id": message.id, "sender_id": sender.id})
    return message


def get_conversation(db: Session, *, user: User, peer_id: int) -> list[Message]:
    """Messages exchanged with ``peer_id`` in chronological order; incoming ones are marked seen."""

    between = or_(
        and_(Message.sender_id == user.id, Message.receiver_id == peer_id),
        and_(Message.sender_id == peer_id, Message.receiver_id == user.id),
    )
    messages = list(db.scalars(select(Message).where(between).order_by(Message.created_at, Message.id)))

    result = db.execute(
        update(Message)
        .where(Message.sender_id == peer_id, Message.receiver_id == user.id, Message.seen.is_(False))
        .values(seen=True)
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    if result.rowcount:
        logger.info("Messages marked seen", extra={"user_id": user.id, "peer_id": peer_id, "count": result.rowcount})
    return messages


def list_conversations(db: Session, *, user: User) -> list[ConversationRead]:
    """One entry per peer: last message and unread count, most recent first."""

    stmt = (
        select(Message)
        .where(or_(Message.sender_id == user.id, Message.receiver_id == user.id))
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    latest: dict[int, Message] = {}
    for message in db.scalars(stmt):
        peer_id = message.receiver_id if message.sender_id == user.id else message.sender_id
        latest.setdefault(peer_id, message)

    unread = dict(
        db.execute(
            select(Message.sender_id, func.count(Message.id))
            .where(Message.receiver_id == user.id, Message.seen.is_(False))
            .group_by(Message.sender_id)
        ).all()
    )

    conversations = []
    for peer_id, message in latest.items():
        peer = db.get(User, peer_id)
        if peer is None:
            continue
        conversations.append(
            ConversationRead(
                user=UserPublic.model_validate(peer),
                last_message=MessageRead.model_validate(message),
                unread_count=unread.get(peer_id, 0),
            )
        )
    return conversations


__all__ = ["send_message", "get_conversation", "list_conversations"]
