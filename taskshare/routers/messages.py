"""Direct message endpoints."""
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import Message, User
from taskshare.schemas.message import ConversationRead, MessageCreate, MessageRead
from taskshare.security import get_current_user
from taskshare.services import messages as messages_service
from taskshare.services.notifications import NotificationOutbox, flush_outbox, get_outbox

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/send", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> Message:
    message = messages_service.send_message(
        db, sender=user, receiver_id=payload.receiver_id, content=payload.content, outbox=outbox
    )
    flush_outbox(background_tasks, outbox)
    return message


@router.get("/conversations", response_model=list[ConversationRead])
def list_conversations(
    db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> list[ConversationRead]:
    return messages_service.list_conversations(db, user=user)


@router.get("/messages/{peer_id}", response_model=list[MessageRead])
def get_conversation(
    peer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> list[Message]:
    return messages_service.get_conversation(db, user=user, peer_id=peer_id)
