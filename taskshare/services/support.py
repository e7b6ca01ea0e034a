"""Support tickets."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskshare.models import SupportTicket, User
from taskshare.schemas.support import SupportTicketCreate

logger = logging.getLogger(__name__)


def create_ticket(db: Session, payload: SupportTicketCreate, *, user: User) -> SupportTicket:
    ticket = SupportTicket(
        user_id=user.id,
        sender_name=user.name,
        sender_surname=user.surname,
        sender_email=user.email,
        type=payload.type.strip(),
        content=payload.content.strip(),
        status="open",
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info("Support ticket created", extra={"ticket_id": ticket.id, "ticket_type": ticket.type})
    return ticket


def list_tickets(db: Session, *, user: User) -> list[SupportTicket]:
    stmt = select(SupportTicket).where(SupportTicket.user_id == user.id).order_by(SupportTicket.created_at.desc())
    return list(db.scalars(stmt))
