"""Support ticket endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskshare.db import get_db
from taskshare.models import SupportTicket, User
from taskshare.schemas.support import SupportTicketCreate, SupportTicketRead
from taskshare.security import get_current_user
from taskshare.services import support as support_service

router = APIRouter(prefix="/support-tickets", tags=["support"])


@router.post("", response_model=SupportTicketRead, status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: SupportTicketCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)
) -> SupportTicket:
    return support_service.create_ticket(db, payload, user=user)


@router.get("", response_model=list[SupportTicketRead])
def list_tickets(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[SupportTicket]:
    return support_service.list_tickets(db, user=user)
