"""
Support ticket endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vpn_sales.api.errors import http_error
from vpn_sales.exceptions import EngineError
from vpn_sales.models.base import get_db
from vpn_sales.services.ticket_service import TicketService
from vpn_sales.schemas.ticket import (
    TicketClose,
    TicketOpen,
    TicketReply,
    TicketResponse,
)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("", response_model=TicketResponse, status_code=201)
def open_ticket(request: TicketOpen, db: Session = Depends(get_db)):
    ticket = TicketService(db).open_ticket(request)
    db.commit()
    return ticket


@router.get("/open", response_model=list[TicketResponse])
def list_open_tickets(db: Session = Depends(get_db)):
    return TicketService(db).list_open_tickets()


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(ticket_id: int, db: Session = Depends(get_db)):
    try:
        return TicketService(db).get_ticket(ticket_id)
    except EngineError as e:
        raise http_error(e)


@router.post("/{ticket_id}/messages", response_model=TicketResponse)
def reply(ticket_id: int, request: TicketReply, db: Session = Depends(get_db)):
    service = TicketService(db)
    try:
        service.add_message(ticket_id, request.author, request.text)
        db.commit()
        return service.get_ticket(ticket_id)
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{ticket_id}/close", response_model=TicketResponse)
def close_ticket(ticket_id: int, request: TicketClose, db: Session = Depends(get_db)):
    service = TicketService(db)
    try:
        ticket = service.close_ticket(ticket_id, request.closed_by)
        db.commit()
        return ticket
    except EngineError as e:
        db.rollback()
        raise http_error(e)
