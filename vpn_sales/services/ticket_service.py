"""
Ticket service — customer support threads.

A ticket's thread is append-only. Closing is idempotent and a
closed ticket accepts no further messages.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from vpn_sales.exceptions import InvalidState, NotFound
from vpn_sales.models.enums import MessageAuthor, TicketStatus
from vpn_sales.models.ticket import Ticket, TicketMessage
from vpn_sales.schemas.ticket import TicketOpen
from vpn_sales.services.account_service import AccountService

logger = logging.getLogger(__name__)


class TicketService:

    def __init__(self, db: Session):
        self.db = db

    def open_ticket(self, request: TicketOpen, now: datetime | None = None) -> Ticket:
        now = now or datetime.utcnow()
        AccountService(self.db).get_or_create(request.account_id, now)
        ticket = Ticket(
            account_id=request.account_id,
            category=request.category,
            subject=request.subject,
            status=TicketStatus.OPEN,
            created_at=now,
        )
        self.db.add(ticket)
        self.db.flush()
        self._append(ticket, MessageAuthor.USER, request.message, now)
        logger.info("ticket %s opened by account %s", ticket.id, ticket.account_id)
        return ticket

    def add_message(
        self,
        ticket_id: int,
        author: MessageAuthor,
        text: str,
        now: datetime | None = None,
    ) -> TicketMessage:
        ticket = self.get_ticket(ticket_id)
        if ticket.status != TicketStatus.OPEN:
            raise InvalidState("Ticket", ticket_id, ticket.status, "reply to")
        return self._append(ticket, author, text, now or datetime.utcnow())

    def _append(
        self, ticket: Ticket, author: MessageAuthor, text: str, now: datetime
    ) -> TicketMessage:
        position = self.db.execute(
            select(func.coalesce(func.max(TicketMessage.position), 0)).where(
                TicketMessage.ticket_id == ticket.id
            )
        ).scalar() + 1
        message = TicketMessage(
            ticket_id=ticket.id,
            position=position,
            author=author,
            text=text,
            created_at=now,
        )
        self.db.add(message)
        self.db.flush()
        self.db.refresh(ticket, ["messages"])
        return message

    def close_ticket(
        self, ticket_id: int, closed_by: str, now: datetime | None = None
    ) -> Ticket:
        """
        Close an open ticket.

        Only the first close is recorded; later ones return the
        ticket with the original closed_by and closed_at.
        """
        ticket = self.get_ticket(ticket_id)
        result = self.db.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id, Ticket.status == TicketStatus.OPEN)
            .values(
                status=TicketStatus.CLOSED,
                closed_by=closed_by,
                closed_at=now or datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(ticket)
        if result.rowcount:
            logger.info("ticket %s closed by %s", ticket_id, closed_by)
        return ticket

    def get_ticket(self, ticket_id: int) -> Ticket:
        ticket = self.db.get(Ticket, ticket_id)
        if not ticket:
            raise NotFound("Ticket", ticket_id)
        return ticket

    def list_user_tickets(self, account_id: int) -> list[Ticket]:
        return list(self.db.execute(
            select(Ticket)
            .where(Ticket.account_id == account_id)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        ).scalars().all())

    def list_open_tickets(self) -> list[Ticket]:
        return list(self.db.execute(
            select(Ticket)
            .where(Ticket.status == TicketStatus.OPEN)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        ).scalars().all())
