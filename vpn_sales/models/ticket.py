"""
Support ticket models.

A ticket carries a mutable status and an append-only thread of
messages. Messages are ordered by their position in the thread.
"""

from datetime import datetime

from sqlalchemy import (
    String, DateTime, ForeignKey, Integer, Text, UniqueConstraint,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vpn_sales.models.base import Base
from vpn_sales.models.enums import (
    MessageAuthor,
    TicketCategory,
    TicketStatus,
)


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    category: Mapped[TicketCategory] = mapped_column(
        SAEnum(TicketCategory, name="ticket_category_enum"),
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        SAEnum(TicketStatus, name="ticket_status_enum"),
        nullable=False,
        default=TicketStatus.OPEN,
    )
    closed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    messages: Mapped[list["TicketMessage"]] = relationship(
        back_populates="ticket",
        order_by="TicketMessage.position",
    )

    def __repr__(self) -> str:
        return f"<Ticket {self.id} {self.category.value} ({self.status.value})>"


class TicketMessage(Base):
    """One message in a ticket thread. Never edited once written."""

    __tablename__ = "ticket_messages"
    __table_args__ = (
        UniqueConstraint("ticket_id", "position", name="uq_ticket_message_position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    ticket_id: Mapped[int] = mapped_column(
        ForeignKey("tickets.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    author: Mapped[MessageAuthor] = mapped_column(
        SAEnum(MessageAuthor, name="message_author_enum"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    ticket: Mapped["Ticket"] = relationship(back_populates="messages")
