"""
Pydantic schemas for support tickets.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from vpn_sales.models.enums import MessageAuthor, TicketCategory, TicketStatus


class TicketOpen(BaseModel):
    account_id: int
    category: TicketCategory
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=4000)


class TicketReply(BaseModel):
    author: MessageAuthor
    text: str = Field(min_length=1, max_length=4000)


class TicketClose(BaseModel):
    closed_by: str = Field(min_length=1, max_length=64)


class TicketMessageResponse(BaseModel):
    position: int
    author: MessageAuthor
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketResponse(BaseModel):
    id: int
    account_id: int
    category: TicketCategory
    subject: str
    status: TicketStatus
    closed_by: str | None
    created_at: datetime
    closed_at: datetime | None
    messages: list[TicketMessageResponse]

    model_config = {"from_attributes": True}
