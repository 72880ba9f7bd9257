import json
import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from .common import TicketStatus


class Quote(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    airline: str
    price: float = Field(ge=0)
    type: str = "Direct"
    departure: str = ""
    baggage: str = ""
    refundable: bool = True
    flight_number: Optional[str] = None
    booking_class: Optional[str] = None
    notes: Optional[str] = None


class QuotesIn(BaseModel):
    quotes: list[Quote] = Field(min_length=1, max_length=3)


class IssueIn(BaseModel):
    quote_id: str


class SettlementIn(BaseModel):
    status: Literal["SETTLEMENT_READY", "SETTLED"]


class TicketOut(BaseModel):
    id: str
    leave_request_id: str
    route: str
    status: TicketStatus
    quotes: list[Quote] = []
    selected_quote: Optional[Quote] = None
    ticket_type: Optional[str] = None
    dependent_tickets: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_department: Optional[str] = None
    leave_status: Optional[str] = None
    settled_at: Optional[datetime] = None
    created_at: datetime


class TicketListOut(BaseModel):
    items: list[TicketOut]
    total: int
    page: int
    size: int


class MailOut(BaseModel):
    kind: str
    to: str
    subject: str
    body: str
    mailto: str
    sent: bool = False


def encode_quotes(quotes: list[Quote]) -> str:
    return json.dumps([q.model_dump() for q in quotes])


def decode_quotes(raw: Optional[str]) -> list[Quote]:
    if not raw:
        return []
    return [Quote.model_validate(q) for q in json.loads(raw)]


def decode_quote(raw: Optional[str]) -> Optional[Quote]:
    if not raw:
        return None
    return Quote.model_validate(json.loads(raw))
