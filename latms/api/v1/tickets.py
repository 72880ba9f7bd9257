import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.concurrency import run_in_threadpool

from latms.core.feature_flags import features
from latms.core.rbac import is_org_wide, require_roles
from latms.core.security import get_current_user
from latms.core.workflow import SETTLEMENT_STEPS, ticket_transition
from latms.db.mongo import to_object_id
from latms.schemas.common import TicketStatus
from latms.schemas.ticket_schema import (
    IssueIn,
    MailOut,
    QuotesIn,
    SettlementIn,
    TicketListOut,
    TicketOut,
    decode_quote,
    decode_quotes,
    encode_quotes,
)
from latms.services.dual_write import DualWriteService, get_dual_writer
from latms.services.notifications import notify_users
from latms.services.ticket_mail import compose_ticket_mail
from latms.utils.email import send_text_email


router = APIRouter(prefix="/tickets", tags=["tickets"])

MAIL_ROLES = {"ADMIN", "HR", "ACCOUNTS", "MANAGEMENT"}


def ticket_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "leave_request_id": str(doc.get("leave_request_id")),
        "route": doc.get("route", ""),
        "status": doc.get("status", TicketStatus.PENDING_QUOTES.value),
        "quotes": decode_quotes(doc.get("quotes")),
        "selected_quote": decode_quote(doc.get("selected_quote")),
        "ticket_type": doc.get("ticket_type"),
        "dependent_tickets": doc.get("dependent_tickets"),
        "user_id": str(doc["user_id"]) if doc.get("user_id") else None,
        "user_name": doc.get("user_name"),
        "user_email": doc.get("user_email"),
        "user_department": doc.get("user_department"),
        "leave_status": doc.get("leave_status"),
        "settled_at": doc.get("settled_at"),
        "created_at": doc.get("created_at", datetime.utcnow()),
    }


async def _load_ticket(writer: DualWriteService, ticket_id: str, current_user: dict) -> dict:
    doc = await writer.db["ticket_requests"].find_one({"_id": to_object_id(ticket_id, "Ticket request")})
    if not doc:
        raise HTTPException(status_code=404, detail="Ticket request not found")
    if not is_org_wide(current_user["role"]) and doc.get("user_id") != ObjectId(current_user["id"]):
        raise HTTPException(status_code=403, detail="Forbidden")
    return doc


@router.get("", response_model=TicketListOut)
async def list_tickets(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    status: Optional[TicketStatus] = Query(None),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    q: dict = {}
    if not is_org_wide(current_user["role"]):
        q["user_id"] = ObjectId(current_user["id"])
    if status:
        q["status"] = status.value
    coll = writer.db["ticket_requests"]
    total = await coll.count_documents(q)
    cursor = coll.find(q).sort("created_at", -1).skip((page - 1) * size).limit(size)
    items = [ticket_out(doc) async for doc in cursor]
    return {"items": items, "total": total, "page": page, "size": size}


@router.get("/{ticket_id}", response_model=TicketOut)
async def get_ticket(
    ticket_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    return ticket_out(await _load_ticket(writer, ticket_id, current_user))


@router.post("/{ticket_id}/quotes", response_model=TicketOut)
async def upload_quotes(
    payload: QuotesIn,
    ticket_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    doc = await _load_ticket(writer, ticket_id, current_user)
    new_status = ticket_transition(doc.get("status", ""), current_user["role"], "quotes")
    doc = await writer.update("ticket_requests", doc["_id"], {
        "quotes": encode_quotes(payload.quotes),
        "selected_quote": None,
        "status": new_status,
    })
    return ticket_out(doc)


@router.post("/{ticket_id}/issue", response_model=TicketOut)
async def issue_ticket(
    payload: IssueIn,
    ticket_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    doc = await _load_ticket(writer, ticket_id, current_user)
    new_status = ticket_transition(doc.get("status", ""), current_user["role"], "issue")
    chosen = next((q for q in decode_quotes(doc.get("quotes")) if q.id == payload.quote_id), None)
    if chosen is None:
        raise HTTPException(status_code=400, detail="Quote not found on this ticket request")
    doc = await writer.update("ticket_requests", doc["_id"], {
        "selected_quote": chosen.model_dump_json(),
        "status": new_status,
    })
    await notify_users(writer.db, [doc.get("user_id")], "ticket_status", {"ticket_id": ticket_id, "status": new_status})
    return ticket_out(doc)


@router.post("/{ticket_id}/settlement", response_model=TicketOut)
async def update_settlement(
    payload: SettlementIn,
    ticket_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    doc = await _load_ticket(writer, ticket_id, current_user)
    new_status = ticket_transition(doc.get("status", ""), current_user["role"], SETTLEMENT_STEPS[payload.status])
    changes: dict = {"status": new_status}
    if new_status == TicketStatus.SETTLED.value:
        changes["settled_at"] = datetime.utcnow()
    doc = await writer.update("ticket_requests", doc["_id"], changes)
    await notify_users(writer.db, [doc.get("user_id")], "ticket_status", {"ticket_id": ticket_id, "status": new_status})
    return ticket_out(doc)


async def _compose(writer: DualWriteService, ticket_id: str, kind: str, current_user: dict) -> dict:
    require_roles(current_user, MAIL_ROLES)
    ticket = await _load_ticket(writer, ticket_id, current_user)
    leave = await writer.db["leave_requests"].find_one({"_id": ticket.get("leave_request_id")})
    if not leave:
        raise HTTPException(status_code=404, detail="Leave request not found")
    user = await writer.db["users"].find_one({"_id": leave.get("user_id")})
    if not user:
        # Fall back to the fields copied onto the ticket
        user = {"name": ticket.get("user_name", ""), "email": ticket.get("user_email", ""), "department": ticket.get("user_department")}
    return compose_ticket_mail(kind, ticket, leave, user)


@router.get("/{ticket_id}/mail/{kind}", response_model=MailOut)
async def preview_mail(
    ticket_id: str = Path(...),
    kind: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    return await _compose(writer, ticket_id, kind, current_user)


@router.post("/{ticket_id}/mail/{kind}/send", response_model=MailOut)
async def send_mail(
    ticket_id: str = Path(...),
    kind: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    if not features.mail_send:
        raise HTTPException(status_code=404, detail="Mail sending disabled")
    mail = await _compose(writer, ticket_id, kind, current_user)
    try:
        await run_in_threadpool(send_text_email, to=mail["to"], subject=mail["subject"], body=mail["body"])
    except RuntimeError as exc:
        logging.getLogger("uvicorn.error").error("Sending %s mail for ticket %s failed: %s", kind, ticket_id, exc)
        raise HTTPException(status_code=502, detail="Mail delivery failed") from exc
    return {**mail, "sent": True}
