from typing import Optional
from datetime import datetime, date as _date
from fastapi import APIRouter, Depends, Query, Path, HTTPException, status
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.api.v1.tickets import ticket_out
from latms.core.rbac import is_org_wide, is_team_lead, require_roles
from latms.core.security import get_current_user
from latms.core.workflow import (
    PROXY_SUBMIT_ROLES,
    actionable_statuses,
    inclusive_days,
    initial_leave_status,
    leave_decision,
)
from latms.db.mongo import to_object_id
from latms.schemas.common import LeaveStatus, LeaveType, TicketStatus
from latms.schemas.leave_schema import LeaveIn, LeaveOut, LeaveDecisionIn, LeaveListOut
from latms.services.dual_write import DualWriteService, get_dual_writer
from latms.services.notifications import approver_ids, notify_users

router = APIRouter(prefix="/leaves", tags=["leaves"])


def _as_datetime(v: _date) -> datetime:
    # Mongo stores datetimes, not date-only values
    return datetime(v.year, v.month, v.day)


def _as_date(v):
    return v.date() if isinstance(v, datetime) else v


def leave_out(doc: dict, ticket: Optional[dict] = None) -> dict:
    return {
        "id": str(doc["_id"]),
        "user_id": str(doc.get("user_id")),
        "submitted_by_id": str(doc["submitted_by_id"]) if doc.get("submitted_by_id") else None,
        "type": doc.get("type", LeaveType.ANNUAL.value),
        "start_date": _as_date(doc.get("start_date")),
        "end_date": _as_date(doc.get("end_date")),
        "days": int(doc.get("days", 0)),
        "status": doc.get("status", LeaveStatus.PENDING_MANAGER.value),
        **{k: doc.get(k) for k in (
            "reason",
            "supervisor_notes",
            "contact_destination",
            "contact_phone",
            "user_name",
            "user_email",
            "user_department",
            "manager_approved_by",
            "manager_approved_at",
            "hr_approved_by",
            "hr_approved_at",
            "management_approved_by",
            "management_approved_at",
            "rejected_by",
            "rejected_at",
            "rejection_reason",
        )},
        "ticket_request": ticket_out(ticket) if ticket else None,
        "created_at": doc.get("created_at"),
    }


async def _subordinate_ids(db: AsyncIOMotorDatabase, user_id: ObjectId) -> list[ObjectId]:
    return [u["_id"] async for u in db["users"].find({"supervisor_id": user_id}, {"_id": 1})]


async def _scope_query(db: AsyncIOMotorDatabase, current_user: dict, user_id: Optional[str] = None) -> dict:
    me = ObjectId(current_user["id"])
    role = current_user["role"]
    if is_org_wide(role):
        return {"user_id": to_object_id(user_id, "Employee")} if user_id else {}
    if is_team_lead(role):
        subs = await _subordinate_ids(db, me)
        return {"$or": [{"user_id": me}, {"user_id": {"$in": subs}}, {"submitted_by_id": me}]}
    return {"user_id": me}


async def _with_tickets(db: AsyncIOMotorDatabase, docs: list[dict]) -> list[dict]:
    ids = [d["_id"] for d in docs]
    tickets = {}
    if ids:
        async for t in db["ticket_requests"].find({"leave_request_id": {"$in": ids}}):
            tickets[t["leave_request_id"]] = t
    return [leave_out(d, tickets.get(d["_id"])) for d in docs]


async def _can_view(db: AsyncIOMotorDatabase, current_user: dict, doc: dict) -> bool:
    me = ObjectId(current_user["id"])
    if is_org_wide(current_user["role"]) or doc.get("user_id") == me or doc.get("submitted_by_id") == me:
        return True
    if is_team_lead(current_user["role"]):
        requester = await db["users"].find_one({"_id": doc.get("user_id")}, {"supervisor_id": 1})
        return bool(requester) and requester.get("supervisor_id") == me
    return False


@router.post("", response_model=LeaveOut, status_code=status.HTTP_201_CREATED)
async def create_leave(
    payload: LeaveIn,
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    db = writer.db
    me = ObjectId(current_user["id"])
    on_behalf = bool(payload.employee_id) and payload.employee_id != current_user["id"]
    if on_behalf:
        require_roles(current_user, PROXY_SUBMIT_ROLES)
        target = await db["users"].find_one({"_id": to_object_id(payload.employee_id, "Employee")})
    else:
        target = await db["users"].find_one({"_id": me})
    if not target:
        raise HTTPException(status_code=404, detail="Employee not found")

    doc = {
        "user_id": target["_id"],
        "submitted_by_id": me,
        "type": payload.type.value,
        "start_date": _as_datetime(payload.start_date),
        "end_date": _as_datetime(payload.end_date),
        "days": payload.days or inclusive_days(payload.start_date, payload.end_date),
        "status": initial_leave_status(on_behalf).value,
        "reason": payload.reason,
        "supervisor_notes": payload.supervisor_notes,
        "contact_destination": payload.contact_destination,
        "contact_phone": payload.contact_phone,
        # Denormalized for list views
        "user_name": target.get("name", "Unknown"),
        "user_email": target.get("email", ""),
        "user_department": target.get("department", ""),
    }
    doc = await writer.insert("leave_requests", doc)

    ticket = None
    if payload.ticket_required:
        ticket = await writer.insert("ticket_requests", {
            "leave_request_id": doc["_id"],
            "status": TicketStatus.PENDING_QUOTES.value,
            "route": payload.route or "Not specified",
            "quotes": None,
            "selected_quote": None,
            "ticket_type": payload.ticket_type,
            "dependent_tickets": payload.dependent_tickets,
            "user_id": target["_id"],
            "user_name": doc["user_name"],
            "user_email": doc["user_email"],
            "user_department": doc["user_department"],
            "leave_status": doc["status"],
        })

    await notify_users(
        db,
        await approver_ids(db, target),
        "leave_requested",
        {"leave_id": str(doc["_id"]), "user_name": doc["user_name"], "status": doc["status"]},
    )
    return leave_out(doc, ticket)


@router.get("", response_model=LeaveListOut)
async def list_leaves(
    status: Optional[LeaveStatus] = Query(None),
    type: Optional[LeaveType] = Query(None),
    from_date: Optional[_date] = Query(None),
    to_date: Optional[_date] = Query(None),
    user_id: Optional[str] = Query(None),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    db = writer.db
    q = await _scope_query(db, current_user, user_id)
    if status:
        q["status"] = status.value
    if type:
        q["type"] = type.value
    if from_date:
        q["start_date"] = {"$gte": _as_datetime(from_date)}
    if to_date:
        q["end_date"] = {"$lte": _as_datetime(to_date)}
    docs = [d async for d in db["leave_requests"].find(q).sort("created_at", -1)]
    return {"items": await _with_tickets(db, docs), "total": len(docs)}


@router.get("/pending", response_model=LeaveListOut)
async def list_pending_approvals(
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    """Requests sitting at a stage the caller is allowed to decide."""
    db = writer.db
    statuses = actionable_statuses(current_user["role"])
    if not statuses:
        return {"items": [], "total": 0}
    me = ObjectId(current_user["id"])
    q: dict = {"status": {"$in": statuses}, "user_id": {"$ne": me}}
    if is_team_lead(current_user["role"]):
        q["user_id"] = {"$in": await _subordinate_ids(db, me)}
    docs = [d async for d in db["leave_requests"].find(q).sort("created_at", 1)]
    return {"items": await _with_tickets(db, docs), "total": len(docs)}


@router.get("/{leave_id}", response_model=LeaveOut)
async def get_leave(
    leave_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    db = writer.db
    doc = await db["leave_requests"].find_one({"_id": to_object_id(leave_id, "Leave request")})
    if not doc:
        raise HTTPException(status_code=404, detail="Leave request not found")
    if not await _can_view(db, current_user, doc):
        raise HTTPException(status_code=403, detail="Forbidden")
    ticket = await db["ticket_requests"].find_one({"leave_request_id": doc["_id"]})
    return leave_out(doc, ticket)


@router.post("/{leave_id}/decision", response_model=LeaveOut)
async def decide_leave(
    payload: LeaveDecisionIn,
    leave_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    db = writer.db
    oid = to_object_id(leave_id, "Leave request")
    doc = await db["leave_requests"].find_one({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail="Leave request not found")
    if doc.get("user_id") == ObjectId(current_user["id"]):
        raise HTTPException(status_code=403, detail="You cannot decide on your own leave request")

    now = datetime.utcnow()
    changes = leave_decision(
        doc.get("status", ""),
        current_user["role"],
        payload.action,
        current_user["name"],
        now,
        payload.reason,
    )
    # Only applies if nobody decided this stage since it was read
    doc = await writer.update("leave_requests", oid, changes, match={"status": doc.get("status")})
    if doc is None:
        raise HTTPException(status_code=409, detail="Leave request was updated by someone else")

    if doc["status"] == LeaveStatus.APPROVED.value and doc.get("type") == LeaveType.ANNUAL.value:
        await writer.update("users", doc["user_id"], {}, inc={"annual_leave_bal": -int(doc.get("days", 0))})

    ticket = await db["ticket_requests"].find_one({"leave_request_id": oid})
    if ticket:
        ticket = await writer.update("ticket_requests", ticket["_id"], {"leave_status": doc["status"]})

    await notify_users(
        db,
        [doc.get("user_id")],
        "leave_status",
        {"leave_id": leave_id, "status": doc["status"], "by": current_user["name"], "reason": payload.reason},
    )
    return leave_out(doc, ticket)


@router.delete("/{leave_id}")
async def delete_leave(
    leave_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, {"ADMIN"})
    oid = to_object_id(leave_id, "Leave request")
    ticket = await writer.db["ticket_requests"].find_one({"leave_request_id": oid})
    if ticket:
        await writer.delete("ticket_requests", ticket["_id"])
    if not await writer.delete("leave_requests", oid):
        raise HTTPException(status_code=404, detail="Leave request not found")
    return {"status": "deleted", "id": leave_id}
