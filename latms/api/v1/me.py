from datetime import datetime

from bson import ObjectId
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.security import get_current_user
from latms.core.workflow import LEAVE_STAGES
from latms.db.mongo import get_mongo_db


router = APIRouter(prefix="/me", tags=["me"])


@router.get("/profile")
async def my_profile(db: AsyncIOMotorDatabase = Depends(get_mongo_db), current_user=Depends(get_current_user)):
    supervisor = None
    if current_user.get("supervisor_id"):
        sup = await db["users"].find_one({"_id": ObjectId(current_user["supervisor_id"])})
        if sup:
            supervisor = {"id": str(sup["_id"]), "staff_code": sup.get("staff_code", ""), "name": sup.get("name", "")}
    return {"user": current_user, "supervisor": supervisor}


@router.get("/leave-balance")
async def my_leave_balance(db: AsyncIOMotorDatabase = Depends(get_mongo_db), current_user=Depends(get_current_user)):
    """Remaining annual balance plus approved and in-flight days for the current year."""
    start_year = datetime(datetime.utcnow().year, 1, 1)
    q = {"user_id": ObjectId(current_user["id"]), "start_date": {"$gte": start_year}}
    approved: dict[str, int] = {}
    pending_days = 0
    async for leave in db["leave_requests"].find(q):
        days = int(leave.get("days", 0))
        if leave.get("status") == "APPROVED":
            lt = leave.get("type", "Annual")
            approved[lt] = approved.get(lt, 0) + days
        elif leave.get("status") in LEAVE_STAGES:
            pending_days += days
    return {
        "annual_leave_bal": current_user["annual_leave_bal"],
        "approved_days": approved,
        "approved_total": sum(approved.values()),
        "pending_days": pending_days,
    }
