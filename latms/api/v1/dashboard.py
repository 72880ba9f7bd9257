from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.rbac import ORG_WIDE_ROLES, require_roles
from latms.core.security import get_current_user
from latms.db.mongo import get_mongo_db
from latms.schemas.common import LeaveStatus, TicketStatus
from latms.schemas.dashboard_schema import SummaryMetrics


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


async def _counts_by_status(db: AsyncIOMotorDatabase, collection: str, statuses) -> dict[str, int]:
    counts = {s.value: 0 for s in statuses}
    async for row in db[collection].aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}]):
        if row["_id"] in counts:
            counts[row["_id"]] = row["count"]
    return counts


@router.get("/summary", response_model=SummaryMetrics)
async def dashboard_summary(
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, ORG_WIDE_ROLES)
    employees = await db["users"].count_documents({})
    # On leave today (approved)
    now = datetime.utcnow()
    start_of_day = datetime(now.year, now.month, now.day)
    end_of_day = start_of_day + timedelta(days=1)
    on_leave_today = await db["leave_requests"].count_documents({
        "status": LeaveStatus.APPROVED.value,
        "start_date": {"$lt": end_of_day},
        "end_date": {"$gte": start_of_day},
    })
    return SummaryMetrics(
        employees=employees,
        leaves=await _counts_by_status(db, "leave_requests", LeaveStatus),
        tickets=await _counts_by_status(db, "ticket_requests", TicketStatus),
        on_leave_today=on_leave_today,
    )
