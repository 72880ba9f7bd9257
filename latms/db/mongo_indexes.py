from motor.motor_asyncio import AsyncIOMotorDatabase
from latms.db.mongo import get_mongo_db


async def ensure_indexes(db: AsyncIOMotorDatabase | None = None) -> None:
    """Create required MongoDB indexes (idempotent)."""
    if db is None:
        db = get_mongo_db()

    users = db["users"]
    # Login and duplicate checks
    await users.create_index([("email", 1)], unique=True, name="uniq_email")
    await users.create_index([("staff_code", 1)], unique=True, name="uniq_staff_code")
    # Team lookups
    await users.create_index([("supervisor_id", 1)], name="idx_supervisor_id")
    await users.create_index([("role", 1)], name="idx_role")

    leaves = db["leave_requests"]
    await leaves.create_index([("user_id", 1), ("created_at", -1)], name="idx_leave_user_created")
    await leaves.create_index([("submitted_by_id", 1)], name="idx_leave_submitted_by")
    await leaves.create_index([("status", 1), ("created_at", -1)], name="idx_leave_status_created")
    await leaves.create_index([("start_date", 1), ("end_date", 1)], name="idx_leave_dates")

    tickets = db["ticket_requests"]
    await tickets.create_index([("leave_request_id", 1)], unique=True, name="uniq_ticket_leave")
    await tickets.create_index([("status", 1), ("created_at", -1)], name="idx_ticket_status_created")
    await tickets.create_index([("user_id", 1)], name="idx_ticket_user")

    notifications = db["notifications"]
    await notifications.create_index([("user_id", 1), ("read", 1), ("created_at", -1)], name="idx_notif_user_read_created")
