from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from bson import ObjectId

from latms.db.mongo import get_mongo_db, close_mongo_client
from latms.db.mongo_indexes import ensure_indexes
from latms.core.security import hash_password


ADMIN_ID = ObjectId("6562a0f0a0a0a0a0a0a0a0a1")
SUPERVISOR_ID = ObjectId("6562a0f0a0a0a0a0a0a0a0a3")


async def seed_users(db):
    now = datetime.utcnow()
    base = {"created_at": now, "updated_at": now, "ticket_eligible": True, "annual_leave_bal": 30}
    users = [
        {"_id": ADMIN_ID, "staff_code": "ADM001", "email": "admin@example.com", "password_hash": hash_password("admin123"),
         "name": "System Admin", "role": "ADMIN", "department": "Administration", "supervisor_id": None},
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0a2"), "staff_code": "HR001", "email": "hr@example.com",
         "password_hash": hash_password("hr123"), "name": "Hana HR", "role": "HR", "department": "Human Resources",
         "supervisor_id": None},
        {"_id": SUPERVISOR_ID, "staff_code": "SUP001", "email": "supervisor@example.com",
         "password_hash": hash_password("super123"), "name": "Sami Supervisor", "role": "SUPERVISOR",
         "department": "Operations", "location": "Muscat", "supervisor_id": None},
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0a4"), "staff_code": "MGT001", "email": "management@example.com",
         "password_hash": hash_password("mgmt123"), "name": "Maha Management", "role": "MANAGEMENT",
         "department": "Management", "supervisor_id": None},
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0a5"), "staff_code": "ACC001", "email": "accounts@example.com",
         "password_hash": hash_password("acc123"), "name": "Adil Accounts", "role": "ACCOUNTS",
         "department": "Accounts", "supervisor_id": None},
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0a6"), "staff_code": "EMP001", "email": "employee@example.com",
         "password_hash": hash_password("user123"), "name": "Eman Employee", "role": "EMPLOYEE",
         "department": "Operations", "position": "Technician", "location": "Sohar", "supervisor_id": SUPERVISOR_ID},
    ]
    for u in users:
        await db["users"].update_one({"_id": u["_id"]}, {"$setOnInsert": {**base, **u}}, upsert=True)
    return users


async def seed_leaves(db, users):
    now = datetime.utcnow()
    employee = users[-1]
    start = datetime(now.year, now.month, now.day) + timedelta(days=14)
    leave = {
        "_id": ObjectId("6562a0f0a0a0a0a0a0a0a0c1"),
        "user_id": employee["_id"],
        "submitted_by_id": employee["_id"],
        "type": "Annual",
        "start_date": start,
        "end_date": start + timedelta(days=20),
        "days": 21,
        "status": "PENDING_MANAGER",
        "reason": "Sample seed leave",
        "user_name": employee["name"],
        "user_email": employee["email"],
        "user_department": employee["department"],
        "created_at": now,
        "updated_at": now,
    }
    await db["leave_requests"].update_one({"_id": leave["_id"]}, {"$setOnInsert": leave}, upsert=True)
    ticket = {
        "_id": ObjectId("6562a0f0a0a0a0a0a0a0a0d1"),
        "leave_request_id": leave["_id"],
        "status": "PENDING_QUOTES",
        "route": "MCT-COK-MCT",
        "quotes": None,
        "selected_quote": None,
        "user_id": employee["_id"],
        "user_name": employee["name"],
        "user_email": employee["email"],
        "user_department": employee["department"],
        "leave_status": leave["status"],
        "created_at": now,
        "updated_at": now,
    }
    await db["ticket_requests"].update_one({"_id": ticket["_id"]}, {"$setOnInsert": ticket}, upsert=True)


async def main():
    db = get_mongo_db()
    # Ensure indexes before inserting
    await ensure_indexes(db)

    users = await seed_users(db)
    await seed_leaves(db, users)

    print("MongoDB seed completed.")
    close_mongo_client()


if __name__ == "__main__":
    asyncio.run(main())
