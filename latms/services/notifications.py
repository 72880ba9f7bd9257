from datetime import datetime
from typing import Iterable

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.feature_flags import features


async def notify_users(db: AsyncIOMotorDatabase, user_ids: Iterable[ObjectId], kind: str, payload: dict) -> int:
    """Insert one in-app notification per distinct recipient."""
    if not features.notifications:
        return 0
    now = datetime.utcnow()
    docs = [
        {"user_id": uid, "type": kind, "payload": payload, "read": False, "created_at": now}
        for uid in dict.fromkeys(u for u in user_ids if u)
    ]
    if docs:
        await db["notifications"].insert_many(docs)
    return len(docs)


async def approver_ids(db: AsyncIOMotorDatabase, requester: dict) -> list[ObjectId]:
    """The requester's supervisor plus everyone in HR or ADMIN."""
    ids: list[ObjectId] = []
    if requester.get("supervisor_id"):
        ids.append(requester["supervisor_id"])
    async for u in db["users"].find({"role": {"$in": ["HR", "ADMIN"]}}, {"_id": 1}):
        ids.append(u["_id"])
    return [i for i in ids if i != requester.get("_id")]
