from bson import ObjectId
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.security import get_current_user, user_out
from latms.db.mongo import get_mongo_db

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/employees")
async def list_employees_for_posting(
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    """Employees a supervisor can post leave for, excluding the caller."""
    cursor = db["users"].find({"role": "EMPLOYEE", "_id": {"$ne": ObjectId(current_user["id"])}}).sort("name", 1)
    return {"items": [user_out(u) async for u in cursor]}


@router.get("/subordinates")
async def list_subordinates(
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    cursor = db["users"].find({"supervisor_id": ObjectId(current_user["id"])}).sort("name", 1)
    return {"items": [user_out(u) async for u in cursor]}
