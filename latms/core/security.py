import hashlib
from datetime import datetime, timedelta
from typing import Optional

import jwt
from bson import ObjectId
from fastapi import Cookie, Depends, Header, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.config import settings
from latms.db.mongo import get_mongo_db


ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, hashed: str) -> bool:
    return hash_password(password) == hashed


def create_jwt(payload: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = payload.copy()
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.TOKEN_TTL_HOURS)
    exp = datetime.utcnow() + expires_delta
    to_encode.update({"exp": exp})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_jwt(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def user_out(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "staff_code": user.get("staff_code", ""),
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "role": user.get("role", "EMPLOYEE"),
        "department": user.get("department"),
        "position": user.get("position"),
        "location": user.get("location"),
        "annual_leave_bal": int(user.get("annual_leave_bal", 0)),
        "ticket_eligible": bool(user.get("ticket_eligible", True)),
        "supervisor_id": str(user["supervisor_id"]) if user.get("supervisor_id") else None,
    }


async def get_current_user(
    authorization: Optional[str] = Header(None),
    session_token: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    # Bearer header wins over the browser session cookie
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1]
    elif session_token:
        token = session_token
    else:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    payload = decode_jwt(token)
    uid = payload.get("sub")
    if not uid or not ObjectId.is_valid(uid):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    user = await db["users"].find_one({"_id": ObjectId(uid)})
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user_out(user)
