from fastapi import APIRouter, Depends, HTTPException, Response, status
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from latms.core.config import settings
from latms.core.security import get_current_user, hash_password, verify_password, create_jwt, user_out
from latms.db.mongo import get_mongo_db
from latms.schemas.auth_schema import LoginIn, UserOut, AuthResponse, PasswordChangeIn
from latms.services.dual_write import DualWriteService, get_dual_writer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginIn, response: Response, db: AsyncIOMotorDatabase = Depends(get_mongo_db)):
    user = await db["users"].find_one({"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_jwt({"sub": str(user["_id"]), "role": user.get("role", "EMPLOYEE")})
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.TOKEN_TTL_HOURS * 3600,
    )
    return {"user": user_out(user), "token": token}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "logged_out"}


@router.get("/me", response_model=UserOut)
async def get_me(current_user=Depends(get_current_user)):
    return current_user


@router.post("/password")
async def change_password(
    payload: PasswordChangeIn,
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    uid = ObjectId(current_user["id"])
    user = await writer.db["users"].find_one({"_id": uid})
    if not user or not verify_password(payload.current_password, user.get("password_hash", "")):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    await writer.update("users", uid, {"password_hash": hash_password(payload.new_password)})
    return {"status": "changed"}
