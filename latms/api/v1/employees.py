from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Path, UploadFile, status
from bson import ObjectId

from latms.core.config import settings
from latms.core.feature_flags import features
from latms.core.rbac import DIRECTORY_ROLES, require_roles
from latms.core.security import get_current_user, hash_password
from latms.db.mongo import to_object_id
from latms.schemas.employee_schema import (
    EmployeeIn,
    EmployeeOut,
    EmployeeUpdate,
    ImportResultOut,
)
from latms.services.dual_write import DualWriteService, get_dual_writer
from latms.services.employee_import import import_employees

router = APIRouter(prefix="/employees", tags=["employees"])

# Profile fields an explicit null may clear; other nulls are ignored
CLEARABLE_FIELDS = {"supervisor_id", "department", "position", "location"}


def _employee_out(doc: dict, supervisor: Optional[dict] = None) -> dict:
    return {
        "id": str(doc["_id"]),
        "staff_code": doc.get("staff_code", ""),
        "email": doc.get("email", ""),
        "name": doc.get("name", ""),
        "role": doc.get("role", "EMPLOYEE"),
        "department": doc.get("department"),
        "position": doc.get("position"),
        "location": doc.get("location"),
        "annual_leave_bal": int(doc.get("annual_leave_bal", 0)),
        "ticket_eligible": bool(doc.get("ticket_eligible", True)),
        "supervisor_id": str(doc["supervisor_id"]) if doc.get("supervisor_id") else None,
        "supervisor": {"staff_code": supervisor.get("staff_code", ""), "name": supervisor.get("name", "")} if supervisor else None,
        "created_at": doc.get("created_at"),
    }


def _supervisor_oid(raw: Optional[str]) -> Optional[ObjectId]:
    if not raw:
        return None
    if not ObjectId.is_valid(raw):
        raise HTTPException(status_code=400, detail="Invalid supervisor_id")
    return ObjectId(raw)


@router.get("", response_model=list[EmployeeOut])
async def list_employees(
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, DIRECTORY_ROLES)
    users = [u async for u in writer.db["users"].find({}).sort("created_at", -1)]
    by_id = {u["_id"]: u for u in users}
    return [_employee_out(u, by_id.get(u.get("supervisor_id"))) for u in users]


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, DIRECTORY_ROLES)
    doc = await writer.db["users"].find_one({"_id": to_object_id(employee_id, "Employee")})
    if not doc:
        raise HTTPException(status_code=404, detail="Employee not found")
    supervisor = None
    if doc.get("supervisor_id"):
        supervisor = await writer.db["users"].find_one({"_id": doc["supervisor_id"]})
    return _employee_out(doc, supervisor)


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeIn,
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, DIRECTORY_ROLES)
    email = payload.email.lower()
    exists = await writer.db["users"].find_one({"$or": [{"staff_code": payload.staff_code}, {"email": email}]})
    if exists:
        raise HTTPException(status_code=400, detail="Staff code or email already exists")
    doc = payload.model_dump(exclude={"password"})
    doc.update({
        "email": email,
        "role": payload.role.value,
        "password_hash": hash_password(payload.password),
        "annual_leave_bal": payload.annual_leave_bal if payload.annual_leave_bal is not None else settings.DEFAULT_LEAVE_BALANCE,
        "supervisor_id": _supervisor_oid(payload.supervisor_id),
    })
    doc = await writer.insert("users", doc)
    return _employee_out(doc)


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    payload: EmployeeUpdate,
    employee_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, DIRECTORY_ROLES)
    oid = to_object_id(employee_id, "Employee")
    update = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in CLEARABLE_FIELDS
    }
    # Only replace the password when a new one is supplied
    password = update.pop("password", None)
    if password:
        update["password_hash"] = hash_password(password)
    if "email" in update:
        update["email"] = update["email"].lower()
    if "role" in update:
        update["role"] = payload.role.value
    if "supervisor_id" in update:
        update["supervisor_id"] = _supervisor_oid(update["supervisor_id"])
        if update["supervisor_id"] == oid:
            raise HTTPException(status_code=400, detail="An employee cannot supervise themself")
    clash = [{k: update[k]} for k in ("staff_code", "email") if update.get(k)]
    if clash:
        other = await writer.db["users"].find_one({"$or": clash, "_id": {"$ne": oid}})
        if other:
            raise HTTPException(status_code=400, detail="Staff code or email already exists")
    doc = await writer.update("users", oid, update)
    if not doc:
        raise HTTPException(status_code=404, detail="Employee not found")
    return _employee_out(doc)


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: str = Path(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, {"ADMIN"})
    deleted = await writer.delete("users", to_object_id(employee_id, "Employee"))
    if not deleted:
        raise HTTPException(status_code=404, detail="Employee not found")
    return {"status": "deleted", "id": employee_id}


@router.post("/import", response_model=ImportResultOut)
async def import_employee_csv(
    file: UploadFile = File(...),
    writer: DualWriteService = Depends(get_dual_writer),
    current_user=Depends(get_current_user),
):
    require_roles(current_user, DIRECTORY_ROLES)
    if not features.csv_import:
        raise HTTPException(status_code=404, detail="CSV import disabled")
    content = await file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded") from exc
    result = await import_employees(writer, text)
    return {"processed": result.processed, "skipped": result.skipped, "errors": result.errors}
