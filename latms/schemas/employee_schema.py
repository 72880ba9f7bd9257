from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from .common import Role


class EmployeeIn(BaseModel):
    staff_code: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: Role = Role.EMPLOYEE
    department: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    annual_leave_bal: Optional[int] = Field(default=None, ge=0)
    ticket_eligible: bool = True
    supervisor_id: Optional[str] = None


class EmployeeUpdate(BaseModel):
    staff_code: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    annual_leave_bal: Optional[int] = Field(default=None, ge=0)
    ticket_eligible: Optional[bool] = None
    supervisor_id: Optional[str] = None


class SupervisorRef(BaseModel):
    staff_code: str
    name: str


class EmployeeOut(BaseModel):
    id: str
    staff_code: str
    email: EmailStr
    name: str
    role: Role
    department: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    annual_leave_bal: int
    ticket_eligible: bool
    supervisor_id: Optional[str] = None
    supervisor: Optional[SupervisorRef] = None
    created_at: Optional[datetime] = None


class ImportResultOut(BaseModel):
    processed: int
    skipped: int
    errors: list[str] = []
