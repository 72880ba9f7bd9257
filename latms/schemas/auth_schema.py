from typing import Optional
from pydantic import BaseModel, EmailStr

from .common import Role


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class PasswordChangeIn(BaseModel):
    current_password: str
    new_password: str


class UserOut(BaseModel):
    id: str
    staff_code: str
    name: str
    email: EmailStr
    role: Role
    department: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    annual_leave_bal: int
    ticket_eligible: bool
    supervisor_id: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserOut
    token: str
