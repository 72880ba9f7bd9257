from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from .common import LeaveStatus, LeaveType
from .ticket_schema import TicketOut


class LeaveIn(BaseModel):
    employee_id: Optional[str] = None  # set when posting for a team member
    type: LeaveType = LeaveType.ANNUAL
    start_date: date
    end_date: date
    days: Optional[int] = Field(default=None, ge=1)
    reason: Optional[str] = None
    supervisor_notes: Optional[str] = None
    contact_destination: Optional[str] = None
    contact_phone: Optional[str] = None
    ticket_required: bool = False
    route: Optional[str] = None
    ticket_type: Optional[str] = None
    dependent_tickets: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LeaveOut(BaseModel):
    id: str
    user_id: str
    submitted_by_id: Optional[str] = None
    type: str
    start_date: date
    end_date: date
    days: int
    status: LeaveStatus
    reason: Optional[str] = None
    supervisor_notes: Optional[str] = None
    contact_destination: Optional[str] = None
    contact_phone: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_department: Optional[str] = None
    manager_approved_by: Optional[str] = None
    manager_approved_at: Optional[datetime] = None
    hr_approved_by: Optional[str] = None
    hr_approved_at: Optional[datetime] = None
    management_approved_by: Optional[str] = None
    management_approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    ticket_request: Optional[TicketOut] = None
    created_at: datetime


class LeaveDecisionIn(BaseModel):
    action: Literal["approve", "reject"]
    reason: Optional[str] = None


class LeaveListOut(BaseModel):
    items: list[LeaveOut]
    total: int
