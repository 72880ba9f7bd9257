from typing import List
from fastapi import APIRouter, Depends
from latms.core.security import get_current_user
from latms.schemas.common import LeaveStatus, LeaveType, Role, TicketStatus

router = APIRouter(prefix="/lookups", tags=["lookups"])


@router.get("/leave-types", response_model=List[str])
def get_leave_types(current_user=Depends(get_current_user)):
    return [t.value for t in LeaveType]


@router.get("/leave-statuses", response_model=List[str])
def get_leave_statuses(current_user=Depends(get_current_user)):
    return [s.value for s in LeaveStatus]


@router.get("/ticket-statuses", response_model=List[str])
def get_ticket_statuses(current_user=Depends(get_current_user)):
    return [s.value for s in TicketStatus]


@router.get("/roles", response_model=List[str])
def get_roles(current_user=Depends(get_current_user)):
    return [r.value for r in Role]
