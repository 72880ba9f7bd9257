"""Approval and ticket status transitions.

Leave requests move PENDING_MANAGER -> PENDING_HR -> PENDING_MANAGEMENT ->
APPROVED, or to REJECTED from any pending stage. Ticket requests move
PENDING_QUOTES -> QUOTE_RECEIVED -> TICKET_ISSUED -> SETTLEMENT_READY ->
SETTLED. Every step is gated on the acting user's role.
"""
from datetime import date, datetime
from typing import NamedTuple, Optional

from fastapi import HTTPException, status

from latms.schemas.common import LeaveStatus, TicketStatus


class LeaveStage(NamedTuple):
    next_status: LeaveStatus
    roles: frozenset
    stamp: str
    denied: str


LEAVE_STAGES: dict[str, LeaveStage] = {
    LeaveStatus.PENDING_MANAGER.value: LeaveStage(
        LeaveStatus.PENDING_HR,
        frozenset({"MANAGER", "SUPERVISOR", "ADMIN", "HR"}),
        "manager",
        "Only Manager/Supervisor can approve at this stage",
    ),
    LeaveStatus.PENDING_HR.value: LeaveStage(
        LeaveStatus.PENDING_MANAGEMENT,
        frozenset({"HR", "ADMIN"}),
        "hr",
        "Only HR can approve at this stage",
    ),
    LeaveStatus.PENDING_MANAGEMENT.value: LeaveStage(
        LeaveStatus.APPROVED,
        frozenset({"ADMIN", "MANAGEMENT"}),
        "management",
        "Only Management/Admin can give final approval",
    ),
}

TERMINAL_LEAVE_STATUSES = {LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value}

# Submitting on behalf of someone else skips the manager stage
PROXY_SUBMIT_ROLES = frozenset({"SUPERVISOR", "MANAGER", "HR", "ADMIN"})


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def initial_leave_status(on_behalf: bool) -> LeaveStatus:
    return LeaveStatus.PENDING_HR if on_behalf else LeaveStatus.PENDING_MANAGER


def can_decide(current_status: str, role: str) -> bool:
    stage = LEAVE_STAGES.get(current_status)
    return stage is not None and role in stage.roles


def actionable_statuses(role: str) -> list[str]:
    return [s for s, stage in LEAVE_STAGES.items() if role in stage.roles]


def leave_decision(
    current_status: str,
    role: str,
    action: str,
    actor_name: str,
    now: datetime,
    reason: Optional[str] = None,
) -> dict:
    """Return the ``$set`` document for approving or rejecting a leave request."""
    stage = LEAVE_STAGES.get(current_status)
    if stage is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Leave request is already {current_status}",
        )
    if role not in stage.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=stage.denied)
    if action == "approve":
        return {
            "status": stage.next_status.value,
            f"{stage.stamp}_approved_by": actor_name,
            f"{stage.stamp}_approved_at": now,
        }
    if action == "reject":
        return {
            "status": LeaveStatus.REJECTED.value,
            "rejected_by": actor_name,
            "rejected_at": now,
            "rejection_reason": reason,
        }
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {action}")


class TicketStep(NamedTuple):
    allowed_from: frozenset
    next_status: TicketStatus
    roles: frozenset


TICKET_STEPS: dict[str, TicketStep] = {
    "quotes": TicketStep(
        frozenset({TicketStatus.PENDING_QUOTES.value, TicketStatus.QUOTE_RECEIVED.value}),
        TicketStatus.QUOTE_RECEIVED,
        frozenset({"ADMIN", "HR"}),
    ),
    "issue": TicketStep(
        frozenset({TicketStatus.QUOTE_RECEIVED.value}),
        TicketStatus.TICKET_ISSUED,
        frozenset({"ADMIN", "HR", "MANAGEMENT"}),
    ),
    "settlement_ready": TicketStep(
        frozenset({TicketStatus.TICKET_ISSUED.value}),
        TicketStatus.SETTLEMENT_READY,
        frozenset({"ACCOUNTS", "ADMIN", "HR"}),
    ),
    "settle": TicketStep(
        frozenset({TicketStatus.SETTLEMENT_READY.value}),
        TicketStatus.SETTLED,
        frozenset({"ACCOUNTS", "ADMIN", "HR"}),
    ),
}

SETTLEMENT_STEPS = {
    TicketStatus.SETTLEMENT_READY.value: "settlement_ready",
    TicketStatus.SETTLED.value: "settle",
}


def ticket_transition(current_status: str, role: str, step_name: str) -> str:
    step = TICKET_STEPS[step_name]
    if role not in step.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if current_status not in step.allowed_from:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move ticket from {current_status} to {step.next_status.value}",
        )
    return step.next_status.value
