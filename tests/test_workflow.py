from datetime import date, datetime

import pytest
from fastapi import HTTPException

from latms.core.workflow import (
    actionable_statuses,
    can_decide,
    inclusive_days,
    initial_leave_status,
    leave_decision,
    ticket_transition,
)

NOW = datetime(2026, 3, 1, 9, 30)


def test_full_approval_chain_stamps_each_stage():
    step1 = leave_decision("PENDING_MANAGER", "SUPERVISOR", "approve", "Salim", NOW)
    assert step1 == {"status": "PENDING_HR", "manager_approved_by": "Salim", "manager_approved_at": NOW}

    step2 = leave_decision(step1["status"], "HR", "approve", "Hind", NOW)
    assert step2["status"] == "PENDING_MANAGEMENT"
    assert step2["hr_approved_by"] == "Hind"

    step3 = leave_decision(step2["status"], "MANAGEMENT", "approve", "Majid", NOW)
    assert step3["status"] == "APPROVED"
    assert step3["management_approved_at"] == NOW


@pytest.mark.parametrize(
    "status,role",
    [
        ("PENDING_MANAGER", "EMPLOYEE"),
        ("PENDING_MANAGER", "ACCOUNTS"),
        ("PENDING_HR", "SUPERVISOR"),
        ("PENDING_HR", "MANAGEMENT"),
        ("PENDING_MANAGEMENT", "HR"),
    ],
)
def test_wrong_role_is_forbidden(status, role):
    with pytest.raises(HTTPException) as exc:
        leave_decision(status, role, "approve", "x", NOW)
    assert exc.value.status_code == 403


def test_reject_uses_the_stage_gate_and_records_reason():
    out = leave_decision("PENDING_HR", "HR", "reject", "Hind", NOW, "Peak season")
    assert out == {"status": "REJECTED", "rejected_by": "Hind", "rejected_at": NOW, "rejection_reason": "Peak season"}
    with pytest.raises(HTTPException) as exc:
        leave_decision("PENDING_HR", "EMPLOYEE", "reject", "Eman", NOW)
    assert exc.value.status_code == 403


@pytest.mark.parametrize("status", ["APPROVED", "REJECTED"])
def test_terminal_requests_cannot_be_decided(status):
    with pytest.raises(HTTPException) as exc:
        leave_decision(status, "ADMIN", "approve", "Ada", NOW)
    assert exc.value.status_code == 409


def test_admin_may_act_at_every_stage():
    assert actionable_statuses("ADMIN") == ["PENDING_MANAGER", "PENDING_HR", "PENDING_MANAGEMENT"]
    assert actionable_statuses("EMPLOYEE") == []
    assert can_decide("PENDING_MANAGEMENT", "MANAGEMENT")
    assert not can_decide("APPROVED", "ADMIN")


def test_initial_status_depends_on_who_submits():
    assert initial_leave_status(False).value == "PENDING_MANAGER"
    assert initial_leave_status(True).value == "PENDING_HR"


def test_inclusive_days_counts_both_ends():
    assert inclusive_days(date(2026, 1, 1), date(2026, 1, 1)) == 1
    assert inclusive_days(date(2026, 1, 30), date(2026, 2, 2)) == 4


def test_ticket_steps_follow_the_linear_chain():
    assert ticket_transition("PENDING_QUOTES", "HR", "quotes") == "QUOTE_RECEIVED"
    assert ticket_transition("QUOTE_RECEIVED", "HR", "quotes") == "QUOTE_RECEIVED"
    assert ticket_transition("QUOTE_RECEIVED", "MANAGEMENT", "issue") == "TICKET_ISSUED"
    assert ticket_transition("TICKET_ISSUED", "ACCOUNTS", "settlement_ready") == "SETTLEMENT_READY"
    assert ticket_transition("SETTLEMENT_READY", "ACCOUNTS", "settle") == "SETTLED"


def test_ticket_steps_reject_skips_and_wrong_roles():
    with pytest.raises(HTTPException) as exc:
        ticket_transition("PENDING_QUOTES", "HR", "issue")
    assert exc.value.status_code == 409
    with pytest.raises(HTTPException) as exc:
        ticket_transition("TICKET_ISSUED", "HR", "quotes")
    assert exc.value.status_code == 409
    with pytest.raises(HTTPException) as exc:
        ticket_transition("PENDING_QUOTES", "ACCOUNTS", "quotes")
    assert exc.value.status_code == 403
