from enum import Enum


class Role(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    SUPERVISOR = "SUPERVISOR"
    MANAGER = "MANAGER"
    HR = "HR"
    MANAGEMENT = "MANAGEMENT"
    ACCOUNTS = "ACCOUNTS"
    ADMIN = "ADMIN"


class LeaveType(str, Enum):
    ANNUAL = "Annual"
    SICK = "Sick"
    EMERGENCY = "Emergency"


class LeaveStatus(str, Enum):
    PENDING_MANAGER = "PENDING_MANAGER"
    PENDING_HR = "PENDING_HR"
    PENDING_MANAGEMENT = "PENDING_MANAGEMENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TicketStatus(str, Enum):
    PENDING_QUOTES = "PENDING_QUOTES"
    QUOTE_RECEIVED = "QUOTE_RECEIVED"
    TICKET_ISSUED = "TICKET_ISSUED"
    SETTLEMENT_READY = "SETTLEMENT_READY"
    SETTLED = "SETTLED"
