from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from latms.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True)
    staff_code = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="EMPLOYEE")
    department = Column(String(255), nullable=True)
    position = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    annual_leave_bal = Column(Integer, nullable=False, default=30)
    ticket_eligible = Column(Boolean, nullable=False, default=True)
    supervisor_id = Column(String(24), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String(24), primary_key=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_by_id = Column(String(24), nullable=True)
    type = Column(String(20), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    days = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False, index=True)
    reason = Column(Text, nullable=True)
    manager_approved_by = Column(String(255), nullable=True)
    manager_approved_at = Column(DateTime, nullable=True)
    hr_approved_by = Column(String(255), nullable=True)
    hr_approved_at = Column(DateTime, nullable=True)
    management_approved_by = Column(String(255), nullable=True)
    management_approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class TicketRequest(Base):
    __tablename__ = "ticket_requests"

    id = Column(String(24), primary_key=True)
    leave_request_id = Column(String(24), ForeignKey("leave_requests.id", ondelete="CASCADE"), unique=True, nullable=False)
    status = Column(String(30), nullable=False, default="PENDING_QUOTES")
    route = Column(String(255), nullable=False)
    # JSON-encoded quote list and selection
    quotes = Column(Text, nullable=True)
    selected_quote = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


MODELS = {
    "users": User,
    "leave_requests": LeaveRequest,
    "ticket_requests": TicketRequest,
}
