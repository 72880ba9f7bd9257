from datetime import datetime
from typing import Optional

from fastapi import HTTPException

from latms.core.config import settings
from latms.schemas.ticket_schema import Quote, decode_quote
from latms.utils.email import build_mailto, render_template


MAIL_KINDS = ("quote_request", "issue_ticket", "employee_update", "settlement_request")

_EMPLOYEE_UPDATE = {
    # status: (subject tag, opening line, settlement line, next steps)
    "SETTLED": (
        "SETTLEMENT COMPLETED",
        "Your settlement has been COMPLETED.",
        "Paid/Settled",
        "Please contact HR for further details.",
    ),
    "SETTLEMENT_READY": (
        "SETTLEMENT READY",
        "Your ticket has been issued and your settlement is now READY for collection.",
        "Ready for Collection",
        "Please visit the Accounts/HR department to collect your settlement/ticket.",
    ),
    "TICKET_ISSUED": (
        "TICKET ISSUED",
        "Your air ticket has been issued successfully.",
        "In Process",
        "Your ticket is ready. We are currently processing your settlement.",
    ),
}
_DEFAULT_UPDATE = (
    "UPDATE",
    "Your leave and ticket request status has been updated.",
    "In Process",
    "Please contact HR for further details.",
)


def _fmt_date(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    return str(value or "")


def _label(status: Optional[str]) -> str:
    return (status or "").replace("_", " ")


def _quote_ctx(quote: Optional[Quote]) -> Optional[dict]:
    if quote is None:
        return None
    return {**quote.model_dump(), "price_label": f"OMR {quote.price:.3f}"}


def compose_ticket_mail(kind: str, ticket: dict, leave: dict, user: dict) -> dict:
    """Build recipient, subject, body and mailto link for a ticket notification."""
    if kind not in MAIL_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown mail kind: {kind}")
    selected = decode_quote(ticket.get("selected_quote"))
    if kind == "issue_ticket" and selected is None:
        raise HTTPException(status_code=409, detail="No quote has been selected for this ticket")

    ctx = {
        "user": {
            "name": user.get("name", ""),
            "staff_code": user.get("staff_code", ""),
            "email": user.get("email", ""),
            "department": user.get("department"),
            "location": user.get("location"),
            "ticket_eligible": bool(user.get("ticket_eligible", True)),
        },
        "leave": {
            "type": leave.get("type", ""),
            "status_label": _label(leave.get("status")),
            "start_date": _fmt_date(leave.get("start_date")),
            "end_date": _fmt_date(leave.get("end_date")),
            "days": leave.get("days", 0),
            "reason": leave.get("reason"),
        },
        "ticket": {
            "route": ticket.get("route", ""),
            "status_label": _label(ticket.get("status")),
        },
        "quote": _quote_ctx(selected),
        "signature": settings.HR_SIGNATURE,
    }
    prefix = f"{ctx['user']['staff_code']} | {ctx['ticket']['route']} | {ctx['user']['name'].upper()}"

    if kind == "quote_request":
        to = settings.TRAVEL_AGENT_EMAIL
        tag = "ELIGIBLE" if ctx["user"]["ticket_eligible"] else "NOT ELIGIBLE"
    elif kind == "issue_ticket":
        to = settings.TRAVEL_AGENT_EMAIL
        tag = "ISSUE TICKET"
    elif kind == "settlement_request":
        to = settings.ACCOUNTS_EMAIL
        tag = "SETTLEMENT REQUEST"
    else:
        to = ctx["user"]["email"]
        tag, opening, settlement_label, next_steps = _EMPLOYEE_UPDATE.get(ticket.get("status"), _DEFAULT_UPDATE)
        ctx.update({"opening": opening, "settlement_label": settlement_label, "next_steps": next_steps})

    subject = f"{prefix} | {tag}"
    body = render_template(f"{kind}.txt", ctx)
    return {"kind": kind, "to": to, "subject": subject, "body": body, "mailto": build_mailto(to, subject, body)}
