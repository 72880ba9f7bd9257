"""Employee directory import from the HR spreadsheet export (CSV)."""
import csv
import io
import logging
import re
from dataclasses import dataclass, field

from pymongo.errors import DuplicateKeyError

from latms.core.config import settings
from latms.core.security import hash_password
from latms.services.dual_write import DualWriteService


logger = logging.getLogger("uvicorn.error")

_LEADING_INT = re.compile(r"[+-]?\d+")


@dataclass
class ImportResult:
    processed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def _int_or_default(raw: str | None, default: int) -> int:
    """Leading integer of a spreadsheet cell, so "12.5" reads as 12."""
    raw = (raw or "").strip()
    if not raw:
        return default
    m = _LEADING_INT.match(raw)
    if m is None:
        logger.warning("Unreadable leave balance %r; using default %s", raw, default)
        return default
    return int(m.group())


def parse_employee_rows(text: str, result: ImportResult) -> list[dict]:
    """Map CSV records to user fields; rows missing staff code or name are skipped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows: list[dict] = []
    for line_no, record in enumerate(reader, start=2):
        # Overflow columns land under a None key
        record = {k.strip(): (v or "").strip() for k, v in record.items() if k is not None}
        if not any(record.values()):
            continue
        staff_code = record.get("Staff Code", "")
        name = record.get("Name", "")
        if not staff_code or not name:
            result.skipped += 1
            result.errors.append(f"line {line_no}: missing staff code or name")
            logger.warning("Skipping employee row %s with missing staff code or name", line_no)
            continue
        email = record.get("Email") or f"{staff_code}@{settings.EMAIL_DOMAIN}"
        rows.append({
            "staff_code": staff_code,
            "name": name,
            "email": email.lower(),
            "department": record.get("Department") or None,
            "location": record.get("Location") or None,
            "position": record.get("Role") or None,
            "role": "SUPERVISOR" if record.get("Supervisor", "").upper() == "YES" else "EMPLOYEE",
            "annual_leave_bal": _int_or_default(record.get("Leave Bal"), settings.DEFAULT_LEAVE_BALANCE),
        })
    return rows


async def import_employees(writer: DualWriteService, text: str) -> ImportResult:
    result = ImportResult()
    for row in parse_employee_rows(text, result):
        try:
            existing = await writer.db["users"].find_one({"staff_code": row["staff_code"]})
            if existing:
                await writer.update("users", existing["_id"], row)
            else:
                await writer.insert("users", {
                    **row,
                    "password_hash": hash_password(settings.DEFAULT_IMPORT_PASSWORD),
                    "ticket_eligible": True,
                    "supervisor_id": None,
                })
            result.processed += 1
        except DuplicateKeyError:
            result.skipped += 1
            result.errors.append(f"{row['staff_code']}: email {row['email']} already in use")
            logger.warning("Skipping employee %s: duplicate email %s", row["staff_code"], row["email"])
    return result
