from typing import Iterable
from fastapi import HTTPException, status

# Roles that see every leave and ticket request
ORG_WIDE_ROLES = {"ADMIN", "HR", "ACCOUNTS", "MANAGEMENT"}
# Roles that see their own team
TEAM_ROLES = {"SUPERVISOR", "MANAGER"}
DIRECTORY_ROLES = {"ADMIN", "HR"}


def is_org_wide(role: str) -> bool:
    return role in ORG_WIDE_ROLES


def is_team_lead(role: str) -> bool:
    return role in TEAM_ROLES


def require_roles(user: dict, allowed: Iterable[str]) -> None:
    role = str(user.get("role", ""))
    if role not in set(allowed):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
