import asyncio
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from latms.core.security import create_jwt, hash_password
from latms.db.mongo import get_mongo_db
from latms.db.mongo_indexes import ensure_indexes
from latms.db.session import create_tables, make_engine, make_sessionmaker
from latms.services.dual_write import LegacyMirror, get_legacy_mirror


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    database = AsyncMongoMockClient()["latms_test"]
    run(ensure_indexes(database))
    return database


@pytest.fixture
def legacy_sessions():
    engine = make_engine("sqlite://")
    create_tables(engine)
    yield make_sessionmaker(engine)
    engine.dispose()


@pytest.fixture
def client(db, legacy_sessions):
    app.dependency_overrides[get_mongo_db] = lambda: db
    app.dependency_overrides[get_legacy_mirror] = lambda: LegacyMirror(legacy_sessions)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _user(staff_code, name, role, supervisor_id=None, **extra):
    now = datetime.utcnow()
    return {
        "_id": ObjectId(),
        "staff_code": staff_code,
        "email": f"{staff_code.lower()}@example.com",
        "password_hash": hash_password("secret"),
        "name": name,
        "role": role,
        "department": extra.pop("department", "Operations"),
        "location": extra.pop("location", "Muscat"),
        "position": extra.pop("position", None),
        "annual_leave_bal": extra.pop("annual_leave_bal", 30),
        "ticket_eligible": extra.pop("ticket_eligible", True),
        "supervisor_id": supervisor_id,
        "created_at": now,
        "updated_at": now,
        **extra,
    }


@pytest.fixture
def users(db):
    people = {
        "admin": _user("ADM1", "Ada Admin", "ADMIN"),
        "hr": _user("HR1", "Hind Hr", "HR"),
        "management": _user("MGT1", "Majid Management", "MANAGEMENT"),
        "accounts": _user("ACC1", "Amal Accounts", "ACCOUNTS"),
        "supervisor": _user("SUP1", "Salim Supervisor", "SUPERVISOR"),
    }
    people["employee"] = _user("EMP1", "Eman Employee", "EMPLOYEE", supervisor_id=people["supervisor"]["_id"])
    people["other"] = _user("EMP2", "Omar Other", "EMPLOYEE")
    run(db["users"].insert_many(list(people.values())))
    return people


def auth(user: dict) -> dict:
    token = create_jwt({"sub": str(user["_id"]), "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}
