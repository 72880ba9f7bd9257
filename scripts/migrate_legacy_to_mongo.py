#!/usr/bin/env python3
"""Copy users, leave requests and ticket requests from the legacy SQL store into MongoDB.

Rows are upserted by id, so the script can be re-run to repair drift left
by failed mirror writes.
"""
from __future__ import annotations

import argparse
import asyncio

from bson import ObjectId
from pymongo import UpdateOne
from sqlalchemy import select

from latms.core.config import settings
from latms.db.mongo import get_mongo_db, close_mongo_client
from latms.db.mongo_indexes import ensure_indexes
from latms.db.session import make_engine, make_sessionmaker
from latms.models.legacy import LeaveRequest, TicketRequest, User

BATCH_SIZE = 500

# Columns holding references to other records
_REFS = {"supervisor_id", "user_id", "submitted_by_id", "leave_request_id"}


def _as_doc(row) -> dict:
    doc = {}
    for col in row.__table__.columns:
        value = getattr(row, col.name)
        if col.name == "id":
            doc["_id"] = ObjectId(value) if ObjectId.is_valid(value) else value
        elif col.name == "password":
            doc["password_hash"] = value
        elif col.name in _REFS and value and ObjectId.is_valid(value):
            doc[col.name] = ObjectId(value)
        else:
            doc[col.name] = value
    return doc


def _denormalize(doc: dict, users: dict) -> None:
    user = users.get(doc.get("user_id"))
    if user:
        doc["user_name"] = user.get("name", "Unknown")
        doc["user_email"] = user.get("email", "")
        doc["user_department"] = user.get("department") or ""


async def _flush(coll, ops: list) -> int:
    if not ops:
        return 0
    await coll.bulk_write(ops, ordered=False)
    n = len(ops)
    ops.clear()
    return n


async def copy_legacy(session_factory, db, dry_run: bool = False) -> dict[str, int]:
    """Upsert every legacy row into Mongo; returns the row count per collection."""
    counts: dict[str, int] = {}
    with session_factory() as session:
        users = {}
        leaves = {}
        for model, collection in ((User, "users"), (LeaveRequest, "leave_requests"), (TicketRequest, "ticket_requests")):
            ops: list = []
            count = 0
            for row in session.execute(select(model)).scalars():
                doc = _as_doc(row)
                if collection == "users":
                    users[doc["_id"]] = doc
                elif collection == "leave_requests":
                    _denormalize(doc, users)
                    leaves[doc["_id"]] = doc
                else:
                    leave = leaves.get(doc.get("leave_request_id"), {})
                    doc["user_id"] = leave.get("user_id")
                    doc["leave_status"] = leave.get("status")
                    _denormalize(doc, users)
                fields = {k: v for k, v in doc.items() if k != "_id"}
                ops.append(UpdateOne({"_id": doc["_id"]}, {"$set": fields}, upsert=True))
                if dry_run:
                    count += 1
                    ops.clear()
                elif len(ops) == BATCH_SIZE:
                    count += await _flush(db[collection], ops)
                    print(f"  committed batch of {BATCH_SIZE} {collection}")
            count += await _flush(db[collection], ops)
            counts[collection] = count
            print(f"{'Would migrate' if dry_run else 'Migrated'} {count} {collection}")
    return counts


async def migrate(url: str, dry_run: bool) -> None:
    db = get_mongo_db()
    await ensure_indexes(db)
    engine = make_engine(url)
    try:
        await copy_legacy(make_sessionmaker(engine), db, dry_run)
    finally:
        engine.dispose()
        close_mongo_client()


def main() -> None:
    ap = argparse.ArgumentParser(description="Backfill MongoDB from the legacy relational store")
    ap.add_argument("--database-url", default=settings.DATABASE_URL, help="SQLAlchemy URL of the legacy store")
    ap.add_argument("--dry-run", action="store_true", help="Read and count rows without writing")
    args = ap.parse_args()
    asyncio.run(migrate(args.database_url, args.dry_run))


if __name__ == "__main__":
    main()
