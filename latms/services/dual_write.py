"""Primary writes to MongoDB with a best-effort mirror into the legacy SQL store.

The mirror always runs after the primary write has succeeded. A mirror
failure is logged and dropped, so the two stores can drift; there is no
reconciliation beyond re-running ``scripts/migrate_legacy_to_mongo.py``
or re-saving the record.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from bson import ObjectId
from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from sqlalchemy.orm import sessionmaker

from latms.core.config import settings
from latms.db.mongo import get_mongo_db
from latms.db.session import create_tables, get_engine, make_sessionmaker
from latms.models.legacy import MODELS


logger = logging.getLogger("uvicorn.error")

# Mongo field -> legacy column, where the names differ
_RENAMED = {"users": {"password_hash": "password"}}


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def legacy_row(collection: str, doc: dict) -> dict:
    """Project a Mongo document onto the legacy table's columns."""
    model = MODELS[collection]
    renamed = _RENAMED.get(collection, {})
    columns = {c.name for c in model.__table__.columns}
    row: dict = {"id": str(doc["_id"])}
    for key, value in doc.items():
        col = renamed.get(key, key)
        if col in columns and col != "id":
            row[col] = _plain(value)
    return row


class LegacyMirror:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def upsert(self, collection: str, doc: dict) -> None:
        model = MODELS[collection]
        with self._session_factory() as session:
            session.merge(model(**legacy_row(collection, doc)))
            session.commit()

    def delete(self, collection: str, doc_id: str) -> None:
        model = MODELS[collection]
        with self._session_factory() as session:
            row = session.get(model, doc_id)
            if row is not None:
                session.delete(row)
                session.commit()


_mirror: Optional[LegacyMirror] = None


def get_legacy_mirror() -> Optional[LegacyMirror]:
    global _mirror
    if not settings.DUAL_WRITE_ENABLED:
        return None
    if _mirror is None:
        engine = get_engine()
        create_tables(engine)
        _mirror = LegacyMirror(make_sessionmaker(engine))
    return _mirror


class DualWriteService:
    def __init__(self, db: AsyncIOMotorDatabase, mirror: Optional[LegacyMirror] = None) -> None:
        self.db = db
        self.mirror = mirror

    async def _mirror_call(self, fn: Callable, collection: str, arg: Any) -> None:
        if self.mirror is None:
            return
        try:
            await run_in_threadpool(fn, collection, arg)
        except Exception as exc:
            ident = arg.get("_id") if isinstance(arg, dict) else arg
            logger.warning("Legacy mirror of %s/%s failed: %s", collection, ident, exc)

    async def insert(self, collection: str, doc: dict) -> dict:
        now = datetime.utcnow()
        doc.setdefault("created_at", now)
        doc.setdefault("updated_at", now)
        res = await self.db[collection].insert_one(doc)
        doc["_id"] = res.inserted_id
        if self.mirror is not None:
            await self._mirror_call(self.mirror.upsert, collection, doc)
        return doc

    async def update(
        self,
        collection: str,
        doc_id: ObjectId,
        changes: dict,
        inc: Optional[dict] = None,
        match: Optional[dict] = None,
    ) -> Optional[dict]:
        """Apply changes and return the new document, or None when nothing matched.

        `match` adds conditions to the id filter, so a stale read updates nothing.
        """
        changes = {**changes, "updated_at": datetime.utcnow()}
        ops: dict = {"$set": changes}
        if inc:
            ops["$inc"] = inc
        doc = await self.db[collection].find_one_and_update(
            {"_id": doc_id, **(match or {})}, ops, return_document=ReturnDocument.AFTER
        )
        if doc is not None and self.mirror is not None:
            await self._mirror_call(self.mirror.upsert, collection, doc)
        return doc

    async def delete(self, collection: str, doc_id: ObjectId) -> bool:
        res = await self.db[collection].delete_one({"_id": doc_id})
        if res.deleted_count and self.mirror is not None:
            await self._mirror_call(self.mirror.delete, collection, str(doc_id))
        return bool(res.deleted_count)


def get_dual_writer(
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    mirror: Optional[LegacyMirror] = Depends(get_legacy_mirror),
) -> DualWriteService:
    return DualWriteService(db, mirror)
