"""
backend/app/services/entity_store.py

Purpose:
    Thin record-level access over the Mongo collections used by the registry
    (get/set/update/query by key, insert with a generated id, batch write).
    Every driver failure surfaces as StoreError; callers decide whether to
    propagate it or degrade to a safe default.

Dependencies:
    - motor (database + client handles)
    - pymongo.errors
    - bson.ObjectId
    - app.utils
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.utils import utcnow

logger = logging.getLogger("shuttlecup.entity_store")

USERS = "users"
TEAMS = "teams"
UNIVERSITIES = "universities"
COLLEGES = "colleges"
PAYMENTS = "payments"

RECORD_KINDS = frozenset({USERS, TEAMS, UNIVERSITIES, COLLEGES, PAYMENTS})


class StoreError(Exception):
    """A store read or write failed."""


class RecordNotFound(StoreError):
    """An update targeted a record that does not exist."""


@dataclass
class WriteOp:
    """One write inside a batch. ``action`` is set (upsert), update or delete."""

    action: Literal["set", "update", "delete"]
    kind: str
    record_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    unset: tuple[str, ...] = ()
    add_to_set: dict[str, Any] | None = None
    pull: dict[str, Any] | None = None

    @classmethod
    def set(cls, kind: str, record_id: str, record: dict[str, Any]) -> "WriteOp":
        return cls("set", kind, record_id, fields=dict(record))

    @classmethod
    def update(
        cls,
        kind: str,
        record_id: str,
        fields: dict[str, Any] | None = None,
        *,
        unset: tuple[str, ...] = (),
        add_to_set: dict[str, Any] | None = None,
        pull: dict[str, Any] | None = None,
    ) -> "WriteOp":
        return cls(
            "update", kind, record_id,
            fields=dict(fields or {}), unset=tuple(unset), add_to_set=add_to_set, pull=pull,
        )

    @classmethod
    def delete(cls, kind: str, record_id: str) -> "WriteOp":
        return cls("delete", kind, record_id)


def build_update(
    fields: dict[str, Any] | None = None,
    unset: tuple[str, ...] = (),
    add_to_set: dict[str, Any] | None = None,
    pull: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Translate a merge request into a Mongo update document."""
    update: dict[str, Any] = {"$set": {**(fields or {}), "updated_at": utcnow()}}
    if unset:
        update["$unset"] = {name: "" for name in unset}
    if add_to_set:
        update["$addToSet"] = dict(add_to_set)
    if pull:
        update["$pull"] = dict(pull)
    return update


class EntityStore:
    """Record access over one Mongo database.

    ``client`` is only needed for transactional batch writes; without it (or
    with ``transactions=False``) batches are applied one op at a time.
    """

    def __init__(self, db, client=None, *, transactions: bool = True):
        self._db = db
        self._client = client
        self.transactions = transactions and client is not None

    def _collection(self, kind: str):
        if kind not in RECORD_KINDS:
            raise ValueError(f"Unknown record kind: {kind}")
        return self._db[kind]

    async def get_by_id(self, kind: str, record_id: str) -> dict | None:
        try:
            return await self._collection(kind).find_one({"_id": record_id})
        except PyMongoError as exc:
            raise StoreError(f"get {kind}/{record_id} failed: {exc}") from exc

    async def set_by_id(self, kind: str, record_id: str, record: dict[str, Any]) -> None:
        """Upsert with full replace."""
        try:
            await self._collection(kind).replace_one(
                {"_id": record_id}, self._full_doc(record_id, record), upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"set {kind}/{record_id} failed: {exc}") from exc

    async def update_by_id(
        self,
        kind: str,
        record_id: str,
        fields: dict[str, Any] | None = None,
        *,
        unset: tuple[str, ...] = (),
        add_to_set: dict[str, Any] | None = None,
        pull: dict[str, Any] | None = None,
    ) -> None:
        """Merge fields into an existing record; RecordNotFound if it is missing."""
        update = build_update(fields, unset, add_to_set, pull)
        try:
            result = await self._collection(kind).update_one({"_id": record_id}, update)
        except PyMongoError as exc:
            raise StoreError(f"update {kind}/{record_id} failed: {exc}") from exc
        if result.matched_count == 0:
            raise RecordNotFound(f"{kind}/{record_id} not found")

    async def query_by_field(
        self,
        kind: str,
        field_name: str,
        value: Any,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict]:
        return await self._find(kind, {field_name: value}, order_by, descending, limit)

    async def query_in(self, kind: str, field_name: str, values: list[Any]) -> list[dict]:
        if not values:
            return []
        return await self._find(kind, {field_name: {"$in": list(values)}}, None, True, None)

    async def list_all(
        self, kind: str, order_by: str | None = "created_at", descending: bool = True,
    ) -> list[dict]:
        return await self._find(kind, {}, order_by, descending, None)

    async def count(self, kind: str, query: dict | None = None) -> int:
        try:
            return await self._collection(kind).count_documents(query or {})
        except PyMongoError as exc:
            raise StoreError(f"count {kind} failed: {exc}") from exc

    async def create_with_generated_id(self, kind: str, record: dict[str, Any]) -> str:
        """Insert a new record and return the id the store assigned to it."""
        record_id = str(ObjectId())
        try:
            await self._collection(kind).insert_one(self._full_doc(record_id, record))
        except PyMongoError as exc:
            raise StoreError(f"create {kind} failed: {exc}") from exc
        return record_id

    async def delete_by_id(self, kind: str, record_id: str) -> bool:
        try:
            result = await self._collection(kind).delete_one({"_id": record_id})
        except PyMongoError as exc:
            raise StoreError(f"delete {kind}/{record_id} failed: {exc}") from exc
        return bool(result.deleted_count)

    async def batch_write(self, ops: list[WriteOp]) -> None:
        """Apply ``ops`` all-or-nothing when transactions are available."""
        if not ops:
            return
        try:
            if self.transactions:
                async with await self._client.start_session() as session:
                    async with session.start_transaction():
                        for op in ops:
                            await self._apply(op, session)
            else:
                logger.debug("Applying %d ops without a transaction", len(ops))
                for op in ops:
                    await self._apply(op, None)
        except PyMongoError as exc:
            raise StoreError(f"batch write of {len(ops)} ops failed: {exc}") from exc

    async def ping(self) -> bool:
        try:
            result = await self._db.command("ping")
        except PyMongoError:
            return False
        return result.get("ok") == 1.0

    async def _apply(self, op: WriteOp, session) -> None:
        collection = self._collection(op.kind)
        if op.action == "set":
            await collection.replace_one(
                {"_id": op.record_id},
                self._full_doc(op.record_id, op.fields),
                upsert=True,
                session=session,
            )
        elif op.action == "update":
            update = build_update(op.fields, op.unset, op.add_to_set, op.pull)
            result = await collection.update_one({"_id": op.record_id}, update, session=session)
            if result.matched_count == 0:
                raise RecordNotFound(f"{op.kind}/{op.record_id} not found")
        elif op.action == "delete":
            await collection.delete_one({"_id": op.record_id}, session=session)
        else:
            raise ValueError(f"Unknown write action: {op.action}")

    async def _find(
        self,
        kind: str,
        query: dict,
        order_by: str | None,
        descending: bool,
        limit: int | None,
    ) -> list[dict]:
        try:
            cursor = self._collection(kind).find(query)
            if order_by:
                cursor = cursor.sort(order_by, -1 if descending else 1)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as exc:
            raise StoreError(f"query {kind} {query} failed: {exc}") from exc

    @staticmethod
    def _full_doc(record_id: str, record: dict[str, Any]) -> dict[str, Any]:
        now = utcnow()
        doc = {k: v for k, v in record.items() if k not in ("_id", "id")}
        doc["_id"] = record_id
        doc.setdefault("created_at", now)
        doc["updated_at"] = now
        return doc
