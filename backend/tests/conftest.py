"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap for import paths plus an in-memory stand-in for
    the motor database/client used by EntityStore (collections, cursors and
    session transactions with rollback).
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]
_REPO_ROOT = _THIS_FILE.parents[2]

for candidate in (str(_BACKEND_DIR), str(_REPO_ROOT)):
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from pymongo.errors import DuplicateKeyError, OperationFailure  # noqa: E402

from app.config import Settings  # noqa: E402
from app.services.container import build_services  # noqa: E402
from app.services.entity_store import EntityStore  # noqa: E402


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in (query or {}).items():
        current = doc.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if current not in list(expected["$in"]):
                return False
        elif current != expected:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = list(docs)
        self._sort_key = None
        self._reverse = False
        self._limit = None

    def sort(self, key: str, direction: int):
        self._sort_key = key
        self._reverse = int(direction) < 0
        return self

    def limit(self, value: int):
        self._limit = int(value)
        return self

    async def to_list(self, length: int | None = None):
        rows = [copy.deepcopy(d) for d in self._docs]
        if self._sort_key is not None:
            rows = sorted(rows, key=lambda d: d.get(self._sort_key), reverse=self._reverse)
        if self._limit is not None:
            rows = rows[: self._limit]
        if length is not None:
            rows = rows[:length]
        return rows


class FakeCollection:
    """Subset of AsyncIOMotorCollection used by EntityStore.

    Method names listed in ``fail_on`` raise OperationFailure until removed.
    """

    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict] = []
        self.fail_on: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise OperationFailure(f"injected {method} failure on {self.name}")

    def _first(self, query: dict) -> dict | None:
        for doc in self.docs:
            if _matches(doc, query):
                return doc
        return None

    def find(self, query: dict | None = None, projection=None):
        self._check("find")
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def find_one(self, query: dict, session=None):
        self._check("find_one")
        doc = self._first(query)
        return copy.deepcopy(doc) if doc else None

    async def insert_one(self, doc: dict, session=None):
        self._check("insert_one")
        if self._first({"_id": doc["_id"]}) is not None:
            raise DuplicateKeyError(f"duplicate _id {doc['_id']}")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def replace_one(self, query: dict, doc: dict, upsert: bool = False, session=None):
        self._check("replace_one")
        for index, existing in enumerate(self.docs):
            if _matches(existing, query):
                self.docs[index] = copy.deepcopy(doc)
                return SimpleNamespace(matched_count=1, upserted_id=None)
        if upsert:
            self.docs.append(copy.deepcopy(doc))
            return SimpleNamespace(matched_count=0, upserted_id=doc.get("_id"))
        return SimpleNamespace(matched_count=0, upserted_id=None)

    async def update_one(self, query: dict, update: dict, upsert: bool = False, session=None):
        self._check("update_one")
        doc = self._first(query)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        for key, value in update.get("$set", {}).items():
            doc[key] = copy.deepcopy(value)
        for key in update.get("$unset", {}):
            doc.pop(key, None)
        for key, value in update.get("$addToSet", {}).items():
            values = doc.setdefault(key, [])
            if value not in values:
                values.append(value)
        for key, value in update.get("$pull", {}).items():
            doc[key] = [v for v in doc.get(key, []) if v != value]
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query: dict, session=None):
        self._check("delete_one")
        doc = self._first(query)
        if doc is None:
            return SimpleNamespace(deleted_count=0)
        self.docs.remove(doc)
        return SimpleNamespace(deleted_count=1)

    async def count_documents(self, query: dict, session=None):
        self._check("count_documents")
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDatabase:
    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}
        self.ping_ok = True

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    async def command(self, name: str):
        if not self.ping_ok:
            raise OperationFailure("ping failed")
        return {"ok": 1.0}


class _FakeTransaction:
    def __init__(self, db: FakeDatabase):
        self._db = db
        self._snapshot: dict[str, list[dict]] = {}

    async def __aenter__(self):
        self._snapshot = {
            name: copy.deepcopy(col.docs) for name, col in self._db.collections.items()
        }
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            for name, col in list(self._db.collections.items()):
                col.docs = self._snapshot.get(name, [])
        return False


class _FakeSession:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def start_transaction(self):
        return _FakeTransaction(self._db)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeClient:
    def __init__(self, db: FakeDatabase):
        self._db = db
        self.sessions_started = 0

    async def start_session(self):
        self.sessions_started += 1
        return _FakeSession(self._db)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_client(fake_db) -> FakeClient:
    return FakeClient(fake_db)


@pytest.fixture
def store(fake_db, fake_client) -> EntityStore:
    return EntityStore(fake_db, fake_client, transactions=True)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, ADMIN_API_KEY="test-admin-key")


@pytest.fixture
def services(store, test_settings):
    return build_services(store, test_settings)

