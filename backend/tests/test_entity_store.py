"""
backend/tests/test_entity_store.py

Purpose:
    Record access, error wrapping and all-or-nothing batch writes of
    EntityStore against the in-memory motor stand-in.
"""

import sys

import pytest
from bson import ObjectId

sys.path.insert(0, "backend")

from app.services.entity_store import (
    TEAMS,
    USERS,
    EntityStore,
    RecordNotFound,
    StoreError,
    WriteOp,
    build_update,
)


def test_build_update_always_stamps_updated_at():
    update = build_update({"name": "x"}, unset=("team_id",), add_to_set={"player_uids": "p1"})
    assert update["$set"]["name"] == "x"
    assert "updated_at" in update["$set"]
    assert update["$unset"] == {"team_id": ""}
    assert update["$addToSet"] == {"player_uids": "p1"}
    assert "$pull" not in update


@pytest.mark.asyncio
async def test_create_with_generated_id_returns_object_id_string(store, fake_db):
    record_id = await store.create_with_generated_id(TEAMS, {"college_id": "c1", "player_uids": []})
    assert ObjectId.is_valid(record_id)
    doc = await store.get_by_id(TEAMS, record_id)
    assert doc["college_id"] == "c1"
    assert doc["created_at"] is not None
    assert doc["updated_at"] is not None


@pytest.mark.asyncio
async def test_set_by_id_replaces_whole_record(store):
    await store.set_by_id(USERS, "u1", {"name": "A", "phone": "1"})
    await store.set_by_id(USERS, "u1", {"name": "B"})
    doc = await store.get_by_id(USERS, "u1")
    assert doc["name"] == "B"
    assert "phone" not in doc


@pytest.mark.asyncio
async def test_update_by_id_merges_and_rejects_missing(store):
    await store.set_by_id(USERS, "u1", {"name": "A", "team_id": "t1"})
    await store.update_by_id(USERS, "u1", {"email": "a@x.in"}, unset=("team_id",))
    doc = await store.get_by_id(USERS, "u1")
    assert doc["name"] == "A"
    assert doc["email"] == "a@x.in"
    assert "team_id" not in doc

    with pytest.raises(RecordNotFound):
        await store.update_by_id(USERS, "nope", {"name": "x"})


@pytest.mark.asyncio
async def test_query_helpers(store):
    await store.set_by_id(USERS, "u1", {"role": "player", "team_id": "t1"})
    await store.set_by_id(USERS, "u2", {"role": "player", "team_id": "t2"})
    await store.set_by_id(USERS, "u3", {"role": "manager", "team_id": "t1"})

    players = await store.query_by_field(USERS, "role", "player", order_by="created_at")
    assert {d["_id"] for d in players} == {"u1", "u2"}
    assert len(await store.query_by_field(USERS, "role", "player", limit=1)) == 1
    assert {d["_id"] for d in await store.query_in(USERS, "team_id", ["t1"])} == {"u1", "u3"}
    assert await store.query_in(USERS, "team_id", []) == []
    assert await store.count(USERS) == 3
    assert await store.count(USERS, {"role": "manager"}) == 1


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(store):
    with pytest.raises(ValueError):
        await store.get_by_id("matches", "x")


@pytest.mark.asyncio
async def test_driver_errors_surface_as_store_error(store, fake_db):
    fake_db[USERS].fail_on.add("find_one")
    with pytest.raises(StoreError):
        await store.get_by_id(USERS, "u1")

    fake_db[TEAMS].fail_on.add("insert_one")
    with pytest.raises(StoreError):
        await store.create_with_generated_id(TEAMS, {"college_id": "c"})


@pytest.mark.asyncio
async def test_batch_write_rolls_back_on_failure(store, fake_client):
    await store.set_by_id(USERS, "u1", {"name": "A"})
    await store.set_by_id(TEAMS, "t1", {"college_id": "c1", "player_uids": []})

    with pytest.raises(RecordNotFound):
        await store.batch_write([
            WriteOp.update(USERS, "u1", {"team_id": "t1"}),
            WriteOp.update(TEAMS, "t1", add_to_set={"player_uids": "u1"}),
            WriteOp.update(USERS, "missing", {"team_id": "t1"}),
        ])

    assert fake_client.sessions_started == 1
    assert "team_id" not in await store.get_by_id(USERS, "u1")
    assert (await store.get_by_id(TEAMS, "t1"))["player_uids"] == []


@pytest.mark.asyncio
async def test_batch_write_supports_set_and_delete(store):
    await store.set_by_id(TEAMS, "t1", {"college_id": "c1"})
    await store.batch_write([
        WriteOp.set(USERS, "u9", {"name": "New"}),
        WriteOp.delete(TEAMS, "t1"),
    ])
    assert (await store.get_by_id(USERS, "u9"))["name"] == "New"
    assert await store.get_by_id(TEAMS, "t1") is None


@pytest.mark.asyncio
async def test_batch_write_without_transactions_applies_sequentially(fake_db, fake_client):
    store = EntityStore(fake_db, fake_client, transactions=False)
    await store.set_by_id(USERS, "u1", {"name": "A"})

    with pytest.raises(RecordNotFound):
        await store.batch_write([
            WriteOp.update(USERS, "u1", {"team_id": "t1"}),
            WriteOp.update(USERS, "missing", {"team_id": "t1"}),
        ])

    assert fake_client.sessions_started == 0
    assert (await store.get_by_id(USERS, "u1"))["team_id"] == "t1"


@pytest.mark.asyncio
async def test_ping(store, fake_db):
    assert await store.ping() is True
    fake_db.ping_ok = False
    assert await store.ping() is False
