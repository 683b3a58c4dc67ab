"""
backend/tests/test_matching_index.py

Purpose:
    Lazy build, explicit refresh and failure behavior of the in-memory
    university/college matching index.
"""

import sys

import pytest

sys.path.insert(0, "backend")

from app.services.entity_store import COLLEGES, UNIVERSITIES
from app.services.matching_index import MatchingIndex


@pytest.mark.asyncio
async def test_index_builds_lazily_from_store(services):
    await services.seeder.initialize_seed_data()
    index = services.index
    assert index.is_built is False

    await index.ensure_initialized()

    stats = index.stats()
    assert stats["built"] is True
    assert stats["universities"] == 20
    assert stats["colleges"] == 46
    assert stats["last_error"] is None
    hits = index.search_universities("Symbiosis Intl Univ", limit=1)
    assert hits[0].item.name == "Symbiosis International University"
    assert hits[0].score == 0.0


@pytest.mark.asyncio
async def test_direct_store_writes_need_refresh(store):
    index = MatchingIndex(store)
    await index.initialize()
    assert index.search_universities("Anna University") == []

    await store.create_with_generated_id(UNIVERSITIES, {"name": "Anna University", "college_ids": []})
    await index.ensure_initialized()
    assert index.search_universities("Anna University") == []

    await index.refresh()
    assert [h.item.name for h in index.search_universities("Anna University")] == ["Anna University"]


@pytest.mark.asyncio
async def test_dirty_index_rebuilds_on_next_use(services):
    await services.index.initialize()
    await services.catalog.create_university("Anna University")
    assert services.index.is_dirty is True

    await services.index.ensure_initialized()
    assert services.index.is_dirty is False
    assert services.index.stats()["universities"] == 1


@pytest.mark.asyncio
async def test_store_failure_leaves_empty_built_index(store, fake_db):
    await store.create_with_generated_id(UNIVERSITIES, {"name": "Anna University", "college_ids": []})
    fake_db[COLLEGES].fail_on.add("find")
    index = MatchingIndex(store)

    await index.initialize()

    stats = index.stats()
    assert stats["built"] is True
    assert stats["universities"] == 0
    assert stats["colleges"] == 0
    assert "injected find failure" in stats["last_error"]

    fake_db[COLLEGES].fail_on.clear()
    await index.refresh()
    assert index.stats()["universities"] == 1
    assert index.stats()["last_error"] is None


@pytest.mark.asyncio
async def test_one_off_searcher_uses_index_parameters(store):
    index = MatchingIndex(store, threshold=0.0, distance=50)
    searcher = index.searcher([])
    assert searcher.threshold == 0.0
    assert searcher.distance == 50
