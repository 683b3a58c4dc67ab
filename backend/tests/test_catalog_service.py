"""
backend/tests/test_catalog_service.py

Purpose:
    University/college creation including the two-phase team back-fill and
    its compensation path.
"""

import sys

import pytest

sys.path.insert(0, "backend")

from app.models.registry import PENDING_COLLEGE_ID
from app.services.entity_store import COLLEGES, TEAMS, UNIVERSITIES


@pytest.mark.asyncio
async def test_create_college_creates_team_and_links_university(services):
    university_id = await services.catalog.create_university("  Pune University ")
    college_id = await services.catalog.create_college("Fergusson College", university_id)

    college = await services.catalog.get_college(college_id)
    team = await services.teams.get_team(college.team_id)
    university = await services.catalog.get_university(university_id)

    assert college.name == "Fergusson College"
    assert college.university_id == university_id
    assert team.college_id == college_id
    assert team.college_id != PENDING_COLLEGE_ID
    assert team.player_uids == []
    assert university.name == "Pune University"
    assert university.college_ids == [college_id]

    colleges = await services.catalog.get_colleges_by_university(university_id)
    assert [c.id for c in colleges] == [college_id]


@pytest.mark.asyncio
async def test_create_college_rejects_unknown_university(services, fake_db):
    assert await services.catalog.create_college("Fergusson College", "missing") is None
    assert fake_db[TEAMS].docs == []
    assert fake_db[COLLEGES].docs == []


@pytest.mark.asyncio
async def test_create_college_reports_team_insert_failure(services, fake_db):
    university_id = await services.catalog.create_university("Pune University")
    fake_db[TEAMS].fail_on.add("insert_one")

    assert await services.catalog.create_college("Fergusson College", university_id) is None
    assert fake_db[COLLEGES].docs == []
    assert (await services.catalog.get_university(university_id)).college_ids == []


@pytest.mark.asyncio
async def test_create_college_reports_university_lookup_failure(services, fake_db):
    university_id = await services.catalog.create_university("Pune University")
    fake_db[UNIVERSITIES].fail_on.add("find_one")

    assert await services.catalog.create_college("Fergusson College", university_id) is None
    assert fake_db[TEAMS].docs == []
    assert fake_db[COLLEGES].docs == []


@pytest.mark.asyncio
async def test_create_college_compensates_when_college_insert_fails(services, fake_db):
    university_id = await services.catalog.create_university("Pune University")
    fake_db[COLLEGES].fail_on.add("insert_one")

    assert await services.catalog.create_college("Fergusson College", university_id) is None
    assert fake_db[TEAMS].docs == []
    assert (await services.catalog.get_university(university_id)).college_ids == []


@pytest.mark.asyncio
async def test_create_college_compensates_when_team_backfill_fails(services, fake_db):
    university_id = await services.catalog.create_university("Pune University")
    fake_db[TEAMS].fail_on.add("update_one")

    assert await services.catalog.create_college("Fergusson College", university_id) is None
    assert fake_db[TEAMS].docs == []
    assert fake_db[COLLEGES].docs == []


@pytest.mark.asyncio
async def test_create_college_survives_university_link_failure(services, fake_db):
    university_id = await services.catalog.create_university("Pune University")
    fake_db[UNIVERSITIES].fail_on.add("update_one")

    college_id = await services.catalog.create_college("Fergusson College", university_id)

    assert college_id is not None
    assert (await services.catalog.get_college(college_id)).university_id == university_id
    fake_db[UNIVERSITIES].fail_on.clear()
    assert (await services.catalog.get_university(university_id)).college_ids == []


@pytest.mark.asyncio
async def test_catalog_writes_mark_matching_index_dirty(services):
    await services.index.initialize()
    assert services.index.is_dirty is False

    university_id = await services.catalog.create_university("Pune University")
    assert services.index.is_dirty is True

    await services.index.refresh()
    await services.catalog.create_college("Fergusson College", university_id)
    assert services.index.is_dirty is True

    await services.index.refresh()
    await services.catalog.update_university(university_id, {"college_ids": []})
    assert services.index.is_dirty is False
    await services.catalog.update_university(university_id, {"name": "Savitribai Phule Pune University"})
    assert services.index.is_dirty is True
