"""
backend/app/services/catalog_service.py

Purpose:
    University and college records. College creation is a two-phase protocol
    because each college owns exactly one team and the store only issues ids
    on insert:

        1. insert Team with college_id = PENDING_COLLEGE_ID
        2. insert College referencing the new team id
        3. back-fill Team.college_id with the college id
        4. add the college id to University.college_ids

    If step 2 or 3 fails, the records created so far are deleted again.

Dependencies:
    - app.services.entity_store
    - app.models.registry
"""

import logging
from typing import Any, Callable

from app.models.registry import PENDING_COLLEGE_ID, College, University
from app.services.entity_store import (
    COLLEGES,
    TEAMS,
    UNIVERSITIES,
    EntityStore,
    StoreError,
)

logger = logging.getLogger("shuttlecup.catalog")


class CatalogService:
    def __init__(self, store: EntityStore, on_change: Callable[[], None] | None = None):
        self.store = store
        self._on_change = on_change

    # ---- Universities ----

    async def create_university(self, name: str, college_ids: list[str] | None = None) -> str:
        logger.info("Creating university %r", name)
        university_id = await self.store.create_with_generated_id(
            UNIVERSITIES, {"name": name.strip(), "college_ids": list(college_ids or [])},
        )
        logger.info("University created: %s", university_id)
        self._changed()
        return university_id

    async def get_university(self, university_id: str) -> University | None:
        doc = await self.store.get_by_id(UNIVERSITIES, university_id)
        return University.model_validate(doc) if doc else None

    async def get_all_universities(self) -> list[University]:
        return [University.model_validate(d) for d in await self.store.list_all(UNIVERSITIES)]

    async def update_university(self, university_id: str, updates: dict[str, Any]) -> None:
        await self.store.update_by_id(UNIVERSITIES, university_id, updates)
        if "name" in updates:
            self._changed()

    # ---- Colleges ----

    async def create_college(self, name: str, university_id: str) -> str | None:
        """Create a college and its team. Returns the college id, or None on failure."""
        name = name.strip()
        logger.info("Creating college %r (university=%s)", name, university_id)

        try:
            if await self.get_university(university_id) is None:
                logger.error("Cannot create college %r: university %s not found", name, university_id)
                return None

            team_id = await self.store.create_with_generated_id(
                TEAMS, {"college_id": PENDING_COLLEGE_ID, "manager_uid": "", "player_uids": []},
            )
        except StoreError as exc:
            logger.error("College create failed before any record was written (name=%r): %s", name, exc)
            return None

        college_id: str | None = None
        try:
            college_id = await self.store.create_with_generated_id(
                COLLEGES, {"name": name, "university_id": university_id, "team_id": team_id},
            )
            await self.store.update_by_id(TEAMS, team_id, {"college_id": college_id})
        except StoreError as exc:
            logger.error(
                "College create failed after team %s was inserted (college=%s): %s",
                team_id, college_id, exc,
            )
            await self._compensate(team_id, college_id)
            return None

        try:
            await self.store.update_by_id(
                UNIVERSITIES, university_id, add_to_set={"college_ids": college_id},
            )
        except StoreError as exc:
            # College and team are consistent with each other; only the
            # university's denormalized list is behind.
            logger.error(
                "College %s created but university %s college_ids not updated: %s",
                college_id, university_id, exc,
            )

        logger.info("College created: %s (team=%s)", college_id, team_id)
        self._changed()
        return college_id

    async def get_college(self, college_id: str) -> College | None:
        doc = await self.store.get_by_id(COLLEGES, college_id)
        return College.model_validate(doc) if doc else None

    async def get_colleges_by_university(self, university_id: str) -> list[College]:
        docs = await self.store.query_by_field(
            COLLEGES, "university_id", university_id, order_by="created_at",
        )
        return [College.model_validate(d) for d in docs]

    async def get_all_colleges(self) -> list[College]:
        return [College.model_validate(d) for d in await self.store.list_all(COLLEGES)]

    async def _compensate(self, team_id: str, college_id: str | None) -> None:
        for kind, record_id in ((COLLEGES, college_id), (TEAMS, team_id)):
            if not record_id:
                continue
            try:
                await self.store.delete_by_id(kind, record_id)
                logger.info("Compensation: deleted orphaned %s/%s", kind, record_id)
            except StoreError as exc:
                logger.error("Compensation failed for %s/%s: %s", kind, record_id, exc)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
