"""
backend/app/services/team_service.py

Purpose:
    Team records (one per college). Plain reads and merge-updates only;
    roster changes that must stay consistent with user records go through
    app.services.assignment_service.

Dependencies:
    - app.services.entity_store
    - app.models.registry
"""

import logging
from typing import Any

from app.models.registry import Team
from app.services.entity_store import TEAMS, EntityStore

logger = logging.getLogger("shuttlecup.teams")


class TeamService:
    def __init__(self, store: EntityStore):
        self.store = store

    async def create_team(
        self,
        college_id: str,
        manager_uid: str = "",
        player_uids: list[str] | None = None,
    ) -> str:
        logger.info("Creating team (college=%s, manager=%s)", college_id, manager_uid or "-")
        team_id = await self.store.create_with_generated_id(
            TEAMS,
            {
                "college_id": college_id,
                "manager_uid": manager_uid,
                "player_uids": list(dict.fromkeys(player_uids or [])),
            },
        )
        logger.info("Team created: %s", team_id)
        return team_id

    async def get_team(self, team_id: str) -> Team | None:
        doc = await self.store.get_by_id(TEAMS, team_id)
        return Team.model_validate(doc) if doc else None

    async def update_team(self, team_id: str, updates: dict[str, Any]) -> None:
        await self.store.update_by_id(TEAMS, team_id, updates)

    async def get_all_teams(self) -> list[Team]:
        return [Team.model_validate(d) for d in await self.store.list_all(TEAMS)]

    async def get_team_by_manager(self, manager_uid: str) -> Team | None:
        docs = await self.store.query_by_field(TEAMS, "manager_uid", manager_uid, limit=1)
        return Team.model_validate(docs[0]) if docs else None
