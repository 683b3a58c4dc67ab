"""
backend/app/services/user_service.py

Purpose:
    User records keyed by auth uid: create, read, merge-update and the role /
    team scoped listings used by dashboards and the migration service.

Dependencies:
    - app.services.entity_store
    - app.models.registry
"""

import logging
from typing import Any

from app.models.registry import User
from app.services.entity_store import USERS, EntityStore

logger = logging.getLogger("shuttlecup.users")


class UserService:
    def __init__(self, store: EntityStore):
        self.store = store

    async def create_user(self, uid: str, **fields: Any) -> User:
        """Create (or fully replace) the user document for ``uid``."""
        logger.info("Creating user %s (role=%s)", uid, fields.get("role", "player"))
        record = User.model_validate({"_id": uid, **fields}).model_dump(
            exclude={"id", "created_at", "updated_at"}, exclude_none=True,
        )
        await self.store.set_by_id(USERS, uid, record)
        return await self.get_user(uid)

    async def get_user(self, uid: str) -> User | None:
        doc = await self.store.get_by_id(USERS, uid)
        return User.model_validate(doc) if doc else None

    async def update_user(self, uid: str, updates: dict[str, Any], unset: tuple[str, ...] = ()) -> None:
        await self.store.update_by_id(USERS, uid, updates, unset=unset)
        logger.info("User %s updated (%s)", uid, ", ".join(sorted([*updates, *unset])))

    async def get_users_by_role(self, role: str) -> list[User]:
        docs = await self.store.query_by_field(USERS, "role", role, order_by="created_at")
        return [User.model_validate(d) for d in docs]

    async def get_all_users(self) -> list[User]:
        return [User.model_validate(d) for d in await self.store.list_all(USERS)]

    async def get_players_in_team(self, team_id: str) -> list[User]:
        docs = await self.store.query_by_field(USERS, "team_id", team_id, order_by=None)
        return [User.model_validate(d) for d in docs if d.get("role") == "player"]
