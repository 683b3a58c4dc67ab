"""
backend/app/services/assignment_service.py

Purpose:
    Attach players to college teams and keep the denormalized links
    (User.team_id / Team.player_uids) consistent. Each mutation touching more
    than one record is a single EntityStore.batch_write, so user and roster
    change together or not at all.

    Roster edits use $addToSet / $pull instead of rewriting the array, so two
    concurrent assignments to the same team cannot drop each other.

    Every operation logs its outcome with the ids involved and returns False
    instead of raising on store failures.

Dependencies:
    - app.services.entity_store
    - app.models.registry
"""

import logging

from app.models.registry import College, Team, User
from app.services.entity_store import (
    COLLEGES,
    TEAMS,
    USERS,
    EntityStore,
    StoreError,
    WriteOp,
)

logger = logging.getLogger("shuttlecup.assignment")

_PLACEMENT_FIELDS = ("university_id", "college_id", "team_id")


class AssignmentPipeline:
    def __init__(self, store: EntityStore, unassign_removes_from_team: bool = False):
        self.store = store
        self.unassign_removes_from_team = unassign_removes_from_team

    async def auto_assign_player_to_team(
        self, player_id: str, university_id: str, college_id: str,
    ) -> bool:
        """Place a player on the team of ``college_id``. Idempotent."""
        try:
            college = await self._get(COLLEGES, college_id, College)
            if college is None:
                logger.error("College not found for auto-assignment (college=%s)", college_id)
                return False
            if college.university_id != university_id:
                logger.error(
                    "College %s belongs to university %s, not %s; refusing assignment of %s",
                    college_id, college.university_id, university_id, player_id,
                )
                return False

            team = await self._get(TEAMS, college.team_id, Team)
            if team is None:
                logger.error(
                    "Team not found for college (college=%s, team=%s)", college_id, college.team_id,
                )
                return False

            user = await self._get(USERS, player_id, User)
            if user is None:
                logger.error("Player %s not found for auto-assignment", player_id)
                return False

            ops = [
                WriteOp.update(
                    USERS,
                    player_id,
                    {
                        "university_id": university_id,
                        "college_id": college_id,
                        "team_id": team.id,
                        "is_unassigned": False,
                    },
                ),
            ]
            if player_id in team.player_uids:
                logger.info("Player %s already on team %s", player_id, team.id)
            else:
                ops.append(WriteOp.update(TEAMS, team.id, add_to_set={"player_uids": player_id}))
            ops.extend(await self._leave_previous_team(user, team.id))

            await self.store.batch_write(ops)
            logger.info(
                "Player auto-assigned (player=%s, university=%s, college=%s, team=%s, ops=%d)",
                player_id, university_id, college_id, team.id, len(ops),
            )
            return True
        except (StoreError, ValueError) as exc:
            logger.error(
                "Error auto-assigning player (player=%s, university=%s, college=%s): %s",
                player_id, university_id, college_id, exc,
            )
            return False

    async def mark_player_as_unassigned(self, player_id: str) -> bool:
        """Clear the placement fields and flag the player for manual review.

        The team roster is left as is unless ``unassign_removes_from_team``;
        in that case the player is pulled from it in the same batch.
        """
        try:
            user = await self._get(USERS, player_id, User)
            if user is None:
                logger.error("Player %s not found, cannot mark unassigned", player_id)
                return False

            ops = [
                WriteOp.update(USERS, player_id, {"is_unassigned": True}, unset=_PLACEMENT_FIELDS),
            ]
            if user.team_id:
                if self.unassign_removes_from_team:
                    ops.extend(await self._leave_previous_team(user, None))
                else:
                    logger.warning(
                        "Player %s unassigned but still listed on team %s roster",
                        player_id, user.team_id,
                    )

            await self.store.batch_write(ops)
            logger.info("Player marked as unassigned (player=%s, previous_team=%s)", player_id, user.team_id)
            return True
        except (StoreError, ValueError) as exc:
            logger.error("Error marking player %s as unassigned: %s", player_id, exc)
            return False

    async def add_player_to_team(self, team_id: str, player_id: str) -> bool:
        try:
            team = await self._get(TEAMS, team_id, Team)
            if team is None:
                logger.error("Team not found (team=%s)", team_id)
                return False

            user = await self._get(USERS, player_id, User)
            if user is None:
                logger.error("Player %s not found, cannot add to team %s", player_id, team_id)
                return False
            if player_id in team.player_uids and user.team_id == team_id and not user.is_unassigned:
                logger.warning("Player already in team (team=%s, player=%s)", team_id, player_id)
                return True

            ops = [
                WriteOp.update(TEAMS, team_id, add_to_set={"player_uids": player_id}),
                WriteOp.update(USERS, player_id, {"team_id": team_id, "is_unassigned": False}),
            ]
            ops.extend(await self._leave_previous_team(user, team_id))
            await self.store.batch_write(ops)
            logger.info("Player added to team (team=%s, player=%s)", team_id, player_id)
            return True
        except (StoreError, ValueError) as exc:
            logger.error("Error adding player to team (team=%s, player=%s): %s", team_id, player_id, exc)
            return False

    async def remove_player_from_team(self, team_id: str, player_id: str) -> bool:
        try:
            team = await self._get(TEAMS, team_id, Team)
            if team is None:
                logger.error("Team not found (team=%s)", team_id)
                return False

            ops = [WriteOp.update(TEAMS, team_id, pull={"player_uids": player_id})]
            user = await self._get(USERS, player_id, User)
            if user is None:
                logger.warning("Player %s not found; removing roster entry only", player_id)
            elif user.team_id == team_id:
                ops.append(WriteOp.update(USERS, player_id, unset=("team_id",)))

            await self.store.batch_write(ops)
            logger.info("Player removed from team (team=%s, player=%s)", team_id, player_id)
            return True
        except (StoreError, ValueError) as exc:
            logger.error(
                "Error removing player from team (team=%s, player=%s): %s", team_id, player_id, exc,
            )
            return False

    async def assign_manager_to_college(self, college_id: str, manager_uid: str) -> bool:
        try:
            college = await self._get(COLLEGES, college_id, College)
            if college is None:
                logger.error("College not found (college=%s)", college_id)
                return False

            await self.store.batch_write([
                WriteOp.update(TEAMS, college.team_id, {"manager_uid": manager_uid}),
                WriteOp.update(
                    USERS,
                    manager_uid,
                    {
                        "college_id": college_id,
                        "team_id": college.team_id,
                        "role": "manager",
                        "is_unassigned": False,
                    },
                ),
            ])
            logger.info(
                "Manager assigned to college (college=%s, team=%s, manager=%s)",
                college_id, college.team_id, manager_uid,
            )
            return True
        except (StoreError, ValueError) as exc:
            logger.error(
                "Error assigning manager to college (college=%s, manager=%s): %s",
                college_id, manager_uid, exc,
            )
            return False

    # ---- Consistency sweep ----

    async def find_membership_inconsistencies(self) -> dict:
        """Compare user placements with team rosters.

        Returns lists of:
            missing_from_roster    user.team_id team exists but does not list the user
            dangling_team_refs     user.team_id points at no team
            stale_roster_entries   roster lists a user that is missing or placed elsewhere
            unassigned_with_team   is_unassigned users still carrying a team_id
        """
        users = {d["_id"]: User.model_validate(d) for d in await self.store.list_all(USERS)}
        teams = {d["_id"]: Team.model_validate(d) for d in await self.store.list_all(TEAMS)}

        report: dict[str, list[dict]] = {
            "missing_from_roster": [],
            "dangling_team_refs": [],
            "stale_roster_entries": [],
            "unassigned_with_team": [],
        }
        for user in users.values():
            if not user.team_id:
                continue
            if user.is_unassigned:
                report["unassigned_with_team"].append({"player_id": user.id, "team_id": user.team_id})
            team = teams.get(user.team_id)
            if team is None:
                report["dangling_team_refs"].append({"player_id": user.id, "team_id": user.team_id})
            elif user.id not in team.player_uids and user.role == "player":
                report["missing_from_roster"].append({"player_id": user.id, "team_id": team.id})

        for team in teams.values():
            for uid in team.player_uids:
                user = users.get(uid)
                if user is None or user.team_id != team.id or user.is_unassigned:
                    report["stale_roster_entries"].append({"player_id": uid, "team_id": team.id})
        return report

    async def reconcile_memberships(self, dry_run: bool = True) -> dict:
        """Repair rosters so the user records are authoritative."""
        report = await self.find_membership_inconsistencies()
        ops: list[WriteOp] = []
        for row in report["unassigned_with_team"]:
            ops.append(WriteOp.update(USERS, row["player_id"], unset=("team_id",)))
        for row in report["dangling_team_refs"]:
            if row not in report["unassigned_with_team"]:
                ops.append(WriteOp.update(USERS, row["player_id"], unset=("team_id",)))
        for row in report["missing_from_roster"]:
            if row not in report["unassigned_with_team"]:
                ops.append(WriteOp.update(TEAMS, row["team_id"], add_to_set={"player_uids": row["player_id"]}))
        for row in report["stale_roster_entries"]:
            ops.append(WriteOp.update(TEAMS, row["team_id"], pull={"player_uids": row["player_id"]}))

        if ops and not dry_run:
            await self.store.batch_write(ops)
        logger.info(
            "Membership sweep: %s (ops=%d, dry_run=%s)",
            {k: len(v) for k, v in report.items()}, len(ops), dry_run,
        )
        return {**report, "ops": len(ops), "applied": bool(ops) and not dry_run}

    async def _get(self, kind: str, record_id: str, model):
        if not record_id:
            return None
        doc = await self.store.get_by_id(kind, record_id)
        return model.model_validate(doc) if doc else None

    async def _leave_previous_team(self, user: User, new_team_id: str | None) -> list[WriteOp]:
        """Roster removal for a user moving off their current team, if it lists them."""
        previous = user.team_id
        if not previous or previous == new_team_id:
            return []
        team = await self._get(TEAMS, previous, Team)
        if team is None or user.id not in team.player_uids:
            return []
        return [WriteOp.update(TEAMS, previous, pull={"player_uids": user.id})]
