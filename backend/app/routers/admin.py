"""
backend/app/routers/admin.py

Purpose:
    Admin HTTP router: catalog seeding, university/college creation, manual
    player placement, matching index control, membership sweep and bulk
    migrations.

Dependencies:
    - app.config (ADMIN_API_KEY)
    - app.services.container
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from app.config import settings
from app.services.container import ServiceContainer, get_services

logger = logging.getLogger("shuttlecup.admin")


async def verify_admin_key(x_admin_key: str = Header(...)):
    """Verify the shared admin key sent by the management dashboard."""
    if not settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key not configured on server.",
        )
    if not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key.",
        )


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(verify_admin_key)],
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class UniversityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)


class CollegeCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    university_id: str


class PlayerAssignment(BaseModel):
    university_id: str
    college_id: str


class ManagerAssignment(BaseModel):
    manager_uid: str = Field(..., min_length=1)


def _ok_or_409(ok: bool, detail: str) -> dict:
    if not ok:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Seed catalog
# ---------------------------------------------------------------------------

@router.post("/seed")
async def initialize_seed_data(services: ServiceContainer = Depends(get_services)):
    ok = await services.seeder.initialize_seed_data()
    if ok:
        await services.index.refresh()
    return {"ok": ok, **await services.seeder.check_seed_data_status()}


@router.get("/seed/status")
async def seed_status(services: ServiceContainer = Depends(get_services)):
    return await services.seeder.check_seed_data_status()


@router.get("/seed/sample")
async def seed_sample(services: ServiceContainer = Depends(get_services)):
    return await services.seeder.get_sample_data()


# ---------------------------------------------------------------------------
# Universities / colleges
# ---------------------------------------------------------------------------

@router.post("/universities", status_code=201)
async def create_university(body: UniversityCreate, services: ServiceContainer = Depends(get_services)):
    university_id = await services.catalog.create_university(body.name)
    logger.info("Admin created university %s (%r)", university_id, body.name)
    return {"id": university_id}


@router.post("/colleges", status_code=201)
async def create_college(body: CollegeCreate, services: ServiceContainer = Depends(get_services)):
    college_id = await services.catalog.create_college(body.name, body.university_id)
    if not college_id:
        raise HTTPException(status_code=400, detail="College could not be created.")
    college = await services.catalog.get_college(college_id)
    return {"id": college_id, "team_id": college.team_id if college else None}


@router.post("/colleges/{college_id}/manager")
async def assign_manager(
    college_id: str,
    body: ManagerAssignment,
    services: ServiceContainer = Depends(get_services),
):
    ok = await services.assignment.assign_manager_to_college(college_id, body.manager_uid)
    return _ok_or_409(ok, "Manager could not be assigned.")


# ---------------------------------------------------------------------------
# Player placement
# ---------------------------------------------------------------------------

@router.get("/players/unassigned")
async def list_unassigned_players(services: ServiceContainer = Depends(get_services)):
    players = await services.users.get_users_by_role("player")
    return [p.model_dump(mode="json") for p in players if p.is_unassigned]


@router.post("/players/{player_id}/assign")
async def assign_player(
    player_id: str,
    body: PlayerAssignment,
    services: ServiceContainer = Depends(get_services),
):
    ok = await services.assignment.auto_assign_player_to_team(
        player_id, body.university_id, body.college_id,
    )
    return _ok_or_409(ok, "Player could not be assigned.")


@router.post("/players/{player_id}/unassign")
async def unassign_player(player_id: str, services: ServiceContainer = Depends(get_services)):
    ok = await services.assignment.mark_player_as_unassigned(player_id)
    return _ok_or_409(ok, "Player could not be unassigned.")


@router.post("/teams/{team_id}/players/{player_id}")
async def add_player_to_team(
    team_id: str,
    player_id: str,
    services: ServiceContainer = Depends(get_services),
):
    ok = await services.assignment.add_player_to_team(team_id, player_id)
    return _ok_or_409(ok, "Player could not be added to team.")


@router.delete("/teams/{team_id}/players/{player_id}")
async def remove_player_from_team(
    team_id: str,
    player_id: str,
    services: ServiceContainer = Depends(get_services),
):
    ok = await services.assignment.remove_player_from_team(team_id, player_id)
    return _ok_or_409(ok, "Player could not be removed from team.")


@router.get("/teams/{team_id}/payments")
async def team_payments(team_id: str, services: ServiceContainer = Depends(get_services)):
    payments = await services.payments.get_team_payments(team_id)
    return [p.model_dump(mode="json") for p in payments]


# ---------------------------------------------------------------------------
# Matching index
# ---------------------------------------------------------------------------

@router.get("/matching/index")
async def matching_index_stats(services: ServiceContainer = Depends(get_services)):
    return services.index.stats()


@router.post("/matching/index/refresh")
async def refresh_matching_index(services: ServiceContainer = Depends(get_services)):
    await services.index.refresh()
    return services.index.stats()


@router.get("/matching/universities")
async def search_universities(
    q: str = Query(..., min_length=2, max_length=200),
    limit: int = Query(10, ge=1, le=50),
    services: ServiceContainer = Depends(get_services),
):
    await services.index.ensure_initialized()
    return [
        {"id": hit.item.id, "name": hit.item.name, "score": hit.score}
        for hit in services.index.search_universities(q, limit=limit)
    ]


@router.get("/matching/colleges")
async def search_colleges(
    q: str = Query(..., min_length=2, max_length=200),
    limit: int = Query(10, ge=1, le=50),
    services: ServiceContainer = Depends(get_services),
):
    """Fuzzy search across every persisted college (all universities)."""
    await services.index.ensure_initialized()
    return [
        {
            "id": hit.item.id,
            "name": hit.item.name,
            "university_id": hit.item.university_id,
            "score": hit.score,
        }
        for hit in services.index.search_colleges(q, limit=limit)
    ]


# ---------------------------------------------------------------------------
# Consistency + migrations
# ---------------------------------------------------------------------------

@router.post("/memberships/sweep")
async def membership_sweep(
    dry_run: bool = Query(True),
    services: ServiceContainer = Depends(get_services),
):
    return await services.assignment.reconcile_memberships(dry_run=dry_run)


@router.post("/migrations/run")
async def run_migration(services: ServiceContainer = Depends(get_services)):
    ok = await services.migration.run_full_migration()
    return _ok_or_409(ok, "Migration failed; see server logs.")
