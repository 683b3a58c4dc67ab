"""Team API: rosters per college team."""

from fastapi import APIRouter, Depends, HTTPException

from app.services.container import ServiceContainer, get_services

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.get("")
async def list_teams(services: ServiceContainer = Depends(get_services)):
    """All teams with their college name."""
    teams = await services.teams.get_all_teams()
    colleges = {c.id: c for c in await services.catalog.get_all_colleges()}
    return [
        {
            **team.model_dump(mode="json"),
            "college_name": colleges[team.college_id].name if team.college_id in colleges else None,
        }
        for team in teams
    ]


@router.get("/{team_id}")
async def get_team(team_id: str, services: ServiceContainer = Depends(get_services)):
    team = await services.teams.get_team(team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found.")
    college = await services.catalog.get_college(team.college_id)
    university = await services.catalog.get_university(college.university_id) if college else None
    return {
        **team.model_dump(mode="json"),
        "college_name": college.name if college else None,
        "university_name": university.name if university else None,
    }


@router.get("/{team_id}/players")
async def get_team_players(team_id: str, services: ServiceContainer = Depends(get_services)):
    if not await services.teams.get_team(team_id):
        raise HTTPException(status_code=404, detail="Team not found.")
    players = await services.users.get_players_in_team(team_id)
    return [
        {"id": p.id, "name": p.name, "email": p.email, "college_id": p.college_id}
        for p in players
    ]
