"""Registration API: free-text university/college matching and player sign-up."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.models.matching import MatchResult
from app.services.container import ServiceContainer, get_services
from app.services.registration_service import RegistrationOutcome

router = APIRouter(prefix="/api/registration", tags=["registration"])


class MatchRequest(BaseModel):
    university: str = Field("", max_length=200)
    college: str = Field("", max_length=200)


class PlayerRegistration(BaseModel):
    uid: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(..., min_length=1, max_length=120)
    phone: str | None = Field(None, max_length=32)
    university: str = Field("", max_length=200)
    college: str = Field("", max_length=200)


@router.post("/match", response_model=MatchResult)
async def match(body: MatchRequest, services: ServiceContainer = Depends(get_services)):
    """Resolve typed university/college names; suggestions when unsure."""
    return await services.matching.match_university_and_college(body.university, body.college)


@router.post("/players", response_model=RegistrationOutcome, status_code=201)
async def register_player(
    body: PlayerRegistration,
    services: ServiceContainer = Depends(get_services),
):
    """Create a player account and place it on a team when the match is confident."""
    return await services.registration.register_player(
        uid=body.uid,
        email=body.email,
        name=body.name,
        phone=body.phone,
        university_input=body.university,
        college_input=body.college,
    )
