"""
backend/app/models/registry.py

Purpose:
    Pydantic records for the tournament registry: universities, colleges,
    teams (one per college), users and payments as stored in MongoDB.

Dependencies:
    - pydantic
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer

from app.utils import as_utc

UserRole = Literal["super_admin", "admin", "manager", "player"]
PaymentStatus = Literal["paid", "pending"]

# Team.college_id value between team insert and college back-fill.
PENDING_COLLEGE_ID = "pending"


class _Record(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class University(_Record):
    name: str
    college_ids: list[str] = Field(default_factory=list)


class College(_Record):
    name: str
    university_id: str
    team_id: str


class Team(_Record):
    college_id: str
    manager_uid: str = ""
    player_uids: list[str] = Field(default_factory=list)


class User(_Record):
    """User document keyed by the auth provider uid."""
    email: str = ""
    name: str = ""
    role: UserRole = "player"
    phone: Optional[str] = None
    university_id: Optional[str] = None
    college_id: Optional[str] = None
    team_id: Optional[str] = None
    is_unassigned: bool = False


class Payment(_Record):
    """Payment document keyed by the player uid."""
    player_uid: str
    amount_paid: float = 0.0
    status: PaymentStatus = "pending"
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
