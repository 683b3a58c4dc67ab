"""
backend/app/models/matching.py

Purpose:
    Result shapes of university/college matching. Suggestions are a tagged
    variant so the seed-catalog top-N path and the live best-candidate path
    stay distinguishable for API consumers.

Dependencies:
    - pydantic
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class SuggestedName(BaseModel):
    name: str
    score: float  # fuzzy distance, 0 = perfect


class SeedSuggestions(BaseModel):
    """Top-N names from the static seed catalog for both fields."""
    kind: Literal["seed"] = "seed"
    universities: list[SuggestedName] = Field(default_factory=list)
    colleges: list[SuggestedName] = Field(default_factory=list)


class UniversityOnlySuggestions(BaseModel):
    """A live university was found but none of its colleges matched."""
    kind: Literal["university_only"] = "university_only"
    universities: list[SuggestedName] = Field(default_factory=list, max_length=1)
    colleges: list[SuggestedName] = Field(default_factory=list)


class BestCandidateSuggestions(BaseModel):
    """Single best live candidate per field, below the acceptance gate."""
    kind: Literal["best_candidate"] = "best_candidate"
    universities: list[SuggestedName] = Field(default_factory=list, max_length=1)
    colleges: list[SuggestedName] = Field(default_factory=list, max_length=1)


Suggestions = Annotated[
    Union[SeedSuggestions, UniversityOnlySuggestions, BestCandidateSuggestions],
    Field(discriminator="kind"),
]


class MatchResult(BaseModel):
    matched: bool
    confidence: float = Field(ge=0.0, le=1.0)
    university_id: Optional[str] = None
    college_id: Optional[str] = None
    university_name: Optional[str] = None
    college_name: Optional[str] = None
    suggested: Optional[Suggestions] = None
