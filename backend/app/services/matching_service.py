"""
backend/app/services/matching_service.py

Purpose:
    Resolve free-text (university, college) input from the registration form
    to persisted records with a confidence score.

    - University: top hit of the matching index.
    - College: top hit among that university's colleges only, fetched fresh
      from the store, so a namesake college of another university can never
      win.
    - confidence = mean of both (1 - distance) values, clamped to [0, 1];
      accepted when >= accept_confidence. There is no per-field minimum.

    Matching never raises: any failure degrades to an unmatched result with
    seed-catalog suggestions.

Dependencies:
    - app.services.matching_index
    - app.services.seed_catalog
    - app.services.entity_store
"""

import logging

from app.models.matching import (
    BestCandidateSuggestions,
    MatchResult,
    SeedSuggestions,
    SuggestedName,
    UniversityOnlySuggestions,
)
from app.models.registry import College
from app.services.entity_store import COLLEGES, EntityStore
from app.services.matching_index import MatchingIndex
from app.services.seed_catalog import SeedCatalog

logger = logging.getLogger("shuttlecup.matching")


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


class MatchingEngine:
    def __init__(
        self,
        store: EntityStore,
        index: MatchingIndex,
        seed: SeedCatalog,
        accept_confidence: float = 0.85,
        suggestion_limit: int = 3,
    ):
        self.store = store
        self.index = index
        self.seed = seed
        self.accept_confidence = accept_confidence
        self.suggestion_limit = suggestion_limit

    async def match_university_and_college(
        self, university_input: str, college_input: str,
    ) -> MatchResult:
        university_input = university_input or ""
        college_input = college_input or ""
        try:
            if not university_input.strip().lower() or not college_input.strip().lower():
                return self._unmatched(university_input, college_input)

            await self.index.ensure_initialized()

            university_hits = self.index.search_universities(university_input, limit=1)
            if not university_hits:
                logger.info("No university match for %r", university_input)
                return self._unmatched(university_input, college_input)
            best_university = university_hits[0]
            university = best_university.item

            college_docs = await self.store.query_by_field(
                COLLEGES, "university_id", university.id, order_by="created_at", descending=False,
            )
            colleges = [College.model_validate(d) for d in college_docs]
            college_hits = self.index.searcher(colleges).search(college_input, limit=1)
            if not college_hits:
                logger.info(
                    "No college match for %r within university %s", college_input, university.id,
                )
                return MatchResult(
                    matched=False,
                    confidence=0.0,
                    suggested=UniversityOnlySuggestions(
                        universities=[SuggestedName(name=university.name, score=best_university.score)],
                        colleges=self.seed.suggest_colleges(college_input, self.suggestion_limit),
                    ),
                )
            best_college = college_hits[0]
            college = best_college.item

            university_confidence = _clamp(1.0 - best_university.score)
            college_confidence = _clamp(1.0 - best_college.score)
            confidence = _clamp((university_confidence + college_confidence) / 2.0)
            matched = confidence >= self.accept_confidence

            logger.info(
                "Matched %r/%r -> %s/%s (confidence=%.3f, accepted=%s)",
                university_input, college_input, university.id, college.id, confidence, matched,
            )
            suggested = None
            if not matched:
                suggested = BestCandidateSuggestions(
                    universities=[SuggestedName(name=university.name, score=best_university.score)],
                    colleges=[SuggestedName(name=college.name, score=best_college.score)],
                )
            return MatchResult(
                matched=matched,
                confidence=confidence,
                university_id=university.id,
                college_id=college.id,
                university_name=university.name,
                college_name=college.name,
                suggested=suggested,
            )

        except Exception as exc:
            logger.error(
                "Error in fuzzy matching (university=%r, college=%r): %s",
                university_input, college_input, exc,
            )
            return self._unmatched(university_input, college_input)

    def _unmatched(self, university_input: str, college_input: str) -> MatchResult:
        return MatchResult(
            matched=False,
            confidence=0.0,
            suggested=SeedSuggestions(
                universities=self.seed.suggest_universities(university_input, self.suggestion_limit),
                colleges=self.seed.suggest_colleges(college_input, self.suggestion_limit),
            ),
        )
