"""
backend/app/services/matching_index.py

Purpose:
    In-memory fuzzy index over the persisted universities and colleges.
    Built lazily on first use and rebuilt only on request (refresh() or after
    mark_dirty()); writes made elsewhere are not seen until then.

Dependencies:
    - app.services.entity_store
    - app.utils.name_matching
"""

import asyncio
import logging
from datetime import datetime

from app.models.registry import College, University
from app.services.entity_store import COLLEGES, UNIVERSITIES, EntityStore, StoreError
from app.utils import utcnow
from app.utils.name_matching import NameSearcher, SearchHit

logger = logging.getLogger("shuttlecup.matching_index")


class MatchingIndex:
    """Fuzzy lookup over universities and colleges, owned by the service container."""

    def __init__(self, store: EntityStore, threshold: float = 0.6, distance: int = 100):
        self.store = store
        self.threshold = threshold
        self.distance = distance
        self._universities: NameSearcher[University] = self._searcher([])
        self._colleges: NameSearcher[College] = self._searcher([])
        self._built = False
        self._dirty = False
        self._build_lock = asyncio.Lock()
        self.last_built_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def searcher(self, items: list) -> NameSearcher:
        """One-off searcher with this index's parameters (e.g. one university's colleges)."""
        return self._searcher(items)

    async def initialize(self) -> None:
        """Full rebuild from the store. On failure the index is left empty."""
        async with self._build_lock:
            try:
                university_docs = await self.store.list_all(UNIVERSITIES, descending=False)
                college_docs = await self.store.list_all(COLLEGES, descending=False)
                universities = [University.model_validate(d) for d in university_docs]
                colleges = [College.model_validate(d) for d in college_docs]
            except (StoreError, ValueError) as exc:
                logger.error("Error initializing matching index: %s", exc)
                self._universities = self._searcher([])
                self._colleges = self._searcher([])
                self.last_error = str(exc)
            else:
                self._universities = self._searcher(universities)
                self._colleges = self._searcher(colleges)
                self.last_error = None
                logger.info(
                    "Matching index initialized: %d universities, %d colleges",
                    len(universities), len(colleges),
                )
            self._built = True
            self._dirty = False
            self.last_built_at = utcnow()

    async def ensure_initialized(self) -> None:
        if not self._built or self._dirty:
            await self.initialize()

    async def refresh(self) -> None:
        await self.initialize()

    def mark_dirty(self) -> None:
        self._dirty = True

    def search_universities(self, text: str, limit: int | None = None) -> list[SearchHit[University]]:
        return self._universities.search(text, limit=limit)

    def search_colleges(self, text: str, limit: int | None = None) -> list[SearchHit[College]]:
        return self._colleges.search(text, limit=limit)

    def stats(self) -> dict:
        return {
            "built": self._built,
            "dirty": self._dirty,
            "universities": len(self._universities),
            "colleges": len(self._colleges),
            "last_built_at": self.last_built_at,
            "last_error": self.last_error,
            "threshold": self.threshold,
            "distance": self.distance,
        }

    def _searcher(self, items: list) -> NameSearcher:
        return NameSearcher(
            items, key=lambda record: record.name, threshold=self.threshold, distance=self.distance,
        )
