"""
backend/app/utils/name_matching.py

Purpose:
    Fuzzy name search shared by the matching index, the matching engine and
    the seed catalog. Results carry a distance score (0 = perfect, 1 = worst);
    callers derive confidence as ``1 - score``.

Notes:
    - Both sides are normalized identically: accents stripped, punctuation
      dropped, common abbreviations expanded and generic tokens removed, so
      "Symbiosis Intl Univ" and "Symbiosis International University" compare
      on their distinctive words only.
    - Ties on the primary score are broken by plain ratio over the full
      normalized names, then by insertion order.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, TypeVar

from rapidfuzz import fuzz, process

T = TypeVar("T")

_ABBREVIATIONS = {
    "univ": "university",
    "uni": "university",
    "inst": "institute",
    "coll": "college",
    "tech": "technology",
    "engg": "engineering",
    "mgmt": "management",
    "sci": "science",
    "intl": "international",
}

_GENERIC_TOKENS = frozenset({
    "university", "college", "institute", "school",
    "of", "the", "and", "for", "at",
})


def _tokens(raw: str) -> list[str]:
    s = unicodedata.normalize("NFKD", (raw or "").lower())
    s = "".join(c for c in s if not unicodedata.combining(c))
    s = re.sub(r"[^a-z0-9]", " ", s)
    return [_ABBREVIATIONS.get(t, t) for t in s.split()]


def normalize_entity_name(raw: str) -> str:
    """Comparison key: distinctive tokens only, or all tokens if none are distinctive."""
    tokens = _tokens(raw)
    distinctive = [t for t in tokens if t not in _GENERIC_TOKENS]
    return " ".join(distinctive or tokens)


def full_name_key(raw: str) -> str:
    """Normalized name with generic tokens kept (tie-breaking only)."""
    return " ".join(_tokens(raw))


@dataclass(frozen=True)
class SearchHit(Generic[T]):
    item: T
    score: float  # fuzzy distance, 0 = perfect


class NameSearcher(Generic[T]):
    """Immutable fuzzy index over ``items`` keyed by ``key(item)``."""

    def __init__(
        self,
        items: Iterable[T],
        key: Callable[[T], str],
        threshold: float = 0.6,
        distance: int = 100,
    ):
        self._items = list(items)
        self.threshold = threshold
        self.distance = distance
        self._keys = [normalize_entity_name(key(item))[:distance] for item in self._items]
        self._full_keys = [full_name_key(key(item)) for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def search(self, query: str, limit: int | None = None) -> list[SearchHit[T]]:
        """Ranked hits whose distance does not exceed the threshold."""
        needle = normalize_entity_name(query)[: self.distance]
        if not needle or not self._items:
            return []

        cutoff = max(0.0, (1.0 - self.threshold) * 100.0)
        raw_hits = process.extract(
            needle,
            self._keys,
            scorer=fuzz.token_sort_ratio,
            processor=None,
            limit=None,
            score_cutoff=cutoff,
        )
        needle_full = full_name_key(query)
        ranked = sorted(
            raw_hits,
            key=lambda hit: (-hit[1], -fuzz.ratio(needle_full, self._full_keys[hit[2]]), hit[2]),
        )
        hits = [
            SearchHit(item=self._items[index], score=_to_distance(similarity))
            for _, similarity, index in ranked
        ]
        return hits if limit is None else hits[:limit]


def _to_distance(similarity: float) -> float:
    return min(1.0, max(0.0, 1.0 - float(similarity) / 100.0))
