"""
backend/app/services/seed_catalog.py

Purpose:
    Static catalog of known universities and their colleges. Used two ways:
    as the fallback suggestion source when free-text input matches nothing
    persisted, and as the data an admin can persist into an empty store.
    Never a source for an accepted match.

Dependencies:
    - app.utils.name_matching
    - app.services.catalog_service
"""

from __future__ import annotations

import logging

from app.models.matching import SuggestedName
from app.services.catalog_service import CatalogService
from app.services.entity_store import StoreError
from app.utils.name_matching import NameSearcher

logger = logging.getLogger("shuttlecup.seed_catalog")


SEED_UNIVERSITIES: list[str] = [
    "Symbiosis International University",
    "University of Delhi",
    "University of Mumbai",
    "Indian Institute of Technology Bombay",
    "Indian Institute of Technology Delhi",
    "Indian Institute of Technology Madras",
    "Indian Institute of Technology Kanpur",
    "Indian Institute of Technology Kharagpur",
    "Indian Institute of Science Bangalore",
    "Jawaharlal Nehru University",
    "Banaras Hindu University",
    "University of Calcutta",
    "University of Madras",
    "Anna University",
    "Pune University",
    "Mumbai University",
    "Delhi University",
    "Bangalore University",
    "Hyderabad University",
    "Aligarh Muslim University",
]

SEED_COLLEGES: dict[str, list[str]] = {
    "Symbiosis International University": [
        "Symbiosis Institute of Technology",
        "Symbiosis College of Arts and Commerce",
        "Symbiosis Law School",
        "Symbiosis Centre for Management Studies",
        "Symbiosis Institute of Business Management",
        "Symbiosis Institute of Computer Studies and Research",
        "Symbiosis Centre for Media and Communication",
        "Symbiosis School of Economics",
        "Symbiosis Institute of Health Sciences",
        "Symbiosis Institute of Design",
    ],
    "University of Delhi": [
        "St. Stephen's College",
        "Hindu College",
        "Lady Shri Ram College",
        "Sri Venkateswara College",
        "Hansraj College",
        "Kirori Mal College",
        "Ramjas College",
        "Miranda House",
        "Gargi College",
        "Jesus and Mary College",
    ],
    "University of Mumbai": [
        "St. Xavier's College",
        "Jai Hind College",
        "Wilson College",
        "Mithibai College",
        "KJ Somaiya College",
        "HR College of Commerce",
        "Narsee Monjee College",
        "Sophia College",
        "Elphinstone College",
        "Government Law College",
    ],
    "Indian Institute of Technology Bombay": [
        "Computer Science and Engineering",
        "Electrical Engineering",
        "Mechanical Engineering",
        "Civil Engineering",
        "Chemical Engineering",
        "Aerospace Engineering",
        "Metallurgical Engineering",
        "Industrial Engineering",
    ],
    "Indian Institute of Technology Delhi": [
        "Computer Science and Engineering",
        "Electrical Engineering",
        "Mechanical Engineering",
        "Civil Engineering",
        "Chemical Engineering",
        "Biotechnology",
        "Textile Technology",
        "Production and Industrial Engineering",
    ],
}


class SeedCatalog:
    """Fuzzy suggestions over the static catalog."""

    def __init__(
        self,
        universities: list[str] | None = None,
        colleges: dict[str, list[str]] | None = None,
        threshold: float = 0.6,
        distance: int = 100,
    ):
        self.universities = list(SEED_UNIVERSITIES if universities is None else universities)
        self.colleges = dict(SEED_COLLEGES if colleges is None else colleges)
        # Same department names recur across universities; suggest each once.
        flat_colleges = list(dict.fromkeys(
            name for names in self.colleges.values() for name in names
        ))
        self._university_searcher = NameSearcher(
            self.universities, key=str, threshold=threshold, distance=distance,
        )
        self._college_searcher = NameSearcher(
            flat_colleges, key=str, threshold=threshold, distance=distance,
        )

    def entries(self) -> list[tuple[str, list[str]]]:
        return [(name, list(self.colleges.get(name, []))) for name in self.universities]

    def suggest_universities(self, text: str, limit: int = 3) -> list[SuggestedName]:
        return [
            SuggestedName(name=hit.item, score=hit.score)
            for hit in self._university_searcher.search(text, limit=limit)
        ]

    def suggest_colleges(self, text: str, limit: int = 3) -> list[SuggestedName]:
        return [
            SuggestedName(name=hit.item, score=hit.score)
            for hit in self._college_searcher.search(text, limit=limit)
        ]


class CatalogSeeder:
    """Persists the seed catalog into an empty store."""

    def __init__(self, catalog: CatalogService, seed: SeedCatalog):
        self.catalog = catalog
        self.seed = seed

    async def initialize_seed_data(self) -> bool:
        try:
            logger.info("Starting seed data initialization")
            existing = await self.catalog.get_all_universities()
            if existing:
                logger.info("Seed data already exists (%d universities), skipping", len(existing))
                return True

            for university_name, college_names in self.seed.entries():
                try:
                    university_id = await self.catalog.create_university(university_name)
                except StoreError as exc:
                    logger.error("Failed to create university %r: %s", university_name, exc)
                    continue

                for college_name in college_names:
                    try:
                        college_id = await self.catalog.create_college(college_name, university_id)
                    except StoreError as exc:
                        logger.error(
                            "Error creating college %r for %r: %s", college_name, university_name, exc,
                        )
                        continue
                    if not college_id:
                        logger.error(
                            "Failed to create college %r for %r", college_name, university_name,
                        )

                logger.info("Created university %r (%s) with colleges", university_name, university_id)

            logger.info("Seed data initialization completed")
            return True
        except StoreError as exc:
            logger.error("Error initializing seed data: %s", exc)
            return False

    async def check_seed_data_status(self) -> dict:
        try:
            universities = await self.catalog.get_all_universities()
            colleges = await self.catalog.get_all_colleges()
        except StoreError as exc:
            logger.error("Error checking seed data status: %s", exc)
            return {"universities_count": 0, "colleges_count": 0, "needs_initialization": True}
        return {
            "universities_count": len(universities),
            "colleges_count": len(colleges),
            "needs_initialization": not universities,
        }

    async def get_sample_data(self) -> dict:
        try:
            universities = await self.catalog.get_all_universities()
            colleges = await self.catalog.get_all_colleges()
        except StoreError as exc:
            logger.error("Error getting sample data: %s", exc)
            return {"universities": [], "colleges": []}

        names = {u.id: u.name for u in universities}
        return {
            "universities": [{"id": u.id, "name": u.name} for u in universities],
            "colleges": [
                {
                    "id": c.id,
                    "name": c.name,
                    "university_name": names.get(c.university_id, "Unknown"),
                }
                for c in colleges
            ],
        }
