"""
backend/app/services/container.py

Purpose:
    Process-wide wiring of the registry services around one EntityStore.
    Built once in the FastAPI lifespan and kept on ``app.state.services``;
    routers reach it through the ``get_services`` dependency.

Dependencies:
    - app.config
    - app.services.*
"""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from app.config import Settings
from app.services.assignment_service import AssignmentPipeline
from app.services.catalog_service import CatalogService
from app.services.entity_store import EntityStore
from app.services.matching_index import MatchingIndex
from app.services.matching_service import MatchingEngine
from app.services.migration_service import MigrationService
from app.services.payment_service import PaymentService
from app.services.registration_service import RegistrationService
from app.services.seed_catalog import CatalogSeeder, SeedCatalog
from app.services.team_service import TeamService
from app.services.user_service import UserService


@dataclass
class ServiceContainer:
    store: EntityStore
    index: MatchingIndex
    seed: SeedCatalog
    users: UserService
    teams: TeamService
    catalog: CatalogService
    payments: PaymentService
    matching: MatchingEngine
    assignment: AssignmentPipeline
    seeder: CatalogSeeder
    migration: MigrationService
    registration: RegistrationService


def build_services(store: EntityStore, config: Settings) -> ServiceContainer:
    index = MatchingIndex(
        store, threshold=config.MATCH_FUZZY_THRESHOLD, distance=config.MATCH_DISTANCE,
    )
    seed = SeedCatalog(threshold=config.MATCH_FUZZY_THRESHOLD, distance=config.MATCH_DISTANCE)
    users = UserService(store)
    teams = TeamService(store)
    catalog = CatalogService(store, on_change=index.mark_dirty)
    payments = PaymentService(store, users)
    matching = MatchingEngine(
        store,
        index,
        seed,
        accept_confidence=config.MATCH_ACCEPT_CONFIDENCE,
        suggestion_limit=config.MATCH_SUGGESTION_LIMIT,
    )
    assignment = AssignmentPipeline(
        store, unassign_removes_from_team=config.UNASSIGN_REMOVES_FROM_TEAM,
    )
    return ServiceContainer(
        store=store,
        index=index,
        seed=seed,
        users=users,
        teams=teams,
        catalog=catalog,
        payments=payments,
        matching=matching,
        assignment=assignment,
        seeder=CatalogSeeder(catalog, seed),
        migration=MigrationService(store, users, payments),
        registration=RegistrationService(users, payments, matching, assignment),
    )


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services not initialized.",
        )
    return services
