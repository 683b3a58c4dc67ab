"""
backend/app/services/registration_service.py

Purpose:
    Player self-registration: the account is always created; a confident
    university/college match places the player on that college's team,
    anything else leaves the player unassigned for an admin to place.

Dependencies:
    - app.services.user_service
    - app.services.payment_service
    - app.services.matching_service
    - app.services.assignment_service
"""

import logging

from pydantic import BaseModel

from app.models.matching import MatchResult
from app.models.registry import User
from app.services.assignment_service import AssignmentPipeline
from app.services.entity_store import StoreError
from app.services.matching_service import MatchingEngine
from app.services.payment_service import PaymentService
from app.services.user_service import UserService

logger = logging.getLogger("shuttlecup.registration")


class RegistrationOutcome(BaseModel):
    user: User
    match: MatchResult
    assigned: bool
    needs_review: bool


class RegistrationService:
    def __init__(
        self,
        users: UserService,
        payments: PaymentService,
        matching: MatchingEngine,
        assignment: AssignmentPipeline,
    ):
        self.users = users
        self.payments = payments
        self.matching = matching
        self.assignment = assignment

    async def register_player(
        self,
        uid: str,
        email: str,
        name: str,
        university_input: str,
        college_input: str,
        phone: str | None = None,
    ) -> RegistrationOutcome:
        """Create the player, then try to place them. Store failures on create propagate."""
        await self.users.create_user(
            uid, email=email, name=name, phone=phone, role="player", is_unassigned=True,
        )

        try:
            if await self.payments.get_payment(uid) is None:
                await self.payments.create_payment(uid)
        except StoreError as exc:
            logger.error("Payment record not initialized for %s: %s", uid, exc)

        match = await self.matching.match_university_and_college(university_input, college_input)

        assigned = False
        if match.matched and match.university_id and match.college_id:
            assigned = await self.assignment.auto_assign_player_to_team(
                uid, match.university_id, match.college_id,
            )
        if not assigned:
            await self.assignment.mark_player_as_unassigned(uid)

        logger.info(
            "Registered player %s (matched=%s, confidence=%.3f, assigned=%s)",
            uid, match.matched, match.confidence, assigned,
        )
        user = await self.users.get_user(uid)
        return RegistrationOutcome(
            user=user,
            match=match,
            assigned=assigned,
            needs_review=not assigned,
        )
