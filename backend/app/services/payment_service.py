"""
backend/app/services/payment_service.py

Purpose:
    Entry-fee payment records, one per player (keyed by player uid).

Dependencies:
    - app.services.entity_store
    - app.services.user_service
"""

import logging
from typing import Any

from app.models.registry import Payment
from app.services.entity_store import PAYMENTS, EntityStore
from app.services.user_service import UserService

logger = logging.getLogger("shuttlecup.payments")


def pending_payment_record(player_uid: str) -> dict[str, Any]:
    return {"player_uid": player_uid, "amount_paid": 0.0, "status": "pending"}


class PaymentService:
    def __init__(self, store: EntityStore, users: UserService):
        self.store = store
        self.users = users

    async def create_payment(self, player_uid: str, **fields: Any) -> None:
        logger.info("Creating payment record for %s", player_uid)
        record = {**pending_payment_record(player_uid), **fields}
        Payment.model_validate({"_id": player_uid, **record})
        await self.store.set_by_id(PAYMENTS, player_uid, record)

    async def get_payment(self, player_uid: str) -> Payment | None:
        doc = await self.store.get_by_id(PAYMENTS, player_uid)
        return Payment.model_validate(doc) if doc else None

    async def update_payment(self, player_uid: str, updates: dict[str, Any]) -> None:
        await self.store.update_by_id(PAYMENTS, player_uid, updates)
        logger.info("Payment %s updated", player_uid)

    async def get_all_payments(self) -> list[Payment]:
        return [Payment.model_validate(d) for d in await self.store.list_all(PAYMENTS)]

    async def get_payments_by_status(self, status: str) -> list[Payment]:
        docs = await self.store.query_by_field(PAYMENTS, "status", status, order_by="created_at")
        return [Payment.model_validate(d) for d in docs]

    async def get_team_payments(self, team_id: str) -> list[Payment]:
        players = await self.users.get_players_in_team(team_id)
        if not players:
            return []
        docs = await self.store.query_in(PAYMENTS, "player_uid", [p.id for p in players])
        return [Payment.model_validate(d) for d in docs]
