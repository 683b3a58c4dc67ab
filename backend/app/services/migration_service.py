"""
backend/app/services/migration_service.py

Purpose:
    One-off bulk data migrations run from the admin API. These are the only
    callers that write many records in a single batch: each step commits all
    of its writes or none.

Dependencies:
    - app.services.entity_store
    - app.services.user_service
    - app.services.payment_service
"""

import logging

from app.services.entity_store import PAYMENTS, USERS, EntityStore, StoreError, WriteOp
from app.services.payment_service import PaymentService, pending_payment_record
from app.services.user_service import UserService

logger = logging.getLogger("shuttlecup.migration")

# Roles from the earlier registration form, folded into "player".
LEGACY_ROLES = frozenset({"sponsor", "observer", "volunteer"})


class MigrationService:
    def __init__(self, store: EntityStore, users: UserService, payments: PaymentService):
        self.store = store
        self.users = users
        self.payments = payments

    async def migrate_existing_users(self) -> bool:
        try:
            logger.info("Starting user migration")
            # Raw documents: legacy roles do not validate against the User model.
            docs = await self.store.list_all(USERS)
            ops = [
                WriteOp.update(USERS, doc["_id"], {"role": "player"})
                for doc in docs
                if doc.get("role") in LEGACY_ROLES
            ]
            if not ops:
                logger.info("No users needed migration")
                return True
            await self.store.batch_write(ops)
            logger.info("User migration completed (updated=%d)", len(ops))
            return True
        except StoreError as exc:
            logger.error("Error during user migration: %s", exc)
            return False

    async def initialize_payments_for_players(self) -> bool:
        try:
            logger.info("Initializing payments for all players")
            players = await self.users.get_users_by_role("player")
            ops = []
            for player in players:
                if await self.payments.get_payment(player.id) is None:
                    ops.append(WriteOp.set(PAYMENTS, player.id, pending_payment_record(player.id)))
            await self.store.batch_write(ops)
            logger.info(
                "Payment initialization completed (players=%d, created=%d)", len(players), len(ops),
            )
            return True
        except (StoreError, ValueError) as exc:
            logger.error("Error initializing payments: %s", exc)
            return False

    async def run_full_migration(self) -> bool:
        logger.info("Starting full data migration")

        logger.info("Step 1: Migrating user roles")
        if not await self.migrate_existing_users():
            logger.error("User migration failed")
            return False

        logger.info("Step 2: Initializing payment records")
        if not await self.initialize_payments_for_players():
            logger.error("Payment initialization failed")
            return False

        logger.info("Full data migration completed successfully")
        return True
