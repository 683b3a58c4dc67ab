"""
backend/app/database.py

Purpose:
    MongoDB connection bootstrap and index management for the registry
    collections (users, teams, universities, colleges, payments).

Dependencies:
    - motor.motor_asyncio
    - pymongo
    - app.config
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import OperationFailure

from app.config import settings

client: AsyncIOMotorClient = None
db: AsyncIOMotorDatabase = None

logger = logging.getLogger("shuttlecup.database")


async def connect_db() -> None:
    global client, db
    client = AsyncIOMotorClient(
        settings.MONGO_URI,
        maxPoolSize=25,
        minPoolSize=1,
    )
    db = client[settings.MONGO_DB]
    await ensure_indexes(db)


async def close_db() -> None:
    global client
    if client:
        client.close()


async def get_db() -> AsyncIOMotorDatabase:
    return db


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create indexes on startup. Idempotent, safe to run repeatedly."""

    # ---- Users ----
    await database.users.create_index("email", sparse=True)
    await database.users.create_index([("role", 1), ("created_at", -1)])
    await database.users.create_index([("team_id", 1), ("role", 1)])
    await database.users.create_index("is_unassigned")

    # ---- Teams (one per college) ----
    await database.teams.create_index("college_id")
    await database.teams.create_index("manager_uid")
    await database.teams.create_index("player_uids")

    # ---- Universities / Colleges ----
    await database.universities.create_index("name")
    await database.universities.create_index("created_at")
    await database.colleges.create_index([("university_id", 1), ("created_at", -1)])
    try:
        await database.colleges.create_index("team_id", unique=True)
    except OperationFailure as exc:
        logger.warning("Skipped unique colleges.team_id index: %s", exc)
        await database.colleges.create_index("team_id", name="colleges_team_lookup")

    # ---- Payments ----
    await database.payments.create_index([("status", 1), ("created_at", -1)])
    await database.payments.create_index("player_uid")
