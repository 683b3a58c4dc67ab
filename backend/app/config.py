"""
backend/app/config.py

Purpose:
    Central settings loading for backend services.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "shuttlecup"
    # Multi-document transactions need a replica set; standalone dev servers
    # fall back to sequential (non-atomic) batch writes.
    MONGO_TRANSACTIONS_ENABLED: bool = True
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Bind address for the `shuttlecup` server entry point
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000

    # Shared key for admin endpoints (X-Admin-Key). Empty disables the admin API.
    ADMIN_API_KEY: str = ""

    # University/college fuzzy matching
    MATCH_FUZZY_THRESHOLD: float = 0.6  # 0 = exact only, 1 = match anything
    MATCH_DISTANCE: int = 100  # max normalized name length fed to the scorer
    MATCH_ACCEPT_CONFIDENCE: float = 0.85
    MATCH_SUGGESTION_LIMIT: int = 3

    # Unassigning a player leaves the team roster untouched unless enabled.
    UNASSIGN_REMOVES_FROM_TEAM: bool = False

    # Persist the seed catalog at startup when no university exists yet
    SEED_ON_STARTUP: bool = False

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
