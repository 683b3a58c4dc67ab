"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: middleware/router wiring, exception
    mapping, service container lifecycle and optional catalog seeding.

Dependencies:
    - app.database
    - app.services.container
    - app.services.entity_store
    - uvicorn (server entry point)
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from app.config import settings
import app.database as _db
from app.database import connect_db, close_db
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.services.container import build_services
from app.services.entity_store import EntityStore, StoreError

logger = logging.getLogger("shuttlecup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_db()

    store = EntityStore(
        _db.db, _db.client, transactions=settings.MONGO_TRANSACTIONS_ENABLED,
    )
    services = build_services(store, settings)
    app.state.services = services

    if settings.SEED_ON_STARTUP:
        seeded = await services.seeder.initialize_seed_data()
        logger.info("Seed catalog on startup: %s", "created" if seeded else "skipped")

    await services.index.initialize()
    logger.info("Matching index ready: %s", services.index.stats())

    yield

    app.state.services = None
    await close_db()


app = FastAPI(
    title="ShuttleCup",
    description="Inter-college badminton tournament registry",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Admin-Key"],
)

# Structured logging
app.add_middleware(StructuredLoggingMiddleware)

# Routers
from app.routers.admin import router as admin_router
from app.routers.registration import router as registration_router
from app.routers.teams import router as teams_router

app.include_router(registration_router)
app.include_router(teams_router)
app.include_router(admin_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean validation errors without leaking internal field paths."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        # Strip the "body" / "query" prefix for cleaner messages
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[-1]) if loc else "unknown"
        errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
    return JSONResponse(status_code=422, content={"detail": "Validation error.", "errors": errors})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(ServerSelectionTimeoutError)
async def db_timeout_handler(request: Request, exc: ServerSelectionTimeoutError):
    logger.error("Database timeout: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(ConnectionFailure)
async def db_connection_handler(request: Request, exc: ConnectionFailure):
    logger.error("Database connection failure: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning("ValueError on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": "Invalid input."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the real error, return a safe generic message."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})


@app.get("/health")
async def health():
    """Health check -- verifies DB connection and matching index state."""
    services = getattr(app.state, "services", None)
    db_ok = await services.store.ping() if services else False

    return {
        "status": "healthy" if db_ok else "degraded",
        "db": "connected" if db_ok else "disconnected",
        "matching_index": services.index.stats() if services else None,
    }


def serve() -> None:
    """Run the API under uvicorn using the configured bind address."""
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_level=settings.LOG_LEVEL.lower())
