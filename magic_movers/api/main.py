"""FastAPI application for Magic Movers."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from magic_movers import __version__
from magic_movers.api.fleet_routes import (
    items_router,
    logs_router,
    movers_router,
    set_service,
)
from magic_movers.core.config import load_app_config, setup_logging
from magic_movers.db.fleet_store import PostgresFleetStore, ensure_tables
from magic_movers.db.pool import close_database, init_database
from magic_movers.fleet.service import FleetService
from magic_movers.fleet.store import FleetStore, MemoryFleetStore

load_dotenv()

logger = logging.getLogger(__name__)

# Global instances
store: Optional[FleetStore] = None
service: Optional[FleetService] = None


async def build_store(backend: str) -> FleetStore:
    """Create the configured store, falling back to memory if Postgres is down."""
    if backend == "memory":
        logger.info("Using in-memory fleet store")
        return MemoryFleetStore()

    try:
        database = await init_database()
        await ensure_tables(database)
    except Exception as e:
        logger.warning(f"Database connection failed (using in-memory store): {e}")
        await close_database()
        return MemoryFleetStore()

    logger.info("Database connection initialized")
    return PostgresFleetStore(database)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global store, service

    app_config = load_app_config()
    setup_logging(app_config.log_level)

    logger.info("Initializing Magic Movers...")

    store = await build_store(app_config.store_backend)
    service = FleetService(store)
    set_service(service)

    logger.info("Magic Movers initialized")

    yield

    # Cleanup
    set_service(None)
    if isinstance(store, PostgresFleetStore):
        await close_database()
        logger.info("Database connection closed")
    store = None
    service = None

    logger.info("Shutting down Magic Movers...")


app = FastAPI(
    title="Magic Movers",
    description="Mover mission tracking API",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(movers_router)
app.include_router(items_router)
app.include_router(logs_router)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    store: str


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    if store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    if not await store.ping():
        raise HTTPException(status_code=503, detail="Store unreachable")

    return HealthResponse(status="healthy", store=type(store).__name__)


@app.get("/ping")
async def ping():
    """Lightweight health check endpoint.

    Returns a simple pong response without requiring service initialization.
    """
    return {"message": "pong"}
