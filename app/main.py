import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv  # load .env variables

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sqlalchemy.exc import DBAPIError, OperationalError

import app.database as database
from app.errors import register_error_handlers
from app.repositories import AttendeeRepository, EventRepository
from app.services import AttendeeService, EventScheduler, EventService
from app.store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from app.utils import Clock, utcnow

# ----- Load environment variables -----
load_dotenv()

# ----- Logging -----
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

# ----- Routers -----
from app.routes.events import router as events_router
from app.routes.categories import router as categories_router
from app.routes.attendees import router as attendees_router
from app.routes.scheduler import router as scheduler_router

API_PREFIX = "/api/v1"
APP_NAME = "Event Management API"
APP_VERSION = "1.0.0"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _default_store() -> DocumentStore:
    if _env_flag("USE_IN_MEMORY_STORE", "0"):
        logging.info("Using in-memory document store.")
        return InMemoryDocumentStore()
    return SqlDocumentStore(database.SessionLocal)


async def _ensure_tables(max_attempts: int = 5, base_delay: float = 1.0) -> None:
    """Create the documents table, retrying while the database comes up."""

    attempt = 0
    while True:
        attempt += 1
        try:
            await database.init_models()
        except (OperationalError, DBAPIError, OSError) as exc:  # pragma: no cover - depends on timing
            if attempt >= max_attempts:
                logging.exception("Database not reachable after %s attempts", attempt)
                raise
            wait_time = base_delay * min(2 ** (attempt - 1), 8)
            logging.warning(
                "Database not ready (attempt %s/%s): %s. Retrying in %.1f seconds...",
                attempt,
                max_attempts,
                exc,
                wait_time,
            )
            await asyncio.sleep(wait_time)
        else:
            logging.info("Document table ensured (using %s).", database.CURRENT_DATABASE_URL)
            return


def create_app(
    store: Optional[DocumentStore] = None,
    *,
    scheduler_enabled: Optional[bool] = None,
    clock: Clock = utcnow,
) -> FastAPI:
    store = store if store is not None else _default_store()
    if scheduler_enabled is None:
        scheduler_enabled = _env_flag("SCHEDULER_ENABLED", "1")

    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.store = store
    # One notion of "now" for request handlers and background jobs.
    app.state.clock = clock
    app.state.scheduler = EventScheduler(
        EventService(EventRepository(store, clock=clock), clock=clock),
        AttendeeService(AttendeeRepository(store, clock=clock)),
        clock=clock,
    )

    # ----- CORS (enabled only if ALLOWED_ORIGINS is set) -----
    raw_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
    if raw_origins:
        allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
            max_age=86400,
        )

    register_error_handlers(app)

    # ----- Include routers -----
    app.include_router(events_router, prefix=API_PREFIX)
    app.include_router(categories_router, prefix=API_PREFIX)
    app.include_router(attendees_router, prefix=API_PREFIX)
    app.include_router(scheduler_router, prefix=API_PREFIX)

    @app.get("/", tags=["meta"])
    async def root():
        return {"name": APP_NAME, "version": APP_VERSION, "docs": "/docs"}

    @app.get("/health", tags=["meta"])
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    # ----- Startup: tables, then background jobs -----
    @app.on_event("startup")
    async def on_startup():
        if isinstance(store, SqlDocumentStore):
            await _ensure_tables()
        if scheduler_enabled:
            app.state.scheduler.start()
        else:
            logging.info("Scheduler disabled; jobs can still be run on demand.")

    # ----- Shutdown: stop background tasks -----
    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.scheduler.stop()

    return app


app = create_app()
