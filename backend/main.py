import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

import admin
import api
from auth import seed_admin
from cleanup import CleanupScheduler, run_cleanup_job
from clock import Clock
from config import Settings
from database import Database
from errors import register_error_handlers
from notifications import Notifier

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ================== LIFECYCLE ==================
@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    state.database.open()

    db = state.database.session()
    try:
        seed_admin(db, state.settings)
    finally:
        db.close()

    # once on startup, then on the interval
    run_cleanup_job(state.database, state.clock)
    if state.settings.CLEANUP_ENABLED:
        state.cleanup.start()

    logger.info("Booking service ready")
    yield

    state.cleanup.shutdown()
    state.database.close()


# ================== APP ==================
def create_app(settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    settings = settings or Settings()
    clock = clock or Clock(settings.TIMEZONE)

    app = FastAPI(title="Berberi", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.clock = clock
    app.state.database = Database(settings.DATABASE_URL)
    app.state.cleanup = CleanupScheduler(app.state.database, clock, settings.PURGE_INTERVAL_SECONDS)
    app.state.notifier = Notifier(settings)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)
    app.include_router(api.router)
    app.include_router(admin.router)
    return app


settings = Settings()
configure_logging(settings.LOG_LEVEL)
app = create_app(settings)
