"""
EstagioPro alerts FastAPI application entry point.

Sweep: internships → expiring within window → alerts (deduplicated) → WhatsApp links
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from estagiopro import __version__
from estagiopro.config import get_settings
from estagiopro.db.session import check_db_connection, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_alert_scheduler():
    """Alert scheduler wired to the configured cadence and a fresh session per sweep."""
    from estagiopro.services.alerts import AlertScheduler
    from estagiopro.services.alerts.jobs import run_alert_check

    settings = get_settings()
    return AlertScheduler(
        run_alert_check,
        initial_delay=settings.alert_initial_delay_seconds,
        interval=settings.alert_check_interval_hours * 60 * 60,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("EstagioPro alerts starting")
    scheduler = None
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise

        if get_settings().alert_scheduler_enabled:
            scheduler = build_alert_scheduler()
            scheduler.start()
        else:
            logger.info("Alert scheduler disabled (ALERT_SCHEDULER_ENABLED=false)")
        app.state.alert_scheduler = scheduler

        yield
    finally:
        logger.info("EstagioPro alerts shutting down")
        if scheduler is not None:
            scheduler.stop()
        engine.dispose()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    from estagiopro.api.alerts import router as alerts_router

    app.include_router(alerts_router, prefix="/api/alerts", tags=["alerts"])

    # Internal job endpoints (cron/scripts — token-authenticated)
    from estagiopro.api.internal import router as internal_router

    app.include_router(internal_router, tags=["internal"])

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint. Confirms DB connectivity."""
        from sqlalchemy import text

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            from fastapi.responses import JSONResponse

            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
