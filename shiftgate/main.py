"""
ShiftGate FastAPI application entry point.

Pipeline: roster → applicable requirements → status rows → legal / operational
readiness → setup readiness summary
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shiftgate import __version__
from shiftgate.config import get_settings
from shiftgate.db.session import check_db_connection, engine
from shiftgate.services.readiness.errors import ReadinessError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("ShiftGate starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise
        yield
    finally:
        logger.info("ShiftGate shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


async def readiness_error_handler(request: Request, exc: ReadinessError) -> JSONResponse:
    """Render ReadinessError as {ok: false, step, error, message}."""
    if exc.status_code >= 500:
        logger.warning(
            "Readiness request failed path=%s step=%s error=%s",
            request.url.path,
            exc.step,
            exc.code,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


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
    app.add_exception_handler(ReadinessError, readiness_error_handler)

    # Mount API routes
    from shiftgate.api.competence import router as competence_router
    from shiftgate.api.compliance import router as compliance_router
    from shiftgate.api.setup import router as setup_router

    app.include_router(compliance_router, prefix="/api/compliance", tags=["compliance"])
    app.include_router(competence_router, prefix="/api/competence", tags=["competence"])
    app.include_router(setup_router, prefix="/api/setup", tags=["setup"])

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
