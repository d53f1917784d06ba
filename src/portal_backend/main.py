"""FastAPI application for the recruiting portal core."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import structlog

from portal_backend.core.config import settings
from portal_backend.core.database import close_db, db_manager, init_db
from portal_backend.core.error_handling import PortalError
from portal_backend.core.logging import configure_logging
from portal_backend.api.applications import router as applications_router
from portal_backend.api.cycles import router as cycles_router
from portal_backend.api.dashboard import router as dashboard_router
from portal_backend.api.profile import router as profile_router
from portal_backend.api.questions import router as questions_router
from portal_backend.api.reviews import router as reviews_router

logger = structlog.get_logger(__name__)

# HTTP status for each PortalError code
ERROR_STATUS_CODES = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "already_submitted": status.HTTP_409_CONFLICT,
    "no_active_cycle": status.HTTP_409_CONFLICT,
    "out_of_range": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "empty_content": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "submission_closed": status.HTTP_409_CONFLICT,
}


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.code, status.HTTP_400_BAD_REQUEST)
    logger.info(
        "Request rejected",
        path=request.url.path,
        code=exc.code,
        status_code=status_code,
        error=exc.message
    )
    body = exc.to_dict()
    if exc.code == "no_active_cycle":
        # Autosave clients keep their local copy and retry later.
        body["saved"] = False
    return JSONResponse(status_code=status_code, content=body)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning(
        "Request rejected",
        path=request.url.path,
        code="invalid_request",
        status_code=status.HTTP_400_BAD_REQUEST,
        error=str(exc)
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"code": "invalid_request", "message": str(exc)}
    )


def create_app(initialize_database: bool = True) -> FastAPI:
    """Build the application.

    Args:
        initialize_database: Open the configured database on startup; tests
            pass False and override ``get_db`` instead
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if initialize_database:
            init_db()
        logger.info("Recruiting portal started")
        yield
        if initialize_database:
            close_db()
        logger.info("Recruiting portal stopped")

    app = FastAPI(
        title="Recruiting Portal API",
        description="Application lifecycle and review pipeline",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    app.include_router(cycles_router)
    app.include_router(questions_router)
    app.include_router(applications_router)
    app.include_router(reviews_router)
    app.include_router(dashboard_router)
    app.include_router(profile_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        database_ok = db_manager.health_check() if initialize_database else True
        return {
            "status": "healthy" if database_ok else "degraded",
            "service": "recruiting-portal",
            "database": database_ok,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "portal_backend.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
