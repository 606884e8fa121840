"""
FastAPI application entrypoint.

Creates and configures the FastAPI application with:
  - Lifespan management (settings validation, MongoDB, scheduler)
  - API router registration
  - Custom exception handlers
  - Health check endpoint
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.routes import router as agent_router
from app.core.exceptions import DatabaseError, DomainAgentError
from app.core.lifespan import lifespan
from app.core.logging import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI instance."""

    application = FastAPI(
        title="Domain Agent",
        description=(
            "Automated acquisition of expiring .au domains. Fetches the "
            "registry drop list daily, ranks new candidates, and places "
            "registration orders, recording every attempt."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Routes ───────────────────────────────────────────────
    application.include_router(agent_router, prefix="/api/v1")

    # ── Health Check ─────────────────────────────────────────
    @application.get(
        "/health",
        tags=["Health"],
        summary="Service health check",
        status_code=status.HTTP_200_OK,
    )
    async def health_check():
        """Return service health status."""
        return {"status": "healthy", "service": "domain-agent"}

    # ── Exception Handlers ───────────────────────────────────
    @application.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        logger.error("Database error on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is temporarily unavailable."},
        )

    @application.exception_handler(DomainAgentError)
    async def domain_agent_error_handler(request: Request, exc: DomainAgentError):
        """Handle all custom DomainAgent exceptions."""
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )

    @application.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all handler to prevent stack traces from leaking to clients."""
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal server error occurred."},
        )

    return application


# Create the app instance, referenced by uvicorn as app.main:app
app = create_app()
