"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salon_settlement import __version__
from salon_settlement.api.routes import checkout_router, health_router, payroll_router
from salon_settlement.database import dispose_db, init_db
from salon_settlement.errors import (
    ReferentialError,
    ResolutionError,
    SettlementError,
    StateConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Error category → HTTP status
ERROR_STATUS: dict[type[SettlementError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ResolutionError: 422,
    ReferentialError: status.HTTP_404_NOT_FOUND,
    StateConflictError: status.HTTP_409_CONFLICT,
}


def field_path(loc: tuple[str | int, ...]) -> str:
    """Render a pydantic error location as `items[0].quantity`."""
    if loc and loc[0] in ("body", "query", "path", "header"):
        loc = loc[1:]
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def status_for(exc: SettlementError) -> int:
    """HTTP status for an engine error, by category."""
    for category, code in ERROR_STATUS.items():
        if isinstance(exc, category):
            return code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Salon Settlement API",
        description="Checkout pricing and payroll settlement for salons",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(SettlementError)
    async def settlement_exception_handler(
        request: Request, exc: SettlementError
    ) -> JSONResponse:
        """Map engine rejections to their category status."""
        return JSONResponse(
            status_code=status_for(exc),
            content={
                "detail": exc.message,
                "code": exc.code,
                "context": exc.context,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests in the same shape as engine validation errors."""
        errors = [
            {"field": field_path(tuple(err["loc"])), "message": err["msg"]}
            for err in exc.errors()
        ]
        first = errors[0] if errors else {"field": "", "message": "Invalid request"}
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": first["message"],
                "code": "REQUEST_VALIDATION_ERROR",
                "context": {"field": first["field"], "errors": errors},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(checkout_router, prefix="/api/v1")
    app.include_router(payroll_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
