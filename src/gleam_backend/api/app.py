"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gleam_backend.api.history import router as history_router
from gleam_backend.api.plans import router as plans_router
from gleam_backend.api.scans import router as scans_router
from gleam_backend.app_logging import configure_logging
from gleam_backend.config import parse_allowed_origins
from gleam_backend.containers import AppContainer
from gleam_backend.errors import GleamError, InternalError, InvalidInput


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    debug_errors = container.settings.environment == "local"

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.cors_allowed_origins),
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(scans_router)
    app.include_router(history_router)
    app.include_router(plans_router)

    @app.exception_handler(GleamError)
    async def handle_gleam_error(request: Request, exc: GleamError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error(
                "Request failed with internal error",
                exc_info=exc,
                extra={
                    "user_id": getattr(request.state, "user_id", None),
                    "operation": getattr(exc, "operation", None),
                    "path": request.url.path,
                },
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        detail = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _error_response(InvalidInput(detail or None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error",
            exc_info=exc,
            extra={
                "user_id": getattr(request.state, "user_id", None),
                "path": request.url.path,
            },
        )
        error = InternalError()
        if debug_errors:
            error = InternalError(f"{error.message} (debug: {type(exc).__name__})")
        return _error_response(error)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def _error_response(exc: GleamError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )
