"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import api_router
from core import BadRequestError, GatewayError, Settings, settings as default_settings
from core.logging_config import configure_logging
from db import create_engine_from_settings, create_session_maker
from services.auth import SessionTokenIssuer

logger = logging.getLogger(__name__)


async def _gateway_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, GatewayError) else GatewayError()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail, "code": error.code},
        headers=error.headers,
    )


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report malformed input as a classified 400 without echoing submitted values."""
    issues = exc.errors() if isinstance(exc, RequestValidationError) else []
    fields = sorted(
        {
            ".".join(str(part) for part in issue.get("loc", ()) if part != "body")
            for issue in issues
        }
        - {""}
    )
    logger.info("Validation error on %s: %d issues", request.url.path, len(issues))
    detail = "Invalid request"
    if fields:
        detail = "Invalid request: " + ", ".join(fields)
    return await _gateway_error_handler(request, BadRequestError(detail))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error while processing request",
        extra={"method": request.method, "path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "internal"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; engine, sessions and token issuer are created once here."""
    app_settings = settings or default_settings
    configure_logging(app_settings.log_level)

    application = FastAPI(title="filegate")
    engine = create_engine_from_settings(app_settings)
    application.state.settings = app_settings
    application.state.engine = engine
    application.state.session_maker = create_session_maker(engine)
    application.state.session_issuer = SessionTokenIssuer.from_settings(app_settings)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(GatewayError, _gateway_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)
    application.include_router(api_router)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
