"""FastAPI application creation and configuration.

Registers exception handlers, routes, auth middleware and request-id
middleware.

Middleware ordering:
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added last (via add_request_id_middleware) so it
  runs first and every response, including auth failures, carries
  X-Request-ID

Per request:
1. RequestIDMiddleware (binds request_id, starts timer)
2. AuthMiddleware (verifies token, bootstraps user, sets viewer)
3. Route handler
"""

from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quotary.api.routes import create_api_router
from quotary.auth.middleware import AuthMiddleware
from quotary.auth.verifier import JwksVerifier
from quotary.config import get_settings
from quotary.db.session import get_session_factory
from quotary.errors import ApiError, ApiErrorCode
from quotary.logging import configure_logging, get_logger
from quotary.middleware.request_id import RequestIDMiddleware
from quotary.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)
from quotary.services.bootstrap import ensure_user

configure_logging()

logger = get_logger(__name__)


def create_bootstrap_callback():
    """Bootstrap callback that opens its own session per call."""
    session_factory = get_session_factory()

    def bootstrap(user_id: UUID) -> str:
        db = session_factory()
        try:
            return ensure_user(db, user_id)
        finally:
            db.close()

    return bootstrap


def create_token_verifier() -> JwksVerifier:
    """JWKS verifier configured from settings (same in every environment)."""
    settings = get_settings()
    return JwksVerifier(
        jwks_url=settings.auth_jwks_url,  # type: ignore[arg-type]
        issuer=settings.normalized_issuer,  # type: ignore[arg-type]
        audiences=settings.audience_list,
    )


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier=None,
    bootstrap_callback=None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        bootstrap_callback: Optional user bootstrap callback (for testing).
    """
    settings = get_settings()

    app = FastAPI(
        title="Quotary API",
        description="Quotes, authors, engagement counters and the daily featured quote",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Query/path validation failures use the 400 envelope."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request"),
        )

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        app.add_middleware(
            AuthMiddleware,
            verifier=token_verifier or create_token_verifier(),
            requires_internal_header=settings.requires_internal_header,
            internal_secret=settings.quotary_internal_secret,
            bootstrap_callback=bootstrap_callback or create_bootstrap_callback(),
        )
        logger.info(
            "auth_middleware_enabled",
            env=settings.quotary_env.value,
            internal_header_required=settings.requires_internal_header,
        )

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware. Call after all other middleware."""
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
