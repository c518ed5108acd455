"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: bearer token + internal header verification on every
  non-public path
- Viewer: the authenticated identity attached to request.state
- get_viewer: dependency returning the Viewer
"""

import hmac
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from quotary.auth.verifier import TokenVerifier
from quotary.db.models import UserRole
from quotary.errors import ERROR_CODE_TO_STATUS, ApiError, ApiErrorCode
from quotary.logging import get_logger
from quotary.responses import error_response

logger = get_logger(__name__)

AUTHORIZATION_HEADER = "authorization"
INTERNAL_HEADER = "x-quotary-internal"

# Paths served without a bearer token
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/daily-selection/current",
}


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: The viewer's user ID (from JWT sub claim).
        role: Role stored on the users row.
    """

    user_id: UUID
    role: str = UserRole.user.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value


class AuthMiddleware(BaseHTTPMiddleware):
    """Authenticates every request outside PUBLIC_PATHS.

    Order of checks:
    1. Skip if public path
    2. Verify internal header (if required)
    3. Extract bearer token
    4. Verify token via TokenVerifier
    5. Bootstrap callback ensures the users row exists and yields the role
    6. Attach Viewer to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        requires_internal_header: bool = False,
        internal_secret: str | None = None,
        bootstrap_callback: Callable[[UUID], str] | None = None,
    ):
        """
        Args:
            app: The ASGI application.
            verifier: TokenVerifier implementation.
            requires_internal_header: Whether to enforce X-Quotary-Internal.
            internal_secret: The expected internal secret value.
            bootstrap_callback: Function(user_id) -> role.
        """
        super().__init__(app)
        self.verifier = verifier
        self.requires_internal_header = requires_internal_header
        self.internal_secret = internal_secret
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        try:
            if self.requires_internal_header:
                self._verify_internal_header(request)
            token = self._extract_bearer_token(request)
            payload = self.verifier.verify(token)
        except ApiError as e:
            return self._error_json_response(e.code, e.message)

        user_id = UUID(payload["sub"])

        if self.bootstrap_callback:
            try:
                role = self.bootstrap_callback(user_id)
            except Exception:
                logger.exception("user_bootstrap_failed", user_id=str(user_id))
                return self._error_json_response(
                    ApiErrorCode.E_INTERNAL, "Internal server error"
                )
        else:
            role = UserRole.user.value

        request.state.viewer = Viewer(user_id=user_id, role=role)
        return await call_next(request)

    def _verify_internal_header(self, request: Request) -> None:
        """Constant-time check of the internal secret header."""
        header_value = request.headers.get(INTERNAL_HEADER)

        if header_value is None:
            logger.warning(
                "auth_failure", reason="internal_header_missing", request_path=request.url.path
            )
            raise ApiError(ApiErrorCode.E_INTERNAL_ONLY, "Internal API access required")

        if not self.internal_secret:
            logger.error("internal_secret_not_configured")
            raise ApiError(ApiErrorCode.E_INTERNAL, "Internal server error")

        if not hmac.compare_digest(header_value.encode(), self.internal_secret.encode()):
            logger.warning(
                "auth_failure", reason="internal_header_mismatch", request_path=request.url.path
            )
            raise ApiError(ApiErrorCode.E_INTERNAL_ONLY, "Internal API access required")

    def _extract_bearer_token(self, request: Request) -> str:
        auth_header = request.headers.get(AUTHORIZATION_HEADER)

        if not auth_header:
            logger.warning("auth_failure", reason="missing_header", request_path=request.url.path)
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")

        scheme, _, token = auth_header.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            logger.warning(
                "auth_failure", reason="invalid_header_format", request_path=request.url.path
            )
            raise ApiError(
                ApiErrorCode.E_UNAUTHENTICATED, "Invalid authorization header format"
            )

        return token

    def _error_json_response(self, code: ApiErrorCode, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=ERROR_CODE_TO_STATUS.get(code, 500),
            content=error_response(code, message),
        )


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency returning the authenticated viewer.

    Raises:
        ApiError(E_UNAUTHENTICATED): Middleware did not attach a viewer.
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer
