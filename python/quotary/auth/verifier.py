"""Token verification.

Provides:
- TokenVerifier: Protocol for token verification
- JwksVerifier: Verifier backed by the identity provider's JWKS endpoint

Test-only verifiers live in tests/support/test_verifier.py.
"""

import threading
from typing import Any, Protocol
from uuid import UUID

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)

from quotary.errors import ApiError, ApiErrorCode
from quotary.logging import get_logger

logger = get_logger(__name__)

CLOCK_SKEW_SECONDS = 60
ALLOWED_ALGORITHMS = ["RS256", "ES256"]


class TokenVerifier(Protocol):
    """Verifies a bearer token and returns its claims."""

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
            ApiError(E_AUTH_UNAVAILABLE): JWKS endpoint unreachable.
        """
        ...


def _reject(reason: str, message: str, exc: Exception | None = None) -> ApiError:
    logger.warning("auth_failure", reason=reason)
    error = ApiError(ApiErrorCode.E_UNAUTHENTICATED, message)
    if exc is not None:
        error.__cause__ = exc
    return error


class JwksVerifier:
    """Verifies RS256/ES256 JWTs against a JWKS endpoint.

    Checks signature, exp (with clock skew), iss, aud, and that sub is a UUID.
    A kid that is not in the cached key set triggers one refresh.
    """

    def __init__(
        self,
        jwks_url: str,
        issuer: str,
        audiences: list[str],
        cache_ttl: int = 3600,
    ):
        self.jwks_url = jwks_url
        self.issuer = issuer.rstrip("/")
        self.audiences = audiences
        self.cache_ttl = cache_ttl

        self._jwks_client: PyJWKClient | None = None
        self._jwks_lock = threading.Lock()

    def _new_client(self) -> PyJWKClient:
        return PyJWKClient(self.jwks_url, cache_keys=True, lifespan=self.cache_ttl)

    def _get_jwks_client(self) -> PyJWKClient:
        with self._jwks_lock:
            if self._jwks_client is None:
                self._jwks_client = self._new_client()
            return self._jwks_client

    def _refresh_jwks(self) -> PyJWKClient:
        with self._jwks_lock:
            self._jwks_client = self._new_client()
            return self._jwks_client

    def _get_signing_key(self, token: str) -> Any:
        try:
            return self._get_jwks_client().get_signing_key_from_jwt(token)
        except PyJWKClientError as e:
            if "Unable to find" not in str(e) and "kid" not in str(e).lower():
                raise
            logger.info("jwks_refresh", reason="kid_miss")

        try:
            return self._refresh_jwks().get_signing_key_from_jwt(token)
        except PyJWKClientError as e:
            raise _reject("kid_not_found", "Invalid token: signing key not found", e) from e

    def verify(self, token: str) -> dict[str, Any]:
        try:
            signing_key = self._get_signing_key(token)
        except PyJWKClientError as e:
            logger.warning("auth_failure", reason="jwks_unavailable", error=str(e))
            raise ApiError(
                ApiErrorCode.E_AUTH_UNAVAILABLE, "Authentication service unavailable"
            ) from e
        except DecodeError as e:
            raise _reject("decode_error", "Invalid token format", e) from e

        try:
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=ALLOWED_ALGORITHMS,
                audience=self.audiences,
                issuer=self.issuer,
                leeway=CLOCK_SKEW_SECONDS,
                options={"require": ["exp", "iss", "sub"], "verify_aud": True},
            )
        except ExpiredSignatureError as e:
            raise _reject("expired_token", "Token expired", e) from e
        except InvalidSignatureError as e:
            raise _reject("invalid_signature", "Invalid token signature", e) from e
        except InvalidIssuerError as e:
            raise _reject("invalid_issuer", "Invalid token issuer", e) from e
        except InvalidAudienceError as e:
            raise _reject("invalid_audience", "Invalid token audience", e) from e
        except DecodeError as e:
            raise _reject("decode_error", "Invalid token format", e) from e
        except InvalidTokenError as e:
            raise _reject("invalid_token", "Invalid token", e) from e

        return validate_subject(payload)


def validate_subject(payload: dict[str, Any]) -> dict[str, Any]:
    """Ensure the sub claim is present and a UUID."""
    sub = payload.get("sub")
    if not sub:
        raise _reject("missing_sub", "Invalid token: missing sub")
    try:
        UUID(sub)
    except (ValueError, TypeError) as e:
        raise _reject("invalid_sub", "Invalid token: sub is not a valid UUID", e) from e
    return payload
