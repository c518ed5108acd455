"""Test helpers for authentication.

Provides:
- Token minting for test authentication
- Header generation for test requests
- A test app wired to the test session
"""

import time
from uuid import UUID, uuid4

import jwt
from fastapi import FastAPI
from sqlalchemy.orm import Session

from quotary.app import create_app
from quotary.auth.middleware import AuthMiddleware
from quotary.db.session import get_db
from quotary.services.bootstrap import create_bootstrap_callback
from tests.support.test_verifier import MockJwtVerifier, generate_rsa_keypair

DEFAULT_ISSUER = "test-issuer"
DEFAULT_AUDIENCE = "test-audience"
DEFAULT_EXPIRES_IN = 3600


def _claims(user_id: UUID | str, expires_in: int, issuer: str, audience: str) -> dict:
    now = int(time.time())
    return {
        "sub": str(user_id),
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
    }


def mint_test_token(
    user_id: UUID | str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str = DEFAULT_ISSUER,
    audience: str = DEFAULT_AUDIENCE,
    **extra_claims,
) -> str:
    """Mint a JWT that MockJwtVerifier accepts (unless the claims say otherwise)."""
    payload = {**_claims(user_id, expires_in, issuer, audience), **extra_claims}
    return jwt.encode(payload, MockJwtVerifier.get_private_key(), algorithm="RS256")


def mint_expired_token(user_id: UUID | str) -> str:
    """Token that expired an hour ago."""
    return mint_test_token(user_id, expires_in=-3600)


def mint_token_with_bad_signature(user_id: UUID | str) -> str:
    """Token signed with a key the verifier does not know."""
    private_pem, _ = generate_rsa_keypair()
    payload = _claims(user_id, DEFAULT_EXPIRES_IN, DEFAULT_ISSUER, DEFAULT_AUDIENCE)
    return jwt.encode(payload, private_pem, algorithm="RS256")


def auth_headers(user_id: UUID | str, **token_kwargs) -> dict[str, str]:
    """Authorization header for the given user."""
    token = mint_test_token(user_id, **token_kwargs)
    return {"Authorization": f"Bearer {token}"}


def create_test_user_id() -> UUID:
    return uuid4()


def build_test_app(db_session: Session, verifier: MockJwtVerifier) -> FastAPI:
    """App whose requests and user bootstrap run on the test session."""
    app = create_app(skip_auth_middleware=True)
    app.add_middleware(
        AuthMiddleware,
        verifier=verifier,
        requires_internal_header=False,
        internal_secret=None,
        bootstrap_callback=create_bootstrap_callback(db_session),
    )
    app.dependency_overrides[get_db] = lambda: db_session
    return app
