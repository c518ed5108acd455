"""Authentication and authorization.

- JwksVerifier: JWT verification against the identity provider's JWKS
- AuthMiddleware / Viewer / get_viewer: request authentication
- require_admin: role check for admin-only operations

Test-only verifiers are in tests/support/test_verifier.py.
"""

from quotary.auth.middleware import AuthMiddleware, Viewer, get_viewer
from quotary.auth.permissions import require_admin
from quotary.auth.verifier import JwksVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "require_admin",
    "JwksVerifier",
    "TokenVerifier",
]
