"""Role checks for authenticated viewers."""

from quotary.auth.middleware import Viewer
from quotary.errors import ApiErrorCode, ForbiddenError


def require_admin(viewer: Viewer) -> None:
    """Raise unless the viewer holds the admin role."""
    if not viewer.is_admin:
        raise ForbiddenError(ApiErrorCode.E_ADMIN_REQUIRED, "Admin role required")
