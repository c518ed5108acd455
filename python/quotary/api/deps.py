"""FastAPI dependencies for route handlers."""

from typing import Annotated

from fastapi import Depends

from quotary.auth.middleware import Viewer, get_viewer
from quotary.auth.permissions import require_admin
from quotary.db.session import get_db, get_session_factory

__all__ = ["get_db", "get_session_factory", "get_admin_viewer"]


def get_admin_viewer(viewer: Annotated[Viewer, Depends(get_viewer)]) -> Viewer:
    """Authenticated viewer that must hold the admin role."""
    require_admin(viewer)
    return viewer
