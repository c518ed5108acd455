"""Daily selection API routes.

GET /daily-selection/current is public and rotates lazily when the
active selection has expired. Forcing a new selection is admin-only.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotary.api.deps import get_admin_viewer, get_db
from quotary.auth.middleware import Viewer, get_viewer
from quotary.responses import success_response
from quotary.services import daily_selection as daily_selection_service

router = APIRouter(tags=["daily-selection"])


@router.get("/daily-selection/current")
def get_current_selection(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Featured quote with its selection window.

    Errors:
        E_NO_SELECTION_CANDIDATES (404): No quotes exist.
    """
    result = daily_selection_service.get_current(db)
    return success_response(result)


@router.post("/daily-selection", status_code=201)
def force_new_selection(
    viewer: Annotated[Viewer, Depends(get_admin_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Deactivate the current selection and pick a new one.

    Errors:
        E_ADMIN_REQUIRED (403): Viewer is not an admin.
        E_NO_SELECTION_CANDIDATES (404): No quotes exist.
    """
    result = daily_selection_service.select_new(db)
    return success_response(result)


@router.get("/daily-selection/history")
def get_selection_history(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    limit: int = daily_selection_service.DEFAULT_HISTORY_LIMIT,
) -> dict:
    """Past selections, newest first. limit is clamped to the configured max."""
    records = daily_selection_service.get_history(db, limit=limit)
    return success_response([record.model_dump(mode="json") for record in records])
