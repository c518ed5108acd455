"""Viewer-scoped endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotary.api.deps import get_db
from quotary.auth.middleware import Viewer, get_viewer
from quotary.responses import success_response
from quotary.services import relations as relations_service

router = APIRouter()


@router.get("/me")
async def get_me(viewer: Annotated[Viewer, Depends(get_viewer)]) -> dict:
    """Authenticated user's id and role."""
    return success_response({"user_id": str(viewer.user_id), "role": viewer.role})


@router.get("/me/relations/{kind}")
def list_my_relations(
    kind: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    page: int = 1,
    limit: int = relations_service.DEFAULT_PAGE_SIZE,
) -> dict:
    """Targets the viewer follows/bookmarked/liked, newest first.

    page < 1 is treated as 1; limit is clamped to [1, RELATION_LIST_MAX_LIMIT].
    """
    result = relations_service.list_related_targets(
        db, kind, viewer.user_id, page=page, limit=limit
    )
    return success_response(result)
