"""Relation counter API routes.

One set of routes serves every relation kind (author_follow,
quote_bookmark, quote_like). Routes are transport-only: each calls exactly
one service function.

Errors:
    E_INVALID_KIND (400): Unknown relation kind in the path.
    E_TOO_MANY_IDS (400): Batch status query carries more ids than allowed.
    E_AUTHOR_NOT_FOUND / E_QUOTE_NOT_FOUND (404): Target does not exist.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from quotary.api.deps import get_db
from quotary.auth.middleware import Viewer, get_viewer
from quotary.config import get_settings
from quotary.errors import ApiErrorCode, InvalidRequestError
from quotary.responses import success_response
from quotary.schemas.relations import RelationCountOut
from quotary.services import relations as relations_service

router = APIRouter(tags=["relations"])


# Static path registered before /{target_id} routes
@router.get("/relations/{kind}/batch-status")
def get_batch_status(
    kind: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    ids: Annotated[list[UUID], Query(description="Target ids; repeat the parameter")] = [],
) -> dict:
    """Viewer's status for many targets: {target_id: bool} for every requested id.

    Errors:
        E_TOO_MANY_IDS (400): More ids than RELATION_BATCH_MAX_IDS.
    """
    max_ids = get_settings().relation_batch_max_ids
    if len(set(ids)) > max_ids:
        raise InvalidRequestError(
            ApiErrorCode.E_TOO_MANY_IDS, f"At most {max_ids} ids per request"
        )
    status = relations_service.get_batch_relation_status(db, kind, viewer.user_id, ids)
    return success_response({str(target_id): active for target_id, active in status.items()})


@router.post("/relations/{kind}/{target_id}/toggle")
def toggle_relation(
    kind: str,
    target_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Flip the viewer's relation. Returns {active, count}."""
    result = relations_service.toggle_relation(db, kind, viewer.user_id, target_id)
    return success_response(result)


@router.get("/relations/{kind}/{target_id}/status")
def get_status(
    kind: str,
    target_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Viewer's status and the target's counter. Returns {active, count}."""
    result = relations_service.get_relation_state(db, kind, viewer.user_id, target_id)
    return success_response(result)


@router.get("/relations/{kind}/{target_id}/count")
def get_count(
    kind: str,
    target_id: UUID,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Target's denormalized counter. Returns {count}."""
    count = relations_service.get_relation_count(db, kind, target_id)
    return success_response(RelationCountOut(count=count))


@router.post("/relations/{kind}/{target_id}", status_code=201)
def create_relation(
    kind: str,
    target_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create the relation. 409 E_RELATION_EXISTS if it already exists."""
    result = relations_service.create_relation(db, kind, viewer.user_id, target_id)
    return success_response(result)


@router.delete("/relations/{kind}/{target_id}", status_code=204)
def delete_relation(
    kind: str,
    target_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete the relation. 404 E_RELATION_NOT_FOUND if there is none."""
    relations_service.delete_relation(db, kind, viewer.user_id, target_id)
    return Response(status_code=204)
