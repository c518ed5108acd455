"""Scheduled daily selection rotation.

Eager counterpart of the lazy rotation in get_current(): when the active
selection has expired (or none exists) a new one is selected. Safe to run
concurrently with readers; the single-active index arbitrates.
"""

from datetime import datetime

from quotary.celery import celery_app
from quotary.db.session import get_session_factory
from quotary.logging import clear_task_context, configure_task_logging, get_logger
from quotary.schemas.daily_selection import RotationResultOut
from quotary.services.daily_selection import rotate_if_expired

logger = get_logger(__name__)


def run_rotation(now: datetime | None = None) -> RotationResultOut:
    """Open a worker session and rotate if the active selection expired."""
    db = get_session_factory()()
    try:
        return rotate_if_expired(db, now=now)
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=0, name="rotate_daily_selection")
def rotate_daily_selection(self, request_id: str | None = None) -> dict:
    """Beat entrypoint. Returns {rotated, selection_id}."""
    configure_task_logging(
        request_id=request_id,
        task_name="rotate_daily_selection",
        task_id=self.request.id,
    )
    try:
        logger.info("rotate_daily_selection_started")
        result = run_rotation()
        selection_id = str(result.selection.selection_id) if result.selection else None
        logger.info(
            "rotate_daily_selection_completed",
            rotated=result.rotated,
            selection_id=selection_id,
        )
        return {"rotated": result.rotated, "selection_id": selection_id}
    finally:
        clear_task_context()
