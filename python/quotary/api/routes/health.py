"""Health check endpoint."""

from fastapi import APIRouter

from quotary.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness only; does not touch the database."""
    return success_response({"status": "ok"})
