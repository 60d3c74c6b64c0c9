"""Health check router."""

from fastapi import APIRouter

from taskhub.utils.time import utc_now_iso

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness endpoint. Does not touch the database."""
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": utc_now_iso(),
    }
