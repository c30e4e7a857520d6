"""Health endpoint and the versioned API router."""

from datetime import datetime, timezone

from fastapi import APIRouter

from vidtube.api.comments import router as comments_router
from vidtube.api.responses import envelope
from vidtube.api.subscriptions import router as subscriptions_router
from vidtube.api.users import router as users_router
from vidtube.api.videos import router as videos_router

API_PREFIX = "/api/v1"

router = APIRouter()

api_router = APIRouter(prefix=API_PREFIX)
api_router.include_router(users_router)
api_router.include_router(videos_router)
api_router.include_router(comments_router)
api_router.include_router(subscriptions_router)


@router.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format and database state
    """
    from vidtube.database import health_check as db_health_check

    db_healthy = await db_health_check()
    health_status = {
        "status": "healthy" if db_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "healthy" if db_healthy else "unhealthy",
    }
    return envelope(health_status, "Service health")
