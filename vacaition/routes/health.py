"""
Health check route for the VacAItion backend.

This endpoint provides a simple status check for load balancers, monitoring,
and deployment verification. It never calls the completion service; it only
reports whether one is configured.
"""

from fastapi import APIRouter

from vacaition.config import settings
from vacaition.schemas.health import HealthResponse
from vacaition.utils.logging import get_logger

logger = get_logger(__name__)

# Create router with no prefix (mounted at root level in main.py)
router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Returns a simple status indicator for monitoring and load balancing, "
        "plus whether the completion service is configured."
    ),
    status_code=200,
)
async def health_check() -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "ok",
            "completion_service_configured": true
        }
    """
    logger.debug("Health check endpoint called")

    return HealthResponse(
        status="ok",
        completion_service_configured=bool(settings.GOOGLE_API_KEY),
    )
