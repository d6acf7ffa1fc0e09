"""
Health check endpoint schemas.

The health endpoint is public and returns a status indicator plus whether
the completion service is configured.
"""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """
    Response model for GET /health endpoint.

    Used by load balancers, monitoring systems, and deployment checks.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "completion_service_configured": True
            }
        }
    )

    status: str = Field(
        default="ok",
        description="Health status of the API (always 'ok' if responding)",
        examples=["ok"]
    )
    completion_service_configured: bool = Field(
        ...,
        description="Whether GOOGLE_API_KEY is set; recommendations fail without it"
    )
