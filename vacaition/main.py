"""
FastAPI application entry point for the VacAItion backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from vacaition.config import settings
from vacaition.routes.health import router as health_router
from vacaition.routes.recommendations import router as recommendations_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    Environment-based configuration:
    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS env var
    - ENVIRONMENT=testing/development: Allows all origins for local dev

    Returns:
        List of allowed origin URLs, or ["*"] for development.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            # The web client is served from its own origin and must be listed explicitly
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the web client."
            )
        return origins

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


# Create FastAPI app
app = FastAPI(
    title="VacAItion API",
    description="AI-generated activity and vacation recommendations",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Reject malformed or invalid request bodies.

    Malformed JSON answers 400; well-formed JSON with invalid fields answers
    422. Only error locations and types are logged, never the submitted values.
    """
    errors = exc.errors()
    malformed = any(error.get("type") == "json_invalid" for error in errors)

    logger.error(
        f"Validation error on {request.method} {request.url.path}: "
        f"{[(error.get('loc'), error.get('type')) for error in errors]}"
    )

    return JSONResponse(
        status_code=(
            status.HTTP_400_BAD_REQUEST if malformed
            else status.HTTP_422_UNPROCESSABLE_ENTITY
        ),
        content={
            "error": "malformed_json" if malformed else "validation_error",
            "details": jsonable_encoder(
                [{"loc": error.get("loc"), "msg": error.get("msg"), "type": error.get("type")}
                 for error in errors]
            ),
        }
    )

# Configure CORS with environment-based origins
cors_origins = _get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(recommendations_router)

logger.info("FastAPI app initialized successfully")
