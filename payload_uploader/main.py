"""
FastAPI application entry point.

Serves the same upload pipeline as the Lambda handler over plain HTTP,
for local development and container deployments.

For local development:
    STORAGE_MOCK_MODE=true uvicorn payload_uploader.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response

from .api.routes import health, uploads
from .config.settings import get_settings
from .core.upload.errors import UploadError
from .service import apply_log_level

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    apply_log_level(settings)

    logger.info(
        "Payload uploader starting",
        extra={
            "region": settings.bucket_region,
            "compress_payload": settings.compress_payload,
            "mock_mode": settings.storage_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Uploads will fail with 500 until this is fixed
        logger.error(
            "Invalid configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Payload uploader shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Tests call this directly and override dependencies on the result.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Creates a bucket per request and uploads the request body into it.

        - `POST /api/v1/uploads` uses the variant selected by `COMPRESS_PAYLOAD`
        - `POST /api/v1/uploads/raw` stores the body as received
        - `POST /api/v1/uploads/compressed` stores the Zstandard-compressed body
          prefixed with the placeholder key (no encryption is applied)
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        uploads.router,
        prefix="/api/v1/uploads",
        tags=["Uploads"],
    )

    @app.exception_handler(UploadError)
    async def upload_error_handler(request, exc):
        """Config failures raised from dependencies end up here."""
        logger.error(
            "Upload failed",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return Response(status_code=500)

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Same surface as any pipeline failure: status 500, empty body.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )
        return Response(status_code=500)

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "payload_uploader.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
