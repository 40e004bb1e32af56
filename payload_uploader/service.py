"""
Wiring between settings, the storage backend and the upload pipeline.

Both entrypoints (the Lambda handler and the FastAPI routes) go through
handle_upload(), so the config-load step and its failure mapping live in
one place.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from .config.settings import Settings, get_settings
from .core.upload.errors import ConfigError
from .core.upload.models import UploadResult
from .core.upload.naming import NamingScheme, make_target_factory, utc_now
from .core.upload.pipeline import UploadPipeline
from .core.upload.transform import PayloadTransform, ZstdCompressor
from .infrastructure.storage.client import (
    StorageClient,
    StorageConfig,
    create_storage_client,
)

logger = logging.getLogger(__name__)

# Shared across invocations in mock mode so uploads can be inspected
_mock_storage_client = None
_mock_storage_lock = threading.Lock()


def load_settings() -> Settings:
    """Load cached settings, mapping validation failures to ConfigError."""
    try:
        return get_settings()
    except ValidationError as e:
        logger.error("Failed to load settings", extra={"error": str(e)})
        raise ConfigError(f"Invalid configuration: {e}") from e


def apply_log_level(settings: Settings) -> None:
    """
    Set the root logger level from LOG_LEVEL.

    The Lambda runtime installs its own root handler before our module
    loads, so basicConfig(level=...) there does nothing.
    """
    try:
        logging.getLogger().setLevel(settings.log_level.upper())
    except ValueError:
        logger.warning("Unknown log level", extra={"log_level": settings.log_level})


def build_storage_client(settings: Settings) -> StorageClient:
    """Return the S3 client, or the shared in-memory one in mock mode."""
    global _mock_storage_client

    if settings.storage_mock_mode:
        with _mock_storage_lock:
            if _mock_storage_client is None:
                _mock_storage_client = create_storage_client(mock_mode=True)
                logger.info("Created shared mock storage client")
            return _mock_storage_client

    config = StorageConfig(
        region=settings.bucket_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
    )
    return create_storage_client(config=config)


def reset_mock_storage() -> None:
    global _mock_storage_client
    with _mock_storage_lock:
        _mock_storage_client = None


def build_pipeline(
    settings: Settings,
    storage: StorageClient,
    compress: bool,
    clock: Callable[[], datetime] = utc_now,
) -> UploadPipeline:
    """
    Assemble the raw or compressed variant.

    The variants differ in two places only: the transform step and the
    object key suffix.
    """
    scheme = NamingScheme(
        bucket_prefix=settings.bucket_prefix,
        object_prefix=settings.object_prefix,
        object_suffix=settings.compressed_suffix if compress else "",
        timestamp_format=settings.timestamp_format,
        unique=settings.unique_names,
    )

    transform = None
    if compress:
        transform = PayloadTransform(
            key=settings.transform_key_bytes,
            compressor=ZstdCompressor(level=settings.compression_level),
        )

    return UploadPipeline(
        storage=storage,
        region=settings.bucket_region,
        target_factory=make_target_factory(scheme, clock),
        transform=transform,
        success_message=settings.success_message,
        cleanup_on_failure=settings.cleanup_on_failure,
    )


def handle_upload(
    body: bytes,
    compress: Optional[bool] = None,
    settings: Optional[Settings] = None,
    storage: Optional[StorageClient] = None,
    clock: Callable[[], datetime] = utc_now,
) -> UploadResult:
    """
    Run one upload end to end and return the response to send.

    compress=None means "use settings.compress_payload". A ConfigError
    while loading settings or building the client yields a bare 500, the
    same as any later stage failure.
    """
    try:
        if settings is None:
            settings = load_settings()
        if storage is None:
            storage = build_storage_client(settings)
    except ConfigError as e:
        logger.error("Upload aborted during config load", extra={"error": str(e)})
        return UploadResult.failed()

    if compress is None:
        compress = settings.compress_payload

    pipeline = build_pipeline(settings, storage, compress=compress, clock=clock)
    return pipeline.run(body)
