"""
FastAPI dependency injection.

Routes receive settings and the storage client through these functions,
which means tests can swap either one with app.dependency_overrides and
never touch AWS.
"""

import logging
from datetime import datetime
from typing import Annotated, Callable

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.upload.naming import utc_now
from ..infrastructure.storage.client import StorageClient
from ..service import build_storage_client

logger = logging.getLogger(__name__)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide the storage client for uploads.

    In mock mode the same in-memory client is reused across requests so
    uploaded objects can be inspected. A ConfigError raised here is
    turned into a bare 500 by the app's exception handler.
    """
    client = build_storage_client(settings)
    logger.debug(
        "Resolved storage client",
        extra={"mock_mode": settings.storage_mock_mode}
    )
    return client


def get_clock() -> Callable[[], datetime]:
    """Time source for naming. Overridden in tests to pin the timestamp."""
    return utc_now


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_settings)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]
