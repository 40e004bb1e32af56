"""
Upload endpoints.

The request body is taken as opaque bytes: no schema, no size limit.
Responses are plain text. Failures return 500 with an empty body; the
reason is only in the server log.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from ...service import handle_upload
from ..dependencies import ClockDep, SettingsDep, StorageClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


async def _upload(
    request: Request,
    settings: SettingsDep,
    storage: StorageClientDep,
    clock: ClockDep,
    compress: Optional[bool],
) -> Response:
    body = await request.body()

    # The pipeline blocks on S3 calls; keep it off the event loop
    result = await run_in_threadpool(
        handle_upload,
        body,
        compress=compress,
        settings=settings,
        storage=storage,
        clock=clock,
    )

    if not result.succeeded:
        return Response(status_code=result.status_code)

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type="text/plain",
    )


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Upload payload (configured variant)",
    description="Creates a bucket and stores the body, compressed if COMPRESS_PAYLOAD is set.",
)
async def upload(
    request: Request,
    settings: SettingsDep,
    storage: StorageClientDep,
    clock: ClockDep,
) -> Response:
    return await _upload(request, settings, storage, clock, compress=None)


@router.post(
    "/raw",
    status_code=status.HTTP_200_OK,
    summary="Upload payload as received",
)
async def upload_raw(
    request: Request,
    settings: SettingsDep,
    storage: StorageClientDep,
    clock: ClockDep,
) -> Response:
    return await _upload(request, settings, storage, clock, compress=False)


@router.post(
    "/compressed",
    status_code=status.HTTP_200_OK,
    summary="Compress and upload payload",
    description="Zstandard-compresses the body and prefixes the placeholder key. No encryption is applied.",
)
async def upload_compressed(
    request: Request,
    settings: SettingsDep,
    storage: StorageClientDep,
    clock: ClockDep,
) -> Response:
    return await _upload(request, settings, storage, clock, compress=True)
