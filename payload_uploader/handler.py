"""
AWS Lambda entrypoints (API Gateway proxy integration).

Configure the function handler as one of:
    payload_uploader.handler.lambda_handler      variant from COMPRESS_PAYLOAD
    payload_uploader.handler.compressed_handler  always compress
    payload_uploader.handler.raw_handler         never compress
"""

import base64
import binascii
import logging
from typing import Any, Optional

from .core.upload.errors import ConfigError
from .core.upload.models import UploadResult
from .service import apply_log_level, handle_upload, load_settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def extract_body(event: dict[str, Any]) -> Optional[bytes]:
    """
    Pull the raw request body out of a proxy event.

    A missing body is an empty payload. Returns None only when the event
    claims base64 but the body does not decode.
    """
    body = event.get("body") or ""

    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error("Request body is not valid base64", extra={"error": str(e)})
            return None

    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")


def to_proxy_response(result: UploadResult) -> dict[str, Any]:
    return {
        "statusCode": result.status_code,
        "body": result.body,
    }


def _handle(event: dict[str, Any], compress: Optional[bool]) -> dict[str, Any]:
    try:
        settings = load_settings()
    except ConfigError:
        return to_proxy_response(UploadResult.failed())

    apply_log_level(settings)

    body = extract_body(event or {})
    if body is None:
        return to_proxy_response(UploadResult.failed())

    result = handle_upload(body, compress=compress, settings=settings)
    return to_proxy_response(result)


def lambda_handler(event, context):
    """Upload the request body using the configured variant."""
    return _handle(event, compress=None)


def compressed_handler(event, context):
    """Compress, apply the placeholder encrypt stage, then upload."""
    return _handle(event, compress=True)


def raw_handler(event, context):
    """Upload the request body as received."""
    return _handle(event, compress=False)
