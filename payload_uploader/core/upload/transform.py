"""
Payload transforms applied before upload.

The compressed variant runs two stages: Zstandard compression, then an
"encrypt" stage. The encrypt stage is a placeholder. PassthroughCipher
returns its input unchanged, so uploaded payloads are compressed but NOT
encrypted. Anything that needs confidentiality has to plug in a real Cipher.

Output layout: key bytes followed by the cipher output.
"""

import io
import logging
from typing import Optional, Protocol

import zstandard

from .errors import CompressionError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class Transform(Protocol):
    """Anything that turns the raw request body into the stored bytes."""

    def apply(self, data: bytes) -> bytes:
        ...


class Compressor(Protocol):
    def compress(self, data: bytes) -> bytes:
        ...


class Cipher(Protocol):
    def encrypt(self, data: bytes, key: bytes) -> bytes:
        ...


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

class ZstdCompressor:
    """
    Zstandard compression via the streaming writer.

    The writer is used as a context manager so the frame is finalized
    even if a write fails partway. closefd=False keeps the BytesIO open
    after the writer closes so the buffered output can be read back.
    """

    def __init__(self, level: int = 3) -> None:
        self.level = level

    def compress(self, data: bytes) -> bytes:
        try:
            cctx = zstandard.ZstdCompressor(level=self.level)
        except (zstandard.ZstdError, ValueError) as e:
            logger.error(
                "Zstandard compressor initialization failed",
                extra={"level": self.level, "error": str(e)},
            )
            raise CompressionError(f"zstandard compression initialization error: {e}") from e

        buffer = io.BytesIO()
        try:
            with cctx.stream_writer(buffer, size=len(data), closefd=False) as writer:
                writer.write(data)
        except zstandard.ZstdError as e:
            logger.error(
                "Zstandard compression failed",
                extra={"size_bytes": len(data), "error": str(e)},
            )
            raise CompressionError(f"zstandard compression error: {e}") from e

        return buffer.getvalue()


class PassthroughCipher:
    """Placeholder encryption. Returns the data untouched."""

    def encrypt(self, data: bytes, key: bytes) -> bytes:
        return data


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

class PayloadTransform:
    """
    Compress, then "encrypt", then prepend the key.

    The key is injected at construction (from settings) rather than
    living as a literal in this module.
    """

    def __init__(
        self,
        key: bytes,
        compressor: Optional[Compressor] = None,
        cipher: Optional[Cipher] = None,
    ) -> None:
        self.key = key
        self.compressor = compressor or ZstdCompressor()
        self.cipher = cipher or PassthroughCipher()

    def apply(self, data: bytes) -> bytes:
        compressed = self.compressor.compress(data)
        encrypted = self.cipher.encrypt(compressed, self.key)

        logger.debug(
            "Transformed payload",
            extra={
                "input_bytes": len(data),
                "compressed_bytes": len(compressed),
            },
        )

        return self.key + encrypted


def decompress_payload(stored: bytes, key: bytes) -> bytes:
    """
    Invert PayloadTransform for the passthrough cipher.

    Strips the key prefix and decompresses what is left. Raises
    ValueError if the prefix does not match.
    """
    if not stored.startswith(key):
        raise ValueError("payload does not start with the expected key")

    dctx = zstandard.ZstdDecompressor()
    return dctx.decompressobj().decompress(stored[len(key):])
