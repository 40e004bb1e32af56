"""
Value objects for a single upload invocation.

Everything here is request-scoped. Nothing survives past the response,
which is why these are plain frozen dataclasses with no persistence hooks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PipelineStage(Enum):
    """
    How far an invocation got.

    The order matches the order the pipeline runs in. TRANSFORM_APPLIED
    is skipped entirely by the raw variant.
    """
    START = "start"
    CONFIG_LOADED = "config_loaded"
    BUCKET_CREATED = "bucket_created"
    TRANSFORM_APPLIED = "transform_applied"
    OBJECT_WRITTEN = "object_written"
    RESPONDED = "responded"


@dataclass(frozen=True)
class UploadTarget:
    """Where a payload ends up: a fresh bucket and a key inside it."""
    bucket_name: str
    object_key: str

    def __post_init__(self) -> None:
        if not self.bucket_name:
            raise ValueError("bucket_name cannot be empty")
        if not self.object_key:
            raise ValueError("object_key cannot be empty")


@dataclass(frozen=True)
class UploadResult:
    """
    The response handed back to the host runtime.

    Failures never carry a body. The reason for a failure is logged
    server-side and is not part of the result.
    """
    status_code: int
    body: str = ""

    @classmethod
    def ok(cls, message: str) -> "UploadResult":
        return cls(status_code=200, body=message)

    @classmethod
    def failed(cls) -> "UploadResult":
        return cls(status_code=500)

    @property
    def succeeded(self) -> bool:
        return self.status_code == 200


@dataclass
class UploadContext:
    """
    Mutable state threaded through the pipeline steps.

    `payload` starts as the raw request body and is replaced by the
    transformed bytes if a transform step runs.
    """
    target: UploadTarget
    region: str
    payload: bytes
    stage: PipelineStage = PipelineStage.CONFIG_LOADED
    original_size: int = 0
    completed_steps: list[str] = field(default_factory=list)
    error: Optional[Exception] = None

    def __post_init__(self) -> None:
        self.original_size = len(self.payload)
