"""
The upload pipeline: naming, payload transforms and the step runner.
"""

from .errors import (
    CompressionError,
    ConfigError,
    ProvisionError,
    UploadError,
    WriteError,
)
from .models import PipelineStage, UploadContext, UploadResult, UploadTarget
from .naming import NamingScheme
from .pipeline import UploadPipeline
from .transform import PassthroughCipher, PayloadTransform, ZstdCompressor

__all__ = [
    "CompressionError",
    "ConfigError",
    "ProvisionError",
    "UploadError",
    "WriteError",
    "PipelineStage",
    "UploadContext",
    "UploadResult",
    "UploadTarget",
    "NamingScheme",
    "UploadPipeline",
    "PassthroughCipher",
    "PayloadTransform",
    "ZstdCompressor",
]
