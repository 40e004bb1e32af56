"""
Error taxonomy for the upload pipeline.

Every failure the pipeline can hit maps to exactly one of these.
All of them are terminal for the current invocation: nothing is retried,
and the request handler collapses them to a bare 500.
"""


class UploadError(Exception):
    """Base class for pipeline failures."""
    pass


class ConfigError(UploadError):
    """Raised when settings or the storage client cannot be loaded."""
    pass


class ProvisionError(UploadError):
    """Raised when the backend rejects bucket creation."""
    pass


class CompressionError(UploadError):
    """Raised when the codec cannot be initialized or written to."""
    pass


class WriteError(UploadError):
    """Raised when the backend rejects the object write."""
    pass
