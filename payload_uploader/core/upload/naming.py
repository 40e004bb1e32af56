"""
Bucket and object naming.

Names are derived from wall-clock time at one-second resolution. Without
`unique` set, two requests in the same second get the same bucket name and
the second bucket creation fails at the backend. That is the historical
behaviour and remains the default; `unique=True` appends a short random
suffix to both names.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from .models import UploadTarget

DEFAULT_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NamingScheme:
    """
    Prefixes and format used to build an UploadTarget.

    The suffix is appended to the object key only. The compressed variant
    uses it to mark the payload format (".zst").
    """
    bucket_prefix: str = "filename"
    object_prefix: str = "upload-"
    object_suffix: str = ""
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    unique: bool = False

    def build_target(
        self,
        now: Optional[datetime] = None,
        salt: Optional[str] = None,
    ) -> UploadTarget:
        """
        Build bucket and object names from a single timestamp.

        Both names share the same timestamp (and salt, when unique),
        so an object can always be matched back to its bucket.
        """
        if now is None:
            now = utc_now()

        stamp = now.strftime(self.timestamp_format)

        if self.unique:
            if salt is None:
                salt = uuid4().hex[:8]
            stamp = f"{stamp}-{salt}"

        return UploadTarget(
            bucket_name=f"{self.bucket_prefix}{stamp}",
            object_key=f"{self.object_prefix}{stamp}{self.object_suffix}",
        )


def make_target_factory(
    scheme: NamingScheme,
    clock: Callable[[], datetime] = utc_now,
) -> Callable[[], UploadTarget]:
    """Bind a scheme to a clock. Tests pass a fixed clock."""
    def factory() -> UploadTarget:
        return scheme.build_target(now=clock())
    return factory
