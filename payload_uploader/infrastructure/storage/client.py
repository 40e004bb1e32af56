"""
Object storage client for per-request buckets.

Each invocation provisions its own bucket and writes a single object into
it, so the client exposes bucket lifecycle calls alongside the object write.
Backed by boto3 against S3 (or any S3-compatible endpoint), with an
in-memory mock for local development and tests.

Methods are synchronous. The pipeline is strictly sequential and the
Lambda runtime calls it synchronously; the HTTP surface runs it in
FastAPI's threadpool.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ...core.upload.errors import ConfigError, ProvisionError, WriteError

logger = logging.getLogger(__name__)

# S3 rejects an explicit LocationConstraint for its default region.
DEFAULT_S3_REGION = "us-east-1"


class StorageError(Exception):
    """Raised when a storage call fails outside the provision/write paths."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for the S3 client.

    Credentials are optional: when omitted, boto3 resolves them from the
    ambient environment (Lambda execution role, profile, env vars).
    """
    region: str
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


class StorageClient(Protocol):
    """
    Protocol for the storage backend.

    The pipeline only depends on this, so tests can substitute a mock
    and count calls.
    """

    def create_container(self, name: str, region: str) -> None:
        """Create a bucket in the given region."""
        ...

    def put_object(self, container: str, key: str, data: bytes) -> None:
        """Write bytes under key. Existing keys are overwritten."""
        ...

    def delete_container(self, name: str) -> None:
        """Delete a bucket and anything in it."""
        ...


class S3StorageClient:
    """
    AWS S3 storage client.

    Uses boto3. Passing an endpoint_url points it at any S3-compatible
    service (MinIO, R2, LocalStack) with no other changes.
    """

    def __init__(self, config: StorageConfig) -> None:
        import boto3
        from botocore.exceptions import BotoCoreError

        self._config = config

        try:
            self._s3_client = boto3.client(
                's3',
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
            )
        except (BotoCoreError, ValueError) as e:
            # botocore raises a bare ValueError for a malformed endpoint_url
            logger.error(
                "Failed to load AWS config",
                extra={"region": config.region, "error": str(e)}
            )
            raise ConfigError(f"Failed to load AWS config: {e}") from e

        logger.info(
            "Initialized S3 storage client",
            extra={
                "region": config.region,
                "endpoint": config.endpoint_url,
            }
        )

    def create_container(self, name: str, region: str) -> None:
        """
        Create a bucket with a location constraint matching region.

        No retry and no fallback name: a collision or a permission error
        is the caller's problem.
        """
        create_args = {"Bucket": name}
        if region != DEFAULT_S3_REGION:
            create_args["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._s3_client.create_bucket(**create_args)
        except Exception as e:
            logger.error(
                "Couldn't create bucket",
                extra={"bucket": name, "region": region, "error": str(e)}
            )
            raise ProvisionError(
                f"Couldn't create bucket {name} in region {region}: {e}"
            ) from e

        logger.info("Created bucket", extra={"bucket": name, "region": region})

    def put_object(self, container: str, key: str, data: bytes) -> None:
        """Single-shot PutObject. No multipart, no conditional write."""
        try:
            self._s3_client.put_object(
                Bucket=container,
                Key=key,
                Body=data,
            )
        except Exception as e:
            logger.error(
                "Couldn't upload object",
                extra={"bucket": container, "key": key, "error": str(e)}
            )
            raise WriteError(f"Couldn't upload file to {container}:{key}: {e}") from e

        logger.info(
            "Uploaded object",
            extra={"bucket": container, "key": key, "size_bytes": len(data)}
        )

    def delete_container(self, name: str) -> None:
        """
        Empty and delete a bucket.

        Only used to roll back a bucket whose upload failed, so in practice
        there is at most one object to remove.
        """
        try:
            paginator = self._s3_client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=name):
                if 'Contents' in page:
                    objects = [{'Key': obj['Key']} for obj in page['Contents']]
                    self._s3_client.delete_objects(
                        Bucket=name,
                        Delete={'Objects': objects}
                    )

            self._s3_client.delete_bucket(Bucket=name)
        except Exception as e:
            logger.error(
                "Couldn't delete bucket",
                extra={"bucket": name, "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}") from e

        logger.info("Deleted bucket", extra={"bucket": name})


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Mirrors the backend behaviour that matters to the pipeline: creating
    a bucket that already exists fails, and writing into a missing bucket
    fails. Call counters let tests assert which steps ran.
    """

    def __init__(self) -> None:
        # {bucket_name: {"region": str, "objects": {key: bytes}}}
        self._buckets: dict[str, dict] = {}
        self.create_calls = 0
        self.put_calls = 0
        self.delete_calls = 0
        logger.info("Initialized mock storage client (in-memory)")

    def create_container(self, name: str, region: str) -> None:
        self.create_calls += 1
        if name in self._buckets:
            raise ProvisionError(f"Couldn't create bucket {name}: BucketAlreadyOwnedByYou")

        self._buckets[name] = {"region": region, "objects": {}}
        logger.debug("Created bucket in mock storage", extra={"bucket": name})

    def put_object(self, container: str, key: str, data: bytes) -> None:
        self.put_calls += 1
        if container not in self._buckets:
            raise WriteError(f"Couldn't upload file to {container}:{key}: NoSuchBucket")

        self._buckets[container]["objects"][key] = data
        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": container, "key": key, "size_bytes": len(data)}
        )

    def delete_container(self, name: str) -> None:
        self.delete_calls += 1
        if name not in self._buckets:
            raise StorageError(f"Bucket not found: {name}")

        del self._buckets[name]

    def get_object(self, container: str, key: str) -> bytes:
        """Test helper. Not part of the StorageClient protocol."""
        try:
            return self._buckets[container]["objects"][key]
        except KeyError:
            raise StorageError(f"Object not found: {container}/{key}")

    def bucket_region(self, name: str) -> str:
        return self._buckets[name]["region"]

    @property
    def buckets(self) -> list[str]:
        return list(self._buckets)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return an in-memory client

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ConfigError("config is required when not in mock mode")

    return S3StorageClient(config)
