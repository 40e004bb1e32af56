"""
Unit tests for the upload pipeline.

The storage backend is either the in-memory MockStorageClient or a
MagicMock when a test needs to count or fail specific calls.
"""

from unittest.mock import MagicMock

import pytest

from payload_uploader.core.upload.errors import (
    CompressionError,
    ProvisionError,
    WriteError,
)
from payload_uploader.core.upload.models import PipelineStage, UploadContext
from payload_uploader.core.upload.naming import NamingScheme, make_target_factory
from payload_uploader.core.upload.pipeline import UploadPipeline
from payload_uploader.core.upload.transform import PayloadTransform, decompress_payload
from payload_uploader.infrastructure.storage.client import MockStorageClient, StorageError

from tests.conftest import SUCCESS_MESSAGE

KEY = b"your-encryption-key"
BUCKET = "filename20240305-140709"


class FailingTransform:
    def apply(self, data: bytes) -> bytes:
        raise CompressionError("zstandard compression error: boom")


def make_pipeline(storage, clock, compress=True, cleanup=False, unique=False):
    scheme = NamingScheme(object_suffix=".zst" if compress else "", unique=unique)
    return UploadPipeline(
        storage=storage,
        region="ap-south-1",
        target_factory=make_target_factory(scheme, clock),
        transform=PayloadTransform(key=KEY) if compress else None,
        cleanup_on_failure=cleanup,
    )


def make_context(pipeline, payload=b"hello"):
    return UploadContext(
        target=pipeline.target_factory(),
        region=pipeline.region,
        payload=payload,
    )


class TestSuccessPath:

    def test_compressed_upload_returns_fixed_message(self, mock_storage, fixed_clock):
        """Body "hello" yields 200 and the literal confirmation."""
        result = make_pipeline(mock_storage, fixed_clock).run(b"hello")

        assert result.status_code == 200
        assert result.body == SUCCESS_MESSAGE

    def test_compressed_upload_stores_key_prefixed_frame(self, mock_storage, fixed_clock):
        make_pipeline(mock_storage, fixed_clock).run(b"hello")

        stored = mock_storage.get_object(BUCKET, "upload-20240305-140709.zst")
        assert decompress_payload(stored, KEY) == b"hello"

    def test_raw_upload_stores_body_as_received(self, mock_storage, fixed_clock):
        make_pipeline(mock_storage, fixed_clock, compress=False).run(b"hello")

        assert mock_storage.get_object(BUCKET, "upload-20240305-140709") == b"hello"

    def test_bucket_created_in_configured_region(self, mock_storage, fixed_clock):
        make_pipeline(mock_storage, fixed_clock).run(b"hello")

        assert mock_storage.bucket_region(BUCKET) == "ap-south-1"

    @pytest.mark.parametrize("compress", [True, False], ids=["compressed", "raw"])
    def test_empty_body_still_succeeds(self, mock_storage, fixed_clock, compress):
        result = make_pipeline(mock_storage, fixed_clock, compress=compress).run(b"")

        assert result.status_code == 200
        assert result.body == SUCCESS_MESSAGE

    def test_response_does_not_echo_location(self, mock_storage, fixed_clock):
        result = make_pipeline(mock_storage, fixed_clock).run(b"hello")

        assert BUCKET not in result.body
        assert "upload-" not in result.body

    def test_stages_progress_to_responded(self, mock_storage, fixed_clock):
        pipeline = make_pipeline(mock_storage, fixed_clock)
        context = make_context(pipeline)

        _, context = pipeline.run_with_context(context)

        assert context.stage == PipelineStage.RESPONDED
        assert context.completed_steps == [
            "provision_bucket",
            "transform_payload",
            "write_object",
        ]

    def test_raw_variant_skips_transform_step(self, mock_storage, fixed_clock):
        pipeline = make_pipeline(mock_storage, fixed_clock, compress=False)
        _, context = pipeline.run_with_context(make_context(pipeline))

        assert "transform_payload" not in context.completed_steps


class TestFailurePaths:

    def test_provision_failure_never_writes(self, fixed_clock):
        """If bucket creation fails, put_object is never called."""
        storage = MagicMock()
        storage.create_container.side_effect = ProvisionError("AccessDenied")

        result = make_pipeline(storage, fixed_clock).run(b"hello")

        assert result.status_code == 500
        storage.put_object.assert_not_called()

    def test_compression_failure_never_writes(self, fixed_clock):
        storage = MagicMock()
        pipeline = make_pipeline(storage, fixed_clock)
        pipeline.transform = FailingTransform()

        result = pipeline.run(b"hello")

        assert result.status_code == 500
        storage.put_object.assert_not_called()

    @pytest.mark.parametrize(
        "method, error",
        [
            ("create_container", ProvisionError("BucketAlreadyExists: internal detail")),
            ("put_object", WriteError("EntityTooLarge: internal detail")),
        ],
        ids=["provision", "write"],
    )
    def test_storage_errors_map_to_bare_500(self, fixed_clock, method, error):
        storage = MagicMock()
        getattr(storage, method).side_effect = error

        result = make_pipeline(storage, fixed_clock).run(b"hello")

        assert result.status_code == 500
        assert result.body == ""

    def test_compression_error_maps_to_bare_500(self, mock_storage, fixed_clock):
        pipeline = make_pipeline(mock_storage, fixed_clock)
        pipeline.transform = FailingTransform()

        result = pipeline.run(b"hello")

        assert result.status_code == 500
        assert result.body == ""

    def test_failure_records_reached_stage(self, fixed_clock):
        storage = MagicMock()
        storage.put_object.side_effect = WriteError("NoSuchBucket")
        pipeline = make_pipeline(storage, fixed_clock)

        _, context = pipeline.run_with_context(make_context(pipeline))

        assert context.completed_steps == ["provision_bucket", "transform_payload"]
        assert isinstance(context.error, WriteError)
        assert context.stage == PipelineStage.RESPONDED

    def test_non_upload_errors_propagate(self, fixed_clock):
        """Only the pipeline's own error kinds are collapsed."""
        storage = MagicMock()
        storage.create_container.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            make_pipeline(storage, fixed_clock).run(b"hello")


class TestNamingCollision:

    def test_same_second_second_request_fails(self, mock_storage, fixed_clock):
        """Two requests in one second target the same bucket; the second is rejected."""
        pipeline = make_pipeline(mock_storage, fixed_clock)

        first = pipeline.run(b"one")
        second = pipeline.run(b"two")

        assert first.status_code == 200
        assert second.status_code == 500
        assert mock_storage.put_calls == 1

    def test_unique_names_allow_same_second_requests(self, mock_storage, fixed_clock):
        pipeline = make_pipeline(mock_storage, fixed_clock, unique=True)

        assert pipeline.run(b"one").status_code == 200
        assert pipeline.run(b"two").status_code == 200
        assert len(mock_storage.buckets) == 2


class TestCompensation:

    def test_bucket_left_behind_by_default(self, fixed_clock):
        """Without cleanup, a failed write leaves the created bucket."""
        storage = MagicMock()
        storage.put_object.side_effect = WriteError("AccessDenied")

        make_pipeline(storage, fixed_clock).run(b"hello")

        storage.delete_container.assert_not_called()

    def test_cleanup_deletes_bucket_after_failed_write(self, fixed_clock):
        class FailingPut(MockStorageClient):
            def put_object(self, container, key, data):
                raise WriteError("AccessDenied")

        storage = FailingPut()
        result = make_pipeline(storage, fixed_clock, cleanup=True).run(b"hello")

        assert result.status_code == 500
        assert storage.buckets == []
        assert storage.delete_calls == 1

    def test_cleanup_after_failed_provision_deletes_nothing(self, fixed_clock):
        storage = MagicMock()
        storage.create_container.side_effect = ProvisionError("AccessDenied")

        make_pipeline(storage, fixed_clock, cleanup=True).run(b"hello")

        storage.delete_container.assert_not_called()

    def test_rollback_failure_keeps_original_error(self, fixed_clock):
        storage = MagicMock()
        storage.put_object.side_effect = WriteError("AccessDenied")
        storage.delete_container.side_effect = StorageError("Delete failed")
        pipeline = make_pipeline(storage, fixed_clock, cleanup=True)

        result, context = pipeline.run_with_context(make_context(pipeline))

        assert result.status_code == 500
        assert isinstance(context.error, WriteError)
        storage.delete_container.assert_called_once_with(BUCKET)
