"""
The upload pipeline: provision a bucket, optionally transform the payload,
write the object.

Each stage is a PipelineStep with an optional rollback. Steps run strictly
in order; the first failure stops the run. When cleanup is enabled, the
steps that already completed are rolled back in reverse order. When it is
not (the default), a bucket created before a failed write is left behind.

This module knows nothing about HTTP, Lambda events or boto3. The storage
backend and the transform are injected.
"""

import logging
from typing import Callable, Optional, Protocol

from .errors import UploadError
from .models import PipelineStage, UploadContext, UploadResult, UploadTarget
from .transform import Transform

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """The subset of the storage client the pipeline uses."""

    def create_container(self, name: str, region: str) -> None:
        ...

    def put_object(self, container: str, key: str, data: bytes) -> None:
        ...

    def delete_container(self, name: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

class PipelineStep:
    """
    One compensable unit of work.

    Subclasses implement run(). rollback() is a no-op unless the step
    leaves something behind that should be undone on later failure.
    """
    name = "step"
    stage = PipelineStage.START

    def run(self, context: UploadContext) -> None:
        raise NotImplementedError

    def rollback(self, context: UploadContext) -> None:
        pass


class ProvisionBucketStep(PipelineStep):
    name = "provision_bucket"
    stage = PipelineStage.BUCKET_CREATED

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    def run(self, context: UploadContext) -> None:
        self.storage.create_container(context.target.bucket_name, context.region)

    def rollback(self, context: UploadContext) -> None:
        self.storage.delete_container(context.target.bucket_name)


class TransformStep(PipelineStep):
    name = "transform_payload"
    stage = PipelineStage.TRANSFORM_APPLIED

    def __init__(self, transform: Transform) -> None:
        self.transform = transform

    def run(self, context: UploadContext) -> None:
        context.payload = self.transform.apply(context.payload)


class WriteObjectStep(PipelineStep):
    name = "write_object"
    stage = PipelineStage.OBJECT_WRITTEN

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    def run(self, context: UploadContext) -> None:
        self.storage.put_object(
            context.target.bucket_name,
            context.target.object_key,
            context.payload,
        )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class UploadPipeline:
    """
    Runs the steps for one request and maps the outcome to an UploadResult.

    Every UploadError becomes a bare 500. The error text goes to the log,
    never to the caller.
    """

    def __init__(
        self,
        storage: StorageBackend,
        region: str,
        target_factory: Callable[[], UploadTarget],
        transform: Optional[Transform] = None,
        success_message: str = "File successfully uploaded to S3.",
        cleanup_on_failure: bool = False,
    ) -> None:
        self.storage = storage
        self.region = region
        self.target_factory = target_factory
        self.transform = transform
        self.success_message = success_message
        self.cleanup_on_failure = cleanup_on_failure

    def build_steps(self) -> list[PipelineStep]:
        steps: list[PipelineStep] = [ProvisionBucketStep(self.storage)]
        if self.transform is not None:
            steps.append(TransformStep(self.transform))
        steps.append(WriteObjectStep(self.storage))
        return steps

    def run(self, payload: bytes) -> UploadResult:
        """Run the pipeline once. Never raises UploadError."""
        context = UploadContext(
            target=self.target_factory(),
            region=self.region,
            payload=payload,
        )
        result, _ = self.run_with_context(context)
        return result

    def run_with_context(self, context: UploadContext) -> tuple[UploadResult, UploadContext]:
        completed: list[PipelineStep] = []

        for step in self.build_steps():
            try:
                step.run(context)
            except UploadError as e:
                context.error = e
                logger.error(
                    "Upload pipeline step failed",
                    extra={
                        "step": step.name,
                        "stage_reached": context.stage.value,
                        "bucket": context.target.bucket_name,
                        "key": context.target.object_key,
                        "error": str(e),
                    }
                )
                if self.cleanup_on_failure:
                    self._rollback(completed, context)
                context.stage = PipelineStage.RESPONDED
                return UploadResult.failed(), context

            completed.append(step)
            context.completed_steps.append(step.name)
            context.stage = step.stage

        logger.info(
            "Upload pipeline completed",
            extra={
                "bucket": context.target.bucket_name,
                "key": context.target.object_key,
                "input_bytes": context.original_size,
                "stored_bytes": len(context.payload),
            }
        )
        context.stage = PipelineStage.RESPONDED
        return UploadResult.ok(self.success_message), context

    def _rollback(self, completed: list[PipelineStep], context: UploadContext) -> None:
        """
        Undo completed steps, newest first.

        A rollback failure is logged and the remaining rollbacks still run.
        The original error stays on the context.
        """
        for step in reversed(completed):
            try:
                step.rollback(context)
            except Exception as e:
                logger.error(
                    "Rollback failed",
                    extra={
                        "step": step.name,
                        "bucket": context.target.bucket_name,
                        "error": str(e),
                    }
                )
            else:
                logger.info(
                    "Rolled back step",
                    extra={"step": step.name, "bucket": context.target.bucket_name}
                )
