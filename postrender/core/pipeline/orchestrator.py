"""
Pipeline Orchestrator
=====================

Sequences validation, composition, rasterization, upload and cleanup as a
linear state machine:

    validating -> composing -> rendering -> uploading -> cleaning_up
        -> succeeded | failed

and deletion as:

    validating_name -> destroying -> succeeded | failed

Once an artifact path is allocated, cleanup runs exactly once whatever
happens afterwards, and a cleanup error never changes the verdict.
"""

from typing import Any, Callable, List, Optional, Protocol, Union
from dataclasses import dataclass, field, replace
from pathlib import Path
import time

from postrender.config.logging import get_logger
from postrender.core.rendering.html_generator import BaseHTMLGenerator
from postrender.core.results import Failure, FailureKind, PipelineStage, Result
from postrender.core.validation import (
    InvalidInputError,
    validate_deletion_request,
    validate_generation_request,
)
from postrender.models.schemas import ComposedDocument, RenderArtifact, UploadResult

logger = get_logger(__name__)

RENDER_FAILURE_MESSAGE = "Failed to process the image."
UPLOAD_FAILURE_MESSAGE = "Failed to upload the image."
DELETION_FAILURE_MESSAGE = "Failed to delete the image."
DELETION_SUCCESS_MESSAGE = "File deleted successfully."

ARTIFACT_PREFIX = "processed_image_"


class Rasterizer(Protocol):
    async def rasterize(
        self, document: ComposedDocument, output_path: Path
    ) -> Result[RenderArtifact]: ...


class StorageGateway(Protocol):
    def identifier_for(self, file_name: str) -> str: ...

    async def upload(self, local_path: str, desired_name: str) -> Result[UploadResult]: ...

    async def destroy(self, identifier: str) -> Result[str]: ...


@dataclass(frozen=True)
class GenerationSucceeded:
    image_url: str
    file_name: str
    stages: List[PipelineStage] = field(default_factory=list)


@dataclass(frozen=True)
class DeletionSucceeded:
    message: str
    stages: List[PipelineStage] = field(default_factory=list)


@dataclass(frozen=True)
class PipelineFailed:
    kind: FailureKind
    stage: PipelineStage
    message: str
    cause: Optional[str] = None
    stages: List[PipelineStage] = field(default_factory=list)


GenerationOutcome = Union[GenerationSucceeded, PipelineFailed]
DeletionOutcome = Union[DeletionSucceeded, PipelineFailed]


def current_millis() -> int:
    """Milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def artifact_file_name(timestamp_ms: int) -> str:
    return f"{ARTIFACT_PREFIX}{timestamp_ms}.jpg"


class PipelineRun:
    """Stage tracker for a single request."""

    def __init__(self, name: str):
        self.stages: List[PipelineStage] = []
        self.logger: Any = logger.bind(pipeline=name)

    @property
    def stage(self) -> Optional[PipelineStage]:
        return self.stages[-1] if self.stages else None

    def enter(self, stage: PipelineStage) -> None:
        self.stages.append(stage)
        self.logger.debug("Pipeline stage entered", stage=stage.value)

    def fail(
        self, kind: FailureKind, message: str, cause: Optional[str] = None
    ) -> PipelineFailed:
        """Build the failure verdict for the current stage."""
        failed_stage = self.stage or PipelineStage.VALIDATING
        self.logger.warning(
            "Pipeline stage failed",
            stage=failed_stage.value,
            kind=kind.value,
            cause=cause or message,
        )
        return PipelineFailed(kind=kind, stage=failed_stage, message=message, cause=cause)

    def finish(self, outcome: Any) -> Any:
        """Record the terminal stage and attach the stage history."""
        terminal = (
            PipelineStage.FAILED if isinstance(outcome, PipelineFailed) else PipelineStage.SUCCEEDED
        )
        self.enter(terminal)
        return replace(outcome, stages=list(self.stages))


class GenerationPipeline:
    """Validate -> compose -> render -> upload -> clean up."""

    def __init__(
        self,
        composer: BaseHTMLGenerator,
        rasterizer: Rasterizer,
        storage: StorageGateway,
        scratch_dir: Path,
        clock: Callable[[], int] = current_millis,
    ):
        self.composer = composer
        self.rasterizer = rasterizer
        self.storage = storage
        self.scratch_dir = Path(scratch_dir)
        self.clock = clock

    async def run(self, payload: Any) -> GenerationOutcome:
        """
        Generate and publish one post image.

        Args:
            payload: Decoded JSON request body

        Returns:
            GenerationSucceeded with the public URL and identifier, or
            PipelineFailed naming the failing stage
        """
        run = PipelineRun("generate")

        run.enter(PipelineStage.VALIDATING)
        try:
            request = validate_generation_request(payload)
        except InvalidInputError as e:
            return run.finish(run.fail(FailureKind.INVALID_INPUT, str(e)))

        run.enter(PipelineStage.COMPOSING)
        document = self.composer.compose(request)

        run.enter(PipelineStage.RENDERING)
        artifact_path = self.scratch_dir / artifact_file_name(self.clock())
        try:
            outcome = await self._render_and_upload(run, document, artifact_path)
        finally:
            run.enter(PipelineStage.CLEANING_UP)
            self._cleanup_artifact(artifact_path)

        if isinstance(outcome, GenerationSucceeded):
            run.logger.info(
                "Post generated", file_name=outcome.file_name, image_url=outcome.image_url
            )
        return run.finish(outcome)

    async def _render_and_upload(
        self, run: PipelineRun, document: ComposedDocument, artifact_path: Path
    ) -> GenerationOutcome:
        rendered = await self.rasterizer.rasterize(document, artifact_path)
        if isinstance(rendered, Failure):
            return run.fail(FailureKind.RENDER_FAILURE, RENDER_FAILURE_MESSAGE, rendered.cause)

        artifact = rendered.value
        run.enter(PipelineStage.UPLOADING)
        uploaded = await self.storage.upload(artifact.path, artifact.file_name)
        if isinstance(uploaded, Failure):
            return run.fail(FailureKind.UPLOAD_FAILURE, UPLOAD_FAILURE_MESSAGE, uploaded.cause)

        return GenerationSucceeded(
            image_url=uploaded.value.secure_url, file_name=uploaded.value.public_id
        )

    def _cleanup_artifact(self, artifact_path: Path) -> None:
        """Best-effort removal of the local JPEG; errors are logged only."""
        try:
            artifact_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Error deleting temporary file", path=str(artifact_path), error=str(e)
            )


class DeletionPipeline:
    """Validate the file name, then destroy the remote image."""

    def __init__(self, storage: StorageGateway):
        self.storage = storage

    async def run(self, payload: Any) -> DeletionOutcome:
        run = PipelineRun("delete")

        run.enter(PipelineStage.VALIDATING_NAME)
        try:
            request = validate_deletion_request(payload)
        except InvalidInputError as e:
            return run.finish(run.fail(FailureKind.INVALID_INPUT, str(e)))

        run.enter(PipelineStage.DESTROYING)
        identifier = self.storage.identifier_for(request.file_name)
        destroyed = await self.storage.destroy(identifier)
        if isinstance(destroyed, Failure):
            return run.finish(
                run.fail(FailureKind.DELETION_FAILURE, DELETION_FAILURE_MESSAGE, destroyed.cause)
            )

        run.logger.info("Image deleted", public_id=identifier, result=destroyed.value)
        return run.finish(DeletionSucceeded(message=DELETION_SUCCESS_MESSAGE))
