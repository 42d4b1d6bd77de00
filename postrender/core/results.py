"""
Result Types
============

Explicit success/failure values returned across component boundaries,
plus the failure taxonomy and pipeline stages shared by the orchestrator
and the HTTP layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful result carrying a value."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Failed result carrying a readable cause and the original exception, if any."""

    cause: str
    error: Optional[BaseException] = None


Result = Union[Success[T], Failure]


class FailureKind(str, Enum):
    """Failure categories reported to callers."""

    INVALID_INPUT = "InvalidInput"
    RENDER_FAILURE = "RenderFailure"
    UPLOAD_FAILURE = "UploadFailure"
    DELETION_FAILURE = "DeletionFailure"

    @property
    def http_status(self) -> int:
        return 400 if self is FailureKind.INVALID_INPUT else 500


class PipelineStage(str, Enum):
    """States of the generation and deletion pipelines."""

    VALIDATING = "validating"
    COMPOSING = "composing"
    RENDERING = "rendering"
    UPLOADING = "uploading"
    CLEANING_UP = "cleaning_up"
    VALIDATING_NAME = "validating_name"
    DESTROYING = "destroying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
