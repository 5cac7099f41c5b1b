"""Events emitted by the orchestrator to its injected sink."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from uploader.schemas import FileRecord, QueuedUpload


class UploadState(str, Enum):
    QUEUED = "queued"
    NEGOTIATING = "negotiating"
    TRANSFERRING = "transferring"
    FINALIZING = "finalizing"
    COMMITTED = "committed"
    ABORTING = "aborting"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadsQueued:
    uploads: tuple[QueuedUpload, ...]


@dataclass(frozen=True)
class UploadStarted:
    file_id: int
    size: int


@dataclass(frozen=True)
class UploadStateChanged:
    file_id: int
    state: UploadState


@dataclass(frozen=True)
class UploadProgress:
    file_id: int
    percent: float


@dataclass(frozen=True)
class UploadCommitted:
    record: FileRecord


@dataclass(frozen=True)
class UploadAborted:
    file_id: int


@dataclass(frozen=True)
class UploadFailed:
    file_id: int
    reason: str


UploadEvent = Union[
    UploadsQueued,
    UploadStarted,
    UploadStateChanged,
    UploadProgress,
    UploadCommitted,
    UploadAborted,
    UploadFailed,
]

EventSink = Callable[[UploadEvent], None]


def discard_event(event: UploadEvent) -> None:
    pass
