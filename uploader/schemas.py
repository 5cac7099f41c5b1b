"""Pydantic models for the persisted catalog and the command surface."""

from typing import List, Optional

from pydantic import BaseModel, Field


class FileRecord(BaseModel):
    """A committed upload: one remote message id per segment, in file order."""
    id: int
    name: str
    path: str
    size: int
    segment_remote_ids: List[str] = Field(default_factory=list)
    created_at: int


class QueuedUpload(BaseModel):
    """A file waiting for (or undergoing) upload."""
    id: int
    path: str


class CatalogDocument(BaseModel):
    """The whole on-disk catalog document."""
    token: Optional[str] = None
    channel: Optional[str] = None
    next_id: int = 0
    root: List[FileRecord] = Field(default_factory=list)


class UploadStatus(BaseModel):
    """Snapshot of the upload queue."""
    uploading: Optional[int] = None
    state: Optional[str] = None
    percent: float = 0.0
    queued: List[QueuedUpload] = Field(default_factory=list)
