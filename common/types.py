"""Shared descriptor types (SegmentDescriptor, ChunkDescriptor, UploadSlot)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SegmentDescriptor:
    """
    Byte range of one segment inside a file.
    """
    index: int
    byte_offset: int
    piece_count: int
    byte_length: int

    @property
    def end_offset(self) -> int:
        return self.byte_offset + self.byte_length


@dataclass(frozen=True)
class ChunkDescriptor:
    """
    Byte range of one piece inside a file.
    """
    byte_offset: int
    max_bytes: int


@dataclass(frozen=True)
class UploadSlot:
    """
    Upload destination handed out by the remote for a single piece.
    """
    upload_url: str
    upload_filename: str
