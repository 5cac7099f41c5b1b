"""Byte-range slicing of a local file into segments and platform-sized chunks."""

import asyncio
import os
import threading
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from common.constants import PIECE_SIZE_BYTES, READ_BUFFER_BYTES, SEGMENT_CAP
from common.logging_config import get_logger
from common.types import ChunkDescriptor, SegmentDescriptor
from uploader.cancellation import CancellationToken
from uploader.exceptions import UploadIOError

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


def count_pieces(size: int, piece_size: int = PIECE_SIZE_BYTES) -> int:
    return (size + piece_size - 1) // piece_size


def count_segments(pieces: int, segment_cap: int = SEGMENT_CAP) -> int:
    return (pieces + segment_cap - 1) // segment_cap


class ByteRangeReader:
    """
    Opens a file once and hands out non-overlapping Segment cursors over it.

    All segments and chunks share the one file handle. Every seek-then-read
    pair runs under a single lock because the handle has one cursor.
    """

    def __init__(
        self,
        path: Union[str, Path],
        on_read: Optional[ProgressCallback] = None,
        piece_size: int = PIECE_SIZE_BYTES,
        segment_cap: int = SEGMENT_CAP,
        buffer_size: int = READ_BUFFER_BYTES,
    ):
        """
        Open the file and compute its piece/segment layout.

        Args:
            path: Local file to read
            on_read: Called with the number of bytes after every buffer read
            piece_size: Maximum bytes per piece
            segment_cap: Maximum pieces per segment
            buffer_size: Maximum bytes per read

        Raises:
            UploadIOError: If the file cannot be opened or stat-ed
        """
        self.path = str(path)
        self.piece_size = piece_size
        self.segment_cap = segment_cap
        self.buffer_size = buffer_size
        self._on_read = on_read
        self._lock = threading.Lock()

        try:
            self._file = open(self.path, 'rb')
        except OSError as e:
            raise UploadIOError(f"Cannot open {self.path}: {e}") from e

        try:
            self.size = os.fstat(self._file.fileno()).st_size
        except OSError as e:
            self._file.close()
            raise UploadIOError(f"Cannot read metadata of {self.path}: {e}") from e

        self.total_pieces = count_pieces(self.size, piece_size)
        self.total_segments = count_segments(self.total_pieces, segment_cap)
        logger.debug(
            f"Opened {self.path}: {self.size} bytes, "
            f"{self.total_pieces} pieces in {self.total_segments} segments"
        )

    @property
    def segment_size(self) -> int:
        return self.piece_size * self.segment_cap

    @property
    def closed(self) -> bool:
        return self._file.closed

    def describe_segment(self, index: int) -> SegmentDescriptor:
        """
        Compute the byte range of segment `index`.

        Raises:
            IndexError: If the index is outside [0, total_segments)
        """
        if index < 0 or index >= self.total_segments:
            raise IndexError(f"Segment {index} out of range (0..{self.total_segments - 1})")

        byte_offset = index * self.segment_size
        pieces_left = self.total_pieces - index * self.segment_cap
        return SegmentDescriptor(
            index=index,
            byte_offset=byte_offset,
            piece_count=min(self.segment_cap, pieces_left),
            byte_length=min(self.segment_size, self.size - byte_offset),
        )

    def next_segment(
        self, index: int, cancel_token: Optional[CancellationToken] = None
    ) -> Optional['Segment']:
        """Return the Segment at `index`, or None once every segment was handed out."""
        if index == self.total_segments:
            return None
        return Segment(self, self.describe_segment(index), cancel_token)

    def segments(self, cancel_token: Optional[CancellationToken] = None) -> Iterator['Segment']:
        index = 0
        while True:
            segment = self.next_segment(index, cancel_token)
            if segment is None:
                return
            yield segment
            index += 1

    def read_at(self, offset: int, length: int) -> bytes:
        """
        Read up to `length` bytes at absolute `offset`.

        Blocking; callers on the event loop go through asyncio.to_thread.

        Raises:
            UploadIOError: If the read fails
        """
        with self._lock:
            try:
                self._file.seek(offset)
                return self._file.read(length)
            except (OSError, ValueError) as e:
                raise UploadIOError(f"Cannot read {self.path} at offset {offset}: {e}") from e

    def notify(self, count: int) -> None:
        if self._on_read is not None:
            self._on_read(count)

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def __enter__(self) -> 'ByteRangeReader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class Segment:
    """A contiguous run of up to `segment_cap` pieces; hands out Chunk cursors in order."""

    def __init__(
        self,
        reader: ByteRangeReader,
        descriptor: SegmentDescriptor,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.reader = reader
        self.descriptor = descriptor
        self.cancel_token = cancel_token
        self._current_piece = 0

    @property
    def index(self) -> int:
        return self.descriptor.index

    @property
    def byte_offset(self) -> int:
        return self.descriptor.byte_offset

    @property
    def byte_length(self) -> int:
        return self.descriptor.byte_length

    @property
    def piece_count(self) -> int:
        return self.descriptor.piece_count

    @property
    def first_piece_index(self) -> int:
        return self.index * self.reader.segment_cap

    def piece_sizes(self) -> list[int]:
        """Nominal size of every piece in this segment; the last one may be short."""
        sizes = []
        for i in range(self.piece_count):
            offset = self.byte_offset + i * self.reader.piece_size
            sizes.append(min(self.reader.piece_size, self.reader.size - offset))
        return sizes

    def next_chunk(self) -> Optional['Chunk']:
        if self._current_piece == self.piece_count:
            return None

        descriptor = ChunkDescriptor(
            byte_offset=self.byte_offset + self._current_piece * self.reader.piece_size,
            max_bytes=self.reader.piece_size,
        )
        self._current_piece += 1
        return Chunk(self.reader, descriptor, self.cancel_token)

    def __iter__(self) -> Iterator['Chunk']:
        while True:
            chunk = self.next_chunk()
            if chunk is None:
                return
            yield chunk


class Chunk:
    """
    One piece of the file as a lazy async byte producer.

    Each pull reads at most one buffer at the current absolute offset and
    reports the bytes read. A zero-byte read ends the sequence early.
    """

    def __init__(
        self,
        reader: ByteRangeReader,
        descriptor: ChunkDescriptor,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.reader = reader
        self.descriptor = descriptor
        self.cancel_token = cancel_token
        self.bytes_read = 0

    @property
    def size(self) -> int:
        """Nominal length of this piece."""
        return max(0, min(self.descriptor.max_bytes, self.reader.size - self.descriptor.byte_offset))

    def rewind(self) -> None:
        """Restart from the first byte of the piece."""
        self.bytes_read = 0

    def _next_length(self) -> int:
        return min(
            self.reader.buffer_size,
            self.descriptor.max_bytes - self.bytes_read,
            self.reader.size - self.descriptor.byte_offset - self.bytes_read,
        )

    def __aiter__(self) -> 'Chunk':
        return self

    async def __anext__(self) -> bytes:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()

        length = self._next_length()
        if length <= 0:
            raise StopAsyncIteration

        data = await asyncio.to_thread(
            self.reader.read_at, self.descriptor.byte_offset + self.bytes_read, length
        )
        if not data:
            raise StopAsyncIteration

        self.bytes_read += len(data)
        self.reader.notify(len(data))
        return data
