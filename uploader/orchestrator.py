"""Upload queue and per-file chunked upload pipeline."""

import asyncio
import os
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional, Union

from common.constants import (
    DEFAULT_RATE_LIMIT_MAX_ATTEMPTS,
    PIECE_SIZE_BYTES,
    READ_BUFFER_BYTES,
    SEGMENT_CAP,
)
from common.logging_config import get_logger
from uploader.cancellation import CancellationToken
from uploader.catalog import Catalog
from uploader.events import (
    EventSink,
    UploadAborted,
    UploadCommitted,
    UploadFailed,
    UploadProgress,
    UploadsQueued,
    UploadStarted,
    UploadState,
    UploadStateChanged,
    discard_event,
)
from uploader.exceptions import (
    MissingCredentialsError,
    RateLimitedError,
    RateLimitExhaustedError,
    UnexpectedResponseError,
    UploadCancelledError,
    UploadIOError,
)
from uploader.reader import ByteRangeReader, Segment
from uploader.remote_client import RemoteStorageClient
from uploader.schemas import FileRecord, QueuedUpload, UploadStatus
from uploader.search import query_files

logger = get_logger(__name__)

STATE_RANK = {
    UploadState.QUEUED: 0,
    UploadState.NEGOTIATING: 1,
    UploadState.TRANSFERRING: 2,
    UploadState.FINALIZING: 3,
}


@dataclass(frozen=True)
class _SegmentFailure:
    index: int
    error: Exception


class UploadOrchestrator:
    """
    Owns the upload queue and drives one file at a time through the pipeline.

    Each segment of the active file runs as its own task: negotiate slots,
    stream its pieces one after another, finalize. A collector places every
    segment's remote id at its segment index, so the committed id list is in
    file order whatever order the segments finish in. Catalog and queue
    mutations, including the commit, are serialized by one lock.
    """

    def __init__(
        self,
        catalog: Catalog,
        client: RemoteStorageClient,
        emit: Optional[EventSink] = None,
        rate_limit_max_attempts: Optional[int] = DEFAULT_RATE_LIMIT_MAX_ATTEMPTS,
        piece_size: int = PIECE_SIZE_BYTES,
        segment_cap: int = SEGMENT_CAP,
        buffer_size: int = READ_BUFFER_BYTES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            catalog: Loaded catalog; token and channel are read from it
            client: Remote client used for every network operation
            emit: Receives every UploadEvent (discarded if None)
            rate_limit_max_attempts: Attempts per negotiate/finalize before giving up (None = unlimited)
            piece_size: Bytes per piece
            segment_cap: Pieces per segment
            buffer_size: Bytes per file read
            sleep: Coroutine used to wait out rate limits
        """
        self.catalog = catalog
        self.client = client
        self.emit = emit or discard_event
        self.rate_limit_max_attempts = rate_limit_max_attempts
        self.piece_size = piece_size
        self.segment_cap = segment_cap
        self.buffer_size = buffer_size
        self._sleep = sleep

        self.queue: deque[QueuedUpload] = deque()
        self.uploading: Optional[int] = None
        self.state: Optional[UploadState] = None
        self.percent = 0.0

        self._lock = asyncio.Lock()
        self._cancel: Optional[CancellationToken] = None
        self._driver: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

        if client.token is None:
            client.token = catalog.token

    # Commands

    async def list_files(self) -> list[FileRecord]:
        async with self._lock:
            logger.info(f"Fetching {len(self.catalog.records)} files...")
            return [record.model_copy(deep=True) for record in self.catalog.records]

    async def enqueue(self, paths: Iterable[Union[str, Path]]) -> list[QueuedUpload]:
        """
        Queue every path that is an existing regular file.

        Returns immediately with the queued descriptors; uploads run in the
        background, one file at a time.

        Raises:
            MissingCredentialsError: If token or channel is not configured
        """
        async with self._lock:
            self._require_credentials()

            accepted = []
            for path in paths:
                path = Path(path)
                if not path.is_file():
                    logger.warning(f"Skipping {path}: not an existing regular file")
                    continue
                accepted.append(os.path.abspath(path))

            ids = self.catalog.allocate_ids(len(accepted))
            uploads = [QueuedUpload(id=file_id, path=path) for file_id, path in zip(ids, accepted)]

            logger.info(f"{len(uploads)} files have been queued for upload...")
            if not uploads:
                return []

            self.queue.extend(uploads)
            self.emit(UploadsQueued(tuple(uploads)))

            if self._driver is None or self._driver.done():
                self._driver = asyncio.create_task(self._drain_queue())

        return uploads

    async def delete(self, file_ids: Iterable[int]) -> list[int]:
        """
        Remove files from the catalog and the queue; cancels the active upload if listed.

        Unknown ids are ignored.

        Returns:
            Ids that were found and removed or cancelled
        """
        wanted = set(file_ids)
        async with self._lock:
            logger.info(f"{len(wanted)} files have been queued for deletion...")

            removed = self.catalog.remove(wanted)
            dequeued = [upload.id for upload in self.queue if upload.id in wanted]
            if dequeued:
                self.queue = deque(upload for upload in self.queue if upload.id not in wanted)

            aborted = []
            if self.uploading is not None and self.uploading in wanted:
                file_id = self.uploading
                if self._cancel is not None:
                    self._cancel.cancel()
                self.uploading = None
                self.state = UploadState.ABORTING
                self.emit(UploadStateChanged(file_id, UploadState.ABORTING))
                logger.info(f"Aborting upload of file {file_id}")
                aborted.append(file_id)

        return list(dict.fromkeys(removed + dequeued + aborted))

    async def rename(self, file_id: int, name: str) -> bool:
        async with self._lock:
            logger.info(f"Renaming file with id {file_id} to {name}...")
            return self.catalog.rename(file_id, name)

    async def query(self, text: str) -> list[int]:
        async with self._lock:
            return query_files(self.catalog.records, list(self.queue), text)

    async def status(self) -> UploadStatus:
        async with self._lock:
            return UploadStatus(
                uploading=self.uploading,
                state=self.state.value if self.state is not None else None,
                percent=self.percent if self.uploading is not None else 0.0,
                queued=list(self.queue),
            )

    async def set_token(self, token: str) -> None:
        async with self._lock:
            self.catalog.set_token(token)
            self.client.token = token

    async def set_channel(self, channel: str) -> None:
        async with self._lock:
            self.catalog.set_channel(channel)

    async def download(self, file_ids: Iterable[int], target: Union[str, Path]) -> list[Path]:
        """
        Rebuild committed files from their remote segments.

        A single file is written to `target` unless `target` is a directory;
        several files are written into `target/<name>`. Unknown ids are skipped.

        Returns:
            Paths written
        """
        async with self._lock:
            channel = self._require_credentials()
            records = []
            for file_id in file_ids:
                record = self.catalog.get(file_id)
                if record is None:
                    logger.warning(f"Skipping download of unknown file {file_id}")
                    continue
                records.append(record.model_copy(deep=True))

        target = Path(target)
        if len(records) > 1:
            target.mkdir(parents=True, exist_ok=True)

        written = []
        for record in records:
            destination = target / record.name if target.is_dir() else target
            await self._download_record(channel, record, destination)
            written.append(destination)
        return written

    async def wait_idle(self) -> None:
        """Wait until the queue is drained and every upload released its file."""
        while True:
            pending = list(self._background)
            if self._driver is not None:
                pending.append(self._driver)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop the driver, drop the queue and close the remote client."""
        async with self._lock:
            self.queue.clear()
            if self._cancel is not None:
                self._cancel.cancel()
            driver = self._driver
        if driver is not None:
            driver.cancel()
        await asyncio.gather(*([driver] if driver else []), *self._background, return_exceptions=True)
        await self.client.close()

    # Pipeline

    def _require_credentials(self) -> str:
        if not self.catalog.token:
            raise MissingCredentialsError("No token configured. Please run: token <token>")
        if not self.catalog.channel:
            raise MissingCredentialsError("No channel configured. Please run: channel <channel-id>")
        return self.catalog.channel

    async def _drain_queue(self) -> None:
        while True:
            async with self._lock:
                if not self.queue:
                    self.uploading = None
                    self._cancel = None
                    self._driver = None
                    return
                upload = self.queue.popleft()
                token = CancellationToken()
                self.uploading = upload.id
                self._cancel = token
                self.state = UploadState.QUEUED
                self.percent = 0.0

            try:
                await self._upload_file(upload, token)
            except Exception as e:
                logger.error(f"Upload of {upload.path} crashed: {e}", exc_info=True)
                self._fail(upload, token, e)

    async def _upload_file(self, upload: QueuedUpload, token: CancellationToken) -> None:
        progress: asyncio.Queue = asyncio.Queue()
        try:
            reader = ByteRangeReader(
                upload.path,
                on_read=progress.put_nowait,
                piece_size=self.piece_size,
                segment_cap=self.segment_cap,
                buffer_size=self.buffer_size,
            )
        except UploadIOError as e:
            self._fail(upload, token, e)
            return

        channel = self.catalog.channel
        logger.info(f"Uploading {upload.path} ({reader.size} bytes, {reader.total_segments} segments)")
        self.emit(UploadStarted(upload.id, reader.size))
        self._advance_state(upload.id, UploadState.NEGOTIATING)

        aggregator = asyncio.create_task(self._aggregate_progress(upload.id, reader.size, progress))
        results: asyncio.Queue = asyncio.Queue()
        segment_tasks = [
            asyncio.create_task(self._segment_worker(upload.id, channel, segment, token, results))
            for segment in reader.segments(token)
        ]
        collector = asyncio.create_task(self._collect(results, reader.total_segments))
        cancelled = asyncio.create_task(token.wait())

        try:
            try:
                await asyncio.wait({collector, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (collector, cancelled):
                    if not task.done():
                        task.cancel()

            committed = failed = False
            if collector.done() and not collector.cancelled():
                try:
                    ids = collector.result()
                except Exception as e:
                    self._fail(upload, token, e)
                    failed = True
                else:
                    progress.put_nowait(None)
                    await aggregator
                    committed = await self._commit(upload, reader.size, ids, token)

            if not committed and not failed:
                logger.info(f"Upload of {upload.path} aborted...")
                if self.state is UploadState.ABORTING:
                    self.state = UploadState.ABORTED
                self.emit(UploadAborted(upload.id))
        finally:
            # segment tasks may still hold the reader
            release = asyncio.create_task(self._release(reader, segment_tasks, aggregator, progress))
            self._background.add(release)
            release.add_done_callback(self._background.discard)

    async def _segment_worker(
        self,
        file_id: int,
        channel: str,
        segment: Segment,
        token: CancellationToken,
        results: asyncio.Queue,
    ) -> None:
        try:
            remote_id = await self._upload_segment(file_id, channel, segment, token)
        except UploadCancelledError:
            logger.debug(f"Segment {segment.index} of file {file_id} stopped by cancellation")
            return
        except Exception as e:
            if token.cancelled:
                logger.debug(f"Segment {segment.index} of file {file_id} ended after cancellation: {e}")
                return
            logger.error(f"Segment {segment.index} of file {file_id} failed: {e}")
            results.put_nowait(_SegmentFailure(segment.index, e))
            return

        results.put_nowait((remote_id, segment.index))

    async def _upload_segment(
        self, file_id: int, channel: str, segment: Segment, token: CancellationToken
    ) -> str:
        token.raise_if_cancelled()
        slots = await self._with_rate_limit_retry(
            f"Negotiate segment {segment.index}",
            self.client.negotiate_upload_slots,
            channel,
            segment.index,
            segment.piece_sizes(),
        )
        if len(slots) != segment.piece_count:
            raise UnexpectedResponseError(
                200, f"expected {segment.piece_count} upload slots, got {len(slots)}"
            )

        logger.debug(f"Uploading segment {segment.index}... ({len(slots)})")
        self._advance_state(file_id, UploadState.TRANSFERRING)
        started = time.monotonic()
        for slot, chunk in zip(slots, segment):
            token.raise_if_cancelled()
            await self.client.put_piece(slot.upload_url, chunk)
        logger.debug(f"Segment {segment.index} uploaded, took {time.monotonic() - started:.2f}s")

        token.raise_if_cancelled()
        self._advance_state(file_id, UploadState.FINALIZING)
        started = time.monotonic()
        remote_id = await self._with_rate_limit_retry(
            f"Finalize segment {segment.index}",
            self.client.finalize_segment,
            channel,
            slots,
            segment.index,
        )
        logger.debug(f"Segment {segment.index} sent, took {time.monotonic() - started:.2f}s")
        return remote_id

    async def _with_rate_limit_retry(self, description: str, operation, *args):
        """
        Run `operation`, sleeping for the server-given delay on every 429.

        Raises:
            RateLimitExhaustedError: After rate_limit_max_attempts rate-limited attempts
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation(*args)
            except RateLimitedError as e:
                cap = self.rate_limit_max_attempts
                if cap is not None and attempt >= cap:
                    raise RateLimitExhaustedError(
                        f"{description} still rate limited after {attempt} attempts"
                    ) from e
                logger.info(f"{description} rate limited, retrying in {e.retry_after:.2f}s (attempt {attempt})")
                await self._sleep(e.retry_after)

    async def _collect(self, results: asyncio.Queue, total: int) -> list[str]:
        ids: list[Optional[str]] = [None] * total
        for _ in range(total):
            outcome = await results.get()
            if isinstance(outcome, _SegmentFailure):
                raise outcome.error
            remote_id, index = outcome
            ids[index] = remote_id
        return ids

    async def _aggregate_progress(self, file_id: int, size: int, progress: asyncio.Queue) -> None:
        uploaded = 0
        while True:
            count = await progress.get()
            if count is None:
                return
            uploaded += count
            percent = uploaded / size * 100 if size else 100.0
            if self.uploading == file_id:
                self.percent = percent
            self.emit(UploadProgress(file_id, percent))

    async def _commit(
        self, upload: QueuedUpload, size: int, ids: list[str], token: CancellationToken
    ) -> bool:
        async with self._lock:
            if token.cancelled:
                return False
            record = FileRecord(
                id=upload.id,
                name=Path(upload.path).name,
                path=upload.path,
                size=size,
                segment_remote_ids=ids,
                created_at=int(time.time() * 1000),
            )
            self.catalog.append(record)
            self.state = UploadState.COMMITTED
            # no longer abortable; a delete queued behind this lock sees a plain record
            self.uploading = None
            self._cancel = None

        logger.info(f"File {upload.path} has been uploaded successfully")
        self.emit(UploadStateChanged(upload.id, UploadState.COMMITTED))
        self.emit(UploadCommitted(record.model_copy(deep=True)))
        return True

    def _fail(self, upload: QueuedUpload, token: CancellationToken, error: Exception) -> None:
        token.cancel()
        if self.uploading == upload.id:
            self.state = UploadState.FAILED
        logger.error(f"Failed to upload {upload.path}: {error}")
        self.emit(UploadStateChanged(upload.id, UploadState.FAILED))
        self.emit(UploadFailed(upload.id, str(error)))

    def _advance_state(self, file_id: int, state: UploadState) -> None:
        if self.uploading != file_id:
            return
        if self.state in STATE_RANK and STATE_RANK[state] <= STATE_RANK[self.state]:
            return
        self.state = state
        self.emit(UploadStateChanged(file_id, state))

    async def _release(
        self,
        reader: ByteRangeReader,
        segment_tasks: list[asyncio.Task],
        aggregator: asyncio.Task,
        progress: asyncio.Queue,
    ) -> None:
        await asyncio.gather(*segment_tasks, return_exceptions=True)
        reader.close()
        if not aggregator.done():
            progress.put_nowait(None)
            await aggregator

    async def _download_record(self, channel: str, record: FileRecord, destination: Path) -> None:
        logger.info(f"Downloading {record.name} ({len(record.segment_remote_ids)} segments) to {destination}")
        written = 0
        try:
            with open(destination, 'wb') as f:
                for message_id in record.segment_remote_ids:
                    urls = await self._with_rate_limit_retry(
                        f"Fetch message {message_id}",
                        self.client.fetch_segment_urls,
                        channel,
                        message_id,
                    )
                    for url in urls:
                        async for data in self.client.stream_attachment(url):
                            await asyncio.to_thread(f.write, data)
                            written += len(data)
        except OSError as e:
            raise UploadIOError(f"Cannot write {destination}: {e}") from e

        if written != record.size:
            logger.warning(f"Downloaded {written} bytes for {record.name}, catalog says {record.size}")
