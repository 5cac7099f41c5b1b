"""Utility functions for CLI output."""

from datetime import datetime
from typing import Optional

from cli.constants import GREEN, RED, RESET
from uploader.events import (
    UploadAborted,
    UploadCommitted,
    UploadEvent,
    UploadFailed,
    UploadProgress,
    UploadsQueued,
    UploadStarted,
)
from uploader.schemas import FileRecord


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_record(record: FileRecord) -> str:
    created = datetime.fromtimestamp(record.created_at / 1000).strftime('%Y-%m-%d %H:%M:%S')
    return (
        f"  [{record.id}] {record.name}\n"
        f"    Size: {format_file_size(record.size)} in {len(record.segment_remote_ids)} segment(s)\n"
        f"    Created: {created}"
    )


class ProgressPrinter:
    """
    Turns upload events into terminal lines.

    Progress is printed only when it crosses another whole step so that a
    25 MiB piece does not flood the prompt.
    """

    def __init__(self, step: float = 10.0):
        self.step = step
        self._last_step: dict[int, int] = {}

    def render(self, event: UploadEvent) -> Optional[str]:
        if isinstance(event, UploadsQueued):
            return f"Queued {len(event.uploads)} file(s): " + ", ".join(
                f"[{upload.id}] {upload.path}" for upload in event.uploads
            )
        if isinstance(event, UploadStarted):
            self._last_step[event.file_id] = -1
            return f"Uploading [{event.file_id}] ({format_file_size(event.size)})"
        if isinstance(event, UploadProgress):
            current = int(event.percent // self.step)
            if current <= self._last_step.get(event.file_id, -1):
                return None
            self._last_step[event.file_id] = current
            return f"  [{event.file_id}] {GREEN}{event.percent:.1f}%{RESET}"
        if isinstance(event, UploadCommitted):
            self._last_step.pop(event.record.id, None)
            return f"Uploaded [{event.record.id}] {event.record.name}"
        if isinstance(event, UploadAborted):
            self._last_step.pop(event.file_id, None)
            return f"Aborted upload of [{event.file_id}]"
        if isinstance(event, UploadFailed):
            self._last_step.pop(event.file_id, None)
            return f"{RED}Upload of [{event.file_id}] failed: {event.reason}{RESET}"
        return None

    def __call__(self, event: UploadEvent) -> None:
        line = self.render(event)
        if line is not None:
            print(line)
