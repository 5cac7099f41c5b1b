"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class ListCommand:
    """List committed files."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class UploadCommand:
    """Queue local files for upload."""

    paths: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Rebuild committed files into a target path."""

    file_ids: tuple[int, ...]
    target: str
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete files, dequeue them, or abort the running upload."""

    file_ids: tuple[int, ...]
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class RenameCommand:
    """Rename a committed file."""

    file_id: int
    name: str
    command: Literal["rename"] = "rename"


@dataclass(frozen=True)
class SearchCommand:
    """Fuzzy search by name."""

    query: str
    command: Literal["search"] = "search"


@dataclass(frozen=True)
class StatusCommand:
    """Show the running upload and the queue."""

    command: Literal["status"] = "status"


@dataclass(frozen=True)
class TokenCommand:
    """Store the Authorization token."""

    token: str
    command: Literal["token"] = "token"


@dataclass(frozen=True)
class ChannelCommand:
    """Store the target channel id."""

    channel: str
    command: Literal["channel"] = "channel"


CommandRequest = (
    ListCommand
    | UploadCommand
    | DownloadCommand
    | DeleteCommand
    | RenameCommand
    | SearchCommand
    | StatusCommand
    | TokenCommand
    | ChannelCommand
)
