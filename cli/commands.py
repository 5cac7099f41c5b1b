"""Command handler functions for CLI operations."""

import httpx

from common.logging_config import get_logger
from cli.models import (
    ChannelCommand,
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    RenameCommand,
    SearchCommand,
    StatusCommand,
    TokenCommand,
    UploadCommand,
)
from cli.utils import format_record
from uploader.exceptions import ThunderspearError
from uploader.orchestrator import UploadOrchestrator

logger = get_logger(__name__)


async def handle_list(cmd: ListCommand, orchestrator: UploadOrchestrator) -> str:
    """
    Handle 'list' command.

    Returns:
        Formatted list of committed files
    """
    records = await orchestrator.list_files()
    if not records:
        return "No files uploaded yet."

    output = [f"Found {len(records)} file(s):\n"]
    output.extend(format_record(record) for record in records)
    return '\n'.join(output)


async def handle_upload(cmd: UploadCommand, orchestrator: UploadOrchestrator) -> str:
    """
    Handle 'upload' command.

    Returns:
        Queued ids, or an error message
    """
    logger.info(f"Executing upload command: {len(cmd.paths)} paths")
    try:
        uploads = await orchestrator.enqueue(cmd.paths)
    except ThunderspearError as e:
        return f"Error: {e}"

    if not uploads:
        return "No files queued. Paths must point to existing regular files."

    skipped = len(cmd.paths) - len(uploads)
    lines = [f"Queued [{upload.id}] {upload.path}" for upload in uploads]
    if skipped:
        lines.append(f"Skipped {skipped} path(s) that are not regular files.")
    return '\n'.join(lines)


async def handle_download(cmd: DownloadCommand, orchestrator: UploadOrchestrator) -> str:
    """
    Handle 'download' command.

    Returns:
        Written paths, or an error message
    """
    logger.info(f"Executing download command: ids={list(cmd.file_ids)} target={cmd.target}")
    try:
        written = await orchestrator.download(cmd.file_ids, cmd.target)
    except ThunderspearError as e:
        return f"Error: {e}"
    except httpx.HTTPError as e:
        return f"Error downloading files: {e}"

    if not written:
        return "No matching files to download."
    return '\n'.join(f"Saved to: {path}" for path in written)


async def handle_delete(cmd: DeleteCommand, orchestrator: UploadOrchestrator) -> str:
    """
    Handle 'delete' command.

    Returns:
        Summary of what was removed
    """
    try:
        removed = await orchestrator.delete(cmd.file_ids)
    except ThunderspearError as e:
        return f"Error: {e}"

    if not removed:
        return "No files deleted. No file matched the given ids."
    return f"Deleted {len(removed)} file(s): {', '.join(str(file_id) for file_id in removed)}"


async def handle_rename(cmd: RenameCommand, orchestrator: UploadOrchestrator) -> str:
    try:
        renamed = await orchestrator.rename(cmd.file_id, cmd.name)
    except ThunderspearError as e:
        return f"Error: {e}"

    if not renamed:
        return f"No file with id {cmd.file_id}."
    return f"Renamed [{cmd.file_id}] to {cmd.name}"


async def handle_search(cmd: SearchCommand, orchestrator: UploadOrchestrator) -> str:
    ids = await orchestrator.query(cmd.query)
    if not ids:
        return f"No files match: {cmd.query}"
    return f"Matches: {', '.join(str(file_id) for file_id in ids)}"


async def handle_status(cmd: StatusCommand, orchestrator: UploadOrchestrator) -> str:
    status = await orchestrator.status()
    lines = []
    if status.uploading is None:
        lines.append("Idle.")
    else:
        lines.append(f"Uploading [{status.uploading}] {status.state} {status.percent:.1f}%")
    for upload in status.queued:
        lines.append(f"  queued [{upload.id}] {upload.path}")
    return '\n'.join(lines)


async def handle_token(cmd: TokenCommand, orchestrator: UploadOrchestrator) -> str:
    try:
        await orchestrator.set_token(cmd.token)
    except ThunderspearError as e:
        return f"Error: {e}"
    return "Token saved to catalog."


async def handle_channel(cmd: ChannelCommand, orchestrator: UploadOrchestrator) -> str:
    try:
        await orchestrator.set_channel(cmd.channel)
    except ThunderspearError as e:
        return f"Error: {e}"
    return f"Channel set to {cmd.channel}."
