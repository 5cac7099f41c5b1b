"""Tests for CLI command handlers."""

import httpx
import pytest
from pathlib import Path
from unittest.mock import Mock

from cli.commands import (
    handle_channel,
    handle_delete,
    handle_download,
    handle_list,
    handle_rename,
    handle_search,
    handle_status,
    handle_token,
    handle_upload,
)
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
from uploader.exceptions import MissingCredentialsError
from uploader.orchestrator import UploadOrchestrator
from uploader.schemas import FileRecord, QueuedUpload, UploadStatus


@pytest.fixture
def orchestrator():
    """Orchestrator mock; its async methods are AsyncMocks."""
    return Mock(spec=UploadOrchestrator)


@pytest.mark.asyncio
async def test_handle_list(orchestrator):
    """Test list command handler formats every record."""
    orchestrator.list_files.return_value = [
        FileRecord(id=3, name='movie.mkv', path='/videos/movie.mkv', size=2048,
                   segment_remote_ids=['m1'], created_at=1700000000000),
    ]

    result = await handle_list(ListCommand(), orchestrator)

    assert 'Found 1 file(s)' in result
    assert '[3] movie.mkv' in result
    assert '2.00 KiB' in result


@pytest.mark.asyncio
async def test_handle_list_empty(orchestrator):
    orchestrator.list_files.return_value = []

    result = await handle_list(ListCommand(), orchestrator)

    assert result == "No files uploaded yet."


@pytest.mark.asyncio
async def test_handle_upload(orchestrator):
    """Test upload command reports queued ids and skipped paths."""
    orchestrator.enqueue.return_value = [QueuedUpload(id=7, path='/data/a.bin')]

    result = await handle_upload(UploadCommand(paths=('/data/a.bin', '/data/dir')), orchestrator)

    assert 'Queued [7] /data/a.bin' in result
    assert 'Skipped 1 path(s)' in result
    orchestrator.enqueue.assert_called_once_with(('/data/a.bin', '/data/dir'))


@pytest.mark.asyncio
async def test_handle_upload_nothing_queued(orchestrator):
    orchestrator.enqueue.return_value = []

    result = await handle_upload(UploadCommand(paths=('/missing',)), orchestrator)

    assert 'No files queued' in result


@pytest.mark.asyncio
async def test_handle_upload_missing_credentials(orchestrator):
    """Test handler turns domain errors into an error message."""
    orchestrator.enqueue.side_effect = MissingCredentialsError("No token configured. Please run: token <token>")

    result = await handle_upload(UploadCommand(paths=('/data/a.bin',)), orchestrator)

    assert result.startswith('Error:')
    assert 'token' in result


@pytest.mark.asyncio
async def test_handle_download(orchestrator):
    orchestrator.download.return_value = [Path('/restore/a.bin')]

    result = await handle_download(DownloadCommand(file_ids=(1,), target='/restore'), orchestrator)

    assert 'Saved to: /restore/a.bin' in result
    orchestrator.download.assert_called_once_with((1,), '/restore')


@pytest.mark.asyncio
async def test_handle_download_http_error(orchestrator):
    orchestrator.download.side_effect = httpx.ConnectError("connection refused")

    result = await handle_download(DownloadCommand(file_ids=(1,), target='/restore'), orchestrator)

    assert 'Error downloading files' in result


@pytest.mark.asyncio
async def test_handle_delete(orchestrator):
    orchestrator.delete.return_value = [1, 2]

    result = await handle_delete(DeleteCommand(file_ids=(1, 2, 9)), orchestrator)

    assert 'Deleted 2 file(s): 1, 2' in result


@pytest.mark.asyncio
async def test_handle_delete_nothing_matched(orchestrator):
    orchestrator.delete.return_value = []

    result = await handle_delete(DeleteCommand(file_ids=(9,)), orchestrator)

    assert 'No files deleted' in result


@pytest.mark.asyncio
async def test_handle_rename(orchestrator):
    orchestrator.rename.return_value = True
    assert 'Renamed [1] to new.bin' in await handle_rename(RenameCommand(1, 'new.bin'), orchestrator)

    orchestrator.rename.return_value = False
    assert 'No file with id 1' in await handle_rename(RenameCommand(1, 'new.bin'), orchestrator)


@pytest.mark.asyncio
async def test_handle_search(orchestrator):
    orchestrator.query.return_value = [4, 2]
    assert await handle_search(SearchCommand('report'), orchestrator) == "Matches: 4, 2"

    orchestrator.query.return_value = []
    assert 'No files match' in await handle_search(SearchCommand('report'), orchestrator)


@pytest.mark.asyncio
async def test_handle_status(orchestrator):
    """Test status shows the active upload and the queue."""
    orchestrator.status.return_value = UploadStatus(
        uploading=5, state='transferring', percent=42.5,
        queued=[QueuedUpload(id=6, path='/data/next.bin')],
    )

    result = await handle_status(StatusCommand(), orchestrator)

    assert 'Uploading [5] transferring 42.5%' in result
    assert 'queued [6] /data/next.bin' in result


@pytest.mark.asyncio
async def test_handle_status_idle(orchestrator):
    orchestrator.status.return_value = UploadStatus(uploading=None, state=None, percent=0.0, queued=[])

    assert await handle_status(StatusCommand(), orchestrator) == "Idle."


@pytest.mark.asyncio
async def test_handle_token_and_channel(orchestrator):
    assert 'Token saved' in await handle_token(TokenCommand('secret'), orchestrator)
    assert 'Channel set to 42' in await handle_channel(ChannelCommand('42'), orchestrator)

    orchestrator.set_token.assert_called_once_with('secret')
    orchestrator.set_channel.assert_called_once_with('42')
