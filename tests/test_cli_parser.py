"""Tests for CLI command parsing."""

import os

import pytest

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
from cli.parser import ParseError, parse_command


@pytest.mark.parametrize(
    "line, expected",
    [
        ("list", ListCommand()),
        ("status", StatusCommand()),
        ("upload a.bin 'my file.mkv'", UploadCommand(paths=('a.bin', 'my file.mkv'))),
        ("download 1 2 out", DownloadCommand(file_ids=(1, 2), target='out')),
        ("delete 3 4", DeleteCommand(file_ids=(3, 4))),
        ("rename 5 'new name.bin'", RenameCommand(file_id=5, name='new name.bin')),
        ("search holiday video", SearchCommand(query='holiday video')),
        ("token abc.def", TokenCommand(token='abc.def')),
        ("channel 123456", ChannelCommand(channel='123456')),
    ],
)
def test_parse_valid_commands(line, expected):
    assert parse_command(line) == expected


def test_parse_upload_expands_home():
    cmd = parse_command("upload ~/video.mkv")

    assert cmd.paths == (os.path.expanduser("~/video.mkv"),)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "   ",
        "frobnicate",
        "list extra",
        "upload",
        "download 1",
        "download x out",
        "delete",
        "delete -1",
        "rename 1",
        "rename one two",
        "search",
        "token",
        "token a b",
        "channel",
        "upload 'unterminated",
    ],
)
def test_parse_invalid_commands(line):
    with pytest.raises(ParseError):
        parse_command(line)
