"""Command parser for CLI input."""

import os
import shlex

from cli.models import (
    ChannelCommand,
    CommandRequest,
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    RenameCommand,
    SearchCommand,
    StatusCommand,
    TokenCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of List/Upload/Download/Delete/Rename/...)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "list":
        return _parse_no_args(args, "list", ListCommand)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "delete":
        return _parse_delete(args)
    elif command_name == "rename":
        return _parse_rename(args)
    elif command_name == "search":
        return _parse_search(args)
    elif command_name == "status":
        return _parse_no_args(args, "status", StatusCommand)
    elif command_name == "token":
        return _parse_single(args, "token", "<token>", TokenCommand)
    elif command_name == "channel":
        return _parse_single(args, "channel", "<channel-id>", ChannelCommand)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_ids(args: list[str]) -> tuple[int, ...]:
    """Parse file ids, rejecting anything that is not a non-negative integer."""
    ids = []
    for arg in args:
        if not arg.isdigit():
            raise ParseError(f"Invalid file id: {arg}")
        ids.append(int(arg))
    return tuple(ids)


def _parse_no_args(args: list[str], name: str, command_type):
    if args:
        raise ParseError(f"{name} takes no arguments")
    return command_type()


def _parse_single(args: list[str], name: str, placeholder: str, command_type):
    if len(args) != 1:
        raise ParseError(f"{name} requires exactly 1 argument: {placeholder}")
    return command_type(args[0])


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [path ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file path")

    return UploadCommand(paths=tuple(os.path.expanduser(arg) for arg in args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <id> [id ...] <target>' command."""
    if len(args) < 2:
        raise ParseError("download requires at least one file id and a target path")

    return DownloadCommand(file_ids=_parse_ids(args[:-1]), target=os.path.expanduser(args[-1]))


def _parse_delete(args: list[str]) -> DeleteCommand:
    """Parse 'delete <id> [id ...]' command."""
    if not args:
        raise ParseError("delete requires at least one file id")

    return DeleteCommand(file_ids=_parse_ids(args))


def _parse_rename(args: list[str]) -> RenameCommand:
    """Parse 'rename <id> <name>' command."""
    if len(args) != 2:
        raise ParseError("rename requires exactly 2 arguments: <id> <name>")

    (file_id,) = _parse_ids(args[:1])
    return RenameCommand(file_id=file_id, name=args[1])


def _parse_search(args: list[str]) -> SearchCommand:
    """Parse 'search <query>' command; the words are joined back together."""
    if not args:
        raise ParseError("search requires a query")

    return SearchCommand(query=" ".join(args))
