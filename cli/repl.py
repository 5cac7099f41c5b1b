"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

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
from cli.completer import ThunderspearCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
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
from cli.parser import ParseError, parse_command
from uploader.orchestrator import UploadOrchestrator

HANDLERS = {
    ListCommand: handle_list,
    UploadCommand: handle_upload,
    DownloadCommand: handle_download,
    DeleteCommand: handle_delete,
    RenameCommand: handle_rename,
    SearchCommand: handle_search,
    StatusCommand: handle_status,
    TokenCommand: handle_token,
    ChannelCommand: handle_channel,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj, orchestrator: UploadOrchestrator) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return await handler(cmd_obj, orchestrator)


async def repl_loop(orchestrator: UploadOrchestrator) -> None:
    """Run the interactive REPL; uploads keep running on the same loop while it waits for input."""
    session: PromptSession = PromptSession(
        completer=ThunderspearCompleter(), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    with patch_stdout():
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_welcome()
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj, orchestrator)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
