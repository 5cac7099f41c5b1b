"""Tests for ThunderspearCompleter."""

import pytest

from prompt_toolkit.document import Document

from cli.completer import ThunderspearCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a ThunderspearCompleter instance."""
    return ThunderspearCompleter()


@pytest.fixture
def media_dir(tmp_path):
    """
    Create a temporary directory with files to complete.

    Returns:
        Path to the temporary directory
    """
    media = tmp_path / "media"
    media.mkdir()
    (media / "holiday.mkv").write_text("content")
    (media / "holiday-2.mkv").write_text("content")
    (media / "notes.txt").write_text("content")
    return media


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        """Empty input should suggest all commands."""
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        """Partial command should filter to matching commands."""
        completions = get_completions_list(completer, "up")
        assert completions == ["upload"]

    def test_partial_matches_several(self, completer):
        completions = get_completions_list(completer, "d")
        assert set(completions) == {"download", "delete"}

    def test_case_insensitive(self, completer):
        completions = get_completions_list(completer, "LI")
        assert "list" in completions

    def test_unknown_prefix_has_no_completions(self, completer):
        assert get_completions_list(completer, "xyz") == []


class TestPathCompletion:
    """Tests for local path completion after upload/download."""

    def test_upload_completes_files(self, completer, media_dir):
        """Upload arguments should complete local file names."""
        completions = get_completions_list(completer, f"upload {media_dir}/hol")
        assert set(completions) == {"iday.mkv", "iday-2.mkv"}

    def test_download_completes_target(self, completer, media_dir):
        completions = get_completions_list(completer, f"download 3 {media_dir}/no")
        assert completions == ["tes.txt"]

    def test_other_commands_do_not_complete_paths(self, completer, media_dir):
        """Commands taking ids or names should not suggest paths."""
        assert get_completions_list(completer, f"delete {media_dir}/hol") == []
        assert get_completions_list(completer, f"search {media_dir}/hol") == []

    def test_command_with_trailing_space_not_recompleted(self, completer):
        completions = get_completions_list(completer, "list ")
        assert completions == []
