"""Tests for fuzzy file search."""

import pytest

from uploader.schemas import FileRecord, QueuedUpload
from uploader.search import normalized_distance, query_files


def record(file_id: int, name: str) -> FileRecord:
    return FileRecord(id=file_id, name=name, path=f'/x/{name}', size=1, created_at=0)


def test_normalized_distance_bounds():
    assert normalized_distance('movie', 'movie') == 0.0
    assert normalized_distance('', '') == 0.0
    assert normalized_distance('abc', 'xyz') == 1.0
    assert normalized_distance('movie', 'movies') == pytest.approx(1 / 6)


def test_catalog_matches_come_before_queue_matches():
    """Test results list catalog matches first, then queue matches, each closest first."""
    records = [record(1, 'holiday.mkv'), record(2, 'holidays.mkv'), record(3, 'taxes.pdf')]
    queue = [QueuedUpload(id=4, path='holiday.mkv'), QueuedUpload(id=5, path='holiday.mk')]

    assert query_files(records, queue, 'holiday.mkv') == [1, 2, 4, 5]


def test_group_sorted_by_distance():
    records = [record(1, 'reportt'), record(2, 'report'), record(3, 'xport')]

    assert query_files(records, [], 'report') == [2, 1, 3]


def test_distant_names_are_excluded():
    records = [record(1, 'completely-different-name.iso')]

    assert query_files(records, [], 'cat.jpg') == []


def test_transposition_counts_as_one_edit():
    """Test swapped adjacent characters cost a single edit."""
    assert normalized_distance('abcd', 'abdc') == pytest.approx(0.25)

    records = [record(1, 'hoilday.mkv'), record(2, 'abdc')]
    assert query_files(records, [], 'holiday.mkv') == [1]
    assert query_files(records, [], 'abcd') == [2]
