"""Fuzzy name search over committed records and queued uploads."""

from typing import Iterable

from rapidfuzz.distance import DamerauLevenshtein

from uploader.schemas import FileRecord, QueuedUpload

MAX_DISTANCE = 0.5


def normalized_distance(a: str, b: str) -> float:
    """Damerau-Levenshtein distance scaled to [0, 1]; 0.0 means identical."""
    return DamerauLevenshtein.normalized_distance(a, b)


def _rank(candidates: Iterable[tuple[int, str]], query: str) -> list[int]:
    matches = []
    for file_id, text in candidates:
        distance = normalized_distance(text, query)
        if distance < MAX_DISTANCE:
            matches.append((distance, file_id))
    # stable: equal distances keep catalog/queue order
    matches.sort(key=lambda match: match[0])
    return [file_id for _, file_id in matches]


def query_files(
    records: Iterable[FileRecord], queue: Iterable[QueuedUpload], query: str
) -> list[int]:
    """
    Ids matching `query`: catalog matches by name, then queued uploads by path,
    each group closest first.
    """
    root = _rank(((record.id, record.name) for record in records), query)
    queued = _rank(((upload.id, upload.path) for upload in queue), query)
    return root + queued
