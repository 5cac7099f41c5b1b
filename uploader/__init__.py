"""Chunked upload pipeline: file slicing, remote client, orchestrator, catalog."""

from uploader.catalog import Catalog, default_catalog_path
from uploader.orchestrator import UploadOrchestrator
from uploader.reader import ByteRangeReader, Chunk, Segment
from uploader.remote_client import RemoteStorageClient

__all__ = [
    "Catalog",
    "default_catalog_path",
    "UploadOrchestrator",
    "ByteRangeReader",
    "Chunk",
    "Segment",
    "RemoteStorageClient",
]
