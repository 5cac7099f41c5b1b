"""Durable catalog of committed uploads, persisted as one JSON document."""

import os
import shutil
import sys
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from common.constants import CATALOG_FILENAME
from common.logging_config import get_logger
from uploader.exceptions import CatalogError
from uploader.schemas import CatalogDocument, FileRecord

logger = get_logger(__name__)


def default_catalog_path() -> Path:
    """
    One fixed catalog location per OS.

    Returns:
        ~/.thunderspear on Linux and other POSIX systems,
        ~/Library/Application Support/thunderspear.json on macOS,
        %APPDATA%/thunderspear.json on Windows
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / CATALOG_FILENAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / CATALOG_FILENAME
    return Path.home() / ".thunderspear"


class Catalog:
    """
    Committed file records plus credentials and the id counter.

    Every mutation rewrites the whole document. Callers serialize access.
    """

    def __init__(self, path: Path, document: Optional[CatalogDocument] = None):
        """
        Args:
            path: Location of the catalog JSON document
            document: Already-loaded contents (empty catalog if None)
        """
        self.path = Path(path)
        self.document = document or CatalogDocument()

    @classmethod
    def load(cls, path: Path) -> 'Catalog':
        """
        Load the catalog, starting empty if the file is missing.

        A file that cannot be parsed is copied to `<name>.bak` and replaced by
        an empty catalog.

        Raises:
            CatalogError: If the file exists but cannot be read
        """
        path = Path(path)
        if not path.exists():
            logger.info(f"No catalog at {path}, starting empty")
            return cls(path)

        try:
            raw = path.read_text(encoding='utf-8')
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}") from e

        try:
            document = CatalogDocument.model_validate_json(raw)
        except ValidationError as e:
            backup_path = path.with_name(path.name + '.bak')
            logger.warning(f"Catalog {path} is corrupted, moved to {backup_path}: {e}")
            try:
                shutil.copy(path, backup_path)
            except OSError as copy_error:
                logger.error(f"Failed to back up corrupted catalog: {copy_error}")
            return cls(path)

        logger.info(f"Loaded catalog with {len(document.root)} files from {path}")
        return cls(path, document)

    def save(self, document: Optional[CatalogDocument] = None) -> None:
        """
        Overwrite the catalog file with `document` (the current one if None).

        Raises:
            CatalogError: If the file cannot be written
        """
        if document is None:
            document = self.document
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(document.model_dump_json(indent=2), encoding='utf-8')
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CatalogError(f"Cannot write catalog {self.path}: {e}") from e

    def _replace(self, document: CatalogDocument) -> None:
        """Persist `document` and adopt it; on CatalogError the old document stays."""
        self.save(document)
        self.document = document

    def _draft(self) -> CatalogDocument:
        return self.document.model_copy(deep=True)

    @property
    def records(self) -> list[FileRecord]:
        return self.document.root

    @property
    def token(self) -> Optional[str]:
        return self.document.token

    @property
    def channel(self) -> Optional[str]:
        return self.document.channel

    @property
    def next_id(self) -> int:
        return self.document.next_id

    def get(self, file_id: int) -> Optional[FileRecord]:
        return _find(self.document, file_id)

    def allocate_ids(self, count: int) -> list[int]:
        """Hand out `count` fresh ids; the counter is persisted so ids are never reused."""
        start = self.document.next_id
        if count:
            draft = self._draft()
            draft.next_id += count
            self._replace(draft)
        return list(range(start, start + count))

    def append(self, record: FileRecord) -> None:
        if self.get(record.id) is not None:
            raise CatalogError(f"File id {record.id} already in catalog")
        draft = self._draft()
        draft.root.append(record)
        self._replace(draft)

    def rename(self, file_id: int, name: str) -> bool:
        draft = self._draft()
        record = _find(draft, file_id)
        if record is None:
            return False
        record.name = name
        self._replace(draft)
        return True

    def remove(self, file_ids: Iterable[int]) -> list[int]:
        """
        Drop every record whose id is listed.

        Returns:
            Ids that were actually removed
        """
        wanted = set(file_ids)
        removed = [record.id for record in self.document.root if record.id in wanted]
        if removed:
            draft = self._draft()
            draft.root = [r for r in draft.root if r.id not in wanted]
            self._replace(draft)
        return removed

    def set_token(self, token: str) -> None:
        self._replace(self.document.model_copy(update={'token': token}))

    def set_channel(self, channel: str) -> None:
        self._replace(self.document.model_copy(update={'channel': channel}))


def _find(document: CatalogDocument, file_id: int) -> Optional[FileRecord]:
    for record in document.root:
        if record.id == file_id:
            return record
    return None
