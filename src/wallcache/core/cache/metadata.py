"""
Metadata Store

Durable ``source_url -> CacheEntry`` mapping backed by a single JSON file.
Every change rewrites the whole document; a re-entrant lock serialises
read-modify-write cycles within the process.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar

from wallcache.core.exceptions import ErrorCode, PersistenceError
from wallcache.models import CacheEntry


T = TypeVar('T')
logger = logging.getLogger(__name__)

TEMP_PREFIX = ".metadata-"
TEMP_SUFFIX = ".tmp"


class MetadataStore:
    """
    Whole-file JSON metadata store.

    ``read`` never raises: a missing or unreadable file means "no metadata
    known". ``write`` never raises either: a failed write is logged and the
    previous document stays in place. Writers in other processes are not
    coordinated; between processes the last write wins.
    """

    def __init__(self, path: Path, lock: Optional[threading.RLock] = None):
        """
        Args:
            path: Location of the metadata JSON file
            lock: Lock shared with other components mutating the cache
                directory (a new one is created when omitted)
        """
        self.path = Path(path)
        self.lock = lock or threading.RLock()

    def read(self) -> Dict[str, CacheEntry]:
        """Load all entries; empty mapping when absent or unparsable."""
        try:
            return self._read_snapshot()
        except PersistenceError as e:
            logger.error(f"Error reading metadata: {e.message}")
            return {}

    def _read_snapshot(self) -> Dict[str, CacheEntry]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Failed to read {self.path}: {e}",
                error_code=ErrorCode.FS_METADATA_READ,
                file_path=str(self.path),
                cause=e
            )

        if not isinstance(raw, dict):
            raise PersistenceError(
                f"Metadata file {self.path} does not contain an object",
                error_code=ErrorCode.FS_METADATA_READ,
                file_path=str(self.path)
            )

        entries = {}
        for url, data in raw.items():
            if isinstance(data, dict):
                entries[url] = CacheEntry.from_dict(url, data)
            else:
                logger.debug(f"Ignoring malformed metadata entry for {url}")
        return entries

    def write(self, entries: Dict[str, CacheEntry]) -> bool:
        """
        Persist the full mapping, replacing the previous document atomically.

        Returns:
            True if the document was written
        """
        try:
            self._write_snapshot(entries)
            return True
        except PersistenceError as e:
            logger.error(f"Error writing metadata: {e.message}")
            return False

    def _write_snapshot(self, entries: Dict[str, CacheEntry]) -> None:
        document = self._document(entries)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w',
                encoding='utf-8',
                dir=self.path.parent,
                prefix=TEMP_PREFIX,
                suffix=TEMP_SUFFIX,
                delete=False
            ) as f:
                tmp_name = f.name
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(
                f"Failed to write {self.path}: {e}",
                error_code=ErrorCode.FS_METADATA_WRITE,
                file_path=str(self.path),
                cause=e
            )
        finally:
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    logger.warning(f"Could not remove temporary metadata file {tmp_name}: {e}")

    def update(self, mutator: Callable[[Dict[str, CacheEntry]], T]) -> T:
        """
        Run one read-modify-write cycle under the store lock.

        ``mutator`` receives the current mapping, changes it in place and may
        return a value, which is passed through. The file is only rewritten
        when the mapping actually changed.
        """
        with self.lock:
            entries = self.read()
            before = self._document(entries)
            result = mutator(entries)
            if self._document(entries) != before:
                self.write(entries)
            return result

    @staticmethod
    def _document(entries: Dict[str, CacheEntry]) -> Dict[str, Dict]:
        return {url: entry.to_dict() for url, entry in entries.items()}

    def get(self, url: str) -> Optional[CacheEntry]:
        return self.read().get(url)

    def put(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``entry.source_url``."""
        def _put(entries: Dict[str, CacheEntry]) -> None:
            entries[entry.source_url] = entry

        self.update(_put)

    def remove(self, url: str) -> bool:
        """Drop the entry for ``url``; returns whether it existed."""
        with self.lock:
            entries = self.read()
            if url not in entries:
                return False
            del entries[url]
            self.write(entries)
            return True

    def is_store_file(self, path: Path) -> bool:
        """Whether ``path`` is the metadata file or one of its temp files."""
        name = Path(path).name
        if name == self.path.name:
            return True
        return name.startswith(TEMP_PREFIX) and name.endswith(TEMP_SUFFIX)
