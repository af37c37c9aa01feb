"""
Icons stored inside zipped mods.

A run usually references hundreds of icons from a handful of archives, so each
archive is opened and indexed once, on first use, and kept open until the run
closes the source.
"""

import logging
import zipfile
from typing import BinaryIO, Dict

from .base import IconSource, ArchiveIcon, ArchiveError


logger = logging.getLogger(__name__)


class ArchiveIndex:
    """Open archives keyed by path, each with its entry-name index."""

    def __init__(self):
        self._archives: Dict[str, zipfile.ZipFile] = {}
        self._entries: Dict[str, Dict[str, zipfile.ZipInfo]] = {}
        self.open_count = 0

    def __contains__(self, archive_path: str) -> bool:
        return archive_path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self, archive_path: str) -> Dict[str, zipfile.ZipInfo]:
        """Return the entry index of an archive, opening it on first reference."""
        entries = self._entries.get(archive_path)
        if entries is not None:
            return entries

        try:
            archive = zipfile.ZipFile(archive_path, 'r')
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveError(f"Cannot open archive {archive_path}: {e}", archive_path) from e

        self.open_count += 1
        logger.debug(f"Indexed archive {archive_path}")
        entries = {info.filename: info for info in archive.infolist()}
        self._archives[archive_path] = archive
        self._entries[archive_path] = entries
        return entries

    def open_entry(self, archive_path: str, entry_name: str) -> BinaryIO:
        info = self.entries(archive_path).get(entry_name)
        if info is None:
            raise ArchiveError(
                f"Entry {entry_name} not found in archive {archive_path}", archive_path
            )
        try:
            return self._archives[archive_path].open(info)
        except (OSError, zipfile.BadZipFile, RuntimeError) as e:
            raise ArchiveError(
                f"Cannot read {entry_name} from archive {archive_path}: {e}", archive_path
            ) from e

    def close(self) -> None:
        """Close every archive; the index is empty afterwards."""
        errors = []
        for path, archive in self._archives.items():
            try:
                archive.close()
            except OSError as e:
                errors.append(f"{path}: {e}")
        self._archives.clear()
        self._entries.clear()
        for error in errors:
            logger.error(f"Failed to close archive {error}")


class ArchiveIconSource(IconSource):
    """Opens ArchiveIcon descriptors through a run-scoped ArchiveIndex."""

    def __init__(self):
        self.index = ArchiveIndex()

    def open(self, icon: ArchiveIcon) -> BinaryIO:
        return self.index.open_entry(icon.archive_path, icon.entry_name)

    def close(self) -> None:
        self.index.close()
