"""
Single entry point for turning icon descriptors into byte streams.
"""

from typing import BinaryIO, Dict, Union

from .base import IconSource, FileIcon, ArchiveIcon
from .file import FileIconSource
from .archive import ArchiveIconSource


class IconSourceResolver:
    """
    Dispatches each descriptor variant to its source.

    Scoped to one pipeline run: use it as a context manager so archive handles
    are released when the run ends, whether it succeeded or not.
    """

    def __init__(self):
        self.file_source = FileIconSource()
        self.archive_source = ArchiveIconSource()
        self._sources: Dict[type, IconSource] = {
            FileIcon: self.file_source,
            ArchiveIcon: self.archive_source,
        }

    def __enter__(self) -> "IconSourceResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def archives_opened(self) -> int:
        return self.archive_source.index.open_count

    def open(self, icon: Union[FileIcon, ArchiveIcon]) -> BinaryIO:
        source = self._sources.get(type(icon))
        if source is None:
            raise TypeError(f"Unsupported icon descriptor: {icon!r}")
        return source.open(icon)

    def close(self) -> None:
        for source in self._sources.values():
            source.close()
