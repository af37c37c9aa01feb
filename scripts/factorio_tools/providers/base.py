"""
Icon descriptors and the abstract interface for icon byte sources.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, BinaryIO, Mapping, Union

from ..errors import LoaderError


@dataclass(frozen=True)
class FileIcon:
    """Icon stored as a loose file."""
    path: str

    def describe(self) -> str:
        return self.path


@dataclass(frozen=True)
class ArchiveIcon:
    """Icon stored as an entry inside a zip archive (a packed mod)."""
    archive_path: str
    entry_name: str

    def describe(self) -> str:
        return f"{self.archive_path}:{self.entry_name}"


class IconDescriptor:
    """Factory for the icon descriptor variants produced by the script layer."""

    SOURCES = ("file", "zip")

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Union[FileIcon, ArchiveIcon]:
        """
        Build a descriptor from a script record.

        Args:
            record: Mapping with 'source', 'path' and, for zip sources, 'zipfile'

        Returns:
            FileIcon or ArchiveIcon

        Raises:
            ValueError: If the record is incomplete or names an unknown source
        """
        source = record.get("source")
        path = record.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError(f"icon record has no path: {dict(record)}")

        if source == "file":
            return FileIcon(path)
        if source == "zip":
            archive = record.get("zipfile")
            if not isinstance(archive, str) or not archive:
                raise ValueError(f"zip icon {path} has no zipfile")
            return ArchiveIcon(archive, path)

        raise ValueError(f"unknown icon source {source!r}, expected one of {IconDescriptor.SOURCES}")


class IconSourceError(LoaderError):
    """Base exception for icon source failures."""

    def __init__(self, message: str, source: str):
        super().__init__(message, "providers")
        self.source = source


class IconNotFoundError(IconSourceError):
    """Raised when a loose icon file cannot be opened."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open icon {path}: {reason}", "file")
        self.path = path


class ArchiveError(IconSourceError):
    """Raised when an archive cannot be opened or lacks an entry."""

    def __init__(self, message: str, archive_path: str):
        super().__init__(message, "zip")
        self.archive_path = archive_path


class IconSource(ABC):
    """A place icon bytes can be read from."""

    @abstractmethod
    def open(self, icon) -> BinaryIO:
        """
        Open the icon's image bytes.

        Returns:
            Readable, seekable, closable binary stream

        Raises:
            IconSourceError: If the bytes cannot be reached
        """
        pass

    def close(self) -> None:
        """Release any handles held by this source."""
        pass
