"""
Icon sources for the atlas.
Handles loose icon files and icons packed inside zipped mods.
"""

from .base import (
    IconDescriptor, FileIcon, ArchiveIcon, IconSource,
    IconSourceError, IconNotFoundError, ArchiveError,
)
from .file import FileIconSource
from .archive import ArchiveIndex, ArchiveIconSource
from .resolver import IconSourceResolver

__all__ = [
    # Descriptors
    "IconDescriptor",
    "FileIcon",
    "ArchiveIcon",

    # Sources
    "IconSource",
    "FileIconSource",
    "ArchiveIndex",
    "ArchiveIconSource",
    "IconSourceResolver",

    # Exceptions
    "IconSourceError",
    "IconNotFoundError",
    "ArchiveError",
]
