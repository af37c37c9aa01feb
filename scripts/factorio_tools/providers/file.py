"""
Icons stored as loose files in the game or mod directories.
"""

from typing import BinaryIO

from .base import IconSource, FileIcon, IconNotFoundError


class FileIconSource(IconSource):
    """Opens FileIcon descriptors straight from disk."""

    def open(self, icon: FileIcon) -> BinaryIO:
        try:
            return open(icon.path, 'rb')
        except OSError as e:
            raise IconNotFoundError(icon.path, e.strerror or str(e)) from e
