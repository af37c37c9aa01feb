"""
Bundles of Lua sources that scripted require() calls resolve against.
"""

from pathlib import Path
from typing import Union

from ..errors import LoaderError


class BundleError(LoaderError):
    """Raised when a bundle root is unusable."""

    def __init__(self, message: str):
        super().__init__(message, "scripting")


class AssetBundle:
    """A directory of Lua modules addressed by slash-separated relative names."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        if not self.root.is_dir():
            raise BundleError(f"Lua bundle directory not found: {self.root}")

    def __repr__(self) -> str:
        return f"AssetBundle({str(self.root)!r})"

    def full_path(self, name: str) -> str:
        """Path reported to Lua as the chunk name for a bundled file."""
        return f"{self.root.as_posix()}/{name}"

    def has(self, name: str) -> bool:
        return (self.root / name).is_file()

    def read_bytes(self, name: str) -> bytes:
        return (self.root / name).read_bytes()
