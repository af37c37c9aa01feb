"""
Exception hierarchy shared by the loader components.
"""

from typing import Optional


class LoaderError(Exception):
    """Base exception for every fatal loader failure."""

    def __init__(self, message: str, component: Optional[str] = None):
        super().__init__(message)
        self.component = component


class RawDataDumped(Exception):
    """Raised after data.raw was written; the run stops without producing output."""

    def __init__(self, path: str):
        super().__init__(f"Wrote unprocessed data.raw to {path}")
        self.path = path
