"""
The boundary between the loader and the external game scripts.

The scripts expose two entry points (load, then process) and a JSON
serializer. Everything that crosses the boundary is described by the
request/response records below, so the interpreter behind ScriptHost is
replaceable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import LoaderError
from ..providers.base import IconDescriptor


RECIPE_MODES = ("normal", "expensive")


class ScriptError(LoaderError):
    """A failure inside the script layer; the message is the script's own."""

    def __init__(self, message: str):
        super().__init__(message, "scripting")


@dataclass
class LoadRequest:
    """Arguments of the load entry point."""
    game_dir: Path
    mod_dir: Path
    game_version: str = "2"


@dataclass
class ProcessRequest:
    """Arguments of the process entry point besides the merged raw data."""
    locales: Any = None
    verbose: bool = False


@dataclass
class ProcessResponse:
    """Structured result of the process entry point."""
    version: str
    width: int
    icons: List[IconDescriptor]
    data: Any
    recipes: Dict[str, Any] = field(default_factory=dict)

    @property
    def icon_count(self) -> int:
        return len(self.icons)


class ScriptHost(ABC):
    """Interpreter hosting the load/process scripts for one run."""

    @abstractmethod
    def load(self, request: LoadRequest) -> Any:
        """
        Run the load entry point, merging all raw game definitions.

        Returns:
            Opaque locale table handed to the process phase (may be None)

        Raises:
            ScriptError: If the script fails
        """
        pass

    @abstractmethod
    def raw_data_json(self) -> str:
        """Serialize the merged, unprocessed definitions."""
        pass

    @abstractmethod
    def process(self, request: ProcessRequest) -> ProcessResponse:
        """
        Run the process entry point over the merged raw definitions.

        Raises:
            ScriptError: If the script fails or returns a malformed result
        """
        pass

    @abstractmethod
    def update_sprites(self, response: ProcessResponse, sprites: Dict[str, Any]) -> None:
        """Write atlas metadata into the script data's sprites table."""
        pass

    @abstractmethod
    def dataset_json(self, response: ProcessResponse, mode: str) -> str:
        """Serialize the script data with the recipe tree of the given mode attached."""
        pass


def parse_width(value: Any) -> int:
    """Coerce the script's column count to a positive integer."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScriptError(f"process_data returned a non-numeric width: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ScriptError(f"process_data returned a fractional width: {value!r}")
        value = int(value)
    if value <= 0:
        raise ScriptError(f"process_data returned a non-positive width: {value}")
    return value


def parse_icons(records: List[Optional[Dict[str, Any]]]) -> List[IconDescriptor]:
    """Turn the script's icon records into descriptors, keeping their order."""
    icons = []
    for index, record in enumerate(records):
        if record is None:
            raise ScriptError(f"icon {index} is missing from the icon list")
        try:
            icons.append(IconDescriptor.from_record(record))
        except ValueError as e:
            raise ScriptError(f"icon {index}: {e}") from e
    return icons
