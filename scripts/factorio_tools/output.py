"""
File naming and writing for the calculator's data and image directories.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from .errors import LoaderError
from .pipeline import FactorioData


CALC_MARKER = "calc.html"


class ExportError(LoaderError):
    """Raised when outputs cannot be written."""

    def __init__(self, message: str):
        super().__init__(message, "output")


def sprite_sheet_name(sprite_hash: str) -> str:
    return f"sprite-sheet-{sprite_hash}.png"


def dataset_name(prefix: str, version: str, expensive: bool = False) -> str:
    suffix = "-expensive" if expensive else ""
    return f"{prefix}-{version}{suffix}.json"


def valid_calc_dir(path: Union[str, Path]) -> bool:
    return (Path(path) / CALC_MARKER).is_file()


@dataclass
class ExportPaths:
    sprite_sheet: Path
    normal: Path
    expensive: Path

    def all(self) -> List[Path]:
        return [self.sprite_sheet, self.normal, self.expensive]


class DatasetExporter:
    """Writes one run's outputs into a calculator development directory."""

    def __init__(self, calc_dir: Union[str, Path], prefix: str = "vanilla", force: bool = False):
        self.calc_dir = Path(calc_dir)
        self.prefix = prefix
        self.force = force
        if not valid_calc_dir(self.calc_dir):
            raise ExportError(f"Invalid calculator directory: {str(self.calc_dir)!r}")

    def paths_for(self, data: FactorioData) -> ExportPaths:
        return ExportPaths(
            sprite_sheet=self.calc_dir / "images" / sprite_sheet_name(data.sprite_hash),
            normal=self.calc_dir / "data" / dataset_name(self.prefix, data.version),
            expensive=self.calc_dir / "data" / dataset_name(self.prefix, data.version, expensive=True),
        )

    def check_paths(self, paths: ExportPaths) -> None:
        """Refuse to overwrite existing outputs unless forced."""
        if self.force:
            return
        descriptions = {
            paths.sprite_sheet: "Sprite sheet",
            paths.normal: "Data set",
            paths.expensive: "Data set",
        }
        for path, description in descriptions.items():
            if path.exists():
                raise ExportError(
                    f'{description} "{path}" already exists (use --force to overwrite).'
                )

    def export(self, data: FactorioData) -> ExportPaths:
        """
        Write the sprite sheet and both datasets.

        Returns:
            The paths written

        Raises:
            ExportError: If a target exists (without force) or cannot be written
        """
        paths = self.paths_for(data)
        self.check_paths(paths)

        try:
            for path in paths.all():
                path.parent.mkdir(parents=True, exist_ok=True)
            paths.sprite_sheet.write_bytes(data.sprite_sheet)
            paths.normal.write_text(data.normal, encoding="utf-8")
            paths.expensive.write_text(data.expensive, encoding="utf-8")
        except OSError as e:
            raise ExportError(f"Failed to write outputs: {e}") from e

        return paths
