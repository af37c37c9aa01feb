"""
Processing modules for sprite sheet generation and dataset assembly.
"""

from .atlas import (
    AtlasBuilder,
    AtlasConfig,
    AtlasResult,
    AtlasGeometry,
    AtlasGenerationError,
    IconDecodeError,
    IconSizing,
    choose_sizing,
    CELL_SIZE,
)
from .assembler import DataAssembler, Datasets

__all__ = [
    "AtlasBuilder",
    "AtlasConfig",
    "AtlasResult",
    "AtlasGeometry",
    "AtlasGenerationError",
    "IconDecodeError",
    "IconSizing",
    "choose_sizing",
    "CELL_SIZE",
    "DataAssembler",
    "Datasets",
]
