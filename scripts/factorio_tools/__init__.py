"""
Factorio data loader.

Locates a Factorio installation and the user's mods, runs the calculator's Lua
loader and data-processing scripts against them, and packs every item icon
into a single sprite sheet keyed by its content hash.
"""

__version__ = "0.1.0"

from .config import LoaderConfig
from .errors import LoaderError, RawDataDumped
from .pipeline import FactorioData, FactorioLoader, load_data
from .processing.atlas import AtlasBuilder
from .providers.resolver import IconSourceResolver
from .scripting.lua import LuaScriptHost

__all__ = [
    "LoaderConfig",
    "LoaderError",
    "RawDataDumped",
    "FactorioData",
    "FactorioLoader",
    "load_data",
    "AtlasBuilder",
    "IconSourceResolver",
    "LuaScriptHost",
]
