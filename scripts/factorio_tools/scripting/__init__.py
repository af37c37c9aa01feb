"""
Embedded script execution: Lua bundles, the host interface and its Lua implementation.
"""

from .bundle import AssetBundle, BundleError
from .host import (
    ScriptHost, ScriptError, LoadRequest, ProcessRequest, ProcessResponse, RECIPE_MODES
)
from .lua import LuaScriptHost

__all__ = [
    "AssetBundle",
    "BundleError",
    "ScriptHost",
    "ScriptError",
    "LoadRequest",
    "ProcessRequest",
    "ProcessResponse",
    "RECIPE_MODES",
    "LuaScriptHost",
]
