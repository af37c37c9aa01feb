"""
ScriptHost backed by an embedded Lua interpreter (lupa).

One LuaScriptHost owns one fresh LuaRuntime; nothing survives between runs.
Module lookups from the scripts go through searchers bound to AssetBundles
before Lua's own filesystem searchers are consulted.
"""

import logging
from typing import Any, Dict

from lupa import LuaRuntime, LuaError, lua_type

from .bundle import AssetBundle
from .host import (
    ScriptHost, ScriptError, LoadRequest, ProcessRequest, ProcessResponse,
    RECIPE_MODES, parse_icons, parse_width,
)


logger = logging.getLogger(__name__)

LOADER_MODULE = "library/factorioloader"
PROCESS_MODULE = "processdata"

JSON_OPTIONS = {"pretty": True, "align_keys": False, "indent": "    "}


def _first(result: Any) -> Any:
    """Lua calls returning several values come back as a tuple."""
    if isinstance(result, tuple):
        return result[0] if result else None
    return result


def _undecodable(what: str, error: UnicodeDecodeError) -> ScriptError:
    return ScriptError(f"{what}: script produced a string that is not valid UTF-8 ({error})")


class LuaScriptHost(ScriptHost):
    """Runs the Factorio loader library and processdata scripts."""

    def __init__(self, loader_lib: AssetBundle, process_data: AssetBundle, verbose: bool = False):
        self.loader_lib = loader_lib
        self.process_data = process_data
        self.verbose = verbose

        self.lua = LuaRuntime(unpack_returned_tuples=True, register_eval=False)
        self.globals = self.lua.globals()
        self._insert_searcher = self.lua.eval(
            "function(f) table.insert(package.searchers, 2, f) end"
        )
        self._loader = None

    # Module resolution

    def add_searcher(self, bundle: AssetBundle) -> None:
        """Make require() resolve modules from the bundle."""
        lua_load = self.globals["load"]

        def search(name):
            path = f"{name}.lua"
            full_path = bundle.full_path(path)
            if not bundle.has(path):
                return f"\n\tcould not find {full_path}"
            chunk = lua_load(bundle.read_bytes(path), "@" + full_path)
            if isinstance(chunk, tuple):
                raise ScriptError(f"error loading {full_path}: {chunk[1]}")
            return chunk, full_path

        self._insert_searcher(search)

    def require(self, module: str) -> Any:
        return self._call(self.globals["require"], module, what=f"require {module}")

    def _call(self, function, *args, what: str) -> Any:
        if function is None:
            raise ScriptError(f"{what}: function is not defined")
        try:
            return _first(function(*args))
        except LuaError as e:
            raise ScriptError(str(e)) from e
        except UnicodeDecodeError as e:
            raise _undecodable(what, e) from e

    # Serialization

    def to_json(self, value: Any) -> str:
        """Encode a Lua value with the loader library's JSON module."""
        json_module = self.globals["JSON"]
        if json_module is None:
            raise ScriptError("JSON module is not loaded")
        options = self.lua.table_from(JSON_OPTIONS)
        result = self._call(json_module["encode"], json_module, value, None, options,
                            what="JSON:encode")
        if not isinstance(result, str):
            raise ScriptError(f"JSON:encode returned {type(result).__name__}, expected a string")
        return result

    # Entry points

    def load(self, request: LoadRequest) -> Any:
        self.add_searcher(self.loader_lib)
        self._loader = self.require(LOADER_MODULE)
        if self._loader is None:
            raise ScriptError(f"{LOADER_MODULE} did not return a module")

        if not self.verbose:
            self.silence_log()

        locales = self._call(
            self._loader["load_data"],
            str(request.game_dir), str(request.mod_dir), request.game_version,
            what="load_data",
        )
        logger.info("data loaded")
        return locales

    def silence_log(self) -> None:
        """Replace the scripts' log function with a no-op."""
        try:
            self.lua.execute("function log(s) end")
        except LuaError as e:
            raise ScriptError(str(e)) from e

    def _raw_data(self) -> Any:
        data = self.globals["data"]
        raw = data["raw"] if data is not None else None
        if raw is None:
            raise ScriptError("data.raw is not defined; run the load phase first")
        return raw

    def raw_data_json(self) -> str:
        return self.to_json(self._raw_data())

    def process(self, request: ProcessRequest) -> ProcessResponse:
        self.add_searcher(self.process_data)
        module = self.require(PROCESS_MODULE)
        if module is None:
            raise ScriptError(f"{PROCESS_MODULE} did not return a module")

        result = self._call(
            module["process_data"], self._raw_data(), request.locales, request.verbose,
            what="process_data",
        )
        if result is None:
            raise ScriptError("process_data returned nothing")
        try:
            return self._read_response(result)
        except UnicodeDecodeError as e:
            raise _undecodable("process_data", e) from e

    def _read_response(self, result: Any) -> ProcessResponse:
        version = result["version"]
        if not isinstance(version, str):
            raise ScriptError(f"process_data returned a non-string version: {version!r}")

        icon_table = result["icons"]
        if icon_table is None:
            raise ScriptError("process_data returned no icon list")
        records = []
        for i in range(1, len(icon_table) + 1):
            entry = icon_table[i]
            if entry is not None and lua_type(entry) != "table":
                raise ScriptError(f"icon {i - 1} is not a table: {entry!r}")
            records.append(None if entry is None else {
                "source": entry["source"],
                "path": entry["path"],
                "zipfile": entry["zipfile"],
            })

        data = result["data"]
        if data is None:
            raise ScriptError("process_data returned no data table")

        recipes = {}
        for mode in RECIPE_MODES:
            tree = result[mode]
            recipes[mode] = tree if tree is not None else data[mode]

        return ProcessResponse(
            version=version,
            width=parse_width(result["width"]),
            icons=parse_icons(records),
            data=data,
            recipes=recipes,
        )

    # Write-back

    def update_sprites(self, response: ProcessResponse, sprites: Dict[str, Any]) -> None:
        table = response.data["sprites"]
        if table is None:
            table = self.lua.table()
            response.data["sprites"] = table
        for key, value in sprites.items():
            table[key] = value

    def dataset_json(self, response: ProcessResponse, mode: str) -> str:
        if mode not in response.recipes:
            raise ValueError(f"Unknown recipe mode: {mode}")
        response.data["recipes"] = response.recipes[mode]
        return self.to_json(response.data)
