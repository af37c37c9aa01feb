"""
Fixture builders shared by the tests: fake installations, icons and Lua bundles.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple
import zipfile
import io
from PIL import Image


LOADER_LIB = r'''
local loader = {}

local function quote(s)
  return '"' .. (s:gsub('[%c"\\]', function(c)
    return string.format("\\u%04x", c:byte())
  end)) .. '"'
end

local function encode(v, opts, depth)
  local t = type(v)
  if t == "nil" then return "null" end
  if t == "boolean" then return tostring(v) end
  if t == "number" then
    if math.type(v) == "integer" then return tostring(v) end
    return string.format("%.14g", v)
  end
  if t == "string" then return quote(v) end
  if t ~= "table" then error("cannot encode " .. t) end

  local nl, pad, inner = "", "", ""
  if opts and opts.pretty then
    nl = "\n"
    pad = string.rep(opts.indent, depth)
    inner = string.rep(opts.indent, depth + 1)
  end
  local parts = {}
  if #v > 0 then
    for i = 1, #v do
      parts[#parts + 1] = inner .. encode(v[i], opts, depth + 1)
    end
    return "[" .. nl .. table.concat(parts, "," .. nl) .. nl .. pad .. "]"
  end
  local keys = {}
  for k in pairs(v) do keys[#keys + 1] = k end
  table.sort(keys)
  for _, k in ipairs(keys) do
    parts[#parts + 1] = inner .. quote(k) .. ": " .. encode(v[k], opts, depth + 1)
  end
  if #parts == 0 then return "{}" end
  return "{" .. nl .. table.concat(parts, "," .. nl) .. nl .. pad .. "}"
end

JSON = {}

function JSON:encode(value, etc, options)
  LAST_JSON_OPTIONS = options
  return encode(value, options, 0)
end

function log(s)
  LOG_CALLS = (LOG_CALLS or 0) + 1
end

function loader.load_data(game_dir, mod_dir, version)
  log("loading " .. game_dir)
  data = {
    raw = {
      game_dir = game_dir,
      mod_dir = mod_dir,
      version = version,
      item = {["iron-plate"] = {name = "iron-plate", stack_size = 100}},
    },
  }
  return {en = {["iron-plate"] = "Iron plate"}}
end

return loader
'''

PROCESS_DATA_TEMPLATE = r'''
local M = {}

function M.process_data(raw, locales, verbose)
  log("processing")
  return {
    version = "%(version)s",
    width = %(width)s,
    icons = {
%(icons)s
    },
    normal = {mode = "normal"},
    expensive = {mode = "expensive"},
    data = {
      sprites = {},
      game_dir = raw.game_dir,
      game_version = raw.version,
      locale = locales.en["iron-plate"],
      verbose = verbose,
    },
  }
end

return M
'''


def lua_string(value: str) -> str:
    """Long-bracket Lua literal, so Windows paths need no escaping."""
    return f"[==[{value}]==]"


def icon_record(source: str, path: str, zipfile_path: Optional[str] = None) -> Dict[str, str]:
    record = {"source": source, "path": path}
    if zipfile_path is not None:
        record["zipfile"] = zipfile_path
    return record


def write_lua_bundles(root: Path, icons: List[Dict[str, str]], width=3,
                      version: str = "1.1.0") -> Tuple[Path, Path]:
    """
    Write a loader library bundle and a processdata bundle under root.

    Returns:
        (loader_lib_dir, process_data_dir)
    """
    loader_dir = root / "FactorioLoaderLib"
    (loader_dir / "library").mkdir(parents=True, exist_ok=True)
    (loader_dir / "library" / "factorioloader.lua").write_text(LOADER_LIB)

    process_dir = root / "processdata"
    process_dir.mkdir(parents=True, exist_ok=True)
    lines = []
    for record in icons:
        fields = ", ".join(f"{key} = {lua_string(value)}" for key, value in record.items())
        lines.append(f"      {{{fields}}},")
    (process_dir / "processdata.lua").write_text(PROCESS_DATA_TEMPLATE % {
        "version": version,
        "width": width,
        "icons": "\n".join(lines),
    })
    return loader_dir, process_dir


def write_installation(root: Path) -> Tuple[Path, Path]:
    """
    Create a minimal game directory and mod directory.

    Returns:
        (game_dir, mod_dir)
    """
    game_dir = root / "factorio"
    (game_dir / "data" / "core").mkdir(parents=True)
    (game_dir / "data" / "core" / "info.json").write_text('{"name": "core"}')

    mod_dir = root / "mods"
    mod_dir.mkdir(parents=True)
    (mod_dir / "mod-list.json").write_text('{"mods": []}')
    return game_dir, mod_dir


def solid_icon(size: Tuple[int, int], color: Tuple[int, int, int, int]) -> Image.Image:
    return Image.new("RGBA", size, color)


def pattern_icon(size: Tuple[int, int]) -> Image.Image:
    """Icon whose every pixel is distinct, for checking exact copies."""
    image = Image.new("RGBA", size)
    image.putdata([
        (x % 256, y % 256, (x * 7 + y * 3) % 256, 255)
        for y in range(size[1]) for x in range(size[0])
    ])
    return image


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def save_icon(path: Path, image: Image.Image) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return path


def write_archive(path: Path, entries: Dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path


def rects_overlap(a, b) -> bool:
    """True when two sheet rectangles share any pixel."""
    return not (a.x + a.width <= b.x or b.x + b.width <= a.x or
                a.y + a.height <= b.y or b.y + b.height <= a.y)


BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)
RED = (255, 0, 0, 255)
YELLOW = (255, 255, 0, 255)


def build_scenario(root: Path) -> Dict[str, object]:
    """
    Five icons in three columns: two loose 32x32, one loose 64x64, and a
    32x32 plus a 120x64 mipmap strip from the same mod archive.
    """
    game_dir, mod_dir = write_installation(root)

    red = save_icon(game_dir / "graphics" / "red.png", solid_icon((32, 32), RED))
    yellow = save_icon(game_dir / "graphics" / "yellow.png", solid_icon((64, 64), YELLOW))
    blue = save_icon(game_dir / "graphics" / "blue.png", solid_icon((32, 32), BLUE))
    mipmap = pattern_icon((120, 64))
    archive = write_archive(mod_dir / "extra_1.0.0.zip", {
        "extra_1.0.0/graphics/green.png": png_bytes(solid_icon((32, 32), GREEN)),
        "extra_1.0.0/graphics/gear.png": png_bytes(mipmap),
    })

    icons = [
        icon_record("file", str(red)),
        icon_record("zip", "extra_1.0.0/graphics/green.png", str(archive)),
        icon_record("file", str(yellow)),
        icon_record("zip", "extra_1.0.0/graphics/gear.png", str(archive)),
        icon_record("file", str(blue)),
    ]
    loader_dir, process_dir = write_lua_bundles(root, icons, width=3)

    return {
        "game_dir": game_dir,
        "mod_dir": mod_dir,
        "archive": archive,
        "mipmap": mipmap,
        "icons": icons,
        "loader_dir": loader_dir,
        "process_dir": process_dir,
    }
