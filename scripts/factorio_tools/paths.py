"""
Locating the Factorio installation and the user mod directory.

Both searches walk an ordered list of candidate directories and return the
first one that contains a known marker file. An explicit override is checked
against the same marker and is never followed by an automatic search.
"""

import os
import sys
import logging
from pathlib import Path
from typing import List, Optional, Union

from .errors import LoaderError


logger = logging.getLogger(__name__)

GAME_MARKER = Path("data") / "core" / "info.json"
MOD_MARKER = Path("mod-list.json")

STEAM_REGISTRY_KEY = r"SOFTWARE\Wow6432Node\Valve\Steam"


class DirectoryNotFoundError(LoaderError):
    """Raised when no candidate directory validates."""

    def __init__(self, kind: str, searched: List[Path]):
        locations = "\n".join(f"  {path}" for path in searched)
        super().__init__(
            f"Factorio {kind} directory not found. Searched:\n{locations}", "paths"
        )
        self.kind = kind
        self.searched = searched


class InvalidDirectoryError(LoaderError):
    """Raised when an explicit override lacks the marker file."""

    def __init__(self, kind: str, path: Union[str, Path], marker: Path):
        super().__init__(f"invalid {kind} dir: {path} (missing {marker})", "paths")
        self.kind = kind
        self.path = Path(path)


def valid_game_dir(path: Union[str, Path]) -> bool:
    return (Path(path) / GAME_MARKER).is_file()


def valid_mod_dir(path: Union[str, Path]) -> bool:
    return (Path(path) / MOD_MARKER).is_file()


def _executable_dir() -> Path:
    """Directory of the running program: the frozen binary or the entry script."""
    if getattr(sys, "frozen", False) or not sys.argv or not sys.argv[0]:
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent


def _common_candidates() -> List[Path]:
    bin_dir = _executable_dir()
    return [bin_dir, bin_dir.parent, Path(".")]


def _steam_install_path() -> Optional[Path]:
    """Read the Steam install path from the Windows registry."""
    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, STEAM_REGISTRY_KEY) as key:
            value, _ = winreg.QueryValueEx(key, "InstallPath")
    except OSError as e:
        logger.debug(f"Steam registry lookup failed: {e}")
        return None
    return Path(value)


def platform_game_paths(platform: Optional[str] = None) -> List[Path]:
    """Well-known installation directories for the given platform."""
    platform = platform or sys.platform
    home = Path.home()

    if platform == "win32":
        paths = [Path(r"C:\Program Files\Factorio")]
        steam_dir = _steam_install_path()
        if steam_dir is not None:
            paths.append(steam_dir / "steamapps" / "common" / "Factorio")
        return paths

    if platform == "darwin":
        return [
            home / "Library/Application Support/Steam/steamapps/common/Factorio/factorio.app/Contents",
            Path("/Applications/factorio.app/Contents"),
        ]

    return [
        home / ".steam/steam/SteamApps/common/Factorio",
        home / ".factorio",
    ]


def platform_mod_paths(platform: Optional[str] = None) -> List[Path]:
    """Well-known user data directories for the given platform."""
    platform = platform or sys.platform

    if platform == "win32":
        appdata = os.getenv("APPDATA")
        return [Path(appdata) / "Factorio"] if appdata else []

    if platform == "darwin":
        return [Path.home() / "Library/Application Support/factorio"]

    return [Path.home() / ".factorio"]


def game_dir_candidates(platform: Optional[str] = None) -> List[Path]:
    return _common_candidates() + platform_game_paths(platform)


def mod_dir_candidates(platform: Optional[str] = None) -> List[Path]:
    """Mod candidates; each directory's mods/ subfolder is tried before itself."""
    candidates = []
    for path in _common_candidates() + platform_mod_paths(platform):
        candidates.append(path / "mods")
        candidates.append(path)
    return candidates


def find_game_dir(override: Optional[Union[str, Path]] = None,
                  platform: Optional[str] = None) -> Path:
    """
    Find the Factorio installation directory.

    Args:
        override: Explicit directory; validated and used, or rejected
        platform: sys.platform value to search for (defaults to the current one)

    Returns:
        Directory containing data/core/info.json

    Raises:
        InvalidDirectoryError: If the override lacks the marker file
        DirectoryNotFoundError: If no candidate validates
    """
    if override:
        if not valid_game_dir(override):
            raise InvalidDirectoryError("game", override, GAME_MARKER)
        return Path(override)

    candidates = game_dir_candidates(platform)
    for path in candidates:
        if valid_game_dir(path):
            logger.info(f"Found game directory: {path}")
            return path

    raise DirectoryNotFoundError("game", candidates)


def find_mod_dir(override: Optional[Union[str, Path]] = None,
                 platform: Optional[str] = None) -> Path:
    """
    Find the user mod directory.

    Args:
        override: Explicit directory; validated and used, or rejected
        platform: sys.platform value to search for (defaults to the current one)

    Returns:
        Directory containing mod-list.json

    Raises:
        InvalidDirectoryError: If the override lacks the marker file
        DirectoryNotFoundError: If no candidate validates
    """
    if override:
        if not valid_mod_dir(override):
            raise InvalidDirectoryError("mod", override, MOD_MARKER)
        return Path(override)

    candidates = mod_dir_candidates(platform)
    for path in candidates:
        if valid_mod_dir(path):
            logger.info(f"Found mod directory: {path}")
            return path

    raise DirectoryNotFoundError("mod", candidates)


# The data directory and the mod directory are the same search.
find_data_dir = find_mod_dir
