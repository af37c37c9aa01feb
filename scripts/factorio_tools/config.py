"""
Configuration management for the Factorio data loader.
Supports TOML and JSON configuration files with environment overrides.
"""

import os
import json
from dataclasses import dataclass, fields

# Handle tomllib import for different Python versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11
from typing import Dict, List, Optional, Any, Union
from pathlib import Path


GAME_VERSIONS = ("1", "2")

ENV_PREFIX = "FACTORIO_TOOLS_"


@dataclass
class LoaderConfig:
    """Configuration record for one loader run."""

    # Installation overrides
    game_dir: Optional[str] = None
    mod_dir: Optional[str] = None
    game_version: str = "2"

    # Diagnostics
    verbose: bool = False
    raw_file: Optional[str] = None

    # Lua bundles
    loader_lib_dir: str = "FactorioLoaderLib"
    process_data_dir: str = "processdata"

    # Sprite sheet encoding
    compression_level: int = 6

    # Exporter settings
    calc_dir: str = "."
    prefix: str = "vanilla"
    force: bool = False

    # Server settings
    http_addr: str = "localhost:8000"
    open_browser: bool = True

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "LoaderConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "LoaderConfig":
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "LoaderConfig":
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "LoaderConfig":
        """Create configuration from the sectioned file layout."""
        config_data = {}

        if 'game' in data:
            game = data['game']
            config_data['game_dir'] = game.get('game_dir')
            config_data['mod_dir'] = game.get('mod_dir')
            config_data['game_version'] = str(game.get('version', '2'))

        if 'scripts' in data:
            scripts = data['scripts']
            config_data['loader_lib_dir'] = scripts.get('loader_lib_dir', 'FactorioLoaderLib')
            config_data['process_data_dir'] = scripts.get('process_data_dir', 'processdata')

        if 'diagnostics' in data:
            diagnostics = data['diagnostics']
            config_data['verbose'] = diagnostics.get('verbose', False)
            config_data['raw_file'] = diagnostics.get('raw_file')

        if 'output' in data:
            output = data['output']
            config_data['compression_level'] = output.get('compression_level', 6)
            config_data['calc_dir'] = output.get('calc_dir', '.')
            config_data['prefix'] = output.get('prefix', 'vanilla')
            config_data['force'] = output.get('force', False)

        if 'server' in data:
            server = data['server']
            config_data['http_addr'] = server.get('http_addr', 'localhost:8000')
            config_data['open_browser'] = server.get('browser', True)

        return cls(**config_data)

    @classmethod
    def default(cls) -> "LoaderConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "LoaderConfig") -> "LoaderConfig":
        """Apply FACTORIO_TOOLS_* environment variables to configuration."""
        for f in fields(cls):
            value = os.getenv(ENV_PREFIX + f.name.upper())
            if not value:
                continue
            if f.type in (bool, "bool"):
                setattr(config, f.name, value.lower() in ("1", "true", "yes"))
            elif f.type in (int, "int"):
                setattr(config, f.name, int(value))
            else:
                setattr(config, f.name, value)
        return config

    def with_overrides(self, **overrides: Any) -> "LoaderConfig":
        """Return a copy with the non-None keyword values applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return LoaderConfig(**values)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.game_version not in GAME_VERSIONS:
            errors.append(f"game_version must be one of {', '.join(GAME_VERSIONS)}")

        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if not self.prefix:
            errors.append("prefix must not be empty")

        host, _, port = self.http_addr.rpartition(':')
        if not host or not port.isdigit():
            errors.append("http_addr must have the form host:port")

        return errors


def env_var_names() -> List[str]:
    """List every environment variable LoaderConfig honours."""
    return [ENV_PREFIX + f.name.upper() for f in fields(LoaderConfig)]
