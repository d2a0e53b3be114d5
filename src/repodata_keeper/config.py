"""Configuration file handling for repodata-keeper."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from .retention import STRATEGIES, Strategy

# Picked up from the current directory when no --config is given
DEFAULT_CONFIG_FILE = Path("repodata-keeper.toml")


@dataclass
class KeeperConfig:
    """Retention settings."""

    retain_old: int = 0
    strategy: Strategy = "classic"

    @classmethod
    def from_toml(cls, data: dict) -> KeeperConfig:
        """Create KeeperConfig from parsed TOML data.

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        retain_old = data.get("retain_old", 0)
        # bool is an int subclass; "retain_old = true" is a mistake
        if not isinstance(retain_old, int) or isinstance(retain_old, bool):
            raise ConfigError(f"retain_old must be an integer, got {retain_old!r}")
        if retain_old < -1:
            raise ConfigError(f"retain_old must be >= -1, got {retain_old}")

        strategy = data.get("strategy", "classic")
        if strategy not in STRATEGIES:
            raise ConfigError(
                f"Unknown strategy {strategy!r} (expected one of: {', '.join(STRATEGIES)})"
            )

        return cls(retain_old=retain_old, strategy=strategy)


class ConfigError(Exception):
    """Error loading configuration."""


def load_config(path: Path) -> KeeperConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        KeeperConfig instance

    Raises:
        ConfigError: If the file doesn't exist, can't be read or is invalid
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e.strerror or e}") from e

    return KeeperConfig.from_toml(data)


def resolve_config(path: Path | None) -> KeeperConfig:
    """Load the given config file, or the default one if present.

    Falls back to built-in defaults when no path is given and
    DEFAULT_CONFIG_FILE doesn't exist.
    """
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_FILE.exists():
        return load_config(DEFAULT_CONFIG_FILE)
    return KeeperConfig()
