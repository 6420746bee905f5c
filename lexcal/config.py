"""Configuration management for lexcal."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Ceiling on generated occurrences per expansion call
DEFAULT_MAX_ITERATIONS = 10_000

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)


@dataclass
class ExpanderConfig:
    """Settings for recurrence expansion.

    Consolidates expander settings with explicit defaults.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    include_base: bool = True

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    @classmethod
    def from_settings(cls, settings: Any) -> ExpanderConfig:
        """Extract expander configuration from a settings object or dict.

        Args:
            settings: Object or dict with ``max_iterations`` / ``include_base``

        Returns:
            ExpanderConfig with values from settings or defaults
        """
        return cls(
            max_iterations=int(get_config_value(settings, "max_iterations", DEFAULT_MAX_ITERATIONS)),
            include_base=bool(get_config_value(settings, "include_base", True)),
        )

    @classmethod
    def from_env(cls) -> ExpanderConfig:
        """Build configuration from LEXCAL_* environment variables."""
        return cls.from_settings(ConfigManager.build_config_from_env())


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    @staticmethod
    def build_config_from_env() -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - LEXCAL_MAX_ITERATIONS -> 'max_iterations' (int >= 1)
        - LEXCAL_INCLUDE_BASE_OCCURRENCE -> 'include_base' (bool)
        - LEXCAL_LOG_LEVEL -> 'log_level'

        Invalid values are logged and ignored.

        Returns:
            Configuration dictionary
        """
        cfg: dict[str, Any] = {}

        max_iterations = os.environ.get("LEXCAL_MAX_ITERATIONS")
        if max_iterations:
            try:
                value = int(max_iterations)
            except ValueError:
                logger.warning("Invalid LEXCAL_MAX_ITERATIONS=%r; ignoring", max_iterations)
            else:
                if value >= 1:
                    cfg["max_iterations"] = value
                else:
                    logger.warning("LEXCAL_MAX_ITERATIONS must be >= 1, got %d; ignoring", value)

        include_base = os.environ.get("LEXCAL_INCLUDE_BASE_OCCURRENCE")
        if include_base:
            flag = include_base.strip().lower()
            if flag in _TRUTHY:
                cfg["include_base"] = True
            elif flag in _FALSY:
                cfg["include_base"] = False
            else:
                logger.warning(
                    "Invalid LEXCAL_INCLUDE_BASE_OCCURRENCE=%r; ignoring", include_base
                )

        log_level = os.environ.get("LEXCAL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()
