"""
Configuration for a site comparison run.

Defaults live on the dataclass; a JSON settings file and CLI flags can
override any of them.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_ELEMENTS = ("script", "noscript", "style")
DEFAULT_IGNORE_ATTRIBUTES = ("data-csrf", "csrf-token", "_token", "nonce")
DEFAULT_IGNORE_CLASSES = ("timestamp", "csrf", "nonce", "random")

RENDERERS = ("browser", "http")
WAIT_STRATEGIES = ("network_idle", "load", "timeout")

# Fields stored as sets but written as JSON arrays
_SET_FIELDS = ("ignore_elements", "ignore_attributes", "ignore_classes")


class ConfigError(Exception):
    """Raised when a configuration file or value is invalid."""

    pass


@dataclass
class ComparatorConfig:
    """
    Settings for crawling, rendering and comparing two sites.

    Timing values are in milliseconds.
    """

    max_pages: int = 20
    max_discovery: int = 500
    delay: int = 1000
    timeout: int = 30000
    ignore_elements: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE_ELEMENTS))
    ignore_attributes: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE_ATTRIBUTES))
    ignore_classes: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE_CLASSES))
    user_agent: str = "Comparator Bot 1.2.1"
    output_dir: str = "./comparator-results"
    renderer: str = "browser"
    wait_strategy: str = "network_idle"
    max_sequence_items: int | None = None
    detect_true_reordering: bool = False

    def __post_init__(self):
        """Validate values and coerce ignore lists to sets."""
        for name in _SET_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                raise ConfigError(f"{name} must be a list of strings, not a string")
            setattr(self, name, set(value))

        for name in ("max_pages", "max_discovery", "delay", "timeout"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer: {value!r}")

        if self.max_sequence_items is not None and self.max_sequence_items < 1:
            raise ConfigError(f"max_sequence_items must be positive: {self.max_sequence_items}")

        if self.renderer not in RENDERERS:
            raise ConfigError(f"Unknown renderer: {self.renderer}. Use one of {', '.join(RENDERERS)}.")

        if self.wait_strategy not in WAIT_STRATEGIES:
            raise ConfigError(
                f"Unknown wait strategy: {self.wait_strategy}. "
                f"Use one of {', '.join(WAIT_STRATEGIES)}."
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparatorConfig":
        """
        Build a config from a plain mapping.

        Raises:
            ConfigError: If the mapping has unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}")

    @classmethod
    def from_file(cls, path: str | Path) -> "ComparatorConfig":
        """
        Load a config from a JSON file containing a single object.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read configuration file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {config_path}")

        logger.debug("Loaded configuration from %s", config_path)
        return cls.from_dict(data)

    def merged(self, **overrides: Any) -> "ComparatorConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        try:
            return replace(self, **changes)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration override: {e}")

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        for name in _SET_FIELDS:
            data[name] = sorted(data[name])
        return data
