"""
Configuration Module for Invoice Template Studio.

Settings come from config/settings.yaml. Tunable parameters (snap grid,
zoom limits, match thresholds, output paths, the extraction endpoint)
live there; the page coordinate system does not.

Two environment hooks sit on top of the file:

    TEMPLATE_STUDIO_CONFIG               alternative settings file
    TEMPLATE_STUDIO__<SECTION>__<KEY>    override one value, e.g.
                                         TEMPLATE_STUDIO__EXTRACTION__ENDPOINT=https://...

Override values are parsed as YAML scalars, so "0.9" becomes a float
and "false" a boolean.
"""

import os
import yaml
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

CONFIG_PATH_ENV = "TEMPLATE_STUDIO_CONFIG"
OVERRIDE_PREFIX = "TEMPLATE_STUDIO__"

PROJECT_ROOT = Path(__file__).parent.parent


class ConfigurationManager:
    """
    Process-wide settings for the template studio.

    Attributes:
        config_path (Path): Settings file that was loaded.
        overrides (Dict): Dot-notation keys taken from the environment
            or set at runtime.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("editor.snap_grid")
        10
        >>> config.set("rates.similarity_threshold", 0.9)
        >>> config.section("editor")["history_limit"]
        50
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        """Return the shared instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Load settings once per process.

        Args:
            config_path: Settings file. Falls back to $TEMPLATE_STUDIO_CONFIG,
                then config/settings.yaml. Ignored after the first call.
        """
        if self._initialized:
            return

        path = config_path or os.environ.get(CONFIG_PATH_ENV)
        self.config_path = Path(path) if path else Path(__file__).parent / "settings.yaml"
        self._config: Dict[str, Any] = {}
        self.overrides: Dict[str, Any] = {}

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Read the settings file and apply environment overrides.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            yaml.YAMLError: If the settings file is invalid.
        """
        if not self.config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise yaml.YAMLError(f"Top level of {self.config_path} must be a mapping")
        self._config = loaded

        for key, value in self._environment_overrides(os.environ).items():
            self.set(key, value)
        self._resolve_paths()

    @staticmethod
    def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
        overrides = {}
        for name, raw in environ.items():
            if not name.startswith(OVERRIDE_PREFIX):
                continue
            key = name[len(OVERRIDE_PREFIX):].lower().replace('__', '.')
            if key:
                overrides[key] = yaml.safe_load(raw) if raw else raw
        return overrides

    def _resolve_paths(self) -> None:
        """Make relative paths.* entries absolute against the project root."""
        paths = self._config.get('paths')
        if not isinstance(paths, dict):
            return
        for key, value in paths.items():
            if isinstance(value, str) and value and not Path(value).is_absolute():
                paths[key] = str(PROJECT_ROOT / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dot-notation key.

        Args:
            key: e.g. "editor.zoom.max".
            default: Returned when any segment is missing.

        Returns:
            Configuration value or default.
        """
        value: Any = self._config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Override one value for the rest of the process.

        Intermediate sections are created as needed.
        """
        *parents, leaf = key.split('.')
        node = self._config
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value
        self.overrides[key] = value

    def section(self, name: str) -> Dict[str, Any]:
        """Copy of one top-level section, empty if absent."""
        value = self._config.get(name)
        return deepcopy(value) if isinstance(value, dict) else {}

    def get_all(self) -> Dict[str, Any]:
        return deepcopy(self._config)

    def reload(self) -> None:
        """Re-read the settings file; runtime overrides are dropped."""
        self.overrides = {}
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Forget the shared instance so the next access reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ConfigurationManager().get(key, default)."""
    return ConfigurationManager().get(key, default)


def set_config(key: str, value: Any) -> None:
    """Shortcut for ConfigurationManager().set(key, value)."""
    ConfigurationManager().set(key, value)


__all__ = ['ConfigurationManager', 'get_config', 'set_config']
