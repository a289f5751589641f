"""
Settings management for tfmatrix.

Handles loading and accessing repository configuration.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.errors import ConfigError
from .defaults import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class Settings:
    """
    Repository settings manager.

    Settings are stored as JSON in the workspace root and deep-merged over
    DEFAULT_SETTINGS, so a config file only needs the keys it overrides.

    Path:
        <workspace>/.tfmatrix.json (or an explicit path)
    """

    CONFIG_FILENAME = ".tfmatrix.json"

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize settings manager.

        Args:
            workspace_root: Directory searched for the default config file
            config_file: Explicit config file; must exist if given
        """
        self._explicit = config_file is not None
        if config_file is not None:
            self.config_file: Optional[Path] = Path(config_file)
        elif workspace_root is not None:
            self.config_file = Path(workspace_root) / self.CONFIG_FILENAME
        else:
            self.config_file = None
        self._settings: Dict[str, Any] = {}
        self.load()

    def load(self):
        """
        Load settings from file.

        A missing default config file means defaults; a missing explicit
        config file or invalid JSON is an error.

        Raises:
            ConfigError: If the file is unreadable or not a JSON object
        """
        self._settings = copy.deepcopy(DEFAULT_SETTINGS)

        if self.config_file is None or not self.config_file.exists():
            if self._explicit:
                raise ConfigError(f"Config file not found: {self.config_file}")
            logger.debug("No config file found, using defaults")
            return

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded_settings = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(f"Failed to load settings from {self.config_file}: {e}") from e

        if not isinstance(loaded_settings, dict):
            raise ConfigError(f"Settings file must contain a JSON object: {self.config_file}")

        self._deep_update(self._settings, loaded_settings)
        logger.info(f"Loaded settings from {self.config_file}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get setting value.

        Supports nested keys with dot notation: "command.trigger"

        Args:
            key: Setting key (use dots for nested values)
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @staticmethod
    def _deep_update(base: dict, updates: dict):
        """Recursively update base dict with values from updates dict."""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Settings._deep_update(base[key], value)
            else:
                base[key] = value
