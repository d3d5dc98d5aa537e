# src/a11y_auditor/managers/config_manager.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from a11y_auditor.model import AuditSettings
from a11y_auditor.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

AUDITOR_SECTION = "auditor"


def _cast_like(original: Any, value: Any) -> Any:
    """Casts `value` to the type of `original`; strings get a readable interpretation."""
    if isinstance(value, str):
        if isinstance(original, bool):
            return value.strip().lower() in ("1", "true", "yes", "on")
        if isinstance(original, list):
            return [item.strip() for item in value.split(",") if item.strip()]
    return type(original)(value)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Returns `base` updated with `override`; nested sections are merged key by key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_settings(path: Path) -> Optional[Dict[str, Any]]:
    """Reads one settings file. Returns None when it is missing or unreadable."""
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load %s: %s", path, e, exc_info=True)
        return None
    if not isinstance(data, dict):
        logger.error("Ignoring %s: top level must be an object, got %s.", path, type(data).__name__)
        return None
    return data


class ConfigManager:
    """
    Singleton holding the auditor configuration.

    The packaged settings.json supplies the defaults; a user file in
    ~/.a11y_auditor/settings.json, when present, overrides them section by
    section. Edits through set_nested live in memory only, and edits to the
    'auditor' section are rejected when they would not validate as AuditSettings.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized.")

    def get_all(self) -> Dict[str, Any]:
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'auditor.top_violations'.
        """
        value = self._config
        for key in key_path.split('.'):
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration, cast to the type of
        the value it replaces. e.g., 'auditor.workers', '4'

        Returns:
            bool: False when the path runs through a non-dict value or the
            resulting auditor section is invalid; the configuration is then unchanged.
        """
        keys = key_path.split('.')
        d = self._config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        leaf = keys[-1]
        had_key = leaf in d
        original_value = d.get(leaf)
        if original_value is not None:
            try:
                value = _cast_like(original_value, value)
            except (ValueError, TypeError):
                logger.warning(
                    "Could not cast new value for '%s' to type %s. Storing as string.",
                    key_path, type(original_value).__name__
                )

        d[leaf] = value
        if keys[0] == AUDITOR_SECTION and not self._auditor_section_is_valid(key_path):
            if had_key:
                d[leaf] = original_value
            else:
                del d[leaf]
            return False

        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    def _auditor_section_is_valid(self, key_path: str) -> bool:
        try:
            AuditSettings.model_validate(self.get_nested(AUDITOR_SECTION, {}))
        except ValidationError as e:
            logger.error("Rejected '%s': auditor settings would be invalid (%d errors).",
                         key_path, e.error_count())
            return False
        return True

    def reset(self):
        """Reloads the packaged defaults and the user overrides, dropping in-memory edits."""
        settings_file = PathUtils.get_settings_file()
        defaults = _read_settings(settings_file)
        if defaults is None:
            logger.warning("No usable settings.json at %s. Using empty config.", settings_file)
            defaults = {}

        user_file = PathUtils.get_user_settings_file()
        overrides = _read_settings(user_file)
        if overrides is not None:
            logger.info("Applying user settings from %s.", user_file)
            defaults = _deep_merge(defaults, overrides)

        self._config = defaults
        logger.info("Configuration has been (re)loaded.")


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
