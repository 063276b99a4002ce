"""Configuration: application manifest parsing and user config persistence."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from concordance_browser.errors import ConfigError
from concordance_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_APP_NAME,
    DEFAULT_CONCORDANCE_URL,
    DEFAULT_METADATA_FILE,
    AppManifest,
    SessionState,
    UserConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"

# Cap on persisted exclusions; larger lists are truncated on load.
MAX_PERSISTED_EXCLUSIONS = 10_000


# ============================================================================
# Application manifest
# ============================================================================


def _manifest_str(section: Any, key: str, default: str, label: str) -> str:
    """Return a trimmed string override, or the default when absent/blank/mistyped."""
    if not isinstance(section, dict):
        return default
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        logger.warning("Manifest field %s is not a string, using default", label)
        return default
    return value.strip() or default


def parse_manifest(data: bytes | str) -> AppManifest:
    """Parse manifest JSON into an AppManifest.

    Raises:
        ConfigError: If the payload is not valid JSON or not a JSON object.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Manifest is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("Manifest must be a JSON object")

    return AppManifest(
        app_name=_manifest_str(raw, "appName", DEFAULT_APP_NAME, "appName"),
        concordance_url=_manifest_str(
            raw.get("api"), "concordanceUrl", DEFAULT_CONCORDANCE_URL, "api.concordanceUrl"
        ),
        metadata_file=_manifest_str(
            raw.get("corpus"), "metadataFile", DEFAULT_METADATA_FILE, "corpus.metadataFile"
        ),
    )


# ============================================================================
# User configuration persistence
# ============================================================================


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/concordance-browser/config.json
    - macOS: ~/Library/Application Support/concordance-browser/config.json
    - Windows: %APPDATA%/concordance-browser/config.json
    """
    return Path(user_config_dir(CONFIG_APP_NAME)) / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _optional_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    """Parse the session section from config data."""
    session_data = data.get("session", {})
    if not isinstance(session_data, dict):
        session_data = {}
    excluded_raw = _safe_get(session_data, "excluded_ids", [], list)
    excluded = [i for i in excluded_raw if isinstance(i, str)][:MAX_PERSISTED_EXCLUSIONS]
    return SessionState(
        last_query=_safe_get(session_data, "last_query", "", str),
        excluded_ids=excluded,
        year_from=_optional_int(session_data.get("year_from")),
        year_to=_optional_int(session_data.get("year_to")),
    )


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        export_dir=_safe_get(data, "export_dir", "", str),
        manifest_path=_safe_get(data, "manifest_path", "", str),
        session=_parse_session_state(data),
        version=_safe_get(data, "version", 1, int),
    )


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "export_dir": config.export_dir,
        "manifest_path": config.manifest_path,
        "session": {
            "last_query": config.session.last_query,
            "excluded_ids": list(config.session.excluded_ids),
            "year_from": config.session.year_from,
            "year_to": config.session.year_to,
        },
    }


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()
    if not isinstance(data, dict):
        logger.warning("Config file has invalid structure, using defaults")
        return UserConfig()
    return _dict_to_config(data)


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() so an interrupted write never
    leaves a partial config file. Returns True on success.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "get_config_path",
    "load_config",
    "parse_manifest",
    "save_config",
]
