"""Configuration hierarchy: merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   ($XDG_CONFIG_HOME/paperless-ocr/config.toml or ~/.config/...)
  3. Project config  (./config.toml or ./paperless-ocr.yaml, searched upward)
  4. Environment variables (PAPERLESS_OCR_*)
  5. Runtime arguments

An explicit config path replaces steps 2 and 3 and must exist.
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml

from paperless_ocr.config.defaults import get_defaults
from paperless_ocr.config.schema import Settings
from paperless_ocr.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_APP_DIR_NAME = "paperless-ocr"
_CONFIG_FILE_NAMES = ("config.toml", "config.yaml", "config.yml")
_PROJECT_CONFIG_NAMES = ("config.toml", "paperless-ocr.toml", "paperless-ocr.yaml")

# Map of environment variables to (possibly dotted) config keys
_ENV_MAP: dict[str, str] = {
    "PAPERLESS_OCR_API_KEY": "api_key",
    "PAPERLESS_OCR_API_BASE_URL": "api_base_url",
    "PAPERLESS_OCR_MODEL": "model",
    "PAPERLESS_OCR_TIMEOUT": "timeout_seconds",
    "PAPERLESS_OCR_MAX_FILE_SIZE": "max_file_size_mb",
    "PAPERLESS_OCR_LOG_LEVEL": "log_level",
    "PAPERLESS_OCR_MAX_WORKERS": "max_workers",
    "PAPERLESS_OCR_MAX_RETRIES": "retry_policy.max_retries",
    "PAPERLESS_OCR_NO_CACHE": "cache.disabled",
    "PAPERLESS_OCR_STREAMING_THRESHOLD_MB": "streaming_threshold_mb",
}

# Keys that should be parsed as specific types
_TYPE_MAP: dict[str, type] = {
    "timeout_seconds": int,
    "max_file_size_mb": int,
    "max_workers": int,
    "retry_policy.max_retries": int,
    "streaming_threshold_mb": float,
}

# Boolean env var values
_TRUTHY = {"1", "true", "yes", "on"}


def load_config_hierarchy(
    config_path: str | Path | None = None,
    **runtime_overrides: Any,
) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    Returns a merged dict with the final resolved values.
    """
    config = get_defaults()

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        _deep_update(config, load_config_file(path))
    else:
        # Layer 2: Global config
        global_path = _find_global_config()
        if global_path:
            _deep_update(config, _load_optional(global_path))

        # Layer 3: Project config (search from cwd upward)
        project_path = _find_project_config()
        if project_path:
            _deep_update(config, _load_optional(project_path))

    # Layer 4: Environment variables
    _deep_update(config, _load_env_vars())

    # Layer 5: Runtime arguments (highest priority)
    # Filter out None values; only override when explicitly set
    overrides: dict[str, Any] = {}
    for key, value in runtime_overrides.items():
        if value is not None:
            _set_dotted(overrides, key, value)
    _deep_update(config, overrides)

    threshold_mb = config.pop("streaming_threshold_mb", None)
    if threshold_mb is not None:
        config["streaming_threshold_bytes"] = int(float(threshold_mb) * 1024 * 1024)

    return config


def load_settings(config_path: str | Path | None = None, **runtime_overrides: Any) -> Settings:
    """Resolve the hierarchy and validate it into a Settings object."""
    return Settings.from_mapping(load_config_hierarchy(config_path, **runtime_overrides))


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse a TOML or YAML config file into a mapping."""
    try:
        if path.suffix.lower() == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            with open(path) as f:
                data = yaml.safe_load(f)
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} is not a mapping")
    return data


def _load_optional(path: Path) -> dict[str, Any]:
    """Load a discovered config file; problems are logged and the file is skipped."""
    try:
        return load_config_file(path)
    except ConfigurationError as e:
        logger.warning("Ignoring config file: %s", e)
        return {}


def _find_global_config() -> Path | None:
    candidates: list[Path] = []
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        candidates.append(Path(xdg) / _APP_DIR_NAME)
    candidates.append(Path.home() / ".config" / _APP_DIR_NAME)
    for directory in candidates:
        for name in _CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def _find_project_config() -> Path | None:
    """Search for a project config from cwd upward."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in _PROJECT_CONFIG_NAMES:
            candidate = parent / name
            if candidate.is_file():
                return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    """Read PAPERLESS_OCR_* environment variables."""
    result: dict[str, Any] = {}
    for env_key, config_key in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        _set_dotted(result, config_key, _coerce_env_value(config_key, value))
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Coerce an environment variable string to the appropriate type."""
    if key.endswith("disabled"):
        return value.lower() in _TRUTHY

    target_type = _TYPE_MAP.get(key)
    if target_type:
        try:
            return target_type(value)
        except (ValueError, TypeError):
            logger.warning(
                "Cannot convert env var for '%s' to %s: %s", key, target_type.__name__, value
            )
            return value

    return value


def _set_dotted(target: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


def _deep_update(base: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
