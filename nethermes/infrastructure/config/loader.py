"""
Configuration file and environment loading.

Configuration files are JSON or YAML. Besides the nested layout written by
``save_config``, the flat layout of a classic ``nethermes.json``
(``{"Port": 8080, "KeyLength": 10, ...}``) is accepted and mapped onto the
nested sections. ``NETHERMES_*`` environment variables are applied last.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from .models import ApplicationConfig

DEFAULT_CONFIG_FILE = "nethermes.json"

# Flat nethermes.json keys, matched case-insensitively
FLAT_KEYS: Dict[str, Tuple[str, str]] = {
    "keycharset": ("transfer", "key_charset"),
    "keylength": ("transfer", "key_length"),
    "port": ("server", "port"),
    "timeoutminutes": ("transfer", "timeout_minutes"),
    "checkminutes": ("transfer", "check_minutes"),
}


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


# Environment suffix -> (section or None for top level, field, converter)
ENV_SETTINGS: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    "DEBUG": (None, "debug", _parse_bool),
    "HOST": ("server", "host", str),
    "PORT": ("server", "port", int),
    "STATIC_DIR": ("server", "static_directory", str),
    "INDEX_TEMPLATE": ("server", "index_template", str),
    "KEY_CHARSET": ("transfer", "key_charset", str),
    "KEY_LENGTH": ("transfer", "key_length", int),
    "TIMEOUT_MINUTES": ("transfer", "timeout_minutes", float),
    "CHECK_MINUTES": ("transfer", "check_minutes", float),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_DIR": ("logging", "log_directory", str),
}


class ConfigLoader:
    """Builds an ``ApplicationConfig`` from a file and the environment."""

    def __init__(self, env_prefix: str = "NETHERMES_") -> None:
        self._env_prefix = env_prefix

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration from an optional file plus environment overrides.

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file or an override cannot be parsed, or the
                resulting configuration is invalid
            TypeError: If a section contains an unknown setting
        """
        data = read_config_file(config_file) if config_file else {}
        data = unflatten(data)
        self._apply_environment(data)

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "json") -> None:
        """
        Write ``config`` in the nested layout.

        Raises:
            ValueError: For a format other than json or yaml, or a write error
        """
        data = config.to_dict()
        data.pop("config_file_path", None)

        format = format.lower()
        if format not in ("json", "yaml"):
            raise ValueError(f"Unsupported format: {format}")

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if format == "yaml":
                    yaml.safe_dump(data, f, default_flow_style=False, indent=2)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            raise ValueError(f"Error writing {file_path}: {e}")

    def _apply_environment(self, data: Dict[str, Any]) -> None:
        for suffix, (section, name, converter) in ENV_SETTINGS.items():
            env_var = f"{self._env_prefix}{suffix}"
            raw = os.getenv(env_var)
            if raw is None:
                continue

            try:
                value = converter(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_var}: {raw} ({e})")

            target = data if section is None else data.setdefault(section, {})
            target[name] = value


def read_config_file(file_path: str) -> Dict[str, Any]:
    """
    Parse a JSON or YAML configuration file into a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is unreadable, malformed or of another type
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise ValueError(f"Unsupported configuration file format: {path.suffix}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        kind = "JSON" if suffix == ".json" else "YAML"
        raise ValueError(f"Invalid {kind} in {file_path}: {e}")
    except OSError as e:
        raise ValueError(f"Error reading {file_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {file_path} must be a mapping")
    return data


def unflatten(data: Dict[str, Any]) -> Dict[str, Any]:
    """Move flat ``nethermes.json`` keys into their nested sections."""
    result: Dict[str, Any] = {}
    flat: Dict[Tuple[str, str], Any] = {}

    for key, value in data.items():
        target = FLAT_KEYS.get(key.lower()) if isinstance(key, str) else None
        if target is None:
            result[key] = value
        else:
            flat[target] = value

    for (section, name), value in flat.items():
        nested = dict(result.get(section) or {})
        nested[name] = value
        result[section] = nested

    return result
