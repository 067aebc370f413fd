"""Loading of nestkit configuration files.

Configuration is a plain dictionary with one section per component:

    ```yaml
    queue:
      autoload: true
    persistence:
      backend: file
      path: ${NESTKIT_DATA_DIR:~/.nestkit}/todos.json
    buffer:
      buffer_size: 50
      flush_interval: 2000
    ```

``${VAR}`` and ``${VAR:default}`` references are substituted from the
environment when the file is loaded.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from nestkit_common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Nested dictionaries are merged recursively; all other values in
    ``override`` replace those in ``base``.

    Example:
        >>> deep_merge({"buffer": {"buffer_size": 10, "auto_save": True}},
        ...            {"buffer": {"buffer_size": 20}})
        {'buffer': {'buffer_size': 20, 'auto_save': True}}
    """
    result = dict(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def substitute_env_vars(data: Any) -> Any:
    """Recursively substitute environment variables in configuration.

    Supports ``${VAR_NAME}`` (required) and ``${VAR_NAME:default}``.
    A leading ``~`` in a substituted string is expanded to the home directory.

    Raises:
        ConfigurationError: If a required environment variable is not set
    """
    if isinstance(data, dict):
        return {k: substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    elif isinstance(data, str):
        return _substitute_string(data)
    else:
        return data


def _substitute_string(value: str) -> str:
    if "${" not in value:
        return value

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        elif default_value is not None:
            return default_value
        raise ConfigurationError(
            f"Required environment variable not set: {var_name}",
            context={"variable": var_name},
        )

    result = _ENV_PATTERN.sub(replacer, value)
    if result.startswith("~"):
        return str(Path(result).expanduser())
    return result


def load_config(source: str | Path | Mapping[str, Any]) -> dict[str, Any]:
    """Load a configuration dictionary from a mapping or a YAML/JSON file.

    Args:
        source: A mapping, or the path of a ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        The configuration with environment variables substituted

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    if isinstance(source, Mapping):
        return substitute_env_vars(dict(source))

    path = Path(source).expanduser()
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}", context={"path": str(path)}
        )

    suffix = path.suffix.lower()
    try:
        with open(path, encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported file format: {suffix}", context={"path": str(path)}
                )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Failed to parse configuration file {path}: {e}",
            context={"path": str(path)},
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )

    logger.debug(f"Loaded configuration from {path}")
    return substitute_env_vars(data)
