"""Environment variable overrides for configuration sections.

Variable format: ``NESTKIT_<SECTION>__<KEY>``

Examples:
    - ``NESTKIT_BUFFER__BUFFER_SIZE=50`` -> ``config["buffer"]["buffer_size"] = 50``
    - ``NESTKIT_PERSISTENCE__BACKEND=sqlite`` -> ``config["persistence"]["backend"] = "sqlite"``
"""

import os
from typing import Any, Dict, Mapping


class EnvironmentOverrides:
    """Collects and applies ``NESTKIT_`` environment overrides."""

    ENV_PREFIX = "NESTKIT_"
    ENV_SEPARATOR = "__"

    def __init__(self, prefix: str | None = None, environ: Mapping[str, str] | None = None) -> None:
        """Initialize the override handler.

        Args:
            prefix: Custom environment variable prefix (default: NESTKIT_)
            environ: Mapping to read variables from (default: os.environ)
        """
        self.prefix = prefix or self.ENV_PREFIX
        self._environ = environ

    def get_overrides(self) -> Dict[str, Dict[str, Any]]:
        """Get overrides grouped by section.

        Variables without a ``__`` separator after the prefix are ignored.
        """
        environ = self._environ if self._environ is not None else os.environ
        overrides: Dict[str, Dict[str, Any]] = {}

        for name, value in environ.items():
            if not name.startswith(self.prefix):
                continue
            parts = name[len(self.prefix):].split(self.ENV_SEPARATOR, 1)
            if len(parts) != 2 or not parts[0] or not parts[1]:
                continue
            section, key = parts[0].lower(), parts[1].lower()
            overrides.setdefault(section, {})[key] = self._parse_value(value)

        return overrides

    def apply(self, config: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of ``config`` with environment overrides applied."""
        result = {k: (dict(v) if isinstance(v, Mapping) else v) for k, v in config.items()}
        for section, values in self.get_overrides().items():
            current = result.get(section)
            if not isinstance(current, dict):
                current = {}
            current.update(values)
            result[section] = current
        return result

    def _parse_value(self, value: str) -> Any:
        lowered = value.lower()
        if lowered in ("true", "yes"):
            return True
        elif lowered in ("false", "no"):
            return False
        elif lowered in ("null", "none"):
            return None

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value
