"""nestkit configuration: YAML/JSON loading, env substitution and overrides."""

from .builders import ConfigurableBase, FactoryBase
from .environment import EnvironmentOverrides
from .loader import deep_merge, load_config, substitute_env_vars

__version__ = "0.1.0"
__all__ = [
    "ConfigurableBase",
    "EnvironmentOverrides",
    "FactoryBase",
    "deep_merge",
    "load_config",
    "substitute_env_vars",
]
