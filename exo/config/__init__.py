"""Config subsystem public API.

Provides:
    get_config() -> AggregatedConfig
    as_dict()    -> dict representation
    ConfigError  -> raised on validation / unknown key
    configure_logging(cfg) -> attach the `exo` log handler once
"""

from .loader import (  # noqa: F401
    AggregatedConfig,
    get_config,
    as_dict,
    ConfigError,
    clear_config_cache,
)
from .log_setup import configure_logging  # noqa: F401


__all__ = [
    "AggregatedConfig",
    "get_config",
    "as_dict",
    "ConfigError",
    "clear_config_cache",
    "configure_logging",
]
