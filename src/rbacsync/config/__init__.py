"""Configuration loading."""

from rbacsync.config.loader import (
    CONFIG_TEMPLATE,
    DEFAULT_CONFIG_PATH,
    load_config,
    require_token,
    write_config_template,
)

__all__ = [
    "CONFIG_TEMPLATE",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "require_token",
    "write_config_template",
]
