"""Configuration entrypoint (re-exported from split modules)."""

from .config_loader import get_config, load_config, reset_config, set_config
from .config_settings import Config

__all__ = [
    "Config",
    "get_config",
    "load_config",
    "reset_config",
    "set_config",
]
