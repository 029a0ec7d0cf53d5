"""Config loader utilities (split from config.py)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_settings import Config
from .exceptions import ConfigurationError
from .utils.logging import get_logger

_config: Config | None = None

CONFIG_ENV_VAR = "OBSIDIAN_FLASHCARD_SYNC_CONFIG"


def _candidate_paths(config_path: Path | None) -> list[Path]:
    if config_path:
        return [config_path.expanduser()]

    candidates: list[Path] = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / "config.yaml")
    return candidates


def load_config(config_path: Path | None = None, *, validate: bool = True) -> Config:
    """Load configuration from .env and config.yaml files using pydantic-settings.

    Values from config.yaml take precedence over environment variables and
    the .env file. An explicitly requested config file must exist.
    """
    logger = get_logger(__name__)

    candidates = _candidate_paths(config_path)
    resolved_config_path = next((p for p in candidates if p.exists()), None)

    if config_path and resolved_config_path is None:
        msg = f"Config file not found: {config_path}"
        raise ConfigurationError(msg, suggestion="Check the --config path")

    if resolved_config_path is None:
        logger.debug(
            "config_file_not_found", searched_paths=[str(p) for p in candidates]
        )

    yaml_data: dict[str, Any] = {}
    if resolved_config_path:
        try:
            with open(resolved_config_path, encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(
                "config_yaml_load_error",
                config_path=str(resolved_config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Failed to parse config file: {resolved_config_path}"
            suggestion = (
                "Check YAML syntax (indentation, colons, quotes). "
                f"Original error: {e}"
            )
            raise ConfigurationError(msg, suggestion=suggestion) from e

        if not isinstance(yaml_data, dict):
            msg = f"Config file must contain a mapping: {resolved_config_path}"
            raise ConfigurationError(msg)

        logger.debug(
            "config_yaml_loaded",
            config_path=str(resolved_config_path),
            keys_count=len(yaml_data),
        )

    try:
        config = Config(**{k.lower(): v for k, v in yaml_data.items()})
    except ValidationError as e:
        logger.error(
            "config_validation_error",
            error=str(e),
            config_path=str(resolved_config_path) if resolved_config_path else None,
        )
        msg = "Invalid configuration"
        raise ConfigurationError(msg, suggestion=str(e)) from e

    if validate:
        config.validate_config()

    logger.info(
        "config_loaded",
        vault_path=str(config.vault_path),
        vault_name=config.effective_vault_name,
        anki_connect_url=config.anki_connect_url,
    )
    return config


def get_config() -> Config:
    """Get singleton config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set singleton config instance (for testing)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global config instance (for testing only)."""
    global _config
    _config = None
