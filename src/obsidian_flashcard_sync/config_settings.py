"""Settings model for the sync service."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_DECK, DEFAULT_IGNORED_TAGS, DEFAULT_NOTE_TYPE
from .exceptions import ConfigurationError
from .utils.path_validator import validate_vault_path


class Config(BaseSettings):
    """Service configuration using pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Obsidian vault
    vault_path: Path = Field(default=Path(), description="Path to Obsidian vault")
    vault_name: str = Field(
        default="",
        description="Vault name used in Anki tags (defaults to the vault directory name)",
    )

    # Anki settings
    anki_connect_url: str = Field(
        default="http://127.0.0.1:8765", description="AnkiConnect URL"
    )
    anki_timeout: float = Field(
        default=30.0, gt=0, description="AnkiConnect request timeout in seconds"
    )
    default_deck: str = Field(
        default=DEFAULT_DECK, description="Deck used when neither block nor note set one"
    )
    default_note_type: str = Field(
        default=DEFAULT_NOTE_TYPE, description="Note type used when a block omits NoteType"
    )
    ignored_tags: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_TAGS),
        description="Anki tags that never count as a difference and survive updates",
    )

    # Runtime settings
    orphan_action: Literal["delete", "import"] = Field(
        default="delete",
        description="What to do with Anki notes whose flashcard block disappeared",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_dir: Path | None = Field(
        default=None, description="Directory for the rotating JSON log file"
    )

    @field_validator("vault_path", mode="before")
    @classmethod
    def parse_vault_path(cls, v: Any) -> Path:
        """Convert string to Path for vault_path."""
        if v is None or v == "":
            return Path()
        if isinstance(v, str | Path):
            return Path(v).expanduser().resolve()
        msg = f"vault_path must be string or Path, got {type(v).__name__}"
        raise ValueError(msg)

    @field_validator("log_dir", mode="before")
    @classmethod
    def parse_log_dir(cls, v: Any) -> Path | None:
        """Convert string to Path for log_dir."""
        if v is None or v == "":
            return None
        return Path(str(v)).expanduser()

    @field_validator("ignored_tags", mode="before")
    @classmethod
    def parse_ignored_tags(cls, v: Any) -> list[str]:
        """Accept a comma separated string or a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        if isinstance(v, list | tuple):
            return [str(tag).strip() for tag in v if str(tag).strip()]
        msg = f"ignored_tags must be string or list, got {type(v).__name__}"
        raise ValueError(msg)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Invalid log_level: {v}"
            raise ValueError(msg)
        return level

    @field_validator("default_deck", "default_note_type")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        value = v.strip()
        if not value:
            msg = "must not be blank"
            raise ValueError(msg)
        return value

    @property
    def effective_vault_name(self) -> str:
        """Vault name used in Anki tags."""
        return self.vault_name.strip() or self.vault_path.name

    def validate_config(self) -> Config:
        """Validate configuration values after initialization."""
        if self.vault_path == Path():
            msg = "vault_path is required"
            raise ConfigurationError(
                msg,
                suggestion="Set VAULT_PATH environment variable or vault_path in config.yaml",
            )

        validate_vault_path(self.vault_path)

        if not self.effective_vault_name:
            msg = "vault_name could not be determined"
            raise ConfigurationError(
                msg, suggestion="Set vault_name in config.yaml"
            )

        if not self.anki_connect_url.startswith(("http://", "https://")):
            msg = f"Invalid anki_connect_url: {self.anki_connect_url}"
            raise ConfigurationError(
                msg, suggestion="Use a URL such as http://127.0.0.1:8765"
            )

        return self
