"""Configuration management for feedcache."""

from pathlib import Path

import tomli
from pydantic import BaseModel, Field, ValidationError, field_validator

from .error_handling import ConfigurationError


class FeedCacheConfig(BaseModel):
    """Main configuration for feedcache."""

    # Defaults go through expand_paths too
    store_path: Path = Field(
        default=Path("~/.local/share/feedcache/feed-store.sqlite"),
        validate_default=True,
    )

    # Storage model
    model_name: str = Field(default="FeedStore")

    @field_validator("store_path", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str) -> Path:
        """Expand user home directory in paths."""
        # In-memory stores have no path to resolve
        if str(v) == ":memory:":
            return Path(":memory:")
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @field_validator("model_name")
    @classmethod
    def model_name_not_blank(cls, v: str) -> str:
        """Validate the storage model name."""
        if not v.strip():
            msg = "model_name must not be empty"
            raise ValueError(msg)
        return v.strip()

    @property
    def is_in_memory(self) -> bool:
        """Whether the store lives only in memory."""
        return str(self.store_path) == ":memory:"


def load_config(config_path: Path | None = None) -> FeedCacheConfig:
    """Load configuration from file or defaults.

    Raises:
        ConfigurationError: the file is not valid TOML or holds invalid values.
    """
    if config_path is None:
        # Check common config locations (user config first)
        possible_paths = [
            Path.home() / ".config" / "feedcache" / "config.toml",
            Path.cwd() / "feedcache.toml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        try:
            with open(config_path, "rb") as f:
                config_data = tomli.load(f)
            return FeedCacheConfig(**config_data)
        except tomli.TOMLDecodeError as e:
            msg = f"Configuration file is not valid TOML: {e}"
            raise ConfigurationError(msg, config_path=config_path, original_error=e) from e
        except ValidationError as e:
            msg = f"Invalid configuration values in {config_path}"
            raise ConfigurationError(
                msg,
                config_path=config_path,
                details=str(e),
                original_error=e,
            ) from e
    # Use defaults
    return FeedCacheConfig()
