"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildnotifier.core.exceptions import ConfigurationError
from buildnotifier.models.config import NotifierConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "BuildNotifier"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Bind address for the push endpoint")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port for the push endpoint")

    # Notifier
    notifier_config_path: str = Field(
        default="notifier.json",
        description="Path to the notifier configuration document",
    )
    template_path: str | None = Field(
        default=None,
        description="Template file overriding the one named in the notifier configuration",
    )

    # Delivery
    http_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Webhook request timeout in seconds",
    )
    user_agent: str = Field(
        default="",
        description="User-Agent header sent with every webhook request",
    )

    @model_validator(mode="after")
    def default_user_agent(self) -> "Settings":
        """Derive the User-Agent from the application name and version."""
        if not self.user_agent:
            self.user_agent = f"{self.app_name}/{self.app_version} (http)"
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_notifier_config(path: str | Path) -> NotifierConfig:
    """Load a notifier configuration document from disk.

    Args:
        path: Path to a JSON notifier configuration

    Returns:
        Parsed notifier configuration

    Raises:
        ConfigurationError: If the file is missing or the document is invalid
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read notifier config {config_path}: {e}") from e

    try:
        return NotifierConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid notifier config {config_path}: {e}") from e


def load_template_source(config: NotifierConfig, base_dir: str | Path | None = None) -> str:
    """Return the template source named by a notifier configuration.

    Inline ``content`` wins over ``uri``. A ``uri`` may be a plain path or a
    ``file://`` URI; relative paths resolve against ``base_dir``.

    Raises:
        ConfigurationError: If no template is configured or it cannot be read
    """
    template = config.spec.notification.template
    if template is None:
        raise ConfigurationError("Notifier config has no spec.notification.template")

    if template.content is not None:
        return template.content

    if not template.uri:
        raise ConfigurationError("Template must set either `content` or `uri`")

    return read_template_file(template.uri, base_dir)


def read_template_file(uri: str, base_dir: str | Path | None = None) -> str:
    """Read a template file from a path or ``file://`` URI."""
    location = uri.removeprefix("file://")
    if "://" in location:
        raise ConfigurationError(f"Unsupported template URI scheme: {uri}")

    path = Path(location)
    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir) / path

    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read template {path}: {e}") from e

