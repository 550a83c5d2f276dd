"""Configuration management for the inspection proxy."""

import os
from pathlib import Path
from typing import Optional, Union
import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_PATH = Path("config/settings.yaml")


class KieConfig(BaseModel):
    """Kie.ai endpoints and polling policy."""
    upload_base_url: str = "https://kieai.redpandaai.co"
    api_base_url: str = "https://api.kie.ai"
    model: str = "google/nano-banana-edit"
    upload_path: str = "images"
    output_format: str = "png"
    image_size: str = "1:1"
    poll_interval_seconds: float = Field(default=2.0, ge=0)
    poll_max_attempts: int = Field(default=60, ge=1)
    # Wall-clock ceiling on polling; None relies on the attempt counter alone
    poll_deadline_seconds: Optional[float] = Field(default=None, ge=0)
    timeout_seconds: float = 60.0


class AnthropicConfig(BaseModel):
    """Anthropic Messages API settings."""
    base_url: str = "https://api.anthropic.com/v1"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    version: str = "2023-06-01"
    timeout_seconds: float = 120.0


class OpenAIConfig(BaseModel):
    """OpenAI image edits settings."""
    base_url: str = "https://api.openai.com/v1"
    size: int = 1024
    max_upload_bytes: int = 4 * 1024 * 1024
    timeout_seconds: float = 120.0


class Config(BaseModel):
    """Main application configuration."""

    # API Keys
    kie_api_key: Optional[str] = Field(default=None, alias="KIE_API_KEY")
    anthropic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "ANTHROPIC_API_KEY", "EXPO_PUBLIC_CLAUDE_API_KEY", "anthropic_api_key"
        ),
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "OPENAI_API_KEY", "EXPO_PUBLIC_OPENAI_API_KEY", "openai_api_key"
        ),
    )

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")

    # Provider sections (settings.yaml)
    kie: KieConfig = Field(default_factory=KieConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)

    class Config:
        populate_by_name = True

    @field_validator("kie_api_key", "anthropic_api_key", "openai_api_key", mode="before")
    @classmethod
    def _clean_key(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        return value or None

    def require_key(self, field_name: str, env_name: str) -> str:
        """Return an API key or fail naming the variable that is missing."""
        value = getattr(self, field_name)
        if not value:
            raise ConfigurationError(f"{env_name} is not set in environment variables")
        return value


def load_config(settings_path: Union[str, Path, None] = None) -> Config:
    """
    Load configuration from environment and the YAML settings file.

    Called once at startup; the returned instance is passed to every
    component that needs it.

    Args:
        settings_path: Path to settings.yaml (defaults to config/settings.yaml)

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    load_dotenv(Path.cwd() / ".env")

    path = Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH
    if not path.exists():
        raise ConfigurationError(f"settings.yaml not found at {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            settings = yaml.safe_load(f) or {}

        config_data = {
            **os.environ,
            **settings,
        }

        config = Config(**config_data)
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e

    logger.info(
        "Configuration loaded successfully",
        extra={
            "environment": config.app_env,
            "settings_path": str(path),
            "kie_key_chars": len(config.kie_api_key or ""),
            "anthropic_key_chars": len(config.anthropic_api_key or ""),
            "openai_key_chars": len(config.openai_api_key or ""),
        }
    )

    return config
