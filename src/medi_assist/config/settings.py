"""
Medi-Assist Settings Configuration

This module provides centralized configuration management using Pydantic settings.
Configuration is loaded from .env by default; alternative YAML loading is supported.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
)


class GeminiSettings(BaseSettings):
    """
    Inference endpoint configuration: API key, direct-call endpoint,
    LiteLLM model id for flow units, and transport limits.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Google API key; required for every model call",
        validation_alias=AliasChoices("GOOGLE_API_KEY", "api_key"),
    )
    api_endpoint: str = Field(
        default=DEFAULT_GEMINI_ENDPOINT,
        description="generateContent endpoint used by the direct transport",
        validation_alias=AliasChoices("GEMINI_API_ENDPOINT", "NEXT_PUBLIC_GEMINI_API_ENDPOINT", "api_endpoint"),
    )
    model: str = Field(
        default="gemini/gemini-2.0-flash",
        description="LiteLLM model id used by flow units (provider/model)",
        validation_alias=AliasChoices("GEMINI_MODEL", "model"),
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout in seconds for the direct transport",
        validation_alias=AliasChoices("GEMINI_REQUEST_TIMEOUT", "request_timeout"),
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        le=8192,
        description="Max output tokens per flow call",
        validation_alias=AliasChoices("GEMINI_MAX_TOKENS", "max_tokens"),
    )


class FlowSettings(BaseSettings):
    """Flow runtime limits."""

    model_config = SettingsConfigDict(env_prefix="FLOW_", extra="ignore")

    max_tool_rounds: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Max model/tool round trips in one conversational invocation",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration: level and format (json/console)."""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(default="json", description="Format: 'json' or 'console'")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = ("json", "console")
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        u = v.upper()
        if u not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return u


class SessionSettings(BaseSettings):
    """Session context persistence."""

    model_config = SettingsConfigDict(env_prefix="SESSION_", extra="ignore")

    store_path: str = Field(default="./data/sessions.json", description="JSON file used by the file session store")


class Settings(BaseSettings):
    """
    Root settings class. Loads from .env by default; supports creation from YAML.

    Nested models: gemini, flows, logging, session.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    gemini: GeminiSettings = Field(default_factory=GeminiSettings, description="Inference endpoint config")
    flows: FlowSettings = Field(default_factory=FlowSettings, description="Flow runtime config")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging config")
    session: SessionSettings = Field(default_factory=SessionSettings, description="Session store config")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """
        Create Settings from a YAML file. Top-level keys should match
        nested model names (gemini, flows, logging, session).
        Environment variables still override when present.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        kwargs: dict[str, Any] = {}
        for name, model_class in [
            ("gemini", GeminiSettings),
            ("flows", FlowSettings),
            ("logging", LoggingSettings),
            ("session", SessionSettings),
        ]:
            if name in data and isinstance(data[name], dict):
                kwargs[name] = model_class.model_validate(data[name])
        return cls(**kwargs)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance (loads from .env)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload of settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
