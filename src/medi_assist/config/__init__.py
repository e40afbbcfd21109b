"""Configuration: settings loaded from .env or YAML."""

from medi_assist.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
