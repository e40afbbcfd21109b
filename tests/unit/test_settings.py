"""
Unit tests for Pydantic settings: loading from env, YAML loading, validation
errors for invalid fields.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from medi_assist.config.settings import (
    DEFAULT_GEMINI_ENDPOINT,
    FlowSettings,
    GeminiSettings,
    LoggingSettings,
    SessionSettings,
    Settings,
    get_settings,
    reload_settings,
)


# -----------------------------------------------------------------------------
# Loading from env
# -----------------------------------------------------------------------------


class TestSettingsLoadFromEnv:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            s = Settings()
        assert s.gemini.api_endpoint == DEFAULT_GEMINI_ENDPOINT
        assert s.gemini.model == "gemini/gemini-2.0-flash"
        assert s.flows.max_tool_rounds == 4
        assert s.logging.log_format == "json"
        assert s.session.store_path == "./data/sessions.json"

    def test_google_api_key_from_env(self) -> None:
        with patch.dict(os.environ, {"GOOGLE_API_KEY": "secret"}):
            g = GeminiSettings()
        assert g.api_key is not None
        assert g.api_key.get_secret_value() == "secret"
        assert "secret" not in repr(g)

    def test_public_endpoint_alias(self) -> None:
        with patch.dict(os.environ, {"NEXT_PUBLIC_GEMINI_API_ENDPOINT": "https://proxy.test/gen"}, clear=True):
            g = GeminiSettings()
        assert g.api_endpoint == "https://proxy.test/gen"

    def test_flow_prefix(self) -> None:
        with patch.dict(os.environ, {"FLOW_MAX_TOOL_ROUNDS": "2"}):
            assert FlowSettings().max_tool_rounds == 2

    def test_session_prefix(self) -> None:
        with patch.dict(os.environ, {"SESSION_STORE_PATH": "/tmp/s.json"}):
            assert SessionSettings().store_path == "/tmp/s.json"


# -----------------------------------------------------------------------------
# Validation errors
# -----------------------------------------------------------------------------


class TestValidation:
    def test_log_level_normalised(self) -> None:
        assert LoggingSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_format(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(log_format="xml")

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(log_level="LOUD")

    def test_tool_rounds_bounds(self) -> None:
        with pytest.raises(ValidationError):
            FlowSettings(max_tool_rounds=0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            GeminiSettings(request_timeout=0)


# -----------------------------------------------------------------------------
# YAML and globals
# -----------------------------------------------------------------------------


class TestFromYaml:
    def test_loads_nested_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "gemini:\n  model: gemini/gemini-1.5-pro\nflows:\n  max_tool_rounds: 6\nlogging:\n  log_format: console\n",
            encoding="utf-8",
        )
        s = Settings.from_yaml(path)
        assert s.gemini.model == "gemini/gemini-1.5-pro"
        assert s.flows.max_tool_rounds == 6
        assert s.logging.log_format == "console"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "nope.yaml")


class TestGlobals:
    def test_get_settings_is_cached_and_reload_replaces(self) -> None:
        first = get_settings()
        assert get_settings() is first
        reloaded = reload_settings()
        assert reloaded is not first
        assert get_settings() is reloaded
