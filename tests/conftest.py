"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from helpers import StubBackend


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: integration tests (may use external services)")
