"""Shared test fixtures for toolbridge."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from tests.fixtures.host import WEATHER_TOOL, FakeToolHost

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def weather_host() -> FakeToolHost:
    """Host exposing a single getWeather tool."""
    return FakeToolHost(
        [WEATHER_TOOL],
        {"getWeather": lambda args: "Sunny, 22C"},
    )


@pytest.fixture
def empty_host() -> FakeToolHost:
    return FakeToolHost([])


@pytest.fixture
def tool_host_script() -> Path:
    """Path to the stdio MCP host used by integration tests."""
    return FIXTURES_DIR / "tool_host.py"


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Any:
    """Keep user config files and env vars out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in (
        "TOOLBRIDGE_CONFIG",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "MCP_SERVER_PATH",
    ):
        monkeypatch.delenv(var, raising=False)
