"""Tests for ToolBridge wiring and gateway construction."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.fixtures.gateway import ScriptedGateway, reply
from toolbridge import ToolBridge, create_gateway
from toolbridge.config.schema import ModelConfig, ToolBridgeConfig
from toolbridge.core.errors import ConfigError, HostConnectionError
from toolbridge.providers.anthropic import AnthropicGateway
from toolbridge.providers.openai import OpenAIGateway
from toolbridge.transport.connection import ConnectionState, ToolHostConnection

# ── create_gateway ───────────────────────────────────────────────


class TestCreateGateway:
    def test_openai_default(self):
        gateway = create_gateway(ModelConfig(api_key="sk-test"))
        assert isinstance(gateway, OpenAIGateway)
        assert gateway.model == "qwen-plus"

    def test_anthropic(self):
        config = ModelConfig(provider="anthropic", model="claude", api_key="k")
        assert isinstance(create_gateway(config), AnthropicGateway)

    def test_missing_key(self):
        with pytest.raises(ConfigError, match=r"\$OPENAI_API_KEY"):
            create_gateway(ModelConfig())


# ── ToolBridge ───────────────────────────────────────────────────


def _mock_connection() -> MagicMock:
    connection = MagicMock(spec=ToolHostConnection)
    connection.connect = AsyncMock()
    connection.close = AsyncMock()
    connection.state = ConnectionState.UNCONNECTED
    return connection


class TestToolBridge:
    async def test_connect_uses_default_locator(self):
        connection = _mock_connection()
        bridge = ToolBridge(
            ScriptedGateway([]), connection, default_locator="./server.py"
        )
        await bridge.connect()
        connection.connect.assert_awaited_once_with("./server.py")

    async def test_explicit_locator_wins(self):
        connection = _mock_connection()
        bridge = ToolBridge(ScriptedGateway([]), connection, default_locator="a.py")
        await bridge.connect("b.py")
        connection.connect.assert_awaited_once_with("b.py")

    async def test_no_locator(self):
        bridge = ToolBridge(ScriptedGateway([]), _mock_connection())
        with pytest.raises(HostConnectionError, match="No tool host locator"):
            await bridge.connect()

    async def test_context_manager_closes(self):
        connection = _mock_connection()
        async with ToolBridge(ScriptedGateway([]), connection):
            pass
        connection.close.assert_awaited_once()

    async def test_process_query_delegates(self, empty_host):
        gateway = ScriptedGateway([reply("Hi there!")])
        bridge = ToolBridge(gateway, empty_host)  # type: ignore[arg-type]
        assert await bridge.process_query("hello") == "Hi there!"

    def test_from_config(self):
        config = ToolBridgeConfig.model_validate(
            {
                "host": {"locator": "srv.py", "call_timeout": 3},
                "orchestrator": {"max_rounds": 2, "tool_failure_policy": "degrade"},
                "model": {"system_prompt": "Be brief."},
            }
        )
        gateway = ScriptedGateway([])
        bridge = ToolBridge.from_config(config, gateway=gateway)
        assert bridge.state is ConnectionState.UNCONNECTED
        assert bridge.connection._call_timeout == 3
        assert bridge._default_locator == "srv.py"
        assert bridge._orchestrator._max_rounds == 2
        assert bridge._orchestrator._policy == "degrade"
        assert bridge._orchestrator._system_prompt == "Be brief."

    def test_from_config_needs_key_without_gateway(self):
        with pytest.raises(ConfigError):
            ToolBridge.from_config(ToolBridgeConfig())
