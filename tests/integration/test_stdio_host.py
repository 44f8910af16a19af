"""Integration test: a real MCP tool host over stdio.

Spawns tests/fixtures/tool_host.py as a subprocess and drives it through
ToolHostConnection, then through a full ToolBridge query with a scripted
model gateway. Each test opens and closes its own connection so the
stdio transport lives inside a single task.
"""

from __future__ import annotations

import pytest

from tests.fixtures.gateway import ScriptedGateway, directives, reply
from toolbridge.bridge import ToolBridge
from toolbridge.core.errors import IllegalStateError, ToolInvocationError
from toolbridge.tools.base import CodePart
from toolbridge.transport.connection import ConnectionState, ToolHostConnection

pytestmark = pytest.mark.integration


# ── Helpers ──────────────────────────────────────────────────────


def _connection() -> ToolHostConnection:
    return ToolHostConnection(handshake_timeout=30, call_timeout=30)


# ── Connection ───────────────────────────────────────────────────


class TestStdioConnection:
    async def test_catalog_and_calls(self, tool_host_script):
        conn = _connection()
        try:
            await conn.connect(str(tool_host_script))
            assert conn.state is ConnectionState.READY
            assert conn.list_tools().list_names() == [
                "getWeather",
                "explode",
                "writeCode",
            ]

            out = await conn.invoke("getWeather", {"city": "Paris"}, call_id="c1")
            assert out.text == "Sunny, 22C"
            assert out.raw_content == ({"type": "text", "text": "Sunny, 22C"},)

            code = await conn.invoke("writeCode", {"language": "python"})
            assert code.code_parts == [CodePart("python", "print('hi')")]

            with pytest.raises(ToolInvocationError, match="boom"):
                await conn.invoke("explode", {})

            # still usable after a tool-level failure
            again = await conn.invoke("getWeather", {"city": "London"})
            assert again.text == "Rain, 14C"
        finally:
            await conn.close()

        assert conn.state is ConnectionState.CLOSED
        await conn.close()
        with pytest.raises(IllegalStateError):
            await conn.invoke("getWeather", {"city": "Paris"})


# ── End to end ───────────────────────────────────────────────────


class TestBridgeEndToEnd:
    async def test_paris_weather(self, tool_host_script):
        gateway = ScriptedGateway(
            [
                directives(("call_1", "getWeather", '{"city": "Paris"}')),
                reply("It's sunny and 22°C in Paris."),
            ]
        )
        async with ToolBridge(gateway, _connection()) as bridge:
            await bridge.connect(str(tool_host_script))
            answer = await bridge.process_query("What's the weather in Paris?")

        assert answer == "Sunny, 22C\n\nIt's sunny and 22°C in Paris."
        assert bridge.state is ConnectionState.CLOSED
        tool_message = gateway.call_log[1]["messages"][-1]
        assert tool_message.tool_call_id == "call_1"

    async def test_host_failure_aborts_query(self, tool_host_script):
        gateway = ScriptedGateway([directives(("c1", "explode", "{}")), reply("x")])
        async with ToolBridge(gateway, _connection()) as bridge:
            await bridge.connect(str(tool_host_script))
            with pytest.raises(ToolInvocationError, match="boom"):
                await bridge.process_query("blow up")
        assert gateway.remaining == 1
