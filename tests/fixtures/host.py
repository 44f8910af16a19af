"""In-process tool host for orchestrator tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from toolbridge.core.errors import IllegalStateError, ToolInvocationError
from toolbridge.tools.base import TextPart, ToolDescriptor, ToolOutput
from toolbridge.tools.catalog import ToolCatalog

if TYPE_CHECKING:
    from collections.abc import Callable


WEATHER_TOOL = ToolDescriptor(
    name="getWeather",
    description="Current weather for a city",
    input_schema={
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    },
)


def text_output(call_id: str, name: str, text: str) -> ToolOutput:
    return ToolOutput(
        tool_call_id=call_id,
        tool_name=name,
        parts=(TextPart(text=text),),
        raw_content=({"type": "text", "text": text},),
    )


class FakeToolHost:
    """Satisfies the orchestrator's host interface without a subprocess.

    ``handlers`` maps tool name to either a string (returned as text), an
    exception (raised), or a callable ``(arguments) -> str``.
    """

    def __init__(
        self,
        tools: list[ToolDescriptor] | None = None,
        handlers: dict[str, str | Exception | Callable[[dict[str, Any]], str]]
        | None = None,
        *,
        ready: bool = True,
    ) -> None:
        self._catalog = ToolCatalog(tools or [])
        self._handlers = handlers or {}
        self.ready = ready
        self.invocations: list[dict[str, Any]] = []

    def list_tools(self) -> ToolCatalog:
        if not self.ready:
            raise IllegalStateError("unconnected", "list tools")
        return self._catalog

    async def invoke(
        self, name: str, arguments: dict[str, Any], *, call_id: str = ""
    ) -> ToolOutput:
        self.invocations.append({"name": name, "arguments": arguments, "id": call_id})
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolInvocationError(name, "Tool not found in catalog")
        if isinstance(handler, Exception):
            raise handler
        text = handler(arguments) if callable(handler) else handler
        return text_output(call_id, name, text)
