"""Model gateway interface and data classes.

All gateway adapters implement the ``ModelGateway`` protocol.
Data classes are immutable where possible (frozen dataclasses with slots).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


@dataclass(frozen=True, slots=True)
class ToolCallData:
    """A tool call directive from a model response."""

    id: str
    name: str
    arguments: str  # JSON string of arguments


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    """A single message in a query session.

    ``tool_calls`` is set on assistant messages that carry directives;
    ``tool_call_id`` correlates a tool-role message to its directive;
    ``is_error`` marks a tool-role message that reports a failed call.
    """

    role: Role
    content: str | None
    tool_calls: tuple[ToolCallData, ...] = ()
    tool_call_id: str | None = None
    is_error: bool = False


@dataclass(slots=True)
class ModelResponse:
    """Complete response from a model call."""

    content: str
    model: str
    usage: TokenUsage
    finish_reason: str  # "stop", "length", "tool_calls"
    latency_ms: float  # Wall-clock time for the call
    raw_response: object = field(default=None, repr=False)
    tool_calls: list[ToolCallData] | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@runtime_checkable
class ModelGateway(Protocol):
    """Protocol that all gateway adapters must satisfy.

    Implementations are stateless: they hold connection config but no
    conversation state. The orchestrator owns the session.
    """

    @property
    def gateway_id(self) -> str:
        """Unique identifier for this gateway (e.g. 'openai', 'anthropic')."""
        ...

    async def complete(
        self,
        messages: list[ConversationMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelResponse:
        """Issue one completion call.

        Args:
            messages: Full session history.
            tools: Translated tool definitions. Omitted from the request
                entirely when ``None`` or empty.

        Raises ModelGatewayError on failure. Never retries.
        """
        ...
