"""Per-query conversation session.

An append-only message log scoped to a single query. Nothing carries
over between queries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toolbridge.providers.base import ConversationMessage

if TYPE_CHECKING:
    from toolbridge.providers.base import ToolCallData
    from toolbridge.tools.base import ToolOutput


@dataclass
class Session:
    """Ordered message history for one query."""

    messages: list[ConversationMessage] = field(default_factory=list)
    _issued_ids: set[str] = field(default_factory=set, repr=False)
    _answered_ids: set[str] = field(default_factory=set, repr=False)

    @classmethod
    def seed(cls, query: str, system_prompt: str = "") -> Session:
        """Start a session with the user's query (and optional system prompt)."""
        session = cls()
        if system_prompt:
            session.messages.append(
                ConversationMessage(role="system", content=system_prompt)
            )
        session.messages.append(ConversationMessage(role="user", content=query))
        return session

    def __len__(self) -> int:
        return len(self.messages)

    def add_directive(self, directive: ToolCallData) -> None:
        """Append the assistant message that carries one tool-call directive."""
        self.messages.append(
            ConversationMessage(role="assistant", content=None, tool_calls=(directive,))
        )
        self._issued_ids.add(directive.id)

    def has_issued(self, call_id: str) -> bool:
        return call_id in self._issued_ids

    def add_result(self, output: ToolOutput) -> None:
        """Append the tool-role message answering an earlier directive.

        Raises:
            ValueError: If no directive with this id was issued, or it was
                already answered.
        """
        call_id = output.tool_call_id
        if call_id not in self._issued_ids:
            msg = f"Tool result for unknown call id: {call_id}"
            raise ValueError(msg)
        if call_id in self._answered_ids:
            msg = f"Duplicate tool result for call id: {call_id}"
            raise ValueError(msg)
        self.messages.append(
            ConversationMessage(
                role="tool",
                content=output.serialized(),
                tool_call_id=call_id,
                is_error=output.is_error,
            )
        )
        self._answered_ids.add(call_id)

    def add_exchange(self, directive: ToolCallData, output: ToolOutput) -> None:
        """Append a directive and its correlated result."""
        self.add_directive(directive)
        self.add_result(output)

    @property
    def tool_messages(self) -> list[ConversationMessage]:
        return [m for m in self.messages if m.role == "tool"]
