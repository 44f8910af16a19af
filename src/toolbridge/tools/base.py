"""Tool data types.

Descriptors come from the tool host's catalog; calls come from the
model; outputs are the host's reply classified into typed parts.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Catalog entry for one capability exposed by the tool host."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A decoded tool invocation requested by a model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


# ── Output parts ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TextPart:
    """Plain text returned by a tool."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class CodePart:
    """Source code with its language, returned as structured content."""

    language: str
    code: str

    def render(self) -> str:
        return f"```{self.language}\n{self.code}\n```"


@dataclass(frozen=True, slots=True)
class DataPart:
    """Any non-text block (image, audio, resource, link)."""

    kind: str
    payload: dict[str, Any]

    def render(self) -> str:
        return json.dumps(self.payload, ensure_ascii=False)


Part = TextPart | CodePart | DataPart


@dataclass(frozen=True, slots=True)
class ToolOutput:
    """Result of one tool call, correlated to the call by ``tool_call_id``."""

    tool_call_id: str
    tool_name: str
    parts: tuple[Part, ...] = ()
    raw_content: tuple[dict[str, Any], ...] = ()
    is_error: bool = False

    @property
    def text(self) -> str:
        """Flattened text form of the result.

        Adjacent text parts are joined without a separator; code and
        data parts are rendered to strings and separated by newlines.
        """
        chunks: list[str] = []
        buffer: list[str] = []
        for part in self.parts:
            if isinstance(part, TextPart):
                buffer.append(part.text)
                continue
            if buffer:
                chunks.append("".join(buffer))
                buffer = []
            chunks.append(part.render())
        if buffer:
            chunks.append("".join(buffer))
        return "\n".join(chunks)

    @property
    def code_parts(self) -> list[CodePart]:
        return [p for p in self.parts if isinstance(p, CodePart)]

    def serialized(self) -> str:
        """Content-block list as JSON, the form fed back to the model."""
        if self.raw_content:
            return json.dumps(list(self.raw_content), ensure_ascii=False)
        return json.dumps(
            [{"type": "text", "text": self.text}],
            ensure_ascii=False,
        )
