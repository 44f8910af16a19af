"""Classify tool-host replies into typed output parts.

A host may return a typed code result as ``structuredContent`` of the
form ``{"code": ..., "language": ...}``. That becomes a :class:`CodePart`
so callers never have to slice fenced blocks out of free text. Text
blocks that merely mirror the structured payload as JSON are dropped.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from toolbridge.tools.base import CodePart, DataPart, TextPart, ToolOutput

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolbridge.tools.base import Part


def _block_to_dict(block: Any) -> dict[str, Any]:
    if isinstance(block, dict):
        return dict(block)
    return block.model_dump(mode="json", by_alias=True, exclude_none=True)


def _code_variant(structured: Any) -> CodePart | None:
    if not isinstance(structured, dict):
        return None
    code = structured.get("code")
    language = structured.get("language")
    if isinstance(code, str) and isinstance(language, str):
        return CodePart(language=language, code=code)
    return None


def _mirrors(text: str, structured: dict[str, Any]) -> bool:
    try:
        return json.loads(text) == structured
    except ValueError:
        return False


def classify_blocks(
    blocks: Sequence[dict[str, Any]],
    structured: Any = None,
) -> tuple[Part, ...]:
    """Turn raw content blocks (plus optional structured content) into parts."""
    parts: list[Part] = []
    code = _code_variant(structured)
    if code is not None:
        parts.append(code)

    for block in blocks:
        kind = block.get("type", "unknown")
        if kind == "text":
            text = block.get("text", "")
            if code is not None and _mirrors(text, structured):
                continue
            parts.append(TextPart(text=text))
        else:
            parts.append(DataPart(kind=kind, payload=block))
    return tuple(parts)


def output_from_result(tool_call_id: str, tool_name: str, result: Any) -> ToolOutput:
    """Build a :class:`ToolOutput` from an MCP ``CallToolResult``."""
    raw = tuple(_block_to_dict(b) for b in (result.content or []))
    structured = getattr(result, "structuredContent", None)
    return ToolOutput(
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        parts=classify_blocks(raw, structured),
        raw_content=raw,
        is_error=bool(getattr(result, "isError", False)),
    )


def degraded_output(tool_call_id: str, tool_name: str, reason: str) -> ToolOutput:
    """Placeholder result recorded when a tool call fails under ``degrade``."""
    text = f"Tool '{tool_name}' failed: {reason}"
    return ToolOutput(
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        parts=(TextPart(text=text),),
        is_error=True,
    )
