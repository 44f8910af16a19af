"""Anthropic (Claude) Messages API gateway."""

from __future__ import annotations

import contextlib
import json
import logging
import time
from typing import TYPE_CHECKING, Any

import anthropic

from toolbridge.core.errors import (
    ModelAuthError,
    ModelGatewayError,
    ModelNotFoundError,
    ModelRateLimitError,
    ModelResponseError,
    ModelTimeoutError,
)
from toolbridge.providers.base import ModelResponse, TokenUsage, ToolCallData

if TYPE_CHECKING:
    from toolbridge.providers.base import ConversationMessage

GATEWAY_ID = "anthropic"

logger = logging.getLogger(__name__)


def _map_error(e: anthropic.APIError) -> ModelGatewayError:
    """Map Anthropic SDK errors to the toolbridge error hierarchy."""
    if isinstance(e, anthropic.AuthenticationError):
        return ModelAuthError(GATEWAY_ID, str(e))
    if isinstance(e, anthropic.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ModelRateLimitError(GATEWAY_ID, retry_after=retry_after)
    if isinstance(e, anthropic.APITimeoutError):
        return ModelTimeoutError(GATEWAY_ID, str(e))
    if isinstance(e, anthropic.NotFoundError):
        return ModelNotFoundError(GATEWAY_ID, str(e))
    return ModelGatewayError(GATEWAY_ID, str(e))


def _decode_input(arguments: str) -> Any:
    try:
        return json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        return {}


def _to_blocks(msg: ConversationMessage) -> list[dict[str, Any]]:
    if msg.role == "tool":
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": msg.tool_call_id,
            "content": msg.content or "",
        }
        if msg.is_error:
            block["is_error"] = True
        return [block]
    blocks: list[dict[str, Any]] = []
    if msg.content:
        blocks.append({"type": "text", "text": msg.content})
    for tc in msg.tool_calls:
        blocks.append(
            {
                "type": "tool_use",
                "id": tc.id,
                "name": tc.name,
                "input": _decode_input(tc.arguments),
            }
        )
    return blocks


def _to_text_blocks(
    msg: ConversationMessage, names: dict[str, str]
) -> list[dict[str, Any]]:
    """Render a tool exchange as plain text, for requests that carry no tools."""
    if msg.role == "tool":
        name = names.get(msg.tool_call_id or "", "tool")
        label = "failed" if msg.is_error else "returned"
        text = f"Tool {name} ({msg.tool_call_id}) {label}: {msg.content or ''}"
        return [{"type": "text", "text": text}]
    blocks: list[dict[str, Any]] = []
    if msg.content:
        blocks.append({"type": "text", "text": msg.content})
    for tc in msg.tool_calls:
        text = f"Called tool {tc.name} ({tc.id}) with {tc.arguments or '{}'}"
        blocks.append({"type": "text", "text": text})
    return blocks


def _build_messages(
    messages: list[ConversationMessage],
    *,
    tool_blocks: bool = True,
) -> tuple[str | anthropic.NotGiven, list[dict[str, Any]]]:
    """Split session messages into Anthropic's system + messages format.

    Tool-role messages become ``tool_result`` blocks in a user turn.
    Consecutive turns with the same role are merged so roles alternate.
    With ``tool_blocks`` off, tool exchanges are rendered as text instead:
    the API refuses ``tool_use`` history in a request that defines no tools.
    """
    system_parts: list[str] = []
    api_messages: list[dict[str, Any]] = []
    names = {tc.id: tc.name for msg in messages for tc in msg.tool_calls}

    for msg in messages:
        if msg.role == "system":
            if msg.content:
                system_parts.append(msg.content)
            continue
        role = "user" if msg.role in ("user", "tool") else "assistant"
        blocks = _to_blocks(msg) if tool_blocks else _to_text_blocks(msg, names)
        if api_messages and api_messages[-1]["role"] == role:
            api_messages[-1]["content"].extend(blocks)
        else:
            api_messages.append({"role": role, "content": blocks})

    system: str | anthropic.NotGiven = (
        "\n\n".join(system_parts) if system_parts else anthropic.NOT_GIVEN
    )
    return system, api_messages


def _build_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "name": t["name"],
            "description": t["description"],
            "input_schema": t["parameters"],
        }
        for t in tools
    ]


class AnthropicGateway:
    """Gateway adapter for Anthropic's Claude models."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        temperature: float | None = None,
        max_tokens: int = 4096,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {"api_key": api_key}
            if base_url is not None:
                kwargs["base_url"] = base_url
            if timeout is not None:
                kwargs["timeout"] = timeout
            self._client = anthropic.AsyncAnthropic(**kwargs)

    @property
    def gateway_id(self) -> str:
        return GATEWAY_ID

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[ConversationMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelResponse:
        system, api_messages = _build_messages(messages, tool_blocks=bool(tools))

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "system": system,
            "messages": api_messages,
        }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        if tools:
            kwargs["tools"] = _build_tools(tools)

        logger.debug(
            "messages.create model=%s messages=%d tools=%d",
            self._model,
            len(api_messages),
            len(tools or []),
        )
        start = time.monotonic()
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise _map_error(e) from e

        latency_ms = (time.monotonic() - start) * 1000

        texts: list[str] = []
        tool_calls_data: list[ToolCallData] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls_data.append(
                    ToolCallData(
                        id=block.id,
                        name=block.name,
                        arguments=json.dumps(block.input),
                    )
                )

        content = "".join(texts)
        if not content and not tool_calls_data:
            raise ModelResponseError(
                GATEWAY_ID, "Completion returned neither content nor tool calls"
            )

        return ModelResponse(
            content=content,
            model=self._model,
            usage=TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            ),
            finish_reason=response.stop_reason or "stop",
            latency_ms=latency_ms,
            raw_response=response,
            tool_calls=tool_calls_data or None,
        )
