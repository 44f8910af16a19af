"""OpenAI-compatible chat-completions gateway.

Works against any endpoint that speaks the chat-completions wire format
(OpenAI itself, or a compatible ``base_url`` such as DashScope/Qwen).
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING, Any

import openai

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

GATEWAY_ID = "openai"

logger = logging.getLogger(__name__)


def _map_error(e: openai.APIError) -> ModelGatewayError:
    """Map OpenAI SDK errors to the toolbridge error hierarchy."""
    if isinstance(e, openai.AuthenticationError):
        return ModelAuthError(GATEWAY_ID, str(e))
    if isinstance(e, openai.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ModelRateLimitError(GATEWAY_ID, retry_after=retry_after)
    if isinstance(e, openai.APITimeoutError):
        return ModelTimeoutError(GATEWAY_ID, str(e))
    if isinstance(e, openai.NotFoundError):
        return ModelNotFoundError(GATEWAY_ID, str(e))
    return ModelGatewayError(GATEWAY_ID, str(e))


def _build_messages(messages: list[ConversationMessage]) -> list[dict[str, Any]]:
    """Convert session messages to chat-completions message dicts."""
    api_messages: list[dict[str, Any]] = []
    for msg in messages:
        entry: dict[str, Any] = {"role": msg.role, "content": msg.content}
        if msg.tool_calls:
            entry["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in msg.tool_calls
            ]
        if msg.tool_call_id is not None:
            entry["tool_call_id"] = msg.tool_call_id
        api_messages.append(entry)
    return api_messages


def _build_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{"type": "function", "function": t} for t in tools]


class OpenAIGateway:
    """Gateway adapter for OpenAI-compatible chat-completions APIs."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {}
            if api_key is not None:
                kwargs["api_key"] = api_key
            if base_url is not None:
                kwargs["base_url"] = base_url
            if timeout is not None:
                kwargs["timeout"] = timeout
            self._client = openai.AsyncOpenAI(**kwargs)

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
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": _build_messages(messages),
        }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        if self._max_tokens:
            kwargs["max_tokens"] = self._max_tokens
        if tools:
            kwargs["tools"] = _build_tools(tools)

        logger.debug(
            "chat.completions.create model=%s messages=%d tools=%d",
            self._model,
            len(messages),
            len(tools or []),
        )
        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise _map_error(e) from e

        latency_ms = (time.monotonic() - start) * 1000

        if not response.choices:
            raise ModelResponseError(GATEWAY_ID, "Completion returned no choices")

        choice = response.choices[0]
        content = choice.message.content or ""
        tool_calls_data: list[ToolCallData] | None = None
        if choice.message.tool_calls:
            tool_calls_data = [
                ToolCallData(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=tc.function.arguments,
                )
                for tc in choice.message.tool_calls
            ]

        if not content and not tool_calls_data:
            raise ModelResponseError(
                GATEWAY_ID, "Completion returned neither content nor tool calls"
            )

        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        else:
            usage = TokenUsage(input_tokens=0, output_tokens=0)

        return ModelResponse(
            content=content,
            model=self._model,
            usage=usage,
            finish_reason=choice.finish_reason or "stop",
            latency_ms=latency_ms,
            raw_response=response,
            tool_calls=tool_calls_data,
        )
