"""Language-model gateway adapters."""

from toolbridge.providers.base import (
    ConversationMessage,
    ModelGateway,
    ModelResponse,
    TokenUsage,
    ToolCallData,
)

__all__ = [
    "ConversationMessage",
    "ModelGateway",
    "ModelResponse",
    "TokenUsage",
    "ToolCallData",
]
