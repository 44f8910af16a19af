"""Core error types."""

from toolbridge.core.errors import (
    ConfigError,
    HostConnectionError,
    IllegalStateError,
    ModelAuthError,
    ModelGatewayError,
    ModelNotFoundError,
    ModelRateLimitError,
    ModelResponseError,
    ModelTimeoutError,
    ToolArgumentError,
    ToolBridgeError,
    ToolError,
    ToolInvocationError,
)

__all__ = [
    "ConfigError",
    "HostConnectionError",
    "IllegalStateError",
    "ModelAuthError",
    "ModelGatewayError",
    "ModelNotFoundError",
    "ModelRateLimitError",
    "ModelResponseError",
    "ModelTimeoutError",
    "ToolArgumentError",
    "ToolBridgeError",
    "ToolError",
    "ToolInvocationError",
]
