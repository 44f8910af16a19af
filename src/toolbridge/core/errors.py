"""Exception hierarchy for toolbridge.

Every module imports from here. The hierarchy is:

    ToolBridgeError
    ├── HostConnectionError
    ├── IllegalStateError(state)
    ├── ToolError(tool_name)
    │   ├── ToolArgumentError
    │   └── ToolInvocationError
    ├── ModelGatewayError(gateway_id)
    │   ├── ModelAuthError
    │   ├── ModelRateLimitError(retry_after)
    │   ├── ModelTimeoutError
    │   ├── ModelNotFoundError
    │   └── ModelResponseError
    └── ConfigError
"""

from __future__ import annotations


class ToolBridgeError(Exception):
    """Base exception for all toolbridge errors."""


# ─── Transport Errors ─────────────────────────────────────────


class HostConnectionError(ToolBridgeError):
    """Tool host could not be spawned or did not complete the handshake."""


class IllegalStateError(ToolBridgeError):
    """Operation is not valid in the connection's current state."""

    def __init__(self, state: str, operation: str) -> None:
        self.state = state
        self.operation = operation
        super().__init__(f"Cannot {operation} while connection is {state}")


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(ToolBridgeError):
    """Base for errors tied to a single tool call."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"[{tool_name}] {message}")


class ToolArgumentError(ToolError):
    """Model-emitted arguments could not be decoded or failed validation."""


class ToolInvocationError(ToolError):
    """Tool host reported a failure or the channel closed mid-call."""


# ─── Model Gateway Errors ─────────────────────────────────────


class ModelGatewayError(ToolBridgeError):
    """Base for completion-call failures."""

    def __init__(self, gateway_id: str, message: str) -> None:
        self.gateway_id = gateway_id
        super().__init__(f"[{gateway_id}] {message}")


class ModelAuthError(ModelGatewayError):
    """Invalid or missing API key."""


class ModelRateLimitError(ModelGatewayError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, gateway_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(gateway_id, msg)


class ModelTimeoutError(ModelGatewayError):
    """Completion call timed out."""


class ModelNotFoundError(ModelGatewayError):
    """Requested model not available from this endpoint."""


class ModelResponseError(ModelGatewayError):
    """Completion returned nothing usable, or directives with reused ids."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(ToolBridgeError):
    """Invalid configuration."""
