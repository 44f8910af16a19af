"""toolbridge: let a function-calling language model use an MCP tool host."""

from toolbridge.bridge import ToolBridge, create_gateway

__version__ = "0.1.0"

__all__ = ["ToolBridge", "__version__", "create_gateway"]
