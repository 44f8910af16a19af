"""Tool-host process transport."""

from toolbridge.transport.connection import ConnectionState, ToolHostConnection
from toolbridge.transport.launch import HostCommand, resolve_command

__all__ = ["ConnectionState", "HostCommand", "ToolHostConnection", "resolve_command"]
