"""Tool catalog, schema translation, and typed tool results."""

from toolbridge.tools.base import (
    CodePart,
    DataPart,
    TextPart,
    ToolCall,
    ToolDescriptor,
    ToolOutput,
)
from toolbridge.tools.catalog import ToolCatalog, translate_tools

__all__ = [
    "CodePart",
    "DataPart",
    "TextPart",
    "ToolCall",
    "ToolCatalog",
    "ToolDescriptor",
    "ToolOutput",
    "translate_tools",
]
