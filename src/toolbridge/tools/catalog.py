"""Tool catalog and schema translation.

The catalog is the set of :class:`ToolDescriptor` fetched from the tool
host at connect time. It does not change until a reconnect. Translation
into function-calling definitions is pure and total: hosts are not
required to publish complete schemas, so missing fields fall back to
defaults instead of raising.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from jsonschema import Draft202012Validator, SchemaError
from jsonschema.validators import validator_for

from toolbridge.core.errors import ToolArgumentError, ToolInvocationError
from toolbridge.tools.base import ToolCall, ToolDescriptor

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from jsonschema.protocols import Validator

    from toolbridge.providers.base import ToolCallData

logger = logging.getLogger(__name__)


def _parameters(descriptor: ToolDescriptor) -> dict[str, Any]:
    schema = descriptor.input_schema or {}
    return {
        "type": "object",
        "properties": schema.get("properties") or {},
        "required": list(schema.get("required") or []),
    }


def translate_tools(descriptors: Iterable[ToolDescriptor]) -> list[dict[str, Any]]:
    """Map descriptors to ``{name, description, parameters}`` definitions.

    Never raises. ``description`` defaults to ``""``, ``properties`` to
    ``{}`` and ``required`` to ``[]``.
    """
    return [
        {
            "name": d.name,
            "description": d.description or "",
            "parameters": _parameters(d),
        }
        for d in descriptors
    ]


class ToolCatalog:
    """Immutable, name-indexed set of tool descriptors."""

    def __init__(self, descriptors: Sequence[ToolDescriptor] = ()) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        for d in descriptors:
            if d.name in self._tools:
                logger.warning("Duplicate tool %r in catalog, keeping first", d.name)
                continue
            self._tools[d.name] = d
        self._validators: dict[str, Validator | None] = {}

    @classmethod
    def from_mcp(cls, tools: Iterable[Any]) -> ToolCatalog:
        """Build a catalog from MCP ``Tool`` objects."""
        return cls(
            [
                ToolDescriptor(
                    name=t.name,
                    description=t.description,
                    input_schema=dict(t.inputSchema or {}),
                )
                for t in tools
            ]
        )

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __bool__(self) -> bool:
        return bool(self._tools)

    def get(self, name: str) -> ToolDescriptor:
        """Look up a descriptor by name.

        Raises:
            ToolInvocationError: If the tool is not in the catalog.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolInvocationError(name, "Tool not found in catalog") from None

    def list_names(self) -> list[str]:
        """Return names of all tools in catalog order."""
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """Function-calling definitions for every tool."""
        return translate_tools(self._tools.values())

    # ── Argument handling ─────────────────────────────────────

    def decode_call(self, data: ToolCallData, *, validate: bool = True) -> ToolCall:
        """Decode a model-emitted directive into a :class:`ToolCall`.

        The arguments arrive as an encoded JSON string. An empty string is
        treated as ``{}``.

        Raises:
            ToolArgumentError: If the payload is not a JSON object or does
                not satisfy the tool's input schema.
            ToolInvocationError: If the tool is not in the catalog.
        """
        descriptor = self.get(data.name)
        raw = data.arguments.strip() if data.arguments else ""
        try:
            args = json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            msg = f"Arguments are not valid JSON: {e}"
            raise ToolArgumentError(data.name, msg) from e
        if not isinstance(args, dict):
            msg = f"Arguments must be a JSON object, got {type(args).__name__}"
            raise ToolArgumentError(data.name, msg)

        if validate:
            self._validate(descriptor, args)
        return ToolCall(id=data.id, name=data.name, arguments=args)

    def _validate(self, descriptor: ToolDescriptor, args: dict[str, Any]) -> None:
        validator = self._validator(descriptor)
        if validator is None:
            return
        errors = sorted(validator.iter_errors(args), key=lambda e: list(e.path))
        if errors:
            detail = "; ".join(e.message for e in errors)
            raise ToolArgumentError(descriptor.name, f"Invalid arguments: {detail}")

    def _validator(self, descriptor: ToolDescriptor) -> Validator | None:
        if descriptor.name in self._validators:
            return self._validators[descriptor.name]

        schema = {**descriptor.input_schema, **_parameters(descriptor)}
        cls = validator_for(schema, default=Draft202012Validator)
        validator: Validator | None
        try:
            cls.check_schema(schema)
        except SchemaError as e:
            # Hosts may publish broken schemas; dispatch without validation.
            logger.warning(
                "Skipping argument validation for %s: %s", descriptor.name, e.message
            )
            validator = None
        else:
            validator = cls(schema)
        self._validators[descriptor.name] = validator
        return validator
