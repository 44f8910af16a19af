"""The public entry point: an owned bridge between a model and a tool host.

Lifecycle is ``connect() -> process_query()* -> close()``::

    async with ToolBridge.from_config(load_config()) as bridge:
        await bridge.connect()
        answer = await bridge.process_query("What's the weather in Paris?")

One bridge owns one tool-host connection. Queries may run concurrently
on the same bridge; each gets its own session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from toolbridge.core.errors import ConfigError, HostConnectionError
from toolbridge.orchestrator.engine import Orchestrator
from toolbridge.transport.connection import ToolHostConnection

if TYPE_CHECKING:
    from toolbridge.config.schema import ModelConfig, ToolBridgeConfig
    from toolbridge.orchestrator.engine import QueryOutcome
    from toolbridge.providers.base import ModelGateway
    from toolbridge.tools.catalog import ToolCatalog
    from toolbridge.transport.connection import ConnectionState

logger = logging.getLogger(__name__)


def create_gateway(config: ModelConfig) -> ModelGateway:
    """Instantiate the gateway adapter named by ``config.provider``.

    Raises:
        ConfigError: If no API key was configured or found in the env.
    """
    if config.api_key is None:
        env_hint = f" or set ${config.api_key_env}" if config.api_key_env else ""
        msg = f"No API key for {config.provider}: set model.api_key{env_hint}"
        raise ConfigError(msg)

    if config.provider == "anthropic":
        from toolbridge.providers.anthropic import AnthropicGateway

        return AnthropicGateway(
            config.model,
            config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    from toolbridge.providers.openai import OpenAIGateway

    return OpenAIGateway(
        config.model,
        config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


class ToolBridge:
    """Owns a :class:`ToolHostConnection` and an :class:`Orchestrator`."""

    def __init__(
        self,
        gateway: ModelGateway,
        connection: ToolHostConnection,
        *,
        default_locator: str | None = None,
        **orchestrator_options: Any,
    ) -> None:
        self._connection = connection
        self._default_locator = default_locator
        self._orchestrator = Orchestrator(gateway, connection, **orchestrator_options)

    @classmethod
    def from_config(
        cls,
        config: ToolBridgeConfig,
        *,
        gateway: ModelGateway | None = None,
        connection: ToolHostConnection | None = None,
    ) -> ToolBridge:
        """Build a bridge from configuration.

        ``gateway`` and ``connection`` may be supplied to override the ones
        the configuration would create.
        """
        orch = config.orchestrator
        return cls(
            gateway if gateway is not None else create_gateway(config.model),
            connection
            if connection is not None
            else ToolHostConnection.from_config(config.host),
            default_locator=config.host.locator,
            max_rounds=orch.max_rounds,
            tool_failure_policy=orch.tool_failure_policy,
            validate_arguments=orch.validate_arguments,
            system_prompt=config.model.system_prompt,
        )

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def connection(self) -> ToolHostConnection:
        return self._connection

    async def connect(self, locator: str | None = None) -> None:
        """Start the tool host. Must precede :meth:`process_query`."""
        target = locator or self._default_locator
        if target is None:
            raise HostConnectionError("No tool host locator configured")
        logger.info("Connecting to tool host %s", target)
        await self._connection.connect(target)

    def list_tools(self) -> ToolCatalog:
        return self._connection.list_tools()

    async def process_query(self, text: str) -> str:
        return await self._orchestrator.process_query(text)

    async def run_query(self, text: str) -> QueryOutcome:
        return await self._orchestrator.run_query(text)

    async def close(self) -> None:
        """Release the tool host. Idempotent."""
        await self._connection.close()

    async def __aenter__(self) -> ToolBridge:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
