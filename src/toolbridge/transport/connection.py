"""Connection to one tool-host process over MCP stdio.

Lifecycle::

    UNCONNECTED -> CONNECTING -> READY -> CLOSED
         |              |
         +--------------+-------------> CLOSED

CLOSED is terminal. The MCP client session correlates every reply to
its request id, so concurrent ``invoke()`` calls from independent
queries never receive each other's results.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any, Protocol

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import Implementation

from toolbridge.core.errors import (
    HostConnectionError,
    IllegalStateError,
    ToolInvocationError,
)
from toolbridge.tools.catalog import ToolCatalog
from toolbridge.tools.results import output_from_result
from toolbridge.transport.launch import resolve_command

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from toolbridge.config.schema import HostConfig
    from toolbridge.tools.base import ToolOutput
    from toolbridge.transport.launch import HostCommand

logger = logging.getLogger(__name__)

_CHANNEL_CLOSED: tuple[type[Exception], ...] = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
)


class ConnectionState(enum.Enum):
    """Lifecycle states of a tool-host connection."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"


_VALID_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.UNCONNECTED: frozenset(
        {ConnectionState.CONNECTING, ConnectionState.CLOSED}
    ),
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.READY, ConnectionState.CLOSED}
    ),
    ConnectionState.READY: frozenset({ConnectionState.CLOSED}),
    ConnectionState.CLOSED: frozenset(),
}


class HostSession(Protocol):
    """The slice of :class:`mcp.ClientSession` the connection relies on."""

    async def initialize(self) -> Any: ...

    async def list_tools(self) -> Any: ...

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> Any: ...


async def open_stdio_session(
    stack: AsyncExitStack,
    command: HostCommand,
    client_info: Implementation,
) -> HostSession:
    """Spawn the host process and attach an MCP client session to its stdio."""
    env = None
    if command.env:
        env = {**get_default_environment(), **command.env}
    params = StdioServerParameters(
        command=command.command,
        args=list(command.args),
        env=env,
    )
    read_stream, write_stream = await stack.enter_async_context(stdio_client(params))
    return await stack.enter_async_context(
        ClientSession(read_stream, write_stream, client_info=client_info)
    )


def _error_text(result: Any) -> str:
    texts = [
        getattr(block, "text", "")
        for block in (result.content or [])
        if getattr(block, "type", None) == "text"
    ]
    return "".join(texts) or "Tool host reported an error"


class ToolHostConnection:
    """Singly-owned channel to exactly one tool-host process.

    Provides connect / list_tools / invoke / close. The catalog is fetched
    once during :meth:`connect` and cached until the connection closes.
    """

    def __init__(
        self,
        *,
        handshake_timeout: float = 30.0,
        call_timeout: float | None = None,
        env: dict[str, str] | None = None,
        client_name: str = "toolbridge",
        client_version: str = "0.1.0",
        opener: Callable[
            [AsyncExitStack, HostCommand, Implementation], Awaitable[HostSession]
        ]
        | None = None,
    ) -> None:
        self._handshake_timeout = handshake_timeout
        self._call_timeout = call_timeout
        self._env = dict(env or {})
        self._client_info = Implementation(name=client_name, version=client_version)
        self._opener = opener or open_stdio_session
        self._state = ConnectionState.UNCONNECTED
        self._lock = asyncio.Lock()
        self._stack: AsyncExitStack | None = None
        self._session: HostSession | None = None
        self._catalog: ToolCatalog | None = None
        self._locator: str | None = None

    @classmethod
    def from_config(cls, config: HostConfig, **kwargs: Any) -> ToolHostConnection:
        return cls(
            handshake_timeout=config.handshake_timeout,
            call_timeout=config.call_timeout,
            env=config.env,
            client_name=config.client_name,
            client_version=config.client_version,
            **kwargs,
        )

    # ── State ─────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def locator(self) -> str | None:
        return self._locator

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    def _transition(self, to: ConnectionState) -> None:
        if to not in _VALID_TRANSITIONS[self._state]:
            raise IllegalStateError(self._state.value, f"move to {to.value}")
        logger.debug("Connection %s -> %s", self._state.value, to.value)
        self._state = to

    def _require_ready(self, operation: str) -> None:
        if self._state is not ConnectionState.READY:
            raise IllegalStateError(self._state.value, operation)

    # ── Lifecycle ─────────────────────────────────────────────

    async def connect(self, locator: str) -> None:
        """Spawn the tool host, complete the handshake, fetch the catalog.

        Raises:
            IllegalStateError: If connect was already attempted.
            HostConnectionError: If the locator kind is unsupported (raised
                before anything is spawned), the spawn fails, or the
                handshake does not finish within ``handshake_timeout``.
                After a spawn or handshake failure the connection is CLOSED.

        Cancelling the calling task mid-handshake also releases the host
        process and leaves the connection CLOSED.
        """
        async with self._lock:
            if self._state is not ConnectionState.UNCONNECTED:
                raise IllegalStateError(self._state.value, "connect")

            command = resolve_command(locator, self._env)
            self._locator = locator
            self._transition(ConnectionState.CONNECTING)
            logger.info("Starting tool host: %s", command.describe())

            stack = AsyncExitStack()
            try:
                session = await self._opener(stack, command, self._client_info)
                async with asyncio.timeout(self._handshake_timeout):
                    await session.initialize()
                    listed = await session.list_tools()
            except BaseException as e:
                await self._release(stack)
                self._transition(ConnectionState.CLOSED)
                if not isinstance(e, Exception):
                    raise
                if isinstance(e, TimeoutError):
                    msg = (
                        f"Handshake with {locator} timed out after "
                        f"{self._handshake_timeout}s"
                    )
                else:
                    msg = f"Cannot connect to tool host {locator}: {e}"
                raise HostConnectionError(msg) from e

            self._stack = stack
            self._session = session
            self._catalog = ToolCatalog.from_mcp(listed.tools)
            self._transition(ConnectionState.READY)
            logger.info(
                "Connected to tool host, tools: %s", self._catalog.list_names()
            )

    async def close(self) -> None:
        """Shut down the host process. Safe to call any number of times."""
        async with self._lock:
            if self._state is ConnectionState.CLOSED:
                return
            self._transition(ConnectionState.CLOSED)
            stack, self._stack = self._stack, None
            self._session = None
            if stack is not None:
                await self._release(stack)
            logger.info("Tool host connection closed")

    async def _release(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception:
            logger.warning("Error while shutting down tool host", exc_info=True)

    async def __aenter__(self) -> ToolHostConnection:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Operations ────────────────────────────────────────────

    def list_tools(self) -> ToolCatalog:
        """Return the catalog fetched at connect time. Never re-fetches."""
        self._require_ready("list tools")
        assert self._catalog is not None
        return self._catalog

    async def invoke(
        self,
        name: str,
        arguments: dict[str, Any],
        *,
        call_id: str = "",
    ) -> ToolOutput:
        """Call a tool on the host and wait for its correlated reply.

        Raises:
            IllegalStateError: If the connection is not READY.
            ToolInvocationError: If the tool is unknown, the host reports a
                failure, the call times out, or the channel closes mid-call.
        """
        self._require_ready("invoke")
        assert self._session is not None and self._catalog is not None
        self._catalog.get(name)

        try:
            async with asyncio.timeout(self._call_timeout):
                result = await self._session.call_tool(name, arguments)
        except TimeoutError as e:
            msg = f"Timed out after {self._call_timeout}s"
            raise ToolInvocationError(name, msg) from e
        except McpError as e:
            raise ToolInvocationError(name, e.error.message) from e
        except _CHANNEL_CLOSED as e:
            raise ToolInvocationError(name, "Channel to tool host closed") from e
        except RuntimeError as e:
            # Raised by the client for structured content failing outputSchema.
            raise ToolInvocationError(name, str(e)) from e

        if getattr(result, "isError", False):
            raise ToolInvocationError(name, _error_text(result))
        return output_from_result(call_id, name, result)
