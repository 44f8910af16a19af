"""Main CLI application.

Click commands for toolbridge: ask, chat, tools.
"""

from __future__ import annotations

import asyncio
import json as json_mod
import logging
import sys
from typing import TYPE_CHECKING

import click

from toolbridge import __version__
from toolbridge.config.loader import load_config
from toolbridge.core.errors import ConfigError, ToolBridgeError

if TYPE_CHECKING:
    from toolbridge.bridge import ToolBridge
    from toolbridge.cli.display import BridgeDisplay
    from toolbridge.config.schema import LoggingConfig, ToolBridgeConfig
    from toolbridge.orchestrator.engine import QueryOutcome
    from toolbridge.tools.catalog import ToolCatalog

logger = logging.getLogger(__name__)

_QUIT_WORDS = frozenset({"quit", "exit"})


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> ToolBridgeConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def _configure_logging(config: LoggingConfig) -> None:
    """Send logs to stderr through rich, plus an optional file."""
    from rich.console import Console
    from rich.logging import RichHandler

    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False)
    ]
    if config.file:
        file_handler = logging.FileHandler(config.file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)
    logging.basicConfig(
        level=config.level.upper(),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def _make_bridge(config: ToolBridgeConfig) -> ToolBridge:
    from toolbridge.bridge import ToolBridge

    return ToolBridge.from_config(config)


# ── Group ────────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="toolbridge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.option(
    "--log-level",
    default=None,
    help="Logging level (overrides config).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """toolbridge - let a language model call tools on an MCP tool host."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _setup(ctx: click.Context, server: str | None) -> ToolBridgeConfig:
    config = _load_config(ctx.obj["config_path"])
    if ctx.obj.get("log_level"):
        config.logging.level = ctx.obj["log_level"]
    if server is not None:
        config.host.locator = server
    _configure_logging(config.logging)
    return config


_server_option = click.option(
    "--server",
    default=None,
    help="Tool host script (.py or .js). Overrides config and $MCP_SERVER_PATH.",
)


# ── ask ──────────────────────────────────────────────────────────


@cli.command()
@click.argument("question")
@_server_option
@click.option(
    "--rounds",
    type=click.IntRange(min=1),
    default=None,
    help="Max tool-call rounds (overrides config).",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the full outcome as JSON.",
)
@click.pass_context
def ask(
    ctx: click.Context,
    question: str,
    server: str | None,
    rounds: int | None,
    as_json: bool,
) -> None:
    """Answer QUESTION, letting the model call the host's tools."""
    config = _setup(ctx, server)
    if rounds is not None:
        config.orchestrator.max_rounds = rounds

    try:
        outcome = asyncio.run(_ask_async(question, config))
    except ToolBridgeError as e:
        _error(str(e))
        return  # unreachable

    if as_json:
        click.echo(json_mod.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(outcome.text)


async def _ask_async(question: str, config: ToolBridgeConfig) -> QueryOutcome:
    async with _make_bridge(config) as bridge:
        await bridge.connect()
        return await bridge.run_query(question)


# ── chat ─────────────────────────────────────────────────────────


@cli.command()
@_server_option
@click.pass_context
def chat(ctx: click.Context, server: str | None) -> None:
    """Interactive loop. Type 'quit' to exit."""
    from toolbridge.cli.display import BridgeDisplay

    config = _setup(ctx, server)
    display = BridgeDisplay()
    try:
        asyncio.run(_chat_async(config, display))
    except ToolBridgeError as e:
        _error(str(e))


async def _chat_async(config: ToolBridgeConfig, display: BridgeDisplay) -> None:
    async with _make_bridge(config) as bridge:
        await bridge.connect()
        display.console.print("[bold]toolbridge chat[/bold] - type 'quit' to exit.")
        while True:
            try:
                query = await asyncio.to_thread(display.console.input, "\n> ")
            except EOFError:
                break
            query = query.strip()
            if not query:
                continue
            if query.lower() in _QUIT_WORDS:
                break
            try:
                outcome = await bridge.run_query(query)
            except ToolBridgeError as e:
                logger.debug("Query failed", exc_info=True)
                display.show_error(str(e))
                continue
            display.show_outcome(outcome)


# ── tools ────────────────────────────────────────────────────────


@cli.command()
@_server_option
@click.pass_context
def tools(ctx: click.Context, server: str | None) -> None:
    """List the tools the host exposes."""
    from toolbridge.cli.display import BridgeDisplay

    config = _setup(ctx, server)
    try:
        catalog = asyncio.run(_tools_async(config))
    except ToolBridgeError as e:
        _error(str(e))
        return  # unreachable

    BridgeDisplay().show_tools(catalog)


async def _tools_async(config: ToolBridgeConfig) -> ToolCatalog:
    from toolbridge.transport.connection import ToolHostConnection

    async with ToolHostConnection.from_config(config.host) as connection:
        await connection.connect(config.host.locator or config.host.default_locator)
        return connection.list_tools()
