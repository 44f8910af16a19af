"""Rich display for tool catalogs and query outcomes.

Accepts an optional :class:`~rich.console.Console` for dependency
injection in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from toolbridge.orchestrator.engine import QueryOutcome
    from toolbridge.tools.catalog import ToolCatalog

_TRUNCATE_LEN = 2000


def _truncate(text: str, limit: int = _TRUNCATE_LEN) -> str:
    """Truncate text to *limit* characters with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + " ..."


class BridgeDisplay:
    """Renders catalogs, tool results, and answers."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def show_tools(self, catalog: ToolCatalog) -> None:
        if not catalog:
            self._console.print("[yellow]Tool host exposes no tools.[/yellow]")
            return
        table = Table(title="Tools", show_lines=False)
        table.add_column("Name", style="bold cyan")
        table.add_column("Description")
        table.add_column("Required")
        for tool in catalog:
            required = tool.input_schema.get("required") or []
            table.add_row(
                escape(tool.name),
                escape(tool.description or ""),
                escape(", ".join(required)),
            )
        self._console.print(table)

    def show_outcome(self, outcome: QueryOutcome) -> None:
        for result in outcome.tool_results:
            style = "red" if result.is_error else "blue"
            self._console.print(
                Panel(
                    Text(_truncate(result.text)),
                    title=f"[bold]{escape(result.tool_name)}[/bold]",
                    border_style=style,
                )
            )
            for code in result.code_parts:
                self._console.print(Syntax(code.code, code.language or "text"))
        self._console.print(
            Panel(Markdown(outcome.answer), title="Answer", border_style="green")
        )
        self._console.print(
            f"[dim]{outcome.rounds} tool round(s), "
            f"{outcome.model_calls} model call(s), "
            f"{outcome.usage.total_tokens} tokens[/dim]"
        )

    def show_error(self, message: str) -> None:
        self._console.print(f"[bold red]Error:[/bold red] {escape(message)}")
