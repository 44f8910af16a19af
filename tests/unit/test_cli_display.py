"""Tests for the rich display."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from toolbridge.cli.display import BridgeDisplay, _truncate
from toolbridge.orchestrator.engine import QueryOutcome
from toolbridge.providers.base import TokenUsage
from toolbridge.tools.base import CodePart, TextPart, ToolDescriptor, ToolOutput
from toolbridge.tools.catalog import ToolCatalog


def _display() -> tuple[BridgeDisplay, StringIO]:
    buf = StringIO()
    console = Console(file=buf, width=120, force_terminal=False, no_color=True)
    return BridgeDisplay(console=console), buf


class TestShowTools:
    def test_table(self):
        display, buf = _display()
        display.show_tools(
            ToolCatalog(
                [
                    ToolDescriptor(
                        name="getWeather",
                        description="Current weather [beta]",
                        input_schema={"required": ["city"]},
                    )
                ]
            )
        )
        out = buf.getvalue()
        assert "getWeather" in out
        assert "Current weather [beta]" in out
        assert "city" in out

    def test_empty(self):
        display, buf = _display()
        display.show_tools(ToolCatalog())
        assert "no tools" in buf.getvalue()


class TestShowOutcome:
    def test_results_and_answer(self):
        display, buf = _display()
        outcome = QueryOutcome(
            answer="It's sunny in Paris.",
            tool_results=(
                ToolOutput("c1", "getWeather", parts=(TextPart("Sunny, 22C"),)),
            ),
            rounds=1,
            model_calls=2,
            usage=TokenUsage(input_tokens=100, output_tokens=20),
        )
        display.show_outcome(outcome)
        out = buf.getvalue()
        assert "getWeather" in out
        assert "Sunny, 22C" in out
        assert "It's sunny in Paris." in out
        assert "1 tool round(s), 2 model call(s), 120 tokens" in out

    def test_code_part_rendered(self):
        display, buf = _display()
        outcome = QueryOutcome(
            answer="Here it is.",
            tool_results=(
                ToolOutput(
                    "c1", "writeCode", parts=(CodePart("python", "print('hi')"),)
                ),
            ),
        )
        display.show_outcome(outcome)
        assert "print('hi')" in buf.getvalue()

    def test_brackets_in_result_survive(self):
        display, buf = _display()
        outcome = QueryOutcome(
            answer="ok",
            tool_results=(ToolOutput("c1", "t", parts=(TextPart("[red]x[/red]"),)),),
        )
        display.show_outcome(outcome)
        assert "[red]x[/red]" in buf.getvalue()


class TestShowError:
    def test_message_not_parsed_as_markup(self):
        display, buf = _display()
        display.show_error("[getWeather] host down")
        assert "Error: [getWeather] host down" in buf.getvalue()


class TestTruncate:
    def test_short_untouched(self):
        assert _truncate("abc", 10) == "abc"

    def test_long_cut(self):
        assert _truncate("a" * 20, 10) == "a" * 10 + " ..."
