"""Query orchestration: ask model -> run tool calls -> synthesize answer.

One query is one sequential flow:

1. Seed a session with the user's text.
2. Empty catalog: ask the model without tools and return its answer.
3. Otherwise ask the model with the translated tool definitions.
4. No directives in the reply: that reply is the answer.
5. Else dispatch every directive in emission order, appending the
   directive and its correlated result to the session.
6. Ask the model once more, without tools, for the final answer.

``max_rounds`` bounds how many times steps 3-5 repeat before step 6.
The default of 1 performs exactly one round of tool calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from toolbridge.core.errors import (
    ModelResponseError,
    ToolArgumentError,
    ToolInvocationError,
)
from toolbridge.orchestrator.session import Session
from toolbridge.providers.base import TokenUsage
from toolbridge.tools.results import degraded_output

if TYPE_CHECKING:
    from toolbridge.providers.base import ModelGateway, ModelResponse, ToolCallData
    from toolbridge.tools.base import ToolOutput
    from toolbridge.tools.catalog import ToolCatalog

logger = logging.getLogger(__name__)

FailurePolicy = Literal["abort", "degrade"]


class ToolHost(Protocol):
    """What the orchestrator needs from a tool-host connection."""

    def list_tools(self) -> ToolCatalog: ...

    async def invoke(
        self, name: str, arguments: dict[str, Any], *, call_id: str = ""
    ) -> ToolOutput: ...


@dataclass(frozen=True, slots=True)
class QueryOutcome:
    """Aggregated result of one query."""

    answer: str
    tool_results: tuple[ToolOutput, ...] = ()
    rounds: int = 0
    model_calls: int = 0
    usage: TokenUsage = TokenUsage(input_tokens=0, output_tokens=0)

    @property
    def text(self) -> str:
        """Every partial tool result plus the answer, joined by blank lines."""
        return "\n\n".join([*(r.text for r in self.tool_results), self.answer])

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "text": self.text,
            "rounds": self.rounds,
            "model_calls": self.model_calls,
            "usage": {
                "input_tokens": self.usage.input_tokens,
                "output_tokens": self.usage.output_tokens,
            },
            "tool_results": [
                {
                    "tool_call_id": r.tool_call_id,
                    "tool_name": r.tool_name,
                    "text": r.text,
                    "is_error": r.is_error,
                    "code": [
                        {"language": c.language, "code": c.code} for c in r.code_parts
                    ],
                }
                for r in self.tool_results
            ],
        }


class Orchestrator:
    """Drives a query end-to-end across the model gateway and tool host.

    Holds no per-query state: every call to :meth:`run_query` owns its
    own :class:`Session`, so independent queries may run concurrently
    against one shared tool host.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        host: ToolHost,
        *,
        max_rounds: int = 1,
        tool_failure_policy: FailurePolicy = "abort",
        validate_arguments: bool = True,
        system_prompt: str = "",
    ) -> None:
        if max_rounds < 1:
            msg = f"max_rounds must be >= 1, got {max_rounds}"
            raise ValueError(msg)
        self._gateway = gateway
        self._host = host
        self._max_rounds = max_rounds
        self._policy = tool_failure_policy
        self._validate = validate_arguments
        self._system_prompt = system_prompt

    async def process_query(self, text: str) -> str:
        """Answer ``text``, returning tool results and answer as one string."""
        outcome = await self.run_query(text)
        return outcome.text

    async def run_query(self, text: str) -> QueryOutcome:
        """Answer ``text`` and return the structured aggregate.

        Raises:
            IllegalStateError: If the tool host is not connected.
            ToolArgumentError: Malformed arguments (``abort`` policy).
            ToolInvocationError: Tool failure (``abort`` policy).
            ModelGatewayError: Any completion call failed.
        """
        catalog = self._host.list_tools()
        session = Session.seed(text, self._system_prompt)

        if not catalog:
            logger.warning("No tools available, answering without tools")
            response = await self._gateway.complete(session.messages)
            return QueryOutcome(
                answer=response.content,
                model_calls=1,
                usage=response.usage,
            )

        tools = catalog.definitions()
        outputs: list[ToolOutput] = []
        usage = TokenUsage(input_tokens=0, output_tokens=0)
        model_calls = 0
        rounds = 0

        while True:
            offer = tools if rounds < self._max_rounds else None
            response = await self._gateway.complete(session.messages, tools=offer)
            model_calls += 1
            usage = usage + response.usage

            if offer is None or not response.tool_calls:
                answer = self._final_answer(response, tools_offered=offer is not None)
                logger.info(
                    "Query answered after %d tool round(s), %d model call(s)",
                    rounds,
                    model_calls,
                )
                return QueryOutcome(
                    answer=answer,
                    tool_results=tuple(outputs),
                    rounds=rounds,
                    model_calls=model_calls,
                    usage=usage,
                )

            rounds += 1
            logger.debug(
                "Round %d: %d tool call(s)", rounds, len(response.tool_calls)
            )
            self._check_call_ids(session, response.tool_calls)
            for directive in response.tool_calls:
                output = await self._dispatch(catalog, directive)
                session.add_exchange(directive, output)
                outputs.append(output)

    def _check_call_ids(
        self, session: Session, directives: list[ToolCallData]
    ) -> None:
        """Reject a round whose ids repeat within it or reuse an earlier id.

        Runs before any dispatch so no tool is invoked for a bad round.
        """
        seen: set[str] = set()
        for directive in directives:
            if directive.id in seen or session.has_issued(directive.id):
                msg = f"Model reused tool call id {directive.id!r}"
                raise ModelResponseError(self._gateway.gateway_id, msg)
            seen.add(directive.id)

    async def _dispatch(
        self, catalog: ToolCatalog, directive: ToolCallData
    ) -> ToolOutput:
        """Decode, validate, and invoke one directive."""
        try:
            call = catalog.decode_call(directive, validate=self._validate)
            logger.info("Calling tool %s with %s", call.name, call.arguments)
            return await self._host.invoke(call.name, call.arguments, call_id=call.id)
        except (ToolArgumentError, ToolInvocationError) as e:
            if self._policy == "abort":
                raise
            logger.warning("Tool call %s degraded: %s", directive.name, e)
            return degraded_output(directive.id, directive.name, str(e))

    def _final_answer(self, response: ModelResponse, *, tools_offered: bool) -> str:
        if response.content:
            if response.tool_calls and not tools_offered:
                logger.warning("Ignoring tool calls in final synthesis reply")
            return response.content
        msg = "Final synthesis returned tool calls instead of an answer"
        raise ModelResponseError(self._gateway.gateway_id, msg)
