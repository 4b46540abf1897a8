"""AgenticLoop - turn-based orchestrator between the model gateway and the tool registry.

Each turn renders the prompt, queries the model once, and then branches:

* malformed output  -> best-effort answer quoting the raw text (``malformed``)
* tool calls        -> execute the batch; if every call failed, ask the model once
                       more without tools (``fallback``), otherwise feed the results
                       back and start the next turn
* final text        -> return it (``final``)
* turn budget spent -> best-effort summary of the tool ledger (``maxed``)

Only exceptions raised by the model gateway escape :meth:`AgenticLoop.run`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..base import ConversationStore, ModelGateway
from ..exceptions import ModelBehaviorError
from ..messages import AssistantMessage, Message, UserMessage
from ..tools.models import ToolCall, ToolResult
from ..tools.registry import ToolRegistry
from .response_processor import ResponseProcessor
from .run_state import RunState

DEFAULT_MAX_TURNS = 10
DEFAULT_MAX_RETRIES = 2
RAW_EXCERPT_LENGTH = 500

THINKING_KEYWORDS = (
    "analyze",
    "compare",
    "evaluate",
    "explain why",
    "step by step",
    "think through",
    "reasoning",
)

RESPONSE_FORMAT_INSTRUCTIONS = """Respond with either:
1. TOOL_CALL: <name> + ARGUMENTS: <json> if you need more information
2. Your final answer if you have enough information"""


class LoopOutcome(str, Enum):
    """Which terminal branch produced the answer."""

    FINAL = "final"
    FALLBACK = "fallback"
    MAXED = "maxed"
    MALFORMED = "malformed"


class RunResult(BaseModel):
    """Uniform result of a loop run, whatever branch ended it."""

    session_id: str
    final_output: str
    messages: List[Message]
    tool_calls_count: int
    reasoning_steps_count: int
    turns_used: int
    outcome: LoopOutcome


def format_tool_results(calls: Sequence[ToolCall], results: Sequence[ToolResult]) -> str:
    """Encode a batch of results in the TOOL_RESULT feedback format."""
    return "\n".join(
        f"TOOL_RESULT: {call.name}\nSTATUS: {result.status.value}\nCONTENT: {result.content}\n---"
        for call, result in zip(calls, results)
    )


class AgenticLoop:
    """Drives one session through model turns and tool executions."""

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ToolRegistry,
        max_turns: int = DEFAULT_MAX_TURNS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        response_processor: Optional[ResponseProcessor] = None,
    ) -> None:
        """
        Args:
            gateway: The text-generation gateway.
            registry: Registry holding every tool the model may call.
            max_turns: Default turn budget per run.
            max_retries: Attempts per tool call.
            response_processor: Parser for model output; a default one is created when omitted.
        """
        self.gateway = gateway
        self.registry = registry
        self.max_turns = max_turns
        self.max_retries = max_retries
        self.response_processor = response_processor or ResponseProcessor()

    async def run(
        self,
        prompt: str,
        history: Optional[Sequence[Message]] = None,
        *,
        session_id: Optional[str] = None,
        max_turns: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> RunResult:
        """Answer ``prompt`` given the prior ``history``.

        Args:
            prompt: The new user request.
            history: Earlier messages of the session, oldest first.
            session_id: Session identifier; generated when omitted.
            max_turns: Overrides the loop's default turn budget for this run.
            context: Free-form values exposed to tools through the RunContext.

        Returns:
            The run result. The caller is responsible for persisting ``messages``.
        """
        turns = self.max_turns if max_turns is None else max_turns
        state = RunState(max_turns=turns, session_id=session_id, context=context)

        for message in history or ():
            state.add_message(message if isinstance(message, Message) else Message.model_validate(message))
        state.add_message(UserMessage(content=prompt))

        state.logger.info("Starting agentic loop")

        while state.can_continue():
            state.next_turn()

            full_prompt = self.build_prompt(state)
            raw = await self.gateway.query(full_prompt, enable_thinking=self.should_use_thinking(state))
            state.logger.info("Received response from model (%d chars)", len(raw or ""))

            try:
                self.response_processor.validate(raw)
            except ModelBehaviorError as exc:
                state.logger.error("Invalid response from model: %s | %r", exc, exc.truncated_response)
                return self._build_result(state, self._malformed_response(raw), LoopOutcome.MALFORMED)

            processed = self.response_processor.process(raw)
            if processed.reasoning_items:
                state.logger.info("Detected %d reasoning items", len(processed.reasoning_items))
                state.add_reasoning(processed.reasoning_items)

            if processed.tool_calls:
                state.logger.info(
                    "Detected %d tool calls: %s", len(processed.tool_calls), [c.name for c in processed.tool_calls]
                )
                results = await self.registry.execute_tools(
                    processed.tool_calls, state.run_context, max_retries=self.max_retries
                )
                for call, result in zip(processed.tool_calls, results):
                    state.add_tool_result(call.name, call.args, result)

                if all(not result.ok for result in results):
                    state.logger.error("All tools failed, falling back to the model's own knowledge")
                    fallback = await self.gateway.query(self._fallback_prompt(state, processed.tool_calls, results))
                    state.add_message(AssistantMessage(content=fallback))
                    return self._build_result(state, fallback, LoopOutcome.FALLBACK)

                state.add_message(AssistantMessage(content=format_tool_results(processed.tool_calls, results)))
                continue

            if processed.final_output:
                state.logger.info("Final output generated")
                state.add_message(AssistantMessage(content=processed.final_output))
                return self._build_result(state, processed.final_output, LoopOutcome.FINAL)

            state.logger.warning("Response carried neither tool calls nor an answer")

        state.logger.error("Max turns (%d) exceeded", state.max_turns)
        return self._build_result(state, self._best_effort_response(state), LoopOutcome.MAXED)

    async def run_session(self, store: ConversationStore, session_id: str, prompt: str, **kwargs: Any) -> RunResult:
        """Run with the history held by ``store`` for ``session_id``."""
        return await self.run(prompt, store.get_history(session_id), session_id=session_id, **kwargs)

    def build_prompt(self, state: RunState) -> str:
        """Tool catalog, transcript and response-format instructions for one turn."""
        return (
            f"{self.registry.get_tool_definitions_text()}\n\n"
            f"CONVERSATION HISTORY:\n{state.conversation_context()}\n\n"
            f"{RESPONSE_FORMAT_INSTRUCTIONS}"
        )

    @staticmethod
    def should_use_thinking(state: RunState) -> bool:
        message = state.latest_user_message()
        if message is None:
            return False
        content = message.content.lower()
        return any(keyword in content for keyword in THINKING_KEYWORDS)

    @staticmethod
    def _fallback_prompt(state: RunState, calls: Sequence[ToolCall], results: Sequence[ToolResult]) -> str:
        failures = "\n".join(f"- {call.name}: {result.content}" for call, result in zip(calls, results))
        request = state.latest_user_message()
        return (
            f"The following tools failed to execute:\n{failures}\n\n"
            f"Original request: {request.content if request else ''}\n\n"
            "Please provide the best answer you can using your internal knowledge, "
            "without relying on external tools."
        )

    @staticmethod
    def _best_effort_response(state: RunState) -> str:
        return (
            f"I attempted to answer your question but encountered limitations (max turns: {state.max_turns}).\n\n"
            f"Tools used:\n{state.tool_results_summary()}\n\n"
            "Based on the available information and my knowledge, here's my best answer:\n\n"
            "[Note: This response may be incomplete due to execution limits. "
            "Please try rephrasing your question or breaking it into smaller parts.]"
        )

    @staticmethod
    def _malformed_response(raw: Optional[str]) -> str:
        excerpt = (raw or "")[:RAW_EXCERPT_LENGTH]
        return (
            "I received an invalid response from the model. Here's the raw output:\n\n"
            f"{excerpt}...\n\n"
            "Please try again or rephrase your question."
        )

    @staticmethod
    def _build_result(state: RunState, final_output: str, outcome: LoopOutcome) -> RunResult:
        state.logger.info("Run finished: %s after %d turns", outcome.value, state.turn)
        return RunResult(
            session_id=state.session_id,
            final_output=final_output,
            messages=state.messages,
            tool_calls_count=len(state.tool_call_history),
            reasoning_steps_count=len(state.reasoning_steps),
            turns_used=state.turn,
            outcome=outcome,
        )
