"""RunState - in-memory state for one agentic loop invocation."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..logger import SessionLoggerAdapter, get_logger
from ..messages import Message
from ..tools.models import RunContext, ToolResult
from .response_processor import ReasoningStep

_logger = get_logger(__name__)


class ToolCallRecord(BaseModel):
    """One entry of the tool-call ledger."""

    tool_name: str
    args: Any = None
    result: ToolResult
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def generate_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:12]}"


class RunState:
    """Turn counter, transcript and ledgers of a single session run.

    A RunState is created by one ``AgenticLoop.run`` call, mutated only by it and
    dropped when the call returns. The transcript and both ledgers only grow.
    """

    def __init__(
        self,
        max_turns: int = 10,
        session_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")

        self.max_turns = max_turns
        self.session_id = session_id or generate_session_id()
        self.context: Dict[str, Any] = dict(context or {})
        self.turn = 0

        self._messages: List[Message] = []
        self._tool_calls: List[ToolCallRecord] = []
        self._reasoning: List[ReasoningStep] = []

        self.logger = SessionLoggerAdapter(_logger, self.session_id)
        self.logger.info("RunState initialized (max_turns=%d)", self.max_turns)

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def tool_call_history(self) -> List[ToolCallRecord]:
        return list(self._tool_calls)

    @property
    def reasoning_steps(self) -> List[ReasoningStep]:
        return list(self._reasoning)

    @property
    def run_context(self) -> RunContext:
        return RunContext(session_id=self.session_id, context=self.context)

    def can_continue(self) -> bool:
        return self.turn < self.max_turns

    def next_turn(self) -> int:
        """Advance the turn counter.

        Raises:
            RuntimeError: If the turn budget is already spent.
        """
        if not self.can_continue():
            raise RuntimeError(f"Turn budget exhausted ({self.max_turns})")
        self.turn += 1
        self.logger.info("Turn %d/%d", self.turn, self.max_turns)
        return self.turn

    def add_message(self, message: Message) -> None:
        self._messages.append(message)
        self.logger.debug("Message added (role=%s, length=%d)", message.role, len(message.content))

    def add_tool_result(self, tool_name: str, args: Any, result: ToolResult) -> None:
        self._tool_calls.append(ToolCallRecord(tool_name=tool_name, args=args, result=result))
        self.logger.info("Tool result added (tool=%s, status=%s)", tool_name, result.status.value)

    def add_reasoning(self, steps: Sequence[ReasoningStep]) -> None:
        """Append reasoning notes, renumbering them to their ledger position."""
        for step in steps:
            entry = ReasoningStep(step_index=len(self._reasoning), note=step.note)
            self._reasoning.append(entry)
            self.logger.debug("Reasoning step %d: %s", entry.step_index, entry.note)

    def latest_user_message(self) -> Optional[Message]:
        for message in reversed(self._messages):
            if message.role == "user":
                return message
        return None

    def conversation_context(self) -> str:
        """Transcript rendered as ``role: content`` lines."""
        return "\n".join(message.render() for message in self._messages)

    def tool_results_summary(self) -> str:
        if not self._tool_calls:
            return "No tools used yet."

        lines = []
        for record in self._tool_calls:
            mark = "✓" if record.result.ok else "✗"
            content = record.result.content
            preview = content[:100] + ("..." if len(content) > 100 else "")
            lines.append(f"{mark} {record.tool_name}: {preview}")
        return "\n".join(lines)

    def summary(self) -> str:
        return (
            f"RunState(session_id={self.session_id}, turn={self.turn}/{self.max_turns}, "
            f"messages={len(self._messages)}, tool_calls={len(self._tool_calls)}, "
            f"reasoning_steps={len(self._reasoning)})"
        )
