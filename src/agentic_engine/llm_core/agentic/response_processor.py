"""Parse raw model output into reasoning notes, tool calls and a final answer.

Wire format understood here (the model is prompted with exactly these markers)::

    [Thinking: <note>]
    TOOL_CALL: <tool name>
    ARGUMENTS: <json object or array>
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, List, NamedTuple, Optional

from pydantic import BaseModel, Field

from ..exceptions import ModelBehaviorError
from ..logger import get_logger
from ..tools.models import ToolCall

logger = get_logger(__name__)

THINKING_RE = re.compile(r"\[Thinking:([^\]]+)\]")
TOOL_CALL_RE = re.compile(r"TOOL_CALL:[ \t]*(\S[^\n]*?)[ \t]*\r?\n\s*ARGUMENTS:\s*", re.IGNORECASE)
TOOL_CALL_MARKER_RE = re.compile(r"TOOL_CALL:", re.IGNORECASE)
ARGUMENTS_MARKER_RE = re.compile(r"ARGUMENTS:", re.IGNORECASE)


class ReasoningStep(BaseModel):
    """One ``[Thinking: ...]`` note, numbered in order of appearance."""

    step_index: int
    note: str


class ProcessedResponse(BaseModel):
    """Structured view of one model response.

    ``final_output`` is set exactly when no tool call was extracted.
    """

    reasoning_items: List[ReasoningStep] = Field(default_factory=list)
    tool_calls: List[ToolCall] = Field(default_factory=list)
    final_output: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return not self.tool_calls and bool(self.final_output)


class _Directive(NamedTuple):
    start: int
    end: int
    name: str
    args: Any
    valid: bool


class ResponseProcessor:
    """Stateless parser for the text tool-call protocol."""

    def __init__(self) -> None:
        self._decoder = json.JSONDecoder()

    def validate(self, response: str) -> None:
        """Reject responses the loop cannot act on.

        Raises:
            ModelBehaviorError: If the response is blank, or one directive marker
                appears without its partner.
        """
        if not response or not response.strip():
            raise ModelBehaviorError(response, "Empty response from model")

        has_tool_call = TOOL_CALL_MARKER_RE.search(response) is not None
        has_arguments = ARGUMENTS_MARKER_RE.search(response) is not None

        if has_tool_call and not has_arguments:
            raise ModelBehaviorError(response, "Malformed tool call: TOOL_CALL found without ARGUMENTS")
        if has_arguments and not has_tool_call:
            raise ModelBehaviorError(response, "Malformed tool call: ARGUMENTS found without TOOL_CALL")

    def process(self, response: str) -> ProcessedResponse:
        """Split a response into reasoning, tool calls and (when there are no calls) the final answer."""
        reasoning = self.extract_reasoning(response)
        directives = list(self._scan_directives(response))
        tool_calls = [ToolCall(name=d.name, args=d.args) for d in directives if d.valid]

        final_output = None
        if not tool_calls:
            final_output = self._strip_markers(response, directives)

        return ProcessedResponse(reasoning_items=reasoning, tool_calls=tool_calls, final_output=final_output)

    @staticmethod
    def extract_reasoning(response: str) -> List[ReasoningStep]:
        return [
            ReasoningStep(step_index=index, note=match.group(1).strip())
            for index, match in enumerate(THINKING_RE.finditer(response))
        ]

    def extract_tool_calls(self, response: str) -> List[ToolCall]:
        return [ToolCall(name=d.name, args=d.args) for d in self._scan_directives(response) if d.valid]

    def _scan_directives(self, response: str) -> Iterator[_Directive]:
        pos = 0
        while True:
            match = TOOL_CALL_RE.search(response, pos)
            if match is None:
                return

            name = match.group(1).strip()
            args_start = match.end()
            try:
                args, args_end = self._decoder.raw_decode(response, args_start)
            except json.JSONDecodeError as exc:
                args_end = self._line_end(response, args_start)
                logger.warning(
                    "Failed to parse tool arguments for %s (%s): %r", name, exc, response[args_start:args_end]
                )
                yield _Directive(match.start(), args_end, name, None, False)
                pos = max(args_end, match.end())
                continue

            if not isinstance(args, (dict, list)):
                logger.warning("Tool arguments for %s must be a JSON object or array, got %r", name, args)
                yield _Directive(match.start(), args_end, name, None, False)
            else:
                yield _Directive(match.start(), args_end, name, args, True)
            pos = args_end

    @staticmethod
    def _line_end(text: str, start: int) -> int:
        newline = text.find("\n", start)
        return len(text) if newline == -1 else newline

    @staticmethod
    def _strip_markers(response: str, directives: List[_Directive]) -> str:
        pieces = []
        cursor = 0
        for directive in directives:
            pieces.append(response[cursor : directive.start])
            cursor = directive.end
        pieces.append(response[cursor:])
        return THINKING_RE.sub("", "".join(pieces)).strip()
