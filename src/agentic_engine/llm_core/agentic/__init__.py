"""The agentic loop and the pieces it is assembled from."""

from .loop import AgenticLoop, LoopOutcome, RunResult, format_tool_results
from .response_processor import ProcessedResponse, ReasoningStep, ResponseProcessor
from .run_state import RunState, ToolCallRecord, generate_session_id

__all__ = [
    "AgenticLoop",
    "LoopOutcome",
    "RunResult",
    "format_tool_results",
    "ProcessedResponse",
    "ReasoningStep",
    "ResponseProcessor",
    "RunState",
    "ToolCallRecord",
    "generate_session_id",
]
