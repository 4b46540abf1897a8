"""Public exports for the core engine: loop, tools, security and shared models."""

from .base import ModelGateway, ConversationStore
from .agentic import AgenticLoop, LoopOutcome, RunResult, RunState, ResponseProcessor, ProcessedResponse
from .config import AgentSettings, MCPServerConfig
from .exceptions import (
    AgenticEngineError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    SecurityError,
    ModelBehaviorError,
    TransportError,
)
from .logger import get_logger, setup_logging
from .messages import Message, UserMessage, AssistantMessage, SystemMessage
from .security import validate_secure_url, validate_redirect_url
from .tools import (
    Tool,
    ToolCall,
    ToolResult,
    ToolStatus,
    RunContext,
    FunctionTool,
    ToolRegistry,
    WebFetchTool,
    SchemaValidator,
)

__all__ = [
    "ModelGateway",
    "ConversationStore",
    "AgenticLoop",
    "LoopOutcome",
    "RunResult",
    "RunState",
    "ResponseProcessor",
    "ProcessedResponse",
    "AgentSettings",
    "MCPServerConfig",
    "AgenticEngineError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "SecurityError",
    "ModelBehaviorError",
    "TransportError",
    "get_logger",
    "setup_logging",
    "Message",
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
    "validate_secure_url",
    "validate_redirect_url",
    "Tool",
    "ToolCall",
    "ToolResult",
    "ToolStatus",
    "RunContext",
    "FunctionTool",
    "ToolRegistry",
    "WebFetchTool",
    "SchemaValidator",
]
