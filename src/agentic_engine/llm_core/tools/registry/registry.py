"""Tool registry: holds every capability by name and executes batches of calls."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ...exceptions import SecurityError, ToolExecutionError, ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger
from ..function_tool import FunctionTool
from ..models import RunContext, Tool, ToolCall, ToolResult
from ..schema import SchemaValidator

logger = get_logger(__name__)

DEFAULT_PREAMBLE = "You are a helpful AI assistant with access to the following tools:\n\n"

TOOL_INSTRUCTIONS = """When you need to use a tool, respond with:
TOOL_CALL: <tool_name>
ARGUMENTS: <json_arguments>

Example:
TOOL_CALL: web_fetch
ARGUMENTS: {"url": "https://example.com", "extract": true}

When you have all information needed, provide your final answer without tool calls.
"""


class ToolRegistry:
    """
    A central registry to manage, execute and describe all available tools.

    Tools are kept in registration order, which is also the order in which
    they appear in the rendered catalog.
    """

    def __init__(self, system_prompt: Optional[str] = None, retry_base_delay: float = 1.0) -> None:
        """Initialize the ToolRegistry.

        Args:
            system_prompt: Optional custom preamble for the tool catalog.
            retry_base_delay: Seconds to wait after the first failed attempt; attempt ``n``
                waits ``retry_base_delay * n``.
        """
        self._tools: Dict[str, Tool] = {}
        self.system_prompt = system_prompt
        self.retry_base_delay = retry_base_delay

    def register(
        self,
        name_or_tool: Union[str, Tool, Callable[..., Any]],
        description: Optional[str] = None,
        func: Optional[Callable[..., Any]] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Tool:
        """
        Register a new tool.

        Accepts an object satisfying the Tool protocol, a plain callable (wrapped in a
        FunctionTool), or a name together with ``func`` (and optionally ``description``
        and ``parameters``).

        Returns:
            The registered tool.

        Raises:
            ToolRegistrationError: If arguments are incomplete or the name is already taken.
        """
        tool: Tool
        if isinstance(name_or_tool, str):
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")
            tool = FunctionTool(func, name=name_or_tool, description=description, parameters=parameters)
        elif isinstance(name_or_tool, Tool):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = FunctionTool(name_or_tool, description=description, parameters=parameters)
        else:
            raise ToolRegistrationError(f"Cannot register object of type {type(name_or_tool).__name__} as a tool.")

        if tool.name in self._tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self._tools[tool.name] = tool
        logger.info("Successfully registered tool: '%s'", tool.name)
        return tool

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        if tool_name not in self._tools:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.")
        del self._tools[tool_name]
        logger.info("Successfully unregistered tool: '%s'", tool_name)

    def tool(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """A decorator to turn a function into a tool.

        Returns:
            The original function, after registering it as a tool.
        """
        self.register(func)
        return func

    def register_web_fetch(self, **kwargs: Any) -> Tool:
        """Register the built-in ``web_fetch`` tool. Keyword arguments go to its constructor."""
        from ..builtin import WebFetchTool

        return self.register(WebFetchTool(**kwargs))

    def register_remote_tools(self, source: Any) -> List[Tool]:
        """Register tools discovered on remote providers.

        Args:
            source: An MCPClientManager (anything with ``get_tools()``) or an iterable of tools.

        Returns:
            The tools that were registered.
        """
        tools: Iterable[Tool] = source.get_tools() if hasattr(source, "get_tools") else source
        registered = [self.register(tool) for tool in tools]
        logger.info("Registered %d remote tools", len(registered))
        return registered

    def get_tool(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    @property
    def tools(self) -> List[Tool]:
        """All registered tools in registration order."""
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def clear(self) -> None:
        self._tools.clear()
        logger.info("Tool registry cleared")

    async def execute_tools(
        self, calls: Sequence[ToolCall], context: RunContext, max_retries: int = 2
    ) -> List[ToolResult]:
        """Execute a batch of tool calls concurrently.

        Results are index-aligned with ``calls``. The batch never raises: every
        failure, including an unknown tool name, becomes an error result in its slot,
        and one call's failure or backoff never cancels or delays its siblings.

        Args:
            calls: The tool calls requested by the model.
            context: The run context forwarded to each tool.
            max_retries: Maximum attempts per call.

        Returns:
            One ToolResult per call, in input order.
        """
        logger.info("Executing %d tools in parallel", len(calls))
        results = await asyncio.gather(*(self._execute_with_retry(call, context, max_retries) for call in calls))

        success_count = sum(1 for r in results if r.ok)
        logger.info("Tool execution complete: %d/%d successful", success_count, len(results))
        return list(results)

    async def _execute_with_retry(self, call: ToolCall, context: RunContext, max_retries: int) -> ToolResult:
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning("Tool '%s' not found in registry.", call.name)
            return ToolResult.error(f"Tool '{call.name}' not found")

        attempts = max(1, max_retries)
        last_error = "Unknown error"

        for attempt in range(1, attempts + 1):
            logger.info("Executing tool %s (attempt %d/%d)", call.name, attempt, attempts)
            try:
                result = await tool.execute(call.args, context)
            except SecurityError as exc:
                logger.warning("Tool %s blocked by security policy: %s", call.name, exc)
                return ToolResult.error(f"Security policy violation: {exc}")
            except Exception as exc:
                failure = ToolExecutionError(call.name, str(exc) or type(exc).__name__, attempt, exc)
                last_error = failure.reason
                logger.error("%s", failure)
            else:
                if result.ok:
                    logger.info("Tool %s succeeded on attempt %d", call.name, attempt)
                    return result
                last_error = result.content
                logger.warning("Tool %s returned an error on attempt %d: %s", call.name, attempt, last_error)

            if attempt < attempts:
                await asyncio.sleep(self.retry_base_delay * attempt)

        logger.error("Tool %s failed after %d attempts", call.name, attempts)
        return ToolResult.error(f"Tool execution failed after {attempts} attempts: {last_error}")

    def get_tool_definitions_text(self) -> str:
        """Render the tool catalog for the prompt.

        The output depends only on the registry contents and is identical across
        repeated calls.
        """
        return f"{self._preamble_section()}{self._tools_section()}{TOOL_INSTRUCTIONS}"

    def _preamble_section(self) -> str:
        if self.system_prompt:
            return f"{self.system_prompt}\n\n"
        return DEFAULT_PREAMBLE

    def _tools_section(self) -> str:
        if not self._tools:
            return "No tools available.\n\n"

        definitions = [
            f"- {tool.name}: {tool.description}\n  Parameters: {SchemaValidator.format_parameters(tool.parameters)}\n"
            for tool in self._tools.values()
        ]
        return "\n".join(definitions)
