"""Tools hosted on remote MCP servers, and the helpers both transports share."""

import json
from typing import Any, Dict, List, Optional, Protocol, cast

from mcp.types import CallToolResult, EmbeddedResource, ImageContent, ListToolsResult, TextContent
from pydantic import ValidationError

from ..llm_core.exceptions import TransportError
from ..llm_core.logger import get_logger
from ..llm_core.tools.models import RunContext, ToolResult
from ..llm_core.tools.schema import SchemaValidator

logger = get_logger(__name__)

__all__ = ["ToolConnection", "RemoteTool", "render_call_result", "build_remote_tools"]


class ToolConnection(Protocol):
    """What a RemoteTool needs from the transport that discovered it."""

    name: str

    async def invoke(self, tool_name: str, args: Any) -> ToolResult: ...


class RemoteTool:
    """A tool discovered on a remote server, exposed as ``mcp_<server>_<tool>``."""

    def __init__(
        self,
        server_name: str,
        tool_name: str,
        connection: ToolConnection,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.server_name = server_name
        self.tool_name = tool_name
        self.connection = connection
        self.name = f"mcp_{server_name}_{tool_name}"
        self.description = description or f"Tool {tool_name} from {server_name}"
        self.parameters: Dict[str, Any] = parameters or {"type": "object", "properties": {}}

    async def execute(self, args: Any, context: RunContext) -> ToolResult:
        SchemaValidator.check_required_args(self.name, self.parameters, args)
        logger.info("Delegating tool '%s' to MCP server '%s'", self.tool_name, self.server_name)
        logger.debug("Tool arguments: %s", args)
        return await self.connection.invoke(self.tool_name, args)

    def __repr__(self) -> str:
        return f"RemoteTool(name={self.name!r})"


def build_remote_tools(connection: ToolConnection, payload: Any) -> List[RemoteTool]:
    """Turn a ``tools/list`` result into RemoteTools bound to ``connection``.

    Raises:
        TransportError: If the payload is not a valid tool listing.
    """
    try:
        listing = ListToolsResult.model_validate(payload)
    except ValidationError as e:
        raise TransportError(f"Invalid tools/list result from '{connection.name}': {e}") from e

    tools = [
        RemoteTool(
            server_name=connection.name,
            tool_name=tool.name,
            connection=connection,
            description=tool.description,
            parameters=SchemaValidator.sanitize_schema(tool.inputSchema),
        )
        for tool in listing.tools
    ]
    logger.info("Found %d tools on MCP server '%s'", len(tools), connection.name)
    return tools


def render_call_result(payload: Any, server_name: str) -> ToolResult:
    """Flatten a ``tools/call`` result into a ToolResult.

    Text blocks are kept verbatim, images and embedded resources become short
    placeholders. Payloads that are not a valid CallToolResult are passed on as
    the JSON dump of their ``content`` field.
    """
    metadata = {"server": server_name}
    try:
        result = CallToolResult.model_validate(payload)
    except ValidationError:
        content = payload.get("content") if isinstance(payload, dict) else payload
        logger.debug("Non-standard tools/call result from '%s'", server_name)
        return ToolResult.success(json.dumps(content, default=str), metadata=metadata)

    output = []
    for c in result.content:
        if c.type == "text":
            output.append(cast(TextContent, c).text)
        elif c.type == "image":
            output.append(f"[Image: {cast(ImageContent, c).mimeType}]")
        elif c.type == "resource":
            output.append(f"[Resource: {cast(EmbeddedResource, c).resource.uri}]")
        else:
            output.append(f"[Unknown content type: {c.type}]")

    text = "\n".join(output)
    if result.isError:
        return ToolResult.error(text or "Tool reported an error", metadata=metadata)
    return ToolResult.success(text or "Success", metadata=metadata)
