import json
from typing import Any, Dict, List

import httpx
import pytest

from agentic_engine.llm_core.exceptions import TransportError
from agentic_engine.llm_core.tools import RunContext, ToolStatus
from agentic_engine.mcp_wrapper import HttpConnection, render_call_result

TOOLS = {
    "tools": [
        {
            "name": "lookup",
            "description": "Look something up",
            "inputSchema": {
                "type": "object",
                "properties": {"key": {"type": "string", "description": "Key"}},
                "required": ["key"],
            },
        },
        {"name": "ping", "inputSchema": {"type": "object", "properties": {}}},
    ]
}


class FakeServer:
    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.call_response: Any = {"content": [{"type": "text", "text": "value"}]}
        self.call_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/mcp/tools/list":
            return httpx.Response(200, json=TOOLS)
        if request.url.path == "/mcp/tools/call":
            return httpx.Response(self.call_status, json=self.call_response)
        return httpx.Response(404, text="no such endpoint")


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


def make_connection(server: FakeServer, **kwargs: Any) -> HttpConnection:
    return HttpConnection(
        name="remote",
        url="https://tools.internal/mcp/",
        headers={"Authorization": "Bearer token"},
        transport=httpx.MockTransport(server),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_connect_and_discover(server: FakeServer) -> None:
    async with make_connection(server) as conn:
        tools = await conn.discover()

    assert [t.name for t in tools] == ["mcp_remote_lookup", "mcp_remote_ping"]
    assert tools[0].description == "Look something up"
    assert tools[1].description == "Tool ping from remote"

    request = server.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://tools.internal/mcp/tools/list"
    assert json.loads(request.content) == {}
    assert request.headers["authorization"] == "Bearer token"
    assert request.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_invoke_posts_name_and_arguments(server: FakeServer, run_context: RunContext) -> None:
    async with make_connection(server) as conn:
        lookup = (await conn.discover())[0]
        result = await lookup.execute({"key": "k1"}, run_context)

    assert result.status == ToolStatus.SUCCESS
    assert result.content == "value"
    assert result.metadata == {"server": "remote"}
    assert json.loads(server.requests[-1].content) == {"name": "lookup", "arguments": {"key": "k1"}}


@pytest.mark.asyncio
async def test_non_2xx_becomes_error_result(server: FakeServer) -> None:
    server.call_status = 500
    server.call_response = {"detail": "boom"}

    async with make_connection(server) as conn:
        result = await conn.invoke("lookup", {"key": "k"})

    assert result.status == ToolStatus.ERROR
    assert result.content.startswith("Tool execution failed: HTTP 500: ")
    assert "boom" in result.content


@pytest.mark.asyncio
async def test_network_error_becomes_error_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    conn = HttpConnection(name="down", url="https://down.internal", transport=httpx.MockTransport(handler))
    result = await conn.invoke("anything", {})
    await conn.close()

    assert result.status == ToolStatus.ERROR
    assert "HTTP request failed" in result.content


@pytest.mark.asyncio
async def test_connect_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    conn = HttpConnection(name="down", url="https://down.internal", transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError, match="Failed to connect to HTTP MCP server down: HTTP 503: maintenance"):
        await conn.connect()
    await conn.close()


@pytest.mark.asyncio
async def test_invalid_listing_raises(server: FakeServer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"tools": [{"description": "nameless"}]})

    conn = HttpConnection(name="odd", url="https://odd.internal", transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError, match="Invalid tools/list result"):
        await conn.discover()
    await conn.close()


def test_render_call_result_variants() -> None:
    mixed: Dict[str, Any] = {
        "content": [
            {"type": "text", "text": "line one"},
            {"type": "image", "data": "aGk=", "mimeType": "image/jpeg"},
            {"type": "resource", "resource": {"uri": "file:///tmp/report.txt", "text": "..."}},
        ]
    }
    result = render_call_result(mixed, "srv")
    assert result.content == "line one\n[Image: image/jpeg]\n[Resource: file:///tmp/report.txt]"
    assert result.ok

    error = render_call_result({"content": [{"type": "text", "text": "bad input"}], "isError": True}, "srv")
    assert (error.status, error.content) == (ToolStatus.ERROR, "bad input")

    assert render_call_result({"content": []}, "srv").content == "Success"


def test_render_call_result_nonstandard_payload() -> None:
    result = render_call_result({"content": {"answer": 42}}, "srv")

    assert result.ok
    assert json.loads(result.content) == {"answer": 42}
