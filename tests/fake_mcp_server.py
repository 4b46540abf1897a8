"""Minimal line-delimited JSON-RPC tool server used by the stdio transport tests.

Tools:
    echo     returns its ``text`` argument, written to stdout in two separate chunks
    image    returns an image block and flags the result as an error when ``fail`` is set
    fail     answers with a JSON-RPC error
    crash    exits without answering
    slow     answers after ``seconds``
"""

import json
import sys
import time

TOOLS = [
    {
        "name": "echo",
        "description": "Echo text back",
        "inputSchema": {
            "type": "object",
            "title": "EchoArgs",
            "properties": {"text": {"type": "string", "description": "Text to echo"}},
            "required": ["text"],
        },
    },
    {"name": "image", "inputSchema": {"type": "object", "properties": {}}},
    {"name": "fail", "description": "Always errors", "inputSchema": {"type": "object"}},
    {"name": "crash", "description": "Exits the server", "inputSchema": {"type": "object"}},
    {"name": "slow", "description": "Sleeps", "inputSchema": {"type": "object"}},
]


def send(payload: dict, split: bool = False) -> None:
    line = json.dumps(payload) + "\n"
    if split:
        middle = len(line) // 2
        sys.stdout.write(line[:middle])
        sys.stdout.flush()
        time.sleep(0.05)
        sys.stdout.write(line[middle:])
    else:
        sys.stdout.write(line)
    sys.stdout.flush()


def handle(request: dict) -> None:
    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    if method == "tools/list":
        send({"jsonrpc": "2.0", "id": request_id, "result": {"tools": TOOLS}})
        return

    if method != "tools/call":
        send({"jsonrpc": "2.0", "id": request_id, "error": {"code": -32601, "message": f"Unknown method {method}"}})
        return

    name = params.get("name")
    args = params.get("arguments") or {}

    if name == "echo":
        result = {"content": [{"type": "text", "text": args.get("text", "")}]}
        send({"jsonrpc": "2.0", "id": request_id, "result": result}, split=True)
    elif name == "image":
        result = {
            "content": [{"type": "image", "data": "aGVsbG8=", "mimeType": "image/png"}],
            "isError": bool(args.get("fail")),
        }
        send({"jsonrpc": "2.0", "id": request_id, "result": result})
    elif name == "fail":
        send({"jsonrpc": "2.0", "id": request_id, "error": {"code": -32000, "message": "tool exploded"}})
    elif name == "crash":
        sys.exit(3)
    elif name == "slow":
        time.sleep(float(args.get("seconds", 1.0)))
        send({"jsonrpc": "2.0", "id": request_id, "result": {"content": [{"type": "text", "text": "late"}]}})
    else:
        send({"jsonrpc": "2.0", "id": request_id, "result": {"content": [], "isError": False}})


def main() -> None:
    sys.stderr.write("fake server starting\n")
    sys.stderr.flush()
    # Noise the client has to skip.
    sys.stdout.write("this is not json\n")
    send({"jsonrpc": "2.0", "method": "notifications/message", "params": {"level": "info", "data": "hello"}})

    for line in sys.stdin:
        line = line.strip()
        if line:
            handle(json.loads(line))


if __name__ == "__main__":
    main()
