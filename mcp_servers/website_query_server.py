"""
Local JSON-RPC MCP server that exposes the website query agent as a tool.

It serves two JSON-RPC 2.0 methods over HTTP:

  - `list_tools` returns the `queryWebsite` tool metadata.
  - `call_tool` runs `queryWebsite` with the provided arguments.

Run it with:

    python -m mcp_servers.website_query_server

Make sure `OPENAI_API_KEY` is set in your environment.  Point MCP clients at
`http://127.0.0.1:6113/mcp` (or whichever host/port you use).
"""

from __future__ import annotations

import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Type

from dotenv import load_dotenv
from pydantic import ValidationError

from agents.qa_prompts import QUERY_WEBSITE_TOOL
from agents.query_models import QueryWebsiteArguments
from agents.website_query_agent import WebsiteQueryAgent

logger = logging.getLogger("website_query_server")


def _json_rpc_error(rpc_id: Any, code: int, message: str, data: Any | None = None) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": rpc_id,
        "error": {
            "code": code,
            "message": message,
            "data": data,
        },
    }


def _json_rpc_result(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def handle_rpc(agent: WebsiteQueryAgent, request: Dict[str, Any]) -> Dict[str, Any]:
    rpc_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    if method == "list_tools":
        logger.debug("Handling list_tools request")
        return _json_rpc_result(rpc_id, {"tools": [QUERY_WEBSITE_TOOL]})

    if method == "call_tool":
        name = params.get("name")
        if name != QUERY_WEBSITE_TOOL["name"]:
            return _json_rpc_error(rpc_id, -32601, f"Unknown tool '{name}'")

        try:
            arguments = QueryWebsiteArguments.model_validate(params.get("arguments") or {})
        except ValidationError as exc:
            return _json_rpc_error(rpc_id, -32602, "Invalid arguments.", json.loads(exc.json(include_url=False)))

        try:
            result = agent.invoke(arguments.query, arguments.urls)
        except Exception as exc:
            logger.exception("Error while answering website query.")
            return _json_rpc_error(rpc_id, -32001, str(exc))
        return _json_rpc_result(
            rpc_id,
            {"answers": result.answers, "content": result.bot_readable_content},
        )

    return _json_rpc_error(rpc_id, -32601, f"Unknown method '{method}'")


def make_handler(agent: WebsiteQueryAgent) -> Type[BaseHTTPRequestHandler]:
    class WebsiteQueryHandler(BaseHTTPRequestHandler):
        server_version = "WebsiteQueryMCP/0.1"
        rpc_path = "/mcp"

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
            logger.info("%s - - %s", self.address_string(), format % args)

        def _send_json(self, payload: Dict[str, Any], status: int = 200) -> None:
            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def do_POST(self) -> None:  # noqa: N802
            if self.path.rstrip("/") != self.rpc_path:
                self.send_error(404, "Not Found")
                return

            length = int(self.headers.get("Content-Length", "0"))
            raw_body = self.rfile.read(length)
            try:
                request = json.loads(raw_body)
            except json.JSONDecodeError as exc:
                logger.error("Invalid JSON payload: %s", exc)
                self._send_json(_json_rpc_error(None, -32700, "Invalid JSON"))
                return

            self._send_json(handle_rpc(agent, request))

    return WebsiteQueryHandler


def run_server(host: str, port: int, agent: WebsiteQueryAgent) -> None:
    handler_cls = make_handler(agent)
    server = ThreadingHTTPServer((host, port), handler_cls)
    logger.info("Website query MCP server listening on http://%s:%d/mcp", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        logger.info("Shutting down website query MCP server.")
    finally:
        server.server_close()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    load_dotenv()

    host = os.getenv("LOCAL_MCP_HOST", "127.0.0.1")
    port = int(os.getenv("LOCAL_MCP_PORT", "6113"))
    run_server(host, port, WebsiteQueryAgent())


if __name__ == "__main__":
    main()
