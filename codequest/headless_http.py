"""JSON HTTP server exposing a :class:`GameSession` as callable tools."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, List, Optional, Tuple

from codequest.session import GameSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTool:
    name: str
    tool_docstring: str
    handler: Callable[[GameSession, Dict[str, Any]], Dict[str, Any]]
    parameters: Tuple[str, ...] = ()


def _run_command(session: GameSession, arguments: Dict[str, Any]) -> Dict[str, Any]:
    command = arguments.get("command")
    if not isinstance(command, str):
        raise ValueError("run_command expects a string 'command' argument.")
    return session.submit(command).to_dict()


def _clear_queue(session: GameSession, arguments: Dict[str, Any]) -> Dict[str, Any]:
    return session.submit("clear").to_dict()


def _restart(session: GameSession, arguments: Dict[str, Any]) -> Dict[str, Any]:
    session.restart()
    return {"ok": True}


DEFAULT_TOOLS: Tuple[SessionTool, ...] = (
    SessionTool(
        "run_command",
        "Submit one CodeQuest command line, e.g. 'for i in range(3): move up'.",
        _run_command,
        parameters=("command",),
    ),
    SessionTool("clear_queue", "Drop queued actions and stop the current move.", _clear_queue),
    SessionTool("restart", "Restore health and respawn the agent.", _restart),
)


class SessionHost:
    """Serializes tool calls and steps against one session."""

    def __init__(self, session: GameSession, tools: Tuple[SessionTool, ...] = DEFAULT_TOOLS):
        self.session = session
        self.tools = {tool.name: tool for tool in tools}
        self.lock = threading.Lock()

    def list_tools(self) -> List[Dict[str, str]]:
        return [
            {
                "name": tool.name,
                "tool_docstring": tool.tool_docstring,
                "parameters": list(tool.parameters),
            }
            for tool in self.tools.values()
        ]

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        tool = self.tools.get(name)
        if tool is None:
            raise KeyError(f"Unknown tool '{name}'.")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValueError("Tool arguments must be a JSON object.")
        with self.lock:
            result = tool.handler(self.session, dict(arguments))
            return {"result": result, "state": self.session.snapshot()}

    def step(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ticks = payload.get("ticks", 1)
        if not isinstance(ticks, int) or isinstance(ticks, bool) or ticks < 0:
            raise ValueError("'ticks' must be a non-negative integer.")
        calls = payload.get("toolCalls") or []
        if not isinstance(calls, list):
            raise ValueError("'toolCalls' must be a list.")
        results = []
        for call in calls:
            if isinstance(call, str):
                name, arguments = call, {}
            elif isinstance(call, dict) and isinstance(call.get("name"), str):
                name, arguments = call["name"], call.get("arguments") or {}
            else:
                raise ValueError("Each tool call must be a name or {name, arguments}.")
            results.append(self.call_tool(name, arguments)["result"])
        with self.lock:
            self.session.step(ticks)
            return {"results": results, "state": self.session.snapshot()}

    def state(self) -> Dict[str, Any]:
        with self.lock:
            return {"state": self.session.snapshot()}

    def frame(self) -> Dict[str, Any]:
        with self.lock:
            return {"frame": {"rows": self.session.render_frame()}}


def make_handler(host: SessionHost) -> type:
    class _SessionHandler(BaseHTTPRequestHandler):
        def do_GET(self):  # noqa: N802
            if self.path == "/tools":
                self._send_json({"tools": host.list_tools()})
                return
            if self.path == "/state":
                self._send_json(host.state())
                return
            if self.path == "/frame":
                self._send_json(host.frame())
                return
            self._send_json({"error": "not found"}, status=404)

        def do_POST(self):  # noqa: N802
            if self.path not in {"/tools/call", "/step"}:
                self._send_json({"error": "not found"}, status=404)
                return
            try:
                payload = self._read_json()
                if self.path == "/tools/call":
                    name = payload.get("name")
                    if not isinstance(name, str) or not name:
                        raise ValueError("Tool name must be a non-empty string.")
                    self._send_json(host.call_tool(name, payload.get("arguments")))
                else:
                    self._send_json(host.step(payload))
            except KeyError as exc:
                self._send_json({"error": exc.args[0]}, status=404)
            except ValueError as exc:
                self._send_json({"error": str(exc)}, status=400)

        def log_message(self, format, *args):  # noqa: A003
            logger.debug("%s - %s", self.address_string(), format % args)

        def _read_json(self) -> Dict[str, Any]:
            raw = self.rfile.read(int(self.headers.get("Content-Length", "0")))
            if not raw:
                return {}
            try:
                payload = json.loads(raw.decode("utf-8"))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON body: {exc.msg}") from exc
            if not isinstance(payload, dict):
                raise ValueError("Request body must be a JSON object.")
            return payload

        def _send_json(self, payload, status=200):
            encoded = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)

    return _SessionHandler


def create_server(
    session: GameSession,
    host: str = "127.0.0.1",
    port: int = 7070,
) -> ThreadingHTTPServer:
    return ThreadingHTTPServer((host, port), make_handler(SessionHost(session)))


def start_background_server(
    session: GameSession,
    host: str = "127.0.0.1",
    port: int = 0,
) -> Tuple[ThreadingHTTPServer, threading.Thread]:
    """Serve ``session`` on a daemon thread; ``port=0`` picks a free port."""
    server = create_server(session, host, port)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("Serving CodeQuest session on http://%s:%d", host, server.server_address[1])
    return server, thread
