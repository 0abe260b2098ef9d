"""HTTP client and FastMCP bridge for a CodeQuest headless server."""

from __future__ import annotations

import inspect
import json
import urllib.request
from typing import Any, Callable, Dict, List, Optional, Type


class CodeQuestHTTPClient:
    """JSON client for :mod:`codequest.headless_http` endpoints."""

    def __init__(self, base_url: str, *, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def list_tools(self) -> List[Dict[str, Any]]:
        """List tools exposed by the session host (``GET /tools``)."""
        payload = self._request("GET", "/tools")
        tools = payload.get("tools")
        if not isinstance(tools, list):
            return []
        return [tool for tool in tools if isinstance(tool, dict)]

    def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Invoke one tool by name.

        Raises:
            ValueError: If ``name`` is empty.
            URLError: If the HTTP request fails.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Tool name must be a non-empty string.")
        return self._request("POST", "/tools/call", {"name": name, "arguments": arguments or {}})

    def run_command(self, command: str) -> Dict[str, Any]:
        return self.call_tool("run_command", {"command": command})

    def get_state(self) -> Dict[str, Any]:
        return self._request("GET", "/state")

    def get_frame(self) -> Dict[str, Any]:
        return self._request("GET", "/frame")

    def step(
        self,
        ticks: int = 1,
        tool_calls: Optional[List[Any]] = None,
    ) -> Dict[str, Any]:
        """Run optional tool calls, then advance ``ticks`` simulation frames."""
        payload: Dict[str, Any] = {"ticks": ticks}
        if tool_calls:
            payload["toolCalls"] = list(tool_calls)
        return self._request("POST", "/step", payload)

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        data = None if payload is None else json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(f"{self.base_url}{path}", data=data, method=method)
        request.add_header("Accept", "application/json")
        if data is not None:
            request.add_header("Content-Type", "application/json")
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            body = response.read().decode("utf-8")

        parsed = json.loads(body) if body.strip() else {}
        if not isinstance(parsed, dict):
            raise RuntimeError(f"Expected a JSON object from {method} {path}.")
        return parsed


def build_fastmcp_from_http(
    base_url: str,
    *,
    server_name: str = "CodeQuest",
    mcp_cls: Optional[Type[Any]] = None,
) -> Any:
    """Create a FastMCP server that drives a CodeQuest session over HTTP.

    Every session tool is proxied, plus ``step`` and ``get_state`` so an agent
    can advance time and observe the result.

    Args:
        base_url: Base URL of a running ``codequest serve`` instance.
        server_name: Name passed to the FastMCP constructor.
        mcp_cls: FastMCP-compatible class to use instead of ``fastmcp.FastMCP``.

    Raises:
        RuntimeError: If ``fastmcp`` is unavailable or the class has no
            supported registration API.
    """

    if mcp_cls is None:
        try:
            from fastmcp import FastMCP  # type: ignore
        except ImportError as exc:  # pragma: no cover - depends on optional dependency
            raise RuntimeError(
                "fastmcp is not installed. Install codequest[mcp] or pass mcp_cls explicitly."
            ) from exc
        mcp_cls = FastMCP

    client = CodeQuestHTTPClient(base_url)
    mcp = mcp_cls(server_name)

    for tool in client.list_tools():
        tool_name = tool.get("name")
        if not isinstance(tool_name, str) or not tool_name:
            continue
        tool_description = tool.get("tool_docstring")
        if not isinstance(tool_description, str):
            tool_description = ""
        parameters = [name for name in tool.get("parameters") or [] if isinstance(name, str)]
        proxy_fn = _make_tool_proxy(client, tool_name, tool_description, parameters)
        _register(mcp, proxy_fn, tool_name, tool_description)

    _register(mcp, _make_step_tool(client), "step", "Advance the simulation by 'ticks' frames.")
    _register(mcp, _make_state_tool(client), "get_state", "Return the current session state.")
    return mcp


def _register(mcp: Any, fn: Callable[..., Dict[str, Any]], name: str, description: str) -> None:
    if hasattr(mcp, "tool"):
        _get_tool_decorator(mcp, tool_name=name, tool_description=description)(fn)
        return
    if hasattr(mcp, "add_tool"):
        mcp.add_tool(fn, name=name, description=description)
        return
    raise RuntimeError(
        "Provided MCP class does not expose a supported registration API "
        "(expected .tool(...) or .add_tool(...))."
    )


def _make_tool_proxy(
    client: CodeQuestHTTPClient,
    tool_name: str,
    tool_description: str,
    parameters: Optional[List[str]] = None,
) -> Callable[..., Dict[str, Any]]:
    def _tool_proxy(**kwargs: Any) -> Dict[str, Any]:
        return client.call_tool(tool_name, dict(kwargs))

    if parameters:
        _tool_proxy.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
            [
                inspect.Parameter(name, inspect.Parameter.KEYWORD_ONLY, annotation=str)
                for name in parameters
            ],
            return_annotation=Dict[str, Any],
        )

    _tool_proxy.__name__ = _proxy_name(tool_name)
    _tool_proxy.__doc__ = tool_description or f"Proxy tool '{tool_name}'"
    return _tool_proxy


def _make_step_tool(client: CodeQuestHTTPClient) -> Callable[..., Dict[str, Any]]:
    def step(ticks: int = 1) -> Dict[str, Any]:
        return client.step(ticks)

    return step


def _make_state_tool(client: CodeQuestHTTPClient) -> Callable[..., Dict[str, Any]]:
    def get_state() -> Dict[str, Any]:
        return client.get_state()

    return get_state


def _get_tool_decorator(mcp: Any, *, tool_name: str, tool_description: str):
    try:
        return mcp.tool(name=tool_name, description=tool_description)
    except TypeError:
        return mcp.tool()


def _proxy_name(tool_name: str) -> str:
    return "tool_" + "".join(ch if ch.isalnum() else "_" for ch in tool_name)
