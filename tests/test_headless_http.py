import json
import urllib.error
import urllib.request

import pytest

from codequest.headless_http import SessionHost, start_background_server
from codequest.session import GameSession


def _http_get_json(url: str) -> dict:
    with urllib.request.urlopen(url, timeout=5) as response:
        return json.loads(response.read().decode("utf-8"))


def _http_post_json(url: str, payload: dict) -> dict:
    data = json.dumps(payload).encode("utf-8")
    request = urllib.request.Request(
        url,
        data=data,
        method="POST",
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    with urllib.request.urlopen(request, timeout=5) as response:
        return json.loads(response.read().decode("utf-8"))


@pytest.fixture
def base_url():
    server, thread = start_background_server(GameSession())
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=3)


def test_headless_http_lists_session_tools(base_url):
    tools = _http_get_json(f"{base_url}/tools")["tools"]

    assert [tool["name"] for tool in tools] == ["run_command", "clear_queue", "restart"]
    assert tools[0]["parameters"] == ["command"]


def test_headless_http_runs_commands_and_steps(base_url):
    called = _http_post_json(
        f"{base_url}/tools/call",
        {"name": "run_command", "arguments": {"command": "walk 2 down"}},
    )
    assert called["result"] == {"ok": True, "queue_length": 2, "errors": []}

    stepped = _http_post_json(f"{base_url}/step", {"ticks": 200})
    assert stepped["state"]["agent"]["y"] == 1128
    assert stepped["state"]["scheduler"]["queue_length"] == 0

    frame = _http_get_json(f"{base_url}/frame")["frame"]["rows"]
    assert frame[5][7] == "@"


def test_headless_http_step_applies_tool_calls_first(base_url):
    stepped = _http_post_json(
        f"{base_url}/step",
        {
            "ticks": 1,
            "toolCalls": [
                {"name": "run_command", "arguments": {"command": "turn left"}},
                "clear_queue",
            ],
        },
    )

    assert [result["ok"] for result in stepped["results"]] == [True, True]
    assert stepped["state"]["tick"] == 1
    assert _http_get_json(f"{base_url}/state")["state"]["scheduler"]["queue_length"] == 0


def test_headless_http_reports_failed_commands(base_url):
    called = _http_post_json(
        f"{base_url}/tools/call",
        {"name": "run_command", "arguments": {"command": "dance"}},
    )

    assert called["result"]["ok"] is False
    assert "Unknown command 'dance'" in called["result"]["errors"][0]
    assert called["state"]["health"]["current"] == 4


def test_headless_http_rejects_unknown_tools_and_bad_payloads(base_url):
    with pytest.raises(urllib.error.HTTPError) as not_found:
        _http_post_json(f"{base_url}/tools/call", {"name": "teleport"})
    assert not_found.value.code == 404

    with pytest.raises(urllib.error.HTTPError) as bad_ticks:
        _http_post_json(f"{base_url}/step", {"ticks": -3})
    assert bad_ticks.value.code == 400

    with pytest.raises(urllib.error.HTTPError) as missing:
        _http_get_json(f"{base_url}/nowhere")
    assert missing.value.code == 404


def test_session_host_restart_tool():
    session = GameSession()
    host = SessionHost(session)
    host.call_tool("run_command", {"command": "bogus"})

    result = host.call_tool("restart")

    assert result["result"] == {"ok": True}
    assert result["state"]["health"]["current"] == 5
    with pytest.raises(ValueError):
        host.call_tool("run_command", {"command": 7})


def test_headless_http_rejects_non_object_arguments(base_url):
    with pytest.raises(urllib.error.HTTPError) as bad_arguments:
        _http_post_json(f"{base_url}/tools/call", {"name": "run_command", "arguments": [1]})
    assert bad_arguments.value.code == 400

    with pytest.raises(urllib.error.HTTPError) as bad_calls:
        _http_post_json(f"{base_url}/step", {"ticks": 1, "toolCalls": "clear_queue"})
    assert bad_calls.value.code == 400

    with pytest.raises(urllib.error.HTTPError) as bad_step_arguments:
        _http_post_json(
            f"{base_url}/step",
            {"toolCalls": [{"name": "run_command", "arguments": 5}]},
        )
    assert bad_step_arguments.value.code == 400

    assert _http_get_json(f"{base_url}/state")["state"]["tick"] == 0
