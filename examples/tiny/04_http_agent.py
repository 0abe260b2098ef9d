"""Drive a served session through the HTTP client, as a remote agent would."""

from __future__ import annotations

from codequest import CodeQuestHTTPClient, GameSession
from codequest.headless_http import start_background_server


if __name__ == "__main__":
    server, thread = start_background_server(GameSession())
    try:
        client = CodeQuestHTTPClient(f"http://127.0.0.1:{server.server_address[1]}")
        print([tool["name"] for tool in client.list_tools()])
        client.run_command("for i in range(2): move up")
        state = client.step(120)["state"]
        print(f"agent={state['agent']} queue={state['scheduler']['queue_length']}")
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=3)
