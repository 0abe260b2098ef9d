"""Minimal session: submit one line and run the queue to completion."""

from __future__ import annotations

from codequest import GameSession


if __name__ == "__main__":
    session = GameSession()
    result = session.submit("walk 3 right; turn up")
    ticks = session.run_until_idle()
    agent = session.agent
    print(f"ok={result.ok} ticks={ticks} position=({agent.x}, {agent.y})")
