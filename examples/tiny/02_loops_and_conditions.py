"""Loop variables and live built-ins inside conditions."""

from __future__ import annotations

from codequest import GameSession


LINES = [
    "for i in range(4): if i >= 2: move down",
    "if x > 900: walk 2 left",
    "if health < 5: print(\"hurt\")",
]


if __name__ == "__main__":
    session = GameSession()
    for line in LINES:
        result = session.submit(line)
        session.run_until_idle()
        print(f"{line!r}: ok={result.ok} at=({session.agent.x}, {session.agent.y})")
