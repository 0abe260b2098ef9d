"""Blocked moves are absorbed; syntax errors cost one heart per line."""

from __future__ import annotations

from codequest import CommandConsole, GameSession, TileWorld


MAP = [
    "######",
    "#....#",
    "#..#.#",
    "######",
]


if __name__ == "__main__":
    session = GameSession(TileWorld.from_rows(MAP))
    session.agent.x, session.agent.y = 64, 64
    console = CommandConsole(session)
    console.execute("walk 4 right")
    session.run_until_idle()
    console.execute("jump; fly")
    print("\n".join(session.render_frame(cols=6, rows=4)))
    print("\n".join(console.lines))
    print(f"health={session.health.current_health} x={session.agent.x}")
