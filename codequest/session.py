"""Headless game session wiring the interpreter, scheduler and world."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from codequest.config import SchedulerConfig
from codequest.interpreter import CommandInterpreter
from codequest.interpreter.constants import HELP_TEXT
from codequest.scheduler import ActionScheduler, Clock, ManualClock
from codequest.world import (
    Agent,
    HealthSystem,
    MessageSystem,
    TileWorld,
    WorldState,
    default_solid_area,
)

logger = logging.getLogger(__name__)

DEFAULT_WORLD_TILES = 50
GAME_OVER_ERROR = "Game over: restart to continue."


class SessionState(Enum):
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    queue_length: int
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "queue_length": self.queue_length, "errors": list(self.errors)}


class GameSession:
    """One agent in one world, driven by fixed-step ``step()`` calls.

    With the default :class:`ManualClock` each step advances time by
    ``tick_ms``; pass a real clock to drive the session from a frame loop.
    """

    def __init__(
        self,
        world: Optional[TileWorld] = None,
        *,
        agent: Optional[Agent] = None,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Clock] = None,
        max_health: int = 5,
        tick_ms: int = 16,
    ):
        self.config = config or SchedulerConfig()
        self.world = world or TileWorld(
            DEFAULT_WORLD_TILES,
            DEFAULT_WORLD_TILES,
            tile_size=self.config.tile_size,
        )
        self.clock: Clock = clock or ManualClock()
        self.tick_ms = tick_ms
        self.agent = agent or Agent(solid_area=default_solid_area(self.config.tile_size))
        self.health = HealthSystem(max_health)
        self.messages = MessageSystem(self.clock.now_ms)
        self.scheduler = ActionScheduler(
            self.agent,
            self.world,
            self.messages,
            config=self.config,
            clock=self.clock,
        )
        self.interpreter = CommandInterpreter(
            self.scheduler,
            WorldState(self.agent, self.health),
            self.health,
            self.messages,
        )
        self.state = SessionState.PLAYING
        self.ticks = 0

    def submit(self, line: str) -> CommandResult:
        if self.state is SessionState.GAME_OVER:
            return CommandResult(False, self.scheduler.queue_length(), [GAME_OVER_ERROR])

        ok = self.interpreter.parse(line)
        if self.health.is_dead:
            logger.info("Health depleted; session over")
            self.state = SessionState.GAME_OVER
            self.scheduler.clear()
        return CommandResult(ok, self.scheduler.queue_length(), list(self.interpreter.last_errors))

    def step(self, ticks: int = 1) -> None:
        if ticks < 0:
            raise ValueError("ticks cannot be negative.")
        for _ in range(ticks):
            if isinstance(self.clock, ManualClock):
                self.clock.advance(self.tick_ms)
            self.scheduler.tick()
            self.agent.update(self.scheduler.is_busy())
            self.messages.update(self.clock.now_ms())
            self.ticks += 1

    def run_until_idle(self, max_ticks: int = 100_000) -> int:
        """Step until the scheduler is idle; returns the number of ticks run."""
        ran = 0
        while self.scheduler.is_busy() and ran < max_ticks:
            self.step()
            ran += 1
        return ran

    def restart(self) -> None:
        self.scheduler.clear()
        self.health.reset_health()
        self.agent.reset()
        self.messages.clear()
        self.state = SessionState.PLAYING

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "tick": self.ticks,
            "time_ms": self.clock.now_ms(),
            "agent": self.agent.to_dict(),
            "health": self.health.to_dict(),
            "scheduler": self.scheduler.snapshot(),
            "message": self.messages.current_text,
        }

    def render_frame(self, cols: int = 15, rows: int = 11) -> List[str]:
        """Symbolic view centred on the agent's tile.

        ``@`` agent, ``#`` solid tile, ``o`` object, ``e`` entity, ``.`` floor,
        blank outside the world.
        """
        tile = self.world.tile_size
        center_col = (self.agent.x + tile // 2) // tile
        center_row = (self.agent.y + tile // 2) // tile
        first_col = center_col - cols // 2
        first_row = center_row - rows // 2

        lines = []
        for row in range(first_row, first_row + rows):
            chars = []
            for col in range(first_col, first_col + cols):
                chars.append(self._tile_symbol(col, row, center_col, center_row))
            lines.append("".join(chars))
        return lines

    def _tile_symbol(self, col: int, row: int, agent_col: int, agent_row: int) -> str:
        if not (0 <= col < self.world.width and 0 <= row < self.world.height):
            return " "
        if (col, row) == (agent_col, agent_row):
            return "@"
        if (col, row) in self.world.solid_tiles:
            return "#"
        cell = self.world.tile_rect(col, row)
        if any(cell.intersection(rect) for rect in self.world.objects.values()):
            return "o"
        if any(cell.intersection(rect) for rect in self.world.entities.values()):
            return "e"
        return "."


class CommandConsole:
    """Command prompt transcript for a session, capped to ``max_lines``."""

    def __init__(self, session: GameSession, *, max_lines: int = 100):
        self.session = session
        self.max_lines = max_lines
        self.lines: List[str] = []
        self.append("Python-Style CodeQuest Ready!")
        self.append("Type Python commands or 'help' for examples.")

    def execute(self, line: str) -> Optional[CommandResult]:
        command = line.strip()
        if not command:
            return None
        self.append(f">>> {command}")
        result = self.session.submit(command)
        if result.errors == [GAME_OVER_ERROR]:
            self.append(GAME_OVER_ERROR)
        elif not result.ok:
            self.append("SyntaxError: Invalid command syntax")
            self.append("Type 'help' for examples.")
        return result

    def clear_queue(self) -> None:
        self.session.submit("clear")
        self.append("Command queue cleared.")

    def show_help(self) -> None:
        for line in HELP_TEXT.splitlines():
            self.append(line)

    def queue_label(self) -> str:
        size = self.session.scheduler.queue_length()
        return f"Queue: {size} command{'s' if size != 1 else ''}"

    def append(self, text: str) -> None:
        self.lines.extend(text.splitlines() or [""])
        if len(self.lines) > self.max_lines:
            del self.lines[: len(self.lines) - self.max_lines]
