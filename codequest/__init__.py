"""Public Python API for CodeQuest.

The package exposes the command interpreter, the action scheduler, the
reference world collaborators and a headless session wrapper. Grammar
constants live in ``codequest.interpreter.constants``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from codequest.actions import Direction, MoveStep, Print, Turn, Wait, WalkN
from codequest.config import SchedulerConfig, speed_level_to_delay
from codequest.errors import (
    CommandError,
    MalformedCondition,
    MalformedLoopHeader,
    NumericParseError,
    UnrecognizedStatement,
)
from codequest.interpreter import CommandInterpreter
from codequest.mcp_bridge import CodeQuestHTTPClient, build_fastmcp_from_http
from codequest.scheduler import ActionScheduler, ManualClock, MonotonicClock
from codequest.session import CommandConsole, CommandResult, GameSession
from codequest.world import Agent, HealthSystem, MessageSystem, Rect, TileWorld, WorldState

try:
    __version__: str = version("codequest")
except PackageNotFoundError:  # pragma: no cover - editable local fallback
    __version__ = "0.1.0"


def about(*, print_output: bool = True) -> str:
    """Return and optionally print the engine semantic contract.

    Args:
        print_output: Whether to print the returned summary.

    Returns:
        Human-readable semantic summary string.

    Example:
        >>> from codequest import about
        >>> text = about(print_output=False)
        >>> "Coordinate system" in text
        True
    """
    text = (
        f"CodeQuest {__version__}\n"
        "Coordinate system: world origin at top-left, +x right, +y down; one tile is 64 px.\n"
        "Agent position: x/y are the sprite's top-left corner in world pixels.\n"
        "Parsing: one call resolves a whole line, unrolling loops into queued actions.\n"
        "Scheduling: one tick dequeues at most one action, after the action delay gate.\n"
        "Motion: one tile per move, interpolated per tick, snapped exactly on arrival.\n"
        "Errors: a failing line returns False and costs one heart, once per line."
    )
    if print_output:
        print(text)
    return text


__all__ = [
    "__version__",
    "about",
    "ActionScheduler",
    "Agent",
    "CodeQuestHTTPClient",
    "CommandConsole",
    "CommandError",
    "CommandInterpreter",
    "CommandResult",
    "Direction",
    "GameSession",
    "HealthSystem",
    "MalformedCondition",
    "MalformedLoopHeader",
    "ManualClock",
    "MessageSystem",
    "MonotonicClock",
    "MoveStep",
    "NumericParseError",
    "Print",
    "Rect",
    "SchedulerConfig",
    "TileWorld",
    "Turn",
    "UnrecognizedStatement",
    "Wait",
    "WalkN",
    "WorldState",
    "build_fastmcp_from_http",
    "speed_level_to_delay",
]
