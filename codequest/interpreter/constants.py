from typing import Dict

from codequest.actions import Direction

SEQUENCE_SEPARATORS = (";", "\n")

_DIRECTION_ALIASES: Dict[str, Direction] = {
    "up": Direction.UP,
    "north": Direction.UP,
    "w": Direction.UP,
    "down": Direction.DOWN,
    "south": Direction.DOWN,
    "s": Direction.DOWN,
    "left": Direction.LEFT,
    "west": Direction.LEFT,
    "a": Direction.LEFT,
    "right": Direction.RIGHT,
    "east": Direction.RIGHT,
    "d": Direction.RIGHT,
}

_CMP_CHARS = frozenset("<>!=")

MAX_LITERAL = 2**31 - 1
_MAX_LITERAL_DIGITS = len(str(MAX_LITERAL))

_CLEAR_KEYWORDS = frozenset({"clear", "stop"})

HELP_TEXT = (
    "# MOVEMENT\n"
    "move up / down / left / right\n"
    "walk 10 right\n"
    "turn left\n"
    "\n"
    "# PYTHON LOOPS\n"
    "for i in range(5): move up\n"
    "\n"
    "# PYTHON CONDITIONS\n"
    "if x < 200: move right\n"
    "\n"
    "# DEBUGGING\n"
    'print "checkpoint 1"\n'
    "\n"
    "# CONTROL\n"
    "clear\n"
    "wait\n"
    "wait 250"
)

__all__ = [
    "SEQUENCE_SEPARATORS",
    "_DIRECTION_ALIASES",
    "_CMP_CHARS",
    "MAX_LITERAL",
    "_CLEAR_KEYWORDS",
    "HELP_TEXT",
]
