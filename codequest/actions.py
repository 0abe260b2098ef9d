from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def unit(self) -> Tuple[int, int]:
        return _UNIT_VECTORS[self]


_UNIT_VECTORS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


# Primitive actions


@dataclass(frozen=True)
class MoveStep:
    direction: Direction


@dataclass(frozen=True)
class WalkN:
    direction: Direction
    count: int

    def expand(self) -> List[MoveStep]:
        return [MoveStep(self.direction) for _ in range(self.count)]


@dataclass(frozen=True)
class Turn:
    direction: Direction


@dataclass(frozen=True)
class Wait:
    duration_ms: int


@dataclass(frozen=True)
class Print:
    message: str


PrimitiveAction = Union[MoveStep, Turn, Wait, Print]


def action_to_dict(action: PrimitiveAction) -> dict:
    if isinstance(action, MoveStep):
        return {"kind": "move", "direction": action.direction.value}
    if isinstance(action, Turn):
        return {"kind": "turn", "direction": action.direction.value}
    if isinstance(action, Wait):
        return {"kind": "wait", "duration_ms": action.duration_ms}
    if isinstance(action, Print):
        return {"kind": "print", "message": action.message}
    raise AssertionError("Unknown primitive action")


# Statements


class Stmt:
    pass


@dataclass(frozen=True)
class Stage(Stmt):
    """Leaf statement staging one or more primitive actions."""

    actions: Tuple[PrimitiveAction, ...]


@dataclass(frozen=True)
class Clear(Stmt):
    pass


@dataclass(frozen=True)
class Help(Stmt):
    pass


@dataclass(frozen=True)
class Condition:
    name: str
    op: str
    value: int


@dataclass(frozen=True)
class If(Stmt):
    condition: Condition
    body: Stmt


@dataclass(frozen=True)
class For(Stmt):
    var: str
    count: int
    body: Stmt

