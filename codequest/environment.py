import operator
from typing import Callable, Dict, Optional, Protocol

from codequest.actions import Condition
from codequest.errors import MalformedCondition

_ALLOWED_CMP: Dict[str, Callable[[int, int], bool]] = {
    "<": operator.lt,
    ">": operator.gt,
    "==": operator.eq,
    "!=": operator.ne,
    "<=": operator.le,
    ">=": operator.ge,
}

BUILTIN_VARIABLES = ("x", "y", "health")


class WorldReader(Protocol):
    def read(self, name: str) -> int: ...


class VariableEnvironment:
    """
    Loop variables of one ``parse`` call, overlaid on live built-ins.

    Built-ins are read from the world on every lookup and never cached.
    """

    def __init__(self, world: WorldReader):
        self.world = world
        self.loop_vars: Dict[str, int] = {}

    def bind(self, name: str, value: int) -> None:
        self.loop_vars[name] = value

    def restore(self, name: str, previous: Optional[int]) -> None:
        """Put back the binding ``name`` had before a loop, or drop it."""
        if previous is None:
            self.loop_vars.pop(name, None)
        else:
            self.loop_vars[name] = previous

    def lookup(self, name: str) -> int:
        if name in self.loop_vars:
            return self.loop_vars[name]
        if name in BUILTIN_VARIABLES:
            return int(self.world.read(name))
        return 0

    def evaluate(self, condition: Condition) -> bool:
        compare = _ALLOWED_CMP.get(condition.op)
        if compare is None:
            raise MalformedCondition(f"Unsupported comparison operator '{condition.op}'.")
        return compare(self.lookup(condition.name), condition.value)
