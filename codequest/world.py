"""In-memory collaborators consumed by the interpreter and scheduler."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterable, List, Optional, Tuple

OVERLAP_TOLERANCE = 5


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    def moved(self, x: int, y: int) -> "Rect":
        return Rect(self.x + x, self.y + y, self.width, self.height)

    def intersection(self, other: "Rect") -> Optional["Rect"]:
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.x + self.width, other.x + other.width)
        bottom = min(self.y + self.height, other.y + other.height)
        if right <= left or bottom <= top:
            return None
        return Rect(left, top, right - left, bottom - top)

    def overlaps(self, other: "Rect", tolerance: int = OVERLAP_TOLERANCE) -> bool:
        hit = self.intersection(other)
        return hit is not None and hit.width > tolerance and hit.height > tolerance


def default_solid_area(tile_size: int = 64) -> Rect:
    return Rect(8, 16, tile_size // 2, tile_size // 2)


@dataclass
class Agent:
    """The command-controlled character.

    ``x``/``y`` are the top-left world pixel coordinates of the sprite;
    collisions use ``solid_area`` offset from that corner.
    """

    x: int = 1000
    y: int = 1000
    direction: str = "down"
    sprite_num: int = 1
    solid_area: Rect = field(default_factory=default_solid_area)
    spawn: Tuple[int, int] = field(init=False)

    def __post_init__(self):
        self.spawn = (self.x, self.y)

    def hitbox_at(self, x: int, y: int) -> Rect:
        return self.solid_area.moved(x, y)

    def advance_frame(self) -> None:
        self.sprite_num = self.sprite_num + 1 if self.sprite_num < 4 else 1

    def update(self, busy: bool) -> None:
        if not busy:
            self.direction = "idle"

    def reset(self) -> None:
        self.x, self.y = self.spawn
        self.direction = "down"
        self.sprite_num = 1

    def to_dict(self) -> Dict[str, object]:
        return {
            "x": self.x,
            "y": self.y,
            "direction": self.direction,
            "sprite_num": self.sprite_num,
        }


class HealthSystem:
    """Hearts of the agent; syntax errors cost one each."""

    def __init__(self, max_health: int = 5):
        if max_health <= 0:
            raise ValueError("max_health must be positive.")
        self.max_health = max_health
        self.current_health = max_health
        self.is_dead = False
        self._observers: List[Callable[[], None]] = []

    def take_damage(self, amount: int) -> bool:
        """Apply damage; returns ``False`` when the agent is already dead."""
        if self.is_dead:
            return False
        self.current_health -= amount
        if self.current_health <= 0:
            self.current_health = 0
            self.is_dead = True
        self.notify_observers()
        return True

    def damage(self, amount: int) -> None:
        if not self.is_dead:
            self.take_damage(amount)

    def reset_health(self) -> None:
        self.current_health = self.max_health
        self.is_dead = False
        self.notify_observers()

    def register_observer(self, observer: Callable[[], None]) -> None:
        self._observers.append(observer)

    def unregister_observer(self, observer: Callable[[], None]) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def notify_observers(self) -> None:
        for observer in list(self._observers):
            observer()

    def to_dict(self) -> Dict[str, object]:
        return {
            "current": self.current_health,
            "max": self.max_health,
            "dead": self.is_dead,
        }


@dataclass(frozen=True)
class Message:
    text: str
    shown_at_ms: int
    is_print: bool


class MessageSystem:
    """Message bar state: dialogue messages and timed ``print`` output."""

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        *,
        print_message_ms: int = 3000,
        history_size: int = 100,
    ):
        self._clock = clock or (lambda: 0)
        self.print_message_ms = print_message_ms
        self.current: Optional[Message] = None
        self.history: Deque[Message] = deque(maxlen=history_size)

    def show(self, text: str) -> None:
        message = Message(text=text, shown_at_ms=self._clock(), is_print=True)
        self.current = message
        self.history.append(message)

    def show_dialogue(self, text: str) -> None:
        message = Message(text=text, shown_at_ms=self._clock(), is_print=False)
        self.current = message
        self.history.append(message)

    def hide(self) -> None:
        # Print output stays up until it expires.
        if self.current is not None and not self.current.is_print:
            self.current = None

    def update(self, now_ms: int) -> None:
        if (
            self.current is not None
            and self.current.is_print
            and now_ms - self.current.shown_at_ms >= self.print_message_ms
        ):
            self.current = None

    def clear(self) -> None:
        self.current = None
        self.history.clear()

    @property
    def current_text(self) -> Optional[str]:
        return self.current.text if self.current is not None else None


class TileWorld:
    """Collision oracle over a tile grid plus solid objects and entities."""

    def __init__(
        self,
        width: int,
        height: int,
        *,
        tile_size: int = 64,
        solid_tiles: Iterable[Tuple[int, int]] = (),
    ):
        if width <= 0 or height <= 0:
            raise ValueError("World dimensions must be positive.")
        self.width = width
        self.height = height
        self.tile_size = tile_size
        self.solid_tiles = set(solid_tiles)
        self.objects: Dict[str, Rect] = {}
        self.entities: Dict[str, Rect] = {}

    @classmethod
    def from_rows(cls, rows: List[str], *, tile_size: int = 64) -> "TileWorld":
        """Build a world from ASCII rows where ``#`` marks a solid tile."""
        if not rows:
            raise ValueError("Map rows cannot be empty.")
        width = max(len(row) for row in rows)
        solid = [
            (col, row)
            for row, line in enumerate(rows)
            for col, ch in enumerate(line)
            if ch == "#"
        ]
        return cls(width, len(rows), tile_size=tile_size, solid_tiles=solid)

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width * self.tile_size, self.height * self.tile_size)

    def set_solid(self, col: int, row: int, solid: bool = True) -> None:
        if solid:
            self.solid_tiles.add((col, row))
        else:
            self.solid_tiles.discard((col, row))

    def tile_rect(self, col: int, row: int) -> Rect:
        return Rect(col * self.tile_size, row * self.tile_size, self.tile_size, self.tile_size)

    def add_object(self, name: str, rect: Rect) -> None:
        self.objects[name] = rect

    def add_entity(self, name: str, rect: Rect) -> None:
        self.entities[name] = rect

    def remove(self, name: str) -> None:
        self.objects.pop(name, None)
        self.entities.pop(name, None)

    def check(self, rect: Rect) -> bool:
        """Return ``True`` when ``rect`` is blocked."""
        bounds = self.bounds
        if (
            rect.x < bounds.x
            or rect.y < bounds.y
            or rect.x + rect.width > bounds.width
            or rect.y + rect.height > bounds.height
        ):
            return True

        first_col = rect.x // self.tile_size
        last_col = (rect.x + rect.width - 1) // self.tile_size
        first_row = rect.y // self.tile_size
        last_row = (rect.y + rect.height - 1) // self.tile_size
        for row in range(first_row, last_row + 1):
            for col in range(first_col, last_col + 1):
                if (col, row) in self.solid_tiles and rect.overlaps(self.tile_rect(col, row)):
                    return True

        for other in list(self.objects.values()) + list(self.entities.values()):
            if rect.overlaps(other):
                return True
        return False


class WorldState:
    """Read-only view of the built-in variables ``x``, ``y`` and ``health``."""

    def __init__(self, agent: Agent, health: HealthSystem):
        self.agent = agent
        self.health = health

    def read(self, name: str) -> int:
        if name == "x":
            return self.agent.x
        if name == "y":
            return self.agent.y
        if name == "health":
            return self.health.current_health
        raise KeyError(f"Unknown built-in variable '{name}'.")
