"""Frame-synchronous action queue and interpolated tile motion."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Deque, Dict, Optional, Protocol, Tuple

from codequest.actions import (
    Direction,
    MoveStep,
    PrimitiveAction,
    Print,
    Turn,
    Wait,
    action_to_dict,
)
from codequest.config import SchedulerConfig

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class Clock(Protocol):
    def now_ms(self) -> int: ...


class MonotonicClock:
    """Wall clock in integer milliseconds."""

    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)


class ManualClock:
    """Clock advanced explicitly; used by headless sessions and tests."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        if ms < 0:
            raise ValueError("Cannot move a clock backwards.")
        self._now += ms


class CollisionOracle(Protocol):
    def check(self, rect: Any) -> bool: ...


class Mover(Protocol):
    x: int
    y: int
    direction: str

    def hitbox_at(self, x: int, y: int) -> Any: ...

    def advance_frame(self) -> None: ...


class MessageSink(Protocol):
    def show(self, text: str) -> None: ...


@dataclass(frozen=True)
class MotionState:
    origin: Point
    target: Point
    direction: Direction
    in_progress: bool = True


@dataclass
class SchedulerTiming:
    action_delay_ms: int = 0
    last_action_ms: Optional[int] = None

    def gate_open(self, now_ms: int) -> bool:
        if self.last_action_ms is None:
            return True
        return now_ms - self.last_action_ms >= self.action_delay_ms


class ActionScheduler:
    """Drain staged actions one per tick and drive one smooth move at a time.

    ``tick()`` is called once per simulation frame. While a move is in flight
    the queue is not touched; otherwise at most one action is dequeued, subject
    to the action delay gate.
    """

    def __init__(
        self,
        agent: Mover,
        oracle: CollisionOracle,
        messages: Optional[MessageSink] = None,
        *,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.agent = agent
        self.oracle = oracle
        self.messages = messages
        self.config = config or SchedulerConfig()
        self.clock: Clock = clock or MonotonicClock()
        self.queue: Deque[PrimitiveAction] = deque()
        self.motion: Optional[MotionState] = None
        self.timing = SchedulerTiming(action_delay_ms=self.config.action_delay_ms)
        self._executing = False
        self._last_frame_ms: Optional[int] = None

    def enqueue(self, action: PrimitiveAction) -> None:
        self.queue.append(action)
        logger.debug("Staged %s (queue=%d)", action, len(self.queue))

    def queue_length(self) -> int:
        return len(self.queue)

    def is_busy(self) -> bool:
        return self._executing or bool(self.queue) or self.motion_in_progress

    @property
    def motion_in_progress(self) -> bool:
        return self.motion is not None and self.motion.in_progress

    def set_action_delay(self, delay_ms: int) -> None:
        if delay_ms < 0:
            raise ValueError("Action delay cannot be negative.")
        self.timing.action_delay_ms = delay_ms
        self.config = replace(self.config, action_delay_ms=delay_ms)

    def set_move_speed(self, pixels_per_tick: int) -> None:
        if pixels_per_tick <= 0:
            raise ValueError("Move speed must be positive.")
        self.config = replace(self.config, move_speed=pixels_per_tick)

    def clear(self) -> None:
        """Drop queued actions and stop any move where the agent stands."""
        self.queue.clear()
        self.motion = None
        self._executing = False
        self.timing.last_action_ms = None
        logger.debug("Cleared queue at (%d, %d)", self.agent.x, self.agent.y)

    def tick(self) -> None:
        if self.motion_in_progress:
            self._advance_motion()
            return

        if not self.queue:
            self._executing = False
            return

        now = self.clock.now_ms()
        if not self.timing.gate_open(now):
            return

        self._executing = True
        action = self.queue.popleft()
        self.timing.last_action_ms = now
        self._run(action, now)

    def _run(self, action: PrimitiveAction, now: int) -> None:
        logger.debug("Running %s", action)
        if isinstance(action, MoveStep):
            self._start_move(action.direction)
        elif isinstance(action, Turn):
            self.agent.direction = action.direction.value
        elif isinstance(action, Wait):
            self.timing.last_action_ms = now + action.duration_ms
        elif isinstance(action, Print):
            if self.messages is not None:
                self.messages.show(action.message)
        else:
            raise AssertionError(f"Unknown primitive action: {action!r}")

    def _start_move(self, direction: Direction) -> None:
        dx, dy = direction.unit
        tile = self.config.tile_size
        origin = (self.agent.x, self.agent.y)
        target = (self.agent.x + dx * tile, self.agent.y + dy * tile)
        if self.oracle.check(self.agent.hitbox_at(*target)):
            logger.debug("Move %s blocked at %s; discarded", direction.value, target)
            return
        self.agent.direction = direction.value
        self.motion = MotionState(origin=origin, target=target, direction=direction)

    def _advance_motion(self) -> None:
        assert self.motion is not None
        speed = self.config.move_speed
        target_x, target_y = self.motion.target
        dx = target_x - self.agent.x
        dy = target_y - self.agent.y

        if math.hypot(dx, dy) <= speed:
            self.agent.x, self.agent.y = target_x, target_y
            logger.debug("Arrived at %s", self.motion.target)
            self.motion = None
            return

        step_x = _approach(dx, speed)
        step_y = _approach(dy, speed)
        margin = self.config.probe_margin
        probe_x = self.agent.x + step_x + _sign(step_x) * margin
        probe_y = self.agent.y + step_y + _sign(step_y) * margin
        if self.oracle.check(self.agent.hitbox_at(probe_x, probe_y)):
            logger.debug("Move aborted at (%d, %d)", self.agent.x, self.agent.y)
            self.motion = None
            return

        self.agent.x += step_x
        self.agent.y += step_y

        now = self.clock.now_ms()
        if self._last_frame_ms is None or now - self._last_frame_ms > self.config.frame_delay_ms:
            self.agent.advance_frame()
            self._last_frame_ms = now

    def snapshot(self) -> Dict[str, Any]:
        motion = None
        if self.motion is not None:
            motion = {
                "origin": list(self.motion.origin),
                "target": list(self.motion.target),
                "direction": self.motion.direction.value,
                "in_progress": self.motion.in_progress,
            }
        return {
            "queue_length": len(self.queue),
            "queue": [action_to_dict(action) for action in self.queue],
            "busy": self.is_busy(),
            "motion": motion,
            "action_delay_ms": self.timing.action_delay_ms,
            "move_speed": self.config.move_speed,
        }


def _sign(value: int) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _approach(delta: int, speed: int) -> int:
    return _sign(delta) * min(abs(delta), speed)
