from dataclasses import dataclass

MIN_SPEED_LEVEL = 1
MAX_SPEED_LEVEL = 10


@dataclass(frozen=True)
class SchedulerConfig:
    """Tunable timing and motion parameters of the command scheduler.

    Attributes:
        tile_size: Length in world pixels of one ``move`` step.
        move_speed: Pixels travelled per tick during an interpolated move.
        action_delay_ms: Minimum time between two dequeued actions.
        frame_delay_ms: Animation frame cadence while moving.
        default_wait_ms: Duration of a bare ``wait`` statement.
        probe_margin: Extra look-ahead in pixels for mid-motion collision probes.
    """

    tile_size: int = 64
    move_speed: int = 3
    action_delay_ms: int = 0
    frame_delay_ms: int = 100
    default_wait_ms: int = 500
    probe_margin: int = 5

    def __post_init__(self):
        if self.tile_size <= 0:
            raise ValueError("tile_size must be positive.")
        if self.move_speed <= 0:
            raise ValueError("move_speed must be positive.")
        if self.action_delay_ms < 0:
            raise ValueError("action_delay_ms cannot be negative.")
        if self.frame_delay_ms <= 0:
            raise ValueError("frame_delay_ms must be positive.")
        if self.default_wait_ms < 0:
            raise ValueError("default_wait_ms cannot be negative.")
        if self.probe_margin < 0:
            raise ValueError("probe_margin cannot be negative.")


def speed_level_to_delay(level: int) -> int:
    """Map an options-menu command speed level to an action delay in ms.

    Levels are clamped to ``1..10``; level 1 waits 500 ms, level 10 waits 50 ms.
    """
    level = max(MIN_SPEED_LEVEL, min(MAX_SPEED_LEVEL, level))
    return 550 - level * 50
