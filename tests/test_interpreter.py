import pytest

from codequest.actions import Direction, MoveStep, Print, Turn, Wait
from codequest.errors import (
    MalformedCondition,
    MalformedLoopHeader,
    NumericParseError,
    UnrecognizedStatement,
)
from codequest.interpreter import CommandInterpreter
from codequest.interpreter.constants import HELP_TEXT
from codequest.scheduler import ActionScheduler, ManualClock
from codequest.world import Agent, TileWorld


class _FakeWorld:
    def __init__(self, **values):
        self.values = {"x": 0, "y": 0, "health": 5}
        self.values.update(values)
        self.reads = []

    def read(self, name):
        self.reads.append(name)
        return self.values[name]


class _FakeHealth:
    def __init__(self):
        self.damage_calls = []

    def damage(self, amount):
        self.damage_calls.append(amount)


class _FakeMessages:
    def __init__(self):
        self.shown = []

    def show(self, text):
        self.shown.append(text)


def make_interpreter(**world_values):
    scheduler = ActionScheduler(Agent(x=128, y=128), TileWorld(10, 10), clock=ManualClock())
    world = _FakeWorld(**world_values)
    health = _FakeHealth()
    messages = _FakeMessages()
    interpreter = CommandInterpreter(scheduler, world, health, messages)
    return interpreter, world, health, messages


def staged(interpreter):
    return list(interpreter.scheduler.queue)


@pytest.mark.parametrize("count", [0, 1, 3, 12])
def test_for_loop_stages_one_move_per_iteration(count):
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse(f"for i in range({count}): move up") is True
    assert staged(interpreter) == [MoveStep(Direction.UP)] * count
    assert health.damage_calls == []


def test_if_reads_live_health_on_every_call():
    interpreter, world, _, _ = make_interpreter(health=1)

    assert interpreter.parse("if health > 0: move right") is True
    assert staged(interpreter) == [MoveStep(Direction.RIGHT)]

    world.values["health"] = 0
    assert interpreter.parse("if health > 0: move right") is True
    assert staged(interpreter) == [MoveStep(Direction.RIGHT)]
    assert world.reads == ["health", "health"]


def test_walk_matches_repeated_moves():
    walked, _, _, _ = make_interpreter()
    moved, _, _, _ = make_interpreter()

    assert walked.parse("walk 3 right") is True
    assert moved.parse("move right; move right; move right") is True
    assert staged(walked) == staged(moved) == [MoveStep(Direction.RIGHT)] * 3


def test_failing_sequence_damages_once_and_keeps_going():
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse("move up; bogus; move down") is False
    assert staged(interpreter) == [MoveStep(Direction.UP), MoveStep(Direction.DOWN)]
    assert health.damage_calls == [1]
    assert len(interpreter.last_errors) == 1


def test_two_failures_in_one_line_still_damage_once():
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse("bogus\nwalk 3 right\ndance") is False
    assert health.damage_calls == [1]
    assert len(interpreter.last_errors) == 2
    assert interpreter.queue_length() == 3


@pytest.mark.parametrize("line", ["", "   ", "clear", "stop"])
def test_empty_and_clear_succeed_without_damage(line):
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse(line) is True
    assert health.damage_calls == []


def test_clear_runs_synchronously_during_parse():
    interpreter, _, _, _ = make_interpreter()
    interpreter.parse("walk 4 left")

    assert interpreter.parse("move up; clear; turn down") is True
    assert staged(interpreter) == [Turn(Direction.DOWN)]


@pytest.mark.parametrize(
    "line, direction",
    [
        ("move north", Direction.UP),
        ("move S", Direction.DOWN),
        ("move a", Direction.LEFT),
        ("move East", Direction.RIGHT),
        ("player.moveup()", Direction.UP),
        ("player.moveLeft()", Direction.LEFT),
        ("player.move_d()", None),
    ],
)
def test_direction_aliases(line, direction):
    interpreter, _, _, _ = make_interpreter()

    ok = interpreter.parse(line)

    if direction is None:
        assert ok is False
        assert staged(interpreter) == []
    else:
        assert ok is True
        assert staged(interpreter) == [MoveStep(direction)]


def test_wait_turn_and_print_stage_plain_values():
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse("turn left; wait; wait 250; print \"hi there\"") is True
    assert staged(interpreter) == [
        Turn(Direction.LEFT),
        Wait(500),
        Wait(250),
        Print("hi there"),
    ]


@pytest.mark.parametrize(
    "line, message",
    [
        ('print("checkpoint 1")', "checkpoint 1"),
        ("print 'single'", "single"),
        ("print bare words", "bare words"),
        ("print", ""),
    ],
)
def test_print_strips_parens_and_quotes(line, message):
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse(line) is True
    assert staged(interpreter) == [Print(message)]


def test_loop_body_cannot_hold_a_sequence():
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse("for i in range(3): move up; move down") is False
    assert staged(interpreter) == []
    assert health.damage_calls == [1]


def test_malformed_loop_body_stages_nothing_even_with_zero_count():
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse("for i in range(0): dance") is False
    assert interpreter.parse("for i in range(4): dance") is False
    assert staged(interpreter) == []


def test_loop_variable_is_visible_to_condition():
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse("for i in range(5): if i >= 3: move left") is True
    assert staged(interpreter) == [MoveStep(Direction.LEFT)] * 2


def test_loop_variable_shadows_builtin():
    interpreter, _, _, _ = make_interpreter(x=500)

    assert interpreter.parse("for x in range(3): if x == 1: move up") is True
    assert staged(interpreter) == [MoveStep(Direction.UP)]


def test_loop_variables_do_not_survive_the_call():
    interpreter, _, _, _ = make_interpreter()

    interpreter.parse("for k in range(4): turn up")
    interpreter.scheduler.clear()

    assert interpreter.parse("if k == 0: move down") is True
    assert staged(interpreter) == [MoveStep(Direction.DOWN)]


def test_false_condition_is_a_successful_no_op():
    interpreter, _, health, _ = make_interpreter(x=300)

    assert interpreter.parse("if x < 200: move right") is True
    assert staged(interpreter) == []
    assert health.damage_calls == []


def test_unknown_condition_variable_reads_as_zero():
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse("if steps == 0: move up") is True
    assert staged(interpreter) == [MoveStep(Direction.UP)]


@pytest.mark.parametrize(
    "line, error_cls",
    [
        ("dance", UnrecognizedStatement),
        ("move up now", UnrecognizedStatement),
        ("move sideways", UnrecognizedStatement),
        ("for i in range3: move up", MalformedLoopHeader),
        ("for i in range(3) move up", MalformedLoopHeader),
        ("for in range(3): move up", MalformedLoopHeader),
        ("for i in range(3):", MalformedLoopHeader),
        ("for i in range(x): move up", NumericParseError),
        ("if x =< 3: move up", MalformedCondition),
        ("if x 3: move up", MalformedCondition),
        ("if x < 3 move up", MalformedCondition),
        ("if x < 2.5: move up", MalformedCondition),
        ("if x < -1: move up", NumericParseError),
        ("walk many up", NumericParseError),
        ("wait soon", NumericParseError),
        ("for i in range(2): for j in range(2): move up", UnrecognizedStatement),
        ("if x > 0: if y > 0: move up", UnrecognizedStatement),
    ],
)
def test_parse_statement_reports_error_kind(line, error_cls):
    interpreter, _, _, _ = make_interpreter()

    with pytest.raises(error_cls):
        interpreter.parse_statement(line)
    assert interpreter.parse(line) is False


def test_error_messages_carry_the_offending_code():
    interpreter, _, _, _ = make_interpreter()

    interpreter.parse("move up; jump high")

    assert "Unknown command 'jump high'" in interpreter.last_errors[0]
    assert "Code: jump high" in interpreter.last_errors[0]


def test_last_errors_reset_on_each_call():
    interpreter, _, _, _ = make_interpreter()

    interpreter.parse("bogus")
    interpreter.parse("move up")

    assert interpreter.last_errors == []


def test_help_is_shown_immediately_and_not_queued():
    interpreter, _, _, messages = make_interpreter()

    assert interpreter.parse("help") is True
    assert messages.shown == [HELP_TEXT]
    assert staged(interpreter) == []


def test_passthrough_controls_reach_the_scheduler():
    interpreter, _, _, _ = make_interpreter()

    interpreter.set_action_delay(250)
    interpreter.parse("move up")

    assert interpreter.scheduler.timing.action_delay_ms == 250
    assert interpreter.queue_length() == 1
    assert interpreter.is_busy() is True


@pytest.mark.parametrize(
    "line",
    [
        "wait " + "9" * 5000,
        "walk 2147483648 up",
        "for i in range(99999999999): move up",
        "if x > 2147483648: move up",
    ],
)
def test_oversized_literals_fail_with_one_damage(line):
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse(line) is False
    assert staged(interpreter) == []
    assert health.damage_calls == [1]
    with pytest.raises(NumericParseError, match="exceeds 2147483647"):
        interpreter.parse_statement(line)


def test_largest_literal_is_accepted():
    interpreter, _, _, _ = make_interpreter()

    assert interpreter.parse("wait 2147483647") is True
    assert staged(interpreter) == [Wait(2147483647)]


def test_loop_variable_goes_out_of_scope_after_the_loop():
    interpreter, _, _, _ = make_interpreter(x=500)

    ok = interpreter.parse("turn up; for x in range(1): turn down; if x < 100: move left")

    assert ok is True
    assert staged(interpreter) == [Turn(Direction.UP), Turn(Direction.DOWN)]


def test_builtin_is_live_again_after_a_shadowing_loop():
    interpreter, world, _, _ = make_interpreter(x=500)

    assert interpreter.parse("turn up\nif x > 100: move left") is True
    assert interpreter.parse("for x in range(2): if x == 1: turn down") is True
    assert interpreter.parse("move up; if x > 100: move left") is True

    assert staged(interpreter) == [
        Turn(Direction.UP),
        MoveStep(Direction.LEFT),
        Turn(Direction.DOWN),
        MoveStep(Direction.UP),
        MoveStep(Direction.LEFT),
    ]
    assert world.reads == ["x", "x"]


def test_line_opening_with_a_loop_is_never_split():
    interpreter, _, health, _ = make_interpreter()

    assert interpreter.parse("for i in range(2): move up\nmove down") is False
    assert staged(interpreter) == []
    assert health.damage_calls == [1]
