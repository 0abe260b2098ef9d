import logging
from typing import List, Optional, Protocol

from codequest.actions import (
    Clear,
    Condition,
    For,
    Help,
    If,
    MoveStep,
    Print,
    Stage,
    Stmt,
    Turn,
    Wait,
    WalkN,
)
from codequest.environment import _ALLOWED_CMP, VariableEnvironment, WorldReader
from codequest.errors import (
    CommandError,
    MalformedCondition,
    MalformedLoopHeader,
    UnrecognizedStatement,
    command_source_context,
    statement_context,
)
from codequest.scheduler import ActionScheduler

from .constants import _CLEAR_KEYWORDS, HELP_TEXT
from .helpers import (
    _has_separator,
    _lookup_direction,
    _parse_direction,
    _Scanner,
    _split_sequence,
    _strip_print_message,
)

logger = logging.getLogger(__name__)


class HealthSink(Protocol):
    def damage(self, amount: int) -> None: ...


class MessageSink(Protocol):
    def show(self, text: str) -> None: ...


class CommandInterpreter:
    """Parse player command lines and stage their actions on a scheduler.

    Grammar, one line at a time:

    * ``a; b`` or ``a\\nb``: each part parsed independently.
    * ``for <ident> in range(<uint>): <body>``
    * ``if <ident> <op> <uint>: <body>``
    * ``move <dir>``, ``player.move<dir>()``, ``walk <uint> <dir>``,
      ``turn <dir>``, ``wait [<ms>]``, ``print <text>``, ``clear``/``stop``,
      ``help``.

    A body is exactly one statement. A loop body may be a primitive or an
    ``if``; an ``if`` body must be a primitive. A line whose first word is
    ``for`` or ``if`` is never split, so a separator anywhere after it fails
    the whole line. A loop variable is visible only while its loop runs.
    """

    def __init__(
        self,
        scheduler: ActionScheduler,
        world: WorldReader,
        health: Optional[HealthSink] = None,
        messages: Optional[MessageSink] = None,
    ):
        self.scheduler = scheduler
        self.world = world
        self.health = health
        self.messages = messages
        self.last_errors: List[str] = []

    def parse(self, raw_line: str) -> bool:
        """Parse and stage one command line.

        Returns:
            ``True`` when every statement parsed. On failure one unit of
            damage is applied, once per call.
        """
        self.last_errors = []
        command = raw_line.strip()
        if not command:
            return True

        env = VariableEnvironment(self.world)
        ok = True
        with command_source_context(command):
            for text in self._top_level_statements(command):
                if not self._run_statement(text, env):
                    ok = False

        if not ok:
            logger.info("Rejected command %r: %s", command, "; ".join(self.last_errors))
            self._deal_damage_for_error()
        return ok

    def queue_length(self) -> int:
        return self.scheduler.queue_length()

    def is_busy(self) -> bool:
        return self.scheduler.is_busy()

    def set_action_delay(self, delay_ms: int) -> None:
        self.scheduler.set_action_delay(delay_ms)

    def _top_level_statements(self, command: str) -> List[str]:
        # A line opening with for/if is one statement; its body keeps any separators.
        head = _Scanner(command).peek_word()
        if head in {"for", "if"}:
            return [command]
        return _split_sequence(command)

    def _run_statement(self, text: str, env: VariableEnvironment) -> bool:
        with statement_context(text):
            try:
                stmt = self.parse_statement(text)
                self._execute(stmt, env)
            except CommandError as exc:
                self.last_errors.append(str(exc))
                return False
        return True

    def _deal_damage_for_error(self) -> None:
        if self.health is not None:
            self.health.damage(1)

    # Parsing

    def parse_statement(
        self,
        text: str,
        *,
        allow_loop: bool = True,
        allow_condition: bool = True,
    ) -> Stmt:
        """Parse one statement without staging anything."""
        text = text.strip()
        head = _Scanner(text).peek_word()
        if head == "for":
            if not allow_loop:
                raise UnrecognizedStatement("Loops cannot be nested inside this body.")
            return self._parse_for(text)
        if head == "if":
            if not allow_condition:
                raise UnrecognizedStatement("Conditions cannot be nested inside this body.")
            return self._parse_if(text)
        return self._parse_primitive(text)

    def _parse_body(self, body: str, *, allow_condition: bool) -> Stmt:
        if _has_separator(body):
            raise UnrecognizedStatement(
                "Loop and condition bodies must be a single statement."
            )
        return self.parse_statement(
            body,
            allow_loop=False,
            allow_condition=allow_condition,
        )

    def _parse_for(self, text: str) -> For:
        scanner = _Scanner(text)
        scanner.keyword("for")
        var = scanner.word()
        if not var:
            raise MalformedLoopHeader("Expected loop variable name after 'for'.")
        if not scanner.keyword("in"):
            raise MalformedLoopHeader("Expected 'in' after loop variable.")
        if not scanner.keyword("range"):
            raise MalformedLoopHeader("Loops only support 'range(<count>)'.")
        scanner.expect("(", MalformedLoopHeader, "Expected '(' after 'range'.")
        count = scanner.uint("loop count")
        scanner.expect(")", MalformedLoopHeader, "Expected ')' after loop count.")
        scanner.expect(":", MalformedLoopHeader, "Expected ':' after loop header.")
        body = scanner.rest().strip()
        if not body:
            raise MalformedLoopHeader("Loop body is empty.")
        return For(var=var, count=count, body=self._parse_body(body, allow_condition=True))

    def _parse_if(self, text: str) -> If:
        scanner = _Scanner(text)
        scanner.keyword("if")
        name = scanner.word()
        if not name:
            raise MalformedCondition("Expected variable name after 'if'.")
        op = scanner.operator()
        if not op:
            raise MalformedCondition("Expected comparison operator in condition.")
        if op not in _ALLOWED_CMP:
            raise MalformedCondition(f"Unsupported comparison operator '{op}'.")
        value = scanner.uint("comparison value")
        condition = Condition(name=name, op=op, value=value)
        scanner.expect(":", MalformedCondition, "Expected ':' after condition.")
        body = scanner.rest().strip()
        if not body:
            raise MalformedCondition("Condition body is empty.")
        return If(condition=condition, body=self._parse_body(body, allow_condition=False))

    def _parse_primitive(self, text: str) -> Stmt:
        scanner = _Scanner(text)
        keyword = scanner.word()

        if keyword in _CLEAR_KEYWORDS and scanner.at_end():
            return Clear()
        if keyword == "help" and scanner.at_end():
            return Help()

        if keyword == "move":
            direction = _parse_direction(scanner)
            self._expect_end(scanner, text)
            return Stage((MoveStep(direction),))

        if keyword == "walk":
            count = scanner.uint("step count")
            direction = _parse_direction(scanner)
            self._expect_end(scanner, text)
            return Stage(tuple(WalkN(direction, count).expand()))

        if keyword == "turn":
            direction = _parse_direction(scanner)
            self._expect_end(scanner, text)
            return Stage((Turn(direction),))

        if keyword == "wait":
            if scanner.at_end():
                return Stage((Wait(self.scheduler.config.default_wait_ms),))
            duration = scanner.uint("wait duration")
            self._expect_end(scanner, text)
            return Stage((Wait(duration),))

        if keyword == "print":
            return Stage((Print(_strip_print_message(scanner.rest())),))

        if keyword == "player" and scanner.symbol("."):
            return self._parse_method_call(scanner, text)

        raise UnrecognizedStatement(f"Unknown command '{text}'.")

    def _parse_method_call(self, scanner: _Scanner, text: str) -> Stage:
        method = scanner.word()
        direction = None
        if method.startswith("move"):
            direction = _lookup_direction(method[len("move"):])
        if direction is None:
            raise UnrecognizedStatement(f"Unknown player method '{method}'.")
        if not (scanner.symbol("(") and scanner.symbol(")")):
            raise UnrecognizedStatement(f"Expected '()' after 'player.{method}'.")
        self._expect_end(scanner, text)
        return Stage((MoveStep(direction),))

    @staticmethod
    def _expect_end(scanner: _Scanner, text: str) -> None:
        if not scanner.at_end():
            raise UnrecognizedStatement(f"Unexpected trailing text in '{text}'.")

    # Execution

    def _execute(self, stmt: Stmt, env: VariableEnvironment) -> None:
        if isinstance(stmt, Stage):
            for action in stmt.actions:
                self.scheduler.enqueue(action)
            return
        if isinstance(stmt, Clear):
            self.scheduler.clear()
            return
        if isinstance(stmt, Help):
            if self.messages is not None:
                self.messages.show(HELP_TEXT)
            return
        if isinstance(stmt, If):
            if env.evaluate(stmt.condition):
                self._execute(stmt.body, env)
            return
        if isinstance(stmt, For):
            previous = env.loop_vars.get(stmt.var)
            try:
                for i in range(stmt.count):
                    env.bind(stmt.var, i)
                    self._execute(stmt.body, env)
            finally:
                env.restore(stmt.var, previous)
            return
        raise AssertionError(f"Unknown statement type: {type(stmt).__name__}")
