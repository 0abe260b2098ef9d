import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional


_CURRENT_COMMAND_SOURCE: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "codequest_current_command_source", default=None
)
_CURRENT_STATEMENT: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "codequest_current_statement", default=None
)


def _format_with_context(
    message: str,
    *,
    source: Optional[str] = None,
    statement: Optional[str] = None,
) -> str:
    source = source if source is not None else _CURRENT_COMMAND_SOURCE.get()
    statement = statement if statement is not None else _CURRENT_STATEMENT.get()
    if statement is None:
        return message

    details = [f"Code: {statement.strip()}"]
    if source is not None:
        lines = source.splitlines() or [source]
        for line_no, line in enumerate(lines, start=1):
            if statement.strip() and statement.strip() in line:
                details.insert(0, f"Location: line {line_no}")
                break
    return f"{message}\n" + "\n".join(details)


def format_command_diagnostic(message: str, *, statement: Optional[str] = None) -> str:
    """Attach best-effort command context to a diagnostic string."""
    return _format_with_context(message, statement=statement)


@contextmanager
def command_source_context(source: str) -> Iterator[None]:
    token = _CURRENT_COMMAND_SOURCE.set(source)
    try:
        yield
    finally:
        _CURRENT_COMMAND_SOURCE.reset(token)


@contextmanager
def statement_context(statement: Optional[str]) -> Iterator[None]:
    token = _CURRENT_STATEMENT.set(statement)
    try:
        yield
    finally:
        _CURRENT_STATEMENT.reset(token)


class CommandError(Exception):
    """Base command error."""

    def __init__(self, message: str, *, statement: Optional[str] = None):
        self.raw_message = message
        super().__init__(_format_with_context(message, statement=statement))


class UnrecognizedStatement(CommandError):
    """Raised when a statement matches no known form."""


class MalformedLoopHeader(CommandError):
    """Raised when a ``for`` header is not ``for <ident> in range(<uint>):``."""


class MalformedCondition(CommandError):
    """Raised when an ``if`` header or its comparison cannot be parsed."""


class NumericParseError(CommandError):
    """Raised when a count, duration or comparison literal is not an unsigned int."""
