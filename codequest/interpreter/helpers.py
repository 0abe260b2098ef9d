from typing import List, Optional, Type

from codequest.actions import Direction
from codequest.errors import CommandError, NumericParseError, UnrecognizedStatement

from .constants import (
    _CMP_CHARS,
    _DIRECTION_ALIASES,
    _MAX_LITERAL_DIGITS,
    MAX_LITERAL,
    SEQUENCE_SEPARATORS,
)


class _Scanner:
    """Cursor over a single statement's text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= len(self.text)

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek_char(self) -> str:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def peek_word(self) -> str:
        start = self.pos
        word = self.word()
        self.pos = start
        return word

    def word(self) -> str:
        self.skip_ws()
        start = self.pos
        if self.pos < len(self.text) and _is_ident_start(self.text[self.pos]):
            self.pos += 1
            while self.pos < len(self.text) and _is_ident_char(self.text[self.pos]):
                self.pos += 1
        return self.text[start:self.pos]

    def keyword(self, expected: str) -> bool:
        start = self.pos
        if self.word() == expected:
            return True
        self.pos = start
        return False

    def symbol(self, expected: str) -> bool:
        self.skip_ws()
        if self.text.startswith(expected, self.pos):
            self.pos += len(expected)
            return True
        return False

    def operator(self) -> str:
        self.skip_ws()
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _CMP_CHARS:
            self.pos += 1
        return self.text[start:self.pos]

    def uint(self, label: str) -> int:
        self.skip_ws()
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos].isdigit():
            self.pos += 1
        digits = self.text[start:self.pos]
        if not digits or not digits.isascii():
            raise NumericParseError(f"Expected unsigned integer {label}.")
        # Length first: int() has a digit limit.
        if len(digits) > _MAX_LITERAL_DIGITS or int(digits) > MAX_LITERAL:
            raise NumericParseError(f"{label.capitalize()} exceeds {MAX_LITERAL}.")
        return int(digits)

    def rest(self) -> str:
        remaining = self.text[self.pos:]
        self.pos = len(self.text)
        return remaining

    def expect(
        self,
        expected: str,
        error_cls: Type[CommandError],
        message: str,
    ) -> None:
        if not self.symbol(expected):
            raise error_cls(message)


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _split_sequence(command: str) -> List[str]:
    parts = [command]
    for separator in SEQUENCE_SEPARATORS:
        parts = [piece for part in parts for piece in part.split(separator)]
    return [part.strip() for part in parts if part.strip()]


def _has_separator(text: str) -> bool:
    return any(separator in text for separator in SEQUENCE_SEPARATORS)


def _lookup_direction(token: str) -> Optional[Direction]:
    return _DIRECTION_ALIASES.get(token.lower())


def _parse_direction(scanner: _Scanner) -> Direction:
    token = scanner.word()
    direction = _lookup_direction(token)
    if direction is None:
        shown = token or scanner.rest().strip()
        raise UnrecognizedStatement(f"Unknown direction '{shown}'.")
    return direction


def _strip_print_message(raw: str) -> str:
    # print("hi") / print "hi" / print 'hi' / print hi
    message = raw.strip()
    if message.startswith("(") and message.endswith(")"):
        message = message[1:-1].strip()
    if message[:1] in {"'", '"'}:
        message = message[1:]
    if message[-1:] in {"'", '"'}:
        message = message[:-1]
    return message


__all__ = [
    "_Scanner",
    "_split_sequence",
    "_has_separator",
    "_lookup_direction",
    "_parse_direction",
    "_strip_print_message",
]
