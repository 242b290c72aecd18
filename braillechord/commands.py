"""
Output commands and the text insertion boundary.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

# U+2800 BRAILLE PATTERN BLANK
BLANK_CELL = "\u2800"


class CommandKind(Enum):
    INSERT_CHARACTER = auto()
    DELETE_BACKWARD = auto()
    INSERT_NEWLINE = auto()
    INSERT_SPACE = auto()
    INSERT_BLANK_CELL = auto()


@dataclass(frozen=True)
class OutputCommand:
    """A single edit for the host's text field. Applied once, then discarded."""
    kind: CommandKind
    text: str = ""

    @classmethod
    def insert_character(cls, char: str) -> 'OutputCommand':
        return cls(CommandKind.INSERT_CHARACTER, char)

    @classmethod
    def delete_backward(cls) -> 'OutputCommand':
        return cls(CommandKind.DELETE_BACKWARD)

    @classmethod
    def insert_newline(cls) -> 'OutputCommand':
        return cls(CommandKind.INSERT_NEWLINE, "\n")

    @classmethod
    def insert_space(cls) -> 'OutputCommand':
        return cls(CommandKind.INSERT_SPACE, " ")

    @classmethod
    def insert_blank_cell(cls) -> 'OutputCommand':
        return cls(CommandKind.INSERT_BLANK_CELL, BLANK_CELL)


class TextTarget(Protocol):
    """Editable text with a cursor, owned by the host."""

    def insert_text(self, text: str) -> None: ...

    def delete_backward(self) -> None: ...


def apply_command(command: OutputCommand, target: TextTarget):
    """Apply a command to a text target."""
    if command.kind == CommandKind.DELETE_BACKWARD:
        target.delete_backward()
    else:
        target.insert_text(command.text)


class TextBuffer:
    """In-memory TextTarget, used for console mode and tests."""

    def __init__(self, text: str = ""):
        self._text = text
        self._cursor = len(text)

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    def move_cursor(self, position: int):
        """Place the cursor, clamped to the text."""
        self._cursor = max(0, min(position, len(self._text)))

    def insert_text(self, text: str):
        self._text = self._text[:self._cursor] + text + self._text[self._cursor:]
        self._cursor += len(text)

    def delete_backward(self):
        if self._cursor == 0:
            return
        self._text = self._text[:self._cursor - 1] + self._text[self._cursor:]
        self._cursor -= 1

    def __repr__(self):
        return f"TextBuffer({self._text!r}, cursor={self._cursor})"
