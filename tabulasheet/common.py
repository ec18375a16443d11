"""Core value types shared across the spreadsheet: positions, sizes and errors."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass
from typing import ClassVar

_LETTERS = len(string.ascii_uppercase)
_MAX_POSITION_LENGTH = 17
_MAX_POS_LETTER_COUNT = 3
_UPPERCASE = frozenset(string.ascii_uppercase)
_DIGITS = frozenset(string.digits)


def _column_to_letters(col: int) -> str:
    letters = []
    while col >= 0:
        letters.append(chr(ord("A") + col % _LETTERS))
        col = col // _LETTERS - 1
    return "".join(reversed(letters))


def _letters_to_column(letters: str) -> int:
    result = 0
    for ch in letters:
        result = result * _LETTERS + (ord(ch) - ord("A") + 1)
    return result


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based cell position; ordered by row, then column."""

    row: int = 0
    col: int = 0

    MAX_ROWS: ClassVar[int] = 16384
    MAX_COLS: ClassVar[int] = 16384
    NONE: ClassVar[Position]

    def is_valid(self) -> bool:
        """Return True if the position lies inside the sheet bounds."""
        return 0 <= self.row < self.MAX_ROWS and 0 <= self.col < self.MAX_COLS

    def __str__(self) -> str:
        if not self.is_valid():
            return ""
        return f"{_column_to_letters(self.col)}{self.row + 1}"

    @classmethod
    def from_string(cls, text: str) -> Position:
        """Parse a user index such as ``"B12"``.

        Malformed text yields ``Position.NONE``. Well-formed text that lies
        outside the sheet yields a position for which ``is_valid()`` is False.
        """
        if not text or len(text) > _MAX_POSITION_LENGTH:
            return cls.NONE

        split = len(text)
        for index, ch in enumerate(text):
            if ch not in _UPPERCASE:
                split = index
                break

        letters, digits = text[:split], text[split:]
        if not letters or len(letters) > _MAX_POS_LETTER_COUNT:
            return cls.NONE
        if not digits or any(ch not in _DIGITS for ch in digits):
            return cls.NONE

        return cls(row=int(digits) - 1, col=_letters_to_column(letters) - 1)


Position.NONE = Position(-1, -1)


@dataclass(frozen=True)
class Size:
    """Number of rows and columns of a rectangular area."""

    rows: int = 0
    cols: int = 0


class FormulaErrorCategory(enum.Enum):
    """Kinds of errors a formula can evaluate to."""

    REF = "#REF!"
    VALUE = "#VALUE!"
    ARITHMETIC = "#ARITHM!"

    def __str__(self) -> str:
        return self.value


class FormulaError(Exception):
    """An error produced while evaluating a formula; also usable as a cell value."""

    def __init__(self, category: FormulaErrorCategory) -> None:
        super().__init__(category.value)
        self.category = category

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormulaError):
            return NotImplemented
        return self.category == other.category

    def __hash__(self) -> int:
        return hash(self.category)

    def __str__(self) -> str:
        return self.category.value

    def __repr__(self) -> str:
        return f"FormulaError({self.category.name})"


class InvalidPositionError(IndexError):
    """Raised when a method is given a position outside the sheet."""


class FormulaSyntaxError(ValueError):
    """Raised when a formula is syntactically incorrect."""


class CircularDependencyError(ValueError):
    """Raised when a formula would create a cycle between cells."""