"""Parsing of arithmetic cell formulas into an expression tree."""

from __future__ import annotations

import enum
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Protocol, Union

from tabulasheet.common import (
    FormulaError,
    FormulaErrorCategory,
    FormulaSyntaxError,
    Position,
)

CellValue = Union[str, float, FormulaError]


class _CellLike(Protocol):
    def value(self) -> CellValue: ...


class _SheetLike(Protocol):
    def get_cell(self, pos: Position) -> _CellLike | None: ...


class ParsingError(Exception):
    """Raised when formula text cannot be tokenised or parsed."""


class _Precedence(enum.IntEnum):
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    UNARY = 4
    ATOM = 5


_NONE = 0b00
_LEFT = 0b01
_RIGHT = 0b10
_BOTH = _LEFT | _RIGHT

# _PARENS_RULES[parent][child]: bit set when the child needs parentheses.
_PARENS_RULES: dict[_Precedence, tuple[int, ...]] = {
    _Precedence.ADD: (_NONE, _NONE, _NONE, _NONE, _NONE, _NONE),
    _Precedence.SUB: (_RIGHT, _RIGHT, _NONE, _NONE, _NONE, _NONE),
    _Precedence.MUL: (_BOTH, _BOTH, _NONE, _NONE, _NONE, _NONE),
    _Precedence.DIV: (_BOTH, _BOTH, _RIGHT, _RIGHT, _NONE, _NONE),
    _Precedence.UNARY: (_BOTH, _BOTH, _NONE, _NONE, _NONE, _NONE),
    _Precedence.ATOM: (_NONE, _NONE, _NONE, _NONE, _NONE, _NONE),
}

_BINARY_PRECEDENCE = {
    "+": _Precedence.ADD,
    "-": _Precedence.SUB,
    "*": _Precedence.MUL,
    "/": _Precedence.DIV,
}

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_INTEGER_TEXT = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")


def _format_number(value: float) -> str:
    return format(value, "g")


class _Expr(ABC):
    @property
    @abstractmethod
    def precedence(self) -> _Precedence: ...

    @abstractmethod
    def tree_string(self) -> str: ...

    @abstractmethod
    def _formula_body(self) -> str: ...

    @abstractmethod
    def evaluate(self, sheet: _SheetLike) -> float: ...

    def formula(self, parent: _Precedence, right_child: bool = False) -> str:
        mask = _RIGHT if right_child else _LEFT
        body = self._formula_body()
        if _PARENS_RULES[parent][self.precedence] & mask:
            return f"({body})"
        return body


@dataclass
class _BinaryOp(_Expr):
    op: str
    lhs: _Expr
    rhs: _Expr

    @property
    def precedence(self) -> _Precedence:
        return _BINARY_PRECEDENCE[self.op]

    def tree_string(self) -> str:
        return f"({self.op} {self.lhs.tree_string()} {self.rhs.tree_string()})"

    def _formula_body(self) -> str:
        own = self.precedence
        return self.lhs.formula(own) + self.op + self.rhs.formula(own, right_child=True)

    def evaluate(self, sheet: _SheetLike) -> float:
        lhs = self.lhs.evaluate(sheet)
        rhs = self.rhs.evaluate(sheet)
        if self.op == "+":
            return lhs + rhs
        if self.op == "-":
            return lhs - rhs
        if self.op == "*":
            return lhs * rhs
        if rhs == 0:
            raise FormulaError(FormulaErrorCategory.ARITHMETIC)
        try:
            result = lhs / rhs
        except OverflowError:
            raise FormulaError(FormulaErrorCategory.ARITHMETIC) from None
        if not math.isfinite(result):
            raise FormulaError(FormulaErrorCategory.ARITHMETIC)
        return result


@dataclass
class _UnaryOp(_Expr):
    op: str
    operand: _Expr

    @property
    def precedence(self) -> _Precedence:
        return _Precedence.UNARY

    def tree_string(self) -> str:
        return f"({self.op} {self.operand.tree_string()})"

    def _formula_body(self) -> str:
        return self.op + self.operand.formula(self.precedence)

    def evaluate(self, sheet: _SheetLike) -> float:
        operand = self.operand.evaluate(sheet)
        return -operand if self.op == "-" else operand


@dataclass
class _CellRef(_Expr):
    position: Position

    @property
    def precedence(self) -> _Precedence:
        return _Precedence.ATOM

    def tree_string(self) -> str:
        if not self.position.is_valid():
            return str(FormulaErrorCategory.REF)
        return str(self.position)

    def _formula_body(self) -> str:
        return self.tree_string()

    def evaluate(self, sheet: _SheetLike) -> float:
        if not self.position.is_valid():
            raise FormulaError(FormulaErrorCategory.REF)
        cell = sheet.get_cell(self.position)
        if cell is None:
            return 0.0
        value = cell.value()
        if isinstance(value, FormulaError):
            raise FormulaError(value.category)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            if not value:
                return 0.0
            if _INTEGER_TEXT.fullmatch(value):
                number = int(value)
                if _INT_MIN <= number <= _INT_MAX:
                    return float(number)
        raise FormulaError(FormulaErrorCategory.VALUE)


@dataclass
class _Number(_Expr):
    value: float

    @property
    def precedence(self) -> _Precedence:
        return _Precedence.ATOM

    def tree_string(self) -> str:
        return _format_number(self.value)

    def _formula_body(self) -> str:
        return _format_number(self.value)

    def evaluate(self, sheet: _SheetLike) -> float:
        return self.value


_TOKEN_RE = re.compile(
    r"""
    (?P<WS>[ \t\n\r]+)
    | (?P<CELL>[A-Z]+[0-9]+)
    | (?P<NUMBER>[0-9]*\.[0-9]+(?:[eE][+-]?[0-9]+)?|[0-9]+(?:[eE][+-]?[0-9]+)?)
    | (?P<ADD>\+)
    | (?P<SUB>-)
    | (?P<MUL>\*)
    | (?P<DIV>/)
    | (?P<LPAREN>\()
    | (?P<RPAREN>\))
    """,
    re.VERBOSE,
)

_OP_TEXT = {"ADD": "+", "SUB": "-", "MUL": "*", "DIV": "/"}


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ParsingError(
                f"Error when lexing: token recognition error at: '{text[pos]}'"
            )
        kind = match.lastgroup
        if kind != "WS":
            tokens.append((kind, match.group()))
        pos = match.end()
    tokens.append(("EOF", "<EOF>"))
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self._index = 0
        self.cells: list[Position] = []
        self.deferred_errors: list[Exception] = []

    def _peek(self) -> str:
        return self._tokens[self._index][0]

    def _advance(self) -> tuple[str, str]:
        token = self._tokens[self._index]
        if token[0] != "EOF":
            self._index += 1
        return token

    def _fail(self) -> ParsingError:
        return ParsingError(f"Error when parsing: {self._tokens[self._index][1]}")

    def parse_main(self) -> _Expr:
        root = self._additive()
        if self._peek() != "EOF":
            raise self._fail()
        return root

    def _additive(self) -> _Expr:
        node = self._multiplicative()
        while self._peek() in ("ADD", "SUB"):
            op = _OP_TEXT[self._advance()[0]]
            node = _BinaryOp(op, node, self._multiplicative())
        return node

    def _multiplicative(self) -> _Expr:
        node = self._unary()
        while self._peek() in ("MUL", "DIV"):
            op = _OP_TEXT[self._advance()[0]]
            node = _BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> _Expr:
        if self._peek() in ("ADD", "SUB"):
            op = _OP_TEXT[self._advance()[0]]
            return _UnaryOp(op, self._unary())
        return self._primary()

    def _primary(self) -> _Expr:
        kind = self._peek()
        if kind == "NUMBER":
            return self._number(self._advance()[1])
        if kind == "CELL":
            return self._cell(self._advance()[1])
        if kind == "LPAREN":
            self._advance()
            node = self._additive()
            if self._peek() != "RPAREN":
                raise self._fail()
            self._advance()
            return node
        raise self._fail()

    def _number(self, text: str) -> _Expr:
        value = float(text)
        if not math.isfinite(value):
            self.deferred_errors.append(ParsingError(f"Invalid number: {text}"))
        return _Number(value)

    def _cell(self, text: str) -> _Expr:
        position = Position.from_string(text)
        if not position.is_valid():
            self.deferred_errors.append(FormulaSyntaxError(f"Invalid position: {text}"))
        self.cells.append(position)
        return _CellRef(position)


class FormulaAST:
    """A parsed formula: its expression tree and the cells it mentions."""

    def __init__(self, root: _Expr, cells: Iterable[Position]) -> None:
        self._root = root
        self._cells = sorted(cells)

    def execute(self, sheet: _SheetLike) -> float:
        """Evaluate the formula against a sheet; raises FormulaError on failure."""
        return self._root.evaluate(sheet)

    def cells(self) -> list[Position]:
        """All cell references in ascending order, duplicates included."""
        return list(self._cells)

    def tree_string(self) -> str:
        """The tree in prefix notation, e.g. ``(+ 1 2)``."""
        return self._root.tree_string()

    def formula_string(self) -> str:
        """The formula without spaces and without redundant parentheses."""
        return self._root.formula(_Precedence.ATOM)

    def cells_string(self) -> str:
        """The referenced cells, each followed by a space."""
        return "".join(f"{cell} " for cell in self._cells)


def parse_formula_ast(text: str) -> FormulaAST:
    """Parse formula text (without the leading ``=``) into a FormulaAST."""
    parser = _Parser(text)
    root = parser.parse_main()
    if parser.deferred_errors:
        raise parser.deferred_errors[0]
    return FormulaAST(root, parser.cells)