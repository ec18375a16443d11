"""Formulas: parsed arithmetic expressions over numbers and cells."""

from __future__ import annotations

from typing import Union

from tabulasheet.common import FormulaError, FormulaSyntaxError, Position
from tabulasheet.formula_ast import ParsingError, _SheetLike, parse_formula_ast

FormulaValue = Union[float, FormulaError]


class Formula:
    """An arithmetic expression that can be evaluated against a sheet."""

    def __init__(self, expression: str) -> None:
        try:
            self._ast = parse_formula_ast(expression)
        except (ParsingError, FormulaSyntaxError, RecursionError) as exc:
            raise FormulaSyntaxError("Syntactically incorrect formula") from exc

    def evaluate(self, sheet: _SheetLike) -> FormulaValue:
        """Return the computed value, or the FormulaError it produced."""
        try:
            return self._ast.execute(sheet)
        except FormulaError as error:
            return error

    def expression(self) -> str:
        """The expression without spaces and redundant parentheses."""
        return self._ast.formula_string()

    def referenced_cells(self) -> list[Position]:
        """Valid cells used by the formula, ascending and without duplicates."""
        return sorted({cell for cell in self._ast.cells() if cell.is_valid()})


def parse_formula(expression: str) -> Formula:
    """Parse an expression; raises FormulaSyntaxError if it is incorrect."""
    return Formula(expression)