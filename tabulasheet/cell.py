"""Spreadsheet cells: empty, text or formula content with cached values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from tabulasheet.common import CircularDependencyError, FormulaError, Position
from tabulasheet.formula import Formula, parse_formula

if TYPE_CHECKING:
    from tabulasheet.sheet import Sheet

FORMULA_SIGN = "="
ESCAPE_SIGN = "'"

CellValue = Union[str, float, FormulaError]


class Cell:
    """A single cell of a sheet, tracking the cells it uses and is used by."""

    def __init__(self, sheet: Sheet) -> None:
        self._sheet = sheet
        self._text = ""
        self._formula: Formula | None = None
        self._cache: float | FormulaError | None = None
        self._referenced: set[Cell] = set()
        self._dependents: set[Cell] = set()

    def set(self, text: str) -> None:
        """Set the cell's content; text starting with '=' is a formula.

        Raises FormulaSyntaxError or CircularDependencyError and leaves the
        cell unchanged if the formula is incorrect or would create a cycle.
        """
        formula: Formula | None = None
        refs: list[Position] = []
        if len(text) > 1 and text.startswith(FORMULA_SIGN):
            formula = parse_formula(text[1:])
            refs = formula.referenced_cells()
            if refs and self._creates_cycle(refs):
                raise CircularDependencyError(
                    "The expression contains cyclic dependencies"
                )

        self._formula = formula
        self._text = "" if formula is not None else text
        self._cache = None
        self._update_dependencies(refs)
        self.invalidate_cache()

    def clear(self) -> None:
        """Make the cell empty."""
        self.set("")

    def value(self) -> CellValue:
        """The visible value: text without escape sign, a number or an error."""
        if self._formula is not None:
            if self._cache is None:
                self._cache = self._formula.evaluate(self._sheet)
            return self._cache
        if self._text.startswith(ESCAPE_SIGN):
            return self._text[1:]
        return self._text

    def text(self) -> str:
        """The text as it would be edited; formulas in normalised form."""
        if self._formula is not None:
            return FORMULA_SIGN + self._formula.expression()
        return self._text

    def referenced_cells(self) -> list[Position]:
        """Cells used directly by the formula, ascending and unique."""
        if self._formula is None:
            return []
        return self._formula.referenced_cells()

    def has_cache(self) -> bool:
        """True unless the cell is a formula whose value is not yet computed."""
        return self._formula is None or self._cache is not None

    def is_referenced(self) -> bool:
        """True if some formula cell uses this cell."""
        return bool(self._dependents)

    def invalidate_cache(self) -> None:
        """Drop the cached value of this cell and of every cell depending on it."""
        stack = [self]
        seen: set[Cell] = set()
        while stack:
            cell = stack.pop()
            if cell in seen:
                continue
            seen.add(cell)
            cell._cache = None
            stack.extend(cell._dependents)

    def _creates_cycle(self, refs: list[Position]) -> bool:
        targets = {self._sheet.get_cell(pos) for pos in refs}
        targets.discard(None)
        stack = [self]
        seen: set[Cell] = set()
        while stack:
            cell = stack.pop()
            if cell in targets:
                return True
            seen.add(cell)
            stack.extend(dep for dep in cell._dependents if dep not in seen)
        return False

    def _update_dependencies(self, refs: list[Position]) -> None:
        for cell in self._referenced:
            cell._dependents.discard(self)
        self._referenced.clear()

        for pos in refs:
            cell = self._sheet.get_cell(pos)
            if cell is None:
                self._sheet.set_cell(pos, "")
                cell = self._sheet.get_cell(pos)
            cell._dependents.add(self)
            self._referenced.add(cell)