"""A sparse sheet of cells addressed by Position."""

from __future__ import annotations

from typing import Callable, TextIO

from tabulasheet.cell import Cell, CellValue
from tabulasheet.common import FormulaError, InvalidPositionError, Position, Size


def _format_value(value: CellValue) -> str:
    if isinstance(value, FormulaError):
        return str(value)
    if isinstance(value, float):
        return format(value, "g")
    return value


class Sheet:
    """A table of cells with formulas that may refer to one another."""

    def __init__(self) -> None:
        self._cells: dict[Position, Cell] = {}

    def set_cell(self, pos: Position, text: str) -> None:
        """Set the text of the cell at pos, creating the cell if needed."""
        self._check(pos)
        cell = self._cells.get(pos)
        if cell is None:
            cell = Cell(self)
            self._cells[pos] = cell
        cell.set(text)

    def get_cell(self, pos: Position) -> Cell | None:
        """The cell at pos, or None if there is none."""
        self._check(pos)
        return self._cells.get(pos)

    def clear_cell(self, pos: Position) -> None:
        """Empty the cell at pos; it is removed unless another cell uses it."""
        self._check(pos)
        cell = self._cells.get(pos)
        if cell is None:
            return
        cell.clear()
        if not cell.is_referenced():
            del self._cells[pos]

    def printable_size(self) -> Size:
        """The bounding rectangle of all existing cells, from A1."""
        if not self._cells:
            return Size(0, 0)
        return Size(
            rows=max(pos.row for pos in self._cells) + 1,
            cols=max(pos.col for pos in self._cells) + 1,
        )

    def print_values(self, output: TextIO) -> None:
        """Write cell values, tab separated, one line per row."""
        self._print(output, lambda cell: _format_value(cell.value()))

    def print_texts(self, output: TextIO) -> None:
        """Write cell texts, tab separated, one line per row."""
        self._print(output, Cell.text)

    def _print(self, output: TextIO, render: Callable[[Cell], str]) -> None:
        size = self.printable_size()
        for row in range(size.rows):
            fields = []
            for col in range(size.cols):
                cell = self._cells.get(Position(row, col))
                fields.append("" if cell is None else render(cell))
            output.write("\t".join(fields) + "\n")

    @staticmethod
    def _check(pos: Position) -> None:
        if not pos.is_valid():
            raise InvalidPositionError("Invalid Position")


def create_sheet() -> Sheet:
    """Create an empty sheet."""
    return Sheet()