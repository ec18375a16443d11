# tabulasheet

An in-memory spreadsheet library. A cell holds text or a formula. Formulas
use numbers, `+ - * /`, unary `+` and `-`, parentheses, and references to
other cells such as `A1` or `XFD16384`.

## Modules

- `tabulasheet.common`: `Position`, `Size`, `FormulaError`,
  `FormulaErrorCategory` and the exceptions `InvalidPositionError`,
  `FormulaSyntaxError` and `CircularDependencyError`.
- `tabulasheet.formula_ast`: `parse_formula_ast()` and `FormulaAST`, the
  parsed expression tree, plus `ParsingError`.
- `tabulasheet.formula`: `parse_formula()` and `Formula`.
- `tabulasheet.cell`: `Cell`, one cell of a sheet.
- `tabulasheet.sheet`: `Sheet` and `create_sheet()`.

## Behaviour

- Positions are written as column letters followed by a row number.
  Internally they are zero-based `Position(row, col)`, ordered by row and
  then column. There are at most 16384 rows and 16384 columns.
  `Position.from_string()` returns `Position.NONE` for malformed text, and
  `str(position)` is empty for an invalid position.
- `Sheet` methods raise `InvalidPositionError` when given a position outside
  the sheet.
- Text that starts with `=` and has more characters after it is a formula.
  Text that starts with `'` is shown by `value()` without the apostrophe, so
  literal text may begin with `=`.
- A formula with a syntax error, or one that references a position outside
  the sheet, is rejected with `FormulaSyntaxError`.
- A formula that would create a circular dependency is rejected with
  `CircularDependencyError`, and the cell keeps its previous content.
- A reference to a missing cell or a cell with empty text counts as zero.
  Text that is a whole integer (optionally signed, within the 32-bit range)
  counts as that number; any other text gives a `#VALUE!` error. An error in
  a referenced cell is passed on.
- Division whose result is not finite, such as division by zero, gives
  `#ARITHM!`.
- `Cell.value()` returns a string, a float or a `FormulaError`.
  `Cell.text()` returns formulas in normalised form, without spaces or
  redundant parentheses.
- Formula values are cached; changing a cell drops the cached values of
  every cell that depends on it.
- Setting a formula creates empty cells for referenced positions that had
  none. `clear_cell()` empties a cell and removes it unless another cell
  still references it.

## Usage

```python
import io

from tabulasheet.common import Position
from tabulasheet.sheet import create_sheet

sheet = create_sheet()
sheet.set_cell(Position.from_string("A1"), "2")
sheet.set_cell(Position.from_string("A2"), "=A1*(3+4)")

cell = sheet.get_cell(Position.from_string("A2"))
print(cell.value())             # 14.0
print(cell.text())              # =A1*(3+4)
print(cell.referenced_cells())  # [Position(row=0, col=0)]

out = io.StringIO()
sheet.print_values(out)
print(out.getvalue())
```

Formulas can also be parsed and evaluated directly:

```python
from tabulasheet.formula import parse_formula

formula = parse_formula("(2*3)+4")
print(formula.expression())     # 2*3+4
```

`Sheet.printable_size()` returns the bounding `Size(rows, cols)` of all
cells the sheet holds, counted from `A1`, including empty cells created by
references. `print_texts()` and `print_values()` write that area with columns
separated by tabs and each row ending in a newline; numbers are written in
`%g` form and errors as `#REF!`, `#VALUE!` or `#ARITHM!`.

## What it does not do

This is a library only. It has no command-line program, no user interface,
and no way to save a sheet to a file or load one.

## Tests

Install the `test` extra and run pytest.