import io

import pytest

from tabulasheet.common import (
    CircularDependencyError,
    FormulaError,
    FormulaErrorCategory,
    FormulaSyntaxError,
    InvalidPositionError,
    Position,
    Size,
)
from tabulasheet.formula import parse_formula
from tabulasheet.sheet import Sheet, create_sheet


def pos(text):
    return Position.from_string(text)


def test_empty_sheet_size():
    assert create_sheet().printable_size() == Size(0, 0)


def test_invalid_positions_raise():
    sheet = create_sheet()
    with pytest.raises(InvalidPositionError):
        sheet.set_cell(Position(-1, 0), "")
    with pytest.raises(InvalidPositionError):
        sheet.get_cell(Position(0, -2))
    with pytest.raises(InvalidPositionError):
        sheet.clear_cell(Position(Position.MAX_ROWS, 0))


def test_set_cell_plain_text():
    sheet = create_sheet()
    for name, text in [("A1", "Hello"), ("A1", "World"), ("B2", "Purr"), ("A3", "Meow")]:
        sheet.set_cell(pos(name), text)
        cell = sheet.get_cell(pos(name))
        assert cell.text() == text
        assert cell.value() == text
    assert sheet.get_cell(pos("B2")).text() == "Purr"

    sheet.set_cell(pos("A3"), "'=escaped")
    cell = sheet.get_cell(pos("A3"))
    assert cell.text() == "'=escaped"
    assert cell.value() == "=escaped"


def test_clear_cell():
    sheet = create_sheet()
    sheet.set_cell(pos("C2"), "Me gusta")
    sheet.clear_cell(pos("C2"))
    assert sheet.get_cell(pos("C2")) is None
    sheet.clear_cell(pos("A1"))
    sheet.clear_cell(pos("J10"))
    assert sheet.printable_size() == Size(0, 0)


def test_clear_shrinks_size():
    sheet = create_sheet()
    sheet.set_cell(pos("A2"), "meow")
    sheet.set_cell(pos("B2"), "=35")
    sheet.clear_cell(pos("B2"))
    assert sheet.printable_size() == Size(2, 1)


def test_clear_referenced_cell_yields_zero():
    sheet = create_sheet()
    sheet.set_cell(pos("A1"), "5")
    sheet.set_cell(pos("A2"), "=A1")
    assert sheet.get_cell(pos("A2")).value() == 5
    sheet.clear_cell(pos("A1"))
    assert sheet.get_cell(pos("A2")).value() == 0.0


def test_formula_references():
    sheet = create_sheet()

    def evaluate(expr):
        return parse_formula(expr).evaluate(sheet)

    sheet.set_cell(pos("A1"), "1")
    assert evaluate("A1") == 1
    sheet.set_cell(pos("A2"), "2")
    assert evaluate("A1+A2") == 3
    sheet.set_cell(pos("B3"), "")
    assert evaluate("A1+B3") == 1
    assert evaluate("A1+B1") == 1
    assert evaluate("A1+E4") == 1


def test_print():
    sheet = create_sheet()
    sheet.set_cell(pos("A2"), "meow")
    sheet.set_cell(pos("B2"), "=35")
    assert sheet.printable_size() == Size(2, 2)

    texts = io.StringIO()
    sheet.print_texts(texts)
    assert texts.getvalue() == "\t\nmeow\t=35\n"

    values = io.StringIO()
    sheet.print_values(values)
    assert values.getvalue() == "\t\nmeow\t35\n"


def test_print_error_value():
    sheet = create_sheet()
    sheet.set_cell(pos("A1"), "=1/0")
    values = io.StringIO()
    sheet.print_values(values)
    assert values.getvalue() == "#ARITHM!\n"


def test_error_value():
    sheet = create_sheet()
    sheet.set_cell(pos("E2"), "A1")
    sheet.set_cell(pos("E4"), "=E2")
    assert sheet.get_cell(pos("E4")).value() == FormulaError(FormulaErrorCategory.VALUE)
    sheet.set_cell(pos("E2"), "3D")
    assert sheet.get_cell(pos("E4")).value() == FormulaError(FormulaErrorCategory.VALUE)


@pytest.mark.parametrize("formula", ["=1/0", "=1e+200/1e-200", "=0/0"])
def test_error_arithmetic(formula):
    sheet = create_sheet()
    sheet.set_cell(pos("A1"), formula)
    assert sheet.get_cell(pos("A1")).value() == FormulaError(
        FormulaErrorCategory.ARITHMETIC
    )


def test_empty_cell_treated_as_zero():
    sheet = create_sheet()
    sheet.set_cell(pos("A1"), "=B2")
    assert sheet.get_cell(pos("A1")).value() == 0.0


@pytest.mark.parametrize(
    "formula",
    ["=X0", "=ABCD1", "=A123456", "=ABCDEFGHIJKLMNOPQRS1234567890",
     "=XFD16385", "=XFE16384", "=R2D2"],
)
def test_formula_invalid_position(formula):
    sheet = create_sheet()
    with pytest.raises(FormulaSyntaxError):
        sheet.set_cell(pos("A1"), formula)


def test_cell_references():
    sheet = create_sheet()
    sheet.set_cell(pos("A1"), "1")
    sheet.set_cell(pos("A2"), "=A1")
    sheet.set_cell(pos("B2"), "=A1")

    assert sheet.get_cell(pos("A1")).referenced_cells() == []
    assert sheet.get_cell(pos("A2")).referenced_cells() == [pos("A1")]
    assert sheet.get_cell(pos("B2")).referenced_cells() == [pos("A1")]

    sheet.set_cell(pos("B2"), "=B1")
    assert sheet.get_cell(pos("B1")).referenced_cells() == []
    assert sheet.get_cell(pos("B2")).referenced_cells() == [pos("B1")]

    sheet.set_cell(pos("A2"), "")
    assert sheet.get_cell(pos("A1")).referenced_cells() == []
    assert sheet.get_cell(pos("A2")).referenced_cells() == []

    sheet.set_cell(pos("B1"), "=C3")
    assert sheet.get_cell(pos("B1")).referenced_cells() == [pos("C3")]


def test_cell_circular_references():
    sheet = create_sheet()
    sheet.set_cell(pos("E2"), "=E4")
    sheet.set_cell(pos("E4"), "=X9")
    sheet.set_cell(pos("X9"), "=M6")
    sheet.set_cell(pos("M6"), "Ready")

    with pytest.raises(CircularDependencyError):
        sheet.set_cell(pos("M6"), "=E2")
    assert sheet.get_cell(pos("M6")).text() == "Ready"


def test_sheet_class_matches_factory():
    sheet = Sheet()
    sheet.set_cell(pos("C137"), "x")
    assert sheet.printable_size() == Size(137, 3)
    assert sheet.get_cell(Position(136, 2)).text() == "x"