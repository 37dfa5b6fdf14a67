import math

import pytest

from rsl.rsl_datatypes import Array, Closure, Environment, Error, FunctionDefinition, NativeFunction, Table
from rsl.rsl_printer import Printer


@pytest.fixture
def printer():
    return Printer()


@pytest.mark.parametrize("value,expected", [
    (None, "null"),
    (True, "true"),
    (False, "false"),
    (3.0, "3"),
    (-0.5, "-0.5"),
    (0.1, "0.1"),
    (math.nan, "NaN"),
    (math.inf, "inf"),
    (-math.inf, "-inf"),
    ("raw text", "raw text"),
    (Error("nope"), "error: nope"),
])
def test_scalars(printer, value, expected):
    assert printer.pformat(value) == expected


def test_composites(printer):
    value = Table({"a": Array([1.0, "x", None]), "b": Table()})
    assert printer.pformat(value) == "{a: [1, x, null], b: {}}"


def test_functions(printer):
    assert printer.pformat(NativeFunction("arrayLen", lambda args: None)) == "<fn arrayLen>"
    anonymous = Closure(FunctionDefinition((), ()), Environment())
    assert printer.pformat(anonymous) == "<fn>"


def test_cycles_are_elided(printer):
    a = Array([1.0])
    a.data.append(a)
    t = Table()
    t.data["self"] = t
    assert printer.pformat(a) == "[1, [...]]"
    assert printer.pformat(t) == "{self: {...}}"


def test_repr_uses_display_form():
    assert repr(Array([2.0])) == "[2]"
