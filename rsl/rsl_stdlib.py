"""
The RSL standard library: arrays, tables, strings, numbers and console output.

JSON conversion lives in ``rsl_serialize`` and registers into the same native
table. The HTTP natives in ``rsl_http`` are bound per interpreter instead.
"""
import math
import sys
from typing import Any, List, Optional

from rsl import rsl_text
from rsl.rsl_datatypes import Array, Error, Table
from rsl.rsl_native import expect_args, rsl_native
from rsl.rsl_printer import Printer

_printer = Printer()


def array_index(value: float) -> Optional[int]:
    """Numbers index arrays after truncation toward zero; negatives and NaN never do."""
    if not math.isfinite(value) or value <= -1:
        return None
    return int(value)


def _out_of_bounds(index: float, length: int) -> Error:
    return Error(f"index {_printer.pformat(index)} out of bounds for array of length {length}")


# --- Console ---

@rsl_native(name="print")
def print_values(arguments: List[Any]) -> Any:
    text = " ".join(_printer.pformat(argument) for argument in arguments)
    sys.stdout.write(text + "\n")
    sys.stdout.flush()
    return None


@rsl_native
def to_string(arguments: List[Any]) -> Any:
    value = expect_args(arguments, None)
    return _printer.pformat(value)


# --- Arrays ---

@rsl_native
def create_array(arguments: List[Any]) -> Any:
    return Array(arguments)


@rsl_native
def array_len(arguments: List[Any]) -> Any:
    array = expect_args(arguments, Array)
    return float(len(array))


@rsl_native
def array_get(arguments: List[Any]) -> Any:
    array, index = expect_args(arguments, Array, float)
    i = array_index(index)
    if i is None or i >= len(array):
        return _out_of_bounds(index, len(array))
    return array.data[i]


@rsl_native
def array_set(arguments: List[Any]) -> Any:
    array, index, value = expect_args(arguments, Array, float, None)
    i = array_index(index)
    if i is None or i >= len(array):
        return _out_of_bounds(index, len(array))
    array.data[i] = value
    return None


@rsl_native
def array_push_back(arguments: List[Any]) -> Any:
    array, value = expect_args(arguments, Array, None)
    array.data.append(value)
    return None


@rsl_native
def array_pop_back(arguments: List[Any]) -> Any:
    array = expect_args(arguments, Array)
    if not array.data:
        return Error("array is empty")
    return array.data.pop()


@rsl_native
def array_insert(arguments: List[Any]) -> Any:
    array, index, value = expect_args(arguments, Array, float, None)
    i = array_index(index)
    # Inserting at len(array) appends.
    if i is None or i > len(array):
        return _out_of_bounds(index, len(array))
    array.data.insert(i, value)
    return None


@rsl_native
def array_remove(arguments: List[Any]) -> Any:
    array, index = expect_args(arguments, Array, float)
    i = array_index(index)
    if i is None or i >= len(array):
        return _out_of_bounds(index, len(array))
    return array.data.pop(i)


# --- Tables ---

@rsl_native
def create_table(arguments: List[Any]) -> Any:
    expect_args(arguments)
    return Table()


@rsl_native
def table_set(arguments: List[Any]) -> Any:
    table, key, value = expect_args(arguments, Table, str, None)
    table.data[key] = value
    return None


@rsl_native
def table_get(arguments: List[Any]) -> Any:
    table, key = expect_args(arguments, Table, str)
    return table.get_value(key)


@rsl_native
def table_keys(arguments: List[Any]) -> Any:
    table = expect_args(arguments, Table)
    return Array(list(table.data.keys()))


@rsl_native
def table_merge(arguments: List[Any]) -> Any:
    destination, source = expect_args(arguments, Table, Table)
    destination.merge(source)
    return None


# --- Strings ---

@rsl_native
def string_split_lines(arguments: List[Any]) -> Any:
    text = expect_args(arguments, str)
    return Array(rsl_text.split_lines(text))


@rsl_native
def string_len(arguments: List[Any]) -> Any:
    text = expect_args(arguments, str)
    # Python strings index code points, i.e. Unicode scalar values.
    return float(len(text))


@rsl_native
def string_contains(arguments: List[Any]) -> Any:
    text, needle = expect_args(arguments, str, str)
    return needle in text


@rsl_native
def string_to_lower(arguments: List[Any]) -> Any:
    text = expect_args(arguments, str)
    return text.lower()


@rsl_native
def string_width(arguments: List[Any]) -> Any:
    text = expect_args(arguments, str)
    return float(rsl_text.display_width(text))


@rsl_native
def string_truncate_to_width(arguments: List[Any]) -> Any:
    text, width = expect_args(arguments, str, float)
    if math.isnan(width):
        return Error("stringTruncateToWidth: width is NaN")
    if math.isinf(width):
        return text if width > 0 else ""
    return rsl_text.truncate_to_width(text, int(width))


@rsl_native
def render_viewport(arguments: List[Any]) -> Any:
    text, width, height, scroll = expect_args(arguments, str, float, float, float)
    if not all(math.isfinite(n) for n in (width, height, scroll)):
        return Error("renderViewport: width, height and scroll must be finite")
    return rsl_text.render_viewport(text, int(width), int(height), int(scroll))


# --- Numbers ---

@rsl_native
def floor(arguments: List[Any]) -> Any:
    value = expect_args(arguments, float)
    if not math.isfinite(value):
        return value
    return float(math.floor(value))
