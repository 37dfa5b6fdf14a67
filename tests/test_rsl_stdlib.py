import math

import pytest

from rsl import rsl_stdlib as std
from rsl.rsl_datatypes import Array, Error, Table
from rsl.rsl_serialize import to_builtin

# --- Arrays ---

def test_create_array_is_variadic():
    assert to_builtin(std.create_array([])) == []
    assert to_builtin(std.create_array([1.0, "a", None])) == [1.0, "a", None]


def test_array_len_get_set():
    a = Array([1.0, 2.0, 3.0])
    assert std.array_len([a]) == 3.0
    assert std.array_get([a, 1.0]) == 2.0
    assert std.array_get([a, 1.7]) == 2.0
    assert std.array_set([a, 0.0, "x"]) is None
    assert a.data[0] == "x"


@pytest.mark.parametrize("index", [3.0, 100.0, -1.0, -0.5 - 1, math.nan, math.inf, -math.inf])
def test_array_bounds_are_checked(index):
    a = Array([1.0, 2.0, 3.0])
    assert isinstance(std.array_get([a, index]), Error)
    assert isinstance(std.array_set([a, index, 0.0]), Error)
    assert isinstance(std.array_remove([a, index]), Error)
    assert a.data == [1.0, 2.0, 3.0]


def test_out_of_bounds_message():
    assert std.array_get([Array([1.0]), 5.0]) == Error("index 5 out of bounds for array of length 1")


def test_push_and_pop_back():
    a = Array()
    std.array_push_back([a, 1.0])
    std.array_push_back([a, 2.0])
    assert std.array_pop_back([a]) == 2.0
    assert std.array_pop_back([a]) == 1.0
    assert std.array_pop_back([a]) == Error("array is empty")


def test_insert_allows_end_position():
    a = Array([1.0, 3.0])
    assert std.array_insert([a, 1.0, 2.0]) is None
    assert std.array_insert([a, 3.0, 4.0]) is None
    assert a.data == [1.0, 2.0, 3.0, 4.0]
    assert isinstance(std.array_insert([a, 5.0, 0.0]), Error)


def test_remove_returns_removed_item():
    a = Array(["a", "b", "c"])
    assert std.array_remove([a, 1.0]) == "b"
    assert a.data == ["a", "c"]


def test_array_functions_validate_arguments():
    assert isinstance(std.array_len([Table()]), Error)
    assert isinstance(std.array_get([Array(), "0"]), Error)
    assert isinstance(std.array_push_back([Array()]), Error)


# --- Tables ---

def test_table_set_get_keys():
    t = std.create_table([])
    std.table_set([t, "b", 2.0])
    std.table_set([t, "a", 1.0])
    assert std.table_get([t, "a"]) == 1.0
    assert std.table_get([t, "zzz"]) is None
    assert to_builtin(std.table_keys([t])) == ["b", "a"]


def test_create_table_takes_no_arguments():
    assert isinstance(std.create_table([1.0]), Error)


def test_table_merge_keeps_existing_keys():
    dst = Table({"shared": "dst", "only_dst": 1.0})
    src = Table({"shared": "src", "only_src": 2.0})
    assert std.table_merge([dst, src]) is None
    assert dst.data == {"shared": "dst", "only_dst": 1.0, "only_src": 2.0}


def test_table_keys_must_be_strings():
    assert isinstance(std.table_set([Table(), 1.0, "v"]), Error)


# --- Strings ---

def test_split_lines():
    assert to_builtin(std.string_split_lines(["a\nb\r\nc\n"])) == ["a", "b", "c"]
    assert to_builtin(std.string_split_lines([""])) == []
    assert to_builtin(std.string_split_lines(["a\n\nb"])) == ["a", "", "b"]


def test_string_len_counts_scalar_values():
    assert std.string_len(["héllo"]) == 5.0
    assert std.string_len(["日本"]) == 2.0
    assert std.string_len(["\U0001F600"]) == 1.0


def test_contains_and_lower():
    assert std.string_contains(["haystack", "st"]) is True
    assert std.string_contains(["haystack", "x"]) is False
    assert std.string_to_lower(["MiXeD"]) == "mixed"


def test_width_and_truncate():
    assert std.string_width(["abc"]) == 3.0
    assert std.string_width(["日本"]) == 4.0
    assert std.string_truncate_to_width(["日本語", 5.0]) == "日本"
    assert std.string_truncate_to_width(["abc", math.inf]) == "abc"
    assert isinstance(std.string_truncate_to_width(["abc", math.nan]), Error)


def test_render_viewport_examples():
    assert std.render_viewport(["abcdef", 3.0, 2.0, 0.0]) == "abc\ndef"
    assert std.render_viewport(["abcdef", 3.0, 1.0, -1.0]) == "def"
    assert isinstance(std.render_viewport(["abc", math.nan, 1.0, 0.0]), Error)


# --- Numbers and console ---

def test_floor():
    assert std.floor([2.7]) == 2.0
    assert std.floor([-2.1]) == -3.0
    assert std.floor([math.inf]) == math.inf
    assert isinstance(std.floor(["2"]), Error)


def test_to_string_and_print(capsys):
    assert std.to_string([Array([1.0, "a", None])]) == "[1, a, null]"
    assert std.print_values(["x", 1.0, True]) is None
    assert capsys.readouterr().out == "x 1 true\n"
