import math

import pytest

from rsl.rsl_config import RSLConfig
from rsl.rsl_datatypes import Closure, Error
from rsl.rsl_runtime import RSL
from rsl.rsl_serialize import to_builtin


@pytest.fixture
def rsl():
    return RSL(RSLConfig(load_bootstrap=False))


def run_ok(rsl, source):
    result = rsl.run(source)
    assert result.status == 'success', result.format_error()
    return result.value


def run_err(rsl, source):
    result = rsl.run(source)
    assert result.status == 'error'
    return result


# --- Arithmetic and operators ---

@pytest.mark.parametrize("source,expected", [
    ("1 + 2 * 3", 7.0),
    ("(1 + 2) * 3", 9.0),
    ("7 % 3", 1.0),
    ("-7 % 3", -1.0),
    ("10 / 4", 2.5),
    ("1 < 2", True),
    ("2 <= 1", False),
    ('"a" < "b"', True),
    ('"ab" + "cd"', "abcd"),
    ('"n=" + 3', "n=3"),
    ('"x" + 1.5', "x1.5"),
    ('true + "!"', "true!"),
    ('"v:" + null', "v:null"),
    ("1 == 1", True),
    ('1 == "1"', False),
    ("null == null", True),
    ("1 != 2", True),
    ("not null", True),
    ("!0", False),
    ("-(2 + 3)", -5.0),
])
def test_expression_values(rsl, source, expected):
    assert run_ok(rsl, source) == expected


def test_division_by_zero_follows_floating_point(rsl):
    assert run_ok(rsl, "1 / 0") == math.inf
    assert run_ok(rsl, "-1 / 0") == -math.inf
    assert math.isnan(run_ok(rsl, "0 / 0"))
    assert math.isnan(run_ok(rsl, "1 % 0"))


def test_type_mismatch_yields_error_value_not_fault(rsl):
    value = run_ok(rsl, 'let t = createTable(); "a" + t')
    assert isinstance(value, Error)
    assert "cannot apply '+' to string and table" in value.message
    assert isinstance(run_ok(rsl, "-true"), Error)
    assert isinstance(run_ok(rsl, '1 < "2"'), Error)


def test_error_value_does_not_stop_execution(rsl):
    assert run_ok(rsl, 'let bad = 1 + []; let after = "ran"; after') == "ran"


def test_composites_are_never_equal(rsl):
    assert run_ok(rsl, "let a = []; a == a") is False
    assert run_ok(rsl, "let t = createTable(); t == t") is False
    assert run_ok(rsl, "let t = createTable(); t != t") is True


def test_functions_compare_by_identity(rsl):
    assert run_ok(rsl, "fn f() {} f == f") is True
    assert run_ok(rsl, "fn f() {} fn g() {} f == g") is False


def test_logical_operators_short_circuit(rsl):
    source = """
    let calls = 0
    fn touch() { calls = calls + 1; return true }
    let a = false and touch()
    let b = true or touch()
    let c = 1 and "x"
    [calls, a, b, c]
    """
    assert to_builtin(run_ok(rsl, source)) == [0.0, False, True, True]


# --- Truthiness and control flow ---

def test_zero_and_empty_values_are_truthy(rsl):
    source = """
    let hits = 0
    if 0 { hits = hits + 1 }
    if "" { hits = hits + 1 }
    if [] { hits = hits + 1 }
    if createTable() { hits = hits + 1 }
    if null { hits = hits + 100 }
    if false { hits = hits + 100 }
    hits
    """
    assert run_ok(rsl, source) == 4.0


def test_if_else_if_else(rsl):
    source = """
    fn classify(n) {
      if n < 0 { return "neg" } else if n == 0 { return "zero" } else { return "pos" }
    }
    [classify(-1), classify(0), classify(5)]
    """
    assert to_builtin(run_ok(rsl, source)) == ["neg", "zero", "pos"]


def test_loop_break_resolves_at_loop_level(rsl):
    source = """
    let i = 0
    loop {
      i = i + 1
      if i == 5 { break }
    }
    i
    """
    assert run_ok(rsl, source) == 5.0


def test_return_inside_loop_leaves_the_function(rsl):
    source = """
    fn first_over(limit) {
      let i = 0
      loop {
        i = i + 1
        if i > limit { return i }
      }
      return -1
    }
    first_over(3)
    """
    assert run_ok(rsl, source) == 4.0


def test_function_without_return_yields_null(rsl):
    assert run_ok(rsl, "fn f() { 1 + 1 } f()") is None


def test_break_escaping_a_function_ends_the_call(rsl):
    source = """
    fn f() { break; return 1 }
    let out = "unset"
    loop { out = f(); break }
    out
    """
    assert run_ok(rsl, source) is None


def test_top_level_return_ends_the_script(rsl):
    assert run_ok(rsl, "return 3; 4") == 3.0


def test_block_scoping(rsl):
    source = """
    let x = "outer"
    if true { let x = "inner" }
    x
    """
    assert run_ok(rsl, source) == "outer"


def test_assignment_reaches_enclosing_scope(rsl):
    source = """
    let x = 1
    if true { x = 2 }
    x
    """
    assert run_ok(rsl, source) == 2.0


# --- Functions and closures ---

def test_closures_capture_by_reference(rsl):
    source = """
    fn counter() {
      let n = 0
      return fn () { n = n + 1; return n }
    }
    let c = counter()
    c()
    c()
    c()
    """
    assert run_ok(rsl, source) == 3.0


def test_closures_see_later_mutation(rsl):
    source = """
    let base = 1
    fn get() { return base }
    base = 42
    get()
    """
    assert run_ok(rsl, source) == 42.0


def test_scoping_is_lexical_not_dynamic(rsl):
    source = """
    let who = "lexical"
    fn show() { return who }
    fn caller() { let who = "dynamic"; return show() }
    caller()
    """
    assert run_ok(rsl, source) == "lexical"


def test_recursion(rsl):
    source = """
    fn fib(n) { if n < 2 { return n } return fib(n - 1) + fib(n - 2) }
    fib(15)
    """
    assert run_ok(rsl, source) == 610.0


def test_function_values_are_closures(rsl):
    value = run_ok(rsl, "fn named(a) {} named")
    assert isinstance(value, Closure)
    assert value.name == "named"


def test_export_defines_in_root_scope(rsl):
    run_ok(rsl, "fn setup() { export greeting = \"hi\"; export fn shout() { return \"HI\" } } setup()")
    assert run_ok(rsl, "greeting + shout()") == "hiHI"


def test_bindings_persist_across_runs(rsl):
    run_ok(rsl, "let shared = createArray(1, 2)")
    assert run_ok(rsl, "arrayLen(shared)") == 2.0


# --- Indexing ---

def test_array_indexing_and_assignment(rsl):
    source = """
    let a = [10, 20, 30]
    a[1] = 21
    [a[0], a[1], a[2.9]]
    """
    assert to_builtin(run_ok(rsl, source)) == [10.0, 21.0, 30.0]


def test_array_index_out_of_range_is_error(rsl):
    assert isinstance(run_ok(rsl, "[1][1]"), Error)
    assert isinstance(run_ok(rsl, "[1][-1]"), Error)
    assert isinstance(run_ok(rsl, '[1]["0"]'), Error)


def test_table_indexing(rsl):
    source = """
    let t = createTable()
    t["k"] = "v"
    [t["k"], t["missing"]]
    """
    assert to_builtin(run_ok(rsl, source)) == ["v", None]


def test_arrays_are_shared_references(rsl):
    source = """
    let a = [1]
    let b = a
    arrayPushBack(b, 2)
    arrayLen(a)
    """
    assert run_ok(rsl, source) == 2.0


# --- Faults that abort the script ---

def test_undefined_variable_aborts(rsl):
    result = run_err(rsl, "let a = 1\nmissing + a")
    assert "undefined variable missing" in result.error_message
    assert result.error_span.line == 2


def test_assignment_to_undefined_aborts(rsl):
    result = run_err(rsl, "nope = 1")
    assert "cannot assign to undefined variable nope" in result.error_message


def test_arity_mismatch_is_runtime_error(rsl):
    result = run_err(rsl, "fn f(a, b) {}\nf(1)")
    assert "expects 2 argument(s), got 1" in result.error_message


def test_calling_non_function_is_runtime_error(rsl):
    result = run_err(rsl, "let x = 1; x()")
    assert "cannot call number" in result.error_message


def test_fault_leaves_earlier_bindings_intact(rsl):
    run_err(rsl, "let kept = 1; boom()")
    assert run_ok(rsl, "kept") == 1.0


def test_deep_recursion_is_reported_not_raised(rsl):
    result = run_err(rsl, "fn f(n) { return f(n + 1) } f(0)")
    assert "maximum call depth" in result.error_message


# --- Bootstrap ---

def test_bootstrap_helpers_are_global():
    rsl = RSL()
    source = """
    let doubled = map(range(4), fn (x) { return x * 2 })
    let evens = filter(range(6), fn (x) { return x % 2 == 0 })
    [doubled, evens, reduce(range(5), fn (a, b) { return a + b }, 0), join(["a", 1, true], "-")]
    """
    assert to_builtin(run_ok(rsl, source)) == [
        [0.0, 2.0, 4.0, 6.0],
        [0.0, 2.0, 4.0],
        10.0,
        "a-1-true",
    ]
