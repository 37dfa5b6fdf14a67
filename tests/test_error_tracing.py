from rsl.rsl_config import RSLConfig
from rsl.rsl_runtime import RSL, ExecutionResult


def run(source):
    return RSL(RSLConfig(load_bootstrap=False)).run(source)


def test_runtime_error_has_location_and_context():
    res = run("let a = 1\nlet b = a + nope\nlet c = 3")
    assert res.status == 'error'
    msg = res.format_error()
    assert msg.startswith('runtime error "undefined variable nope" on line:2')
    assert ">" in msg and "2 | let b = a + nope" in msg
    lines = msg.splitlines()
    caret_line = lines[lines.index("> 2 | let b = a + nope") + 1]
    assert caret_line == "    | " + " " * 12 + "^"


def test_caret_column_counts_characters_not_bytes():
    res = run('let s = "日本"; bad')
    caret = res.format_error().splitlines()[-1]
    assert caret.index("^") - caret.index("|") - 2 == len('let s = "日本"; ')


def test_scan_error_context():
    res = run("let ok = 1\nlet x = 1 @ 2")
    assert res.status == 'error'
    assert res.error_message == "scan error \"unexpected character '@'\" on line:2"
    assert "> 2 | let x = 1 @ 2" in res.format_error()


def test_success_has_no_error_text():
    res = run("1 + 1")
    assert res.status == 'success'
    assert res.value == 2.0
    assert res.format_error() == ""


def test_error_without_span_formats_message_only():
    res = ExecutionResult('error', error_message="something broke")
    assert res.format_error() == "something broke"
