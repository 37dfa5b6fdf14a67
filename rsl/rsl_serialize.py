from __future__ import annotations

import json
import math
from typing import Any, List

from rsl.rsl_datatypes import Array, Error, RSLCallable, Table
from rsl.rsl_native import expect_args, rsl_native


# --------------------------
# Helpers
# --------------------------

def to_builtin(value: Any, _active: set | None = None) -> Any:
    """Convert an RSL value into plain Python structures (dict/list/scalars).

    Used for JSON output and for structural comparison, since RSL's own
    equality never considers two tables or arrays equal.
    """
    active = set() if _active is None else _active
    match value:
        case Table() | Array() if id(value) in active:
            raise ValueError("cannot serialize a self-referencing value")
        case Table():
            active.add(id(value))
            out = {key: to_builtin(item, active) for key, item in value.data.items()}
            active.discard(id(value))
            return out
        case Array():
            active.add(id(value))
            out = [to_builtin(item, active) for item in value.data]
            active.discard(id(value))
            return out
        case Error():
            return {"error": value.message}
        case RSLCallable():
            return f"<fn {value.name}>" if value.name else "<fn>"
    return value


def from_builtin(value: Any) -> Any:
    """Convert decoded JSON into RSL values: objects become Tables, lists Arrays, numbers floats."""
    match value:
        case dict():
            return Table({str(key): from_builtin(item) for key, item in value.items()})
        case list():
            return Array([from_builtin(item) for item in value])
        case bool() | None | str():
            return value
        case int() | float():
            return float(value)
    raise TypeError(f"unsupported JSON value {value!r}")


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant {name}")


def serialize(value: Any) -> str:
    built = to_builtin(value)
    # NaN and infinities are not JSON; emit null like most JSON encoders for floats.
    return json.dumps(_finite(built), ensure_ascii=False, allow_nan=False)


def deserialize(text: str) -> Any:
    # Integers decode straight to floats; digits beyond float range give inf.
    return from_builtin(json.loads(text, parse_int=float, parse_constant=_reject_constant))


def _finite(value: Any) -> Any:
    match value:
        case dict():
            return {key: _finite(item) for key, item in value.items()}
        case list():
            return [_finite(item) for item in value]
        case float() if not math.isfinite(value):
            return None
    return value


# --------------------------
# Natives
# --------------------------

@rsl_native
def to_json(arguments: List[Any]) -> Any:
    value = expect_args(arguments, None)
    try:
        return serialize(value)
    except ValueError as e:
        return Error(f"toJson: {e}")
    except RecursionError:
        return Error("toJson: value is nested too deeply")


@rsl_native
def from_json(arguments: List[Any]) -> Any:
    text = expect_args(arguments, str)
    try:
        return deserialize(text)
    except (ValueError, TypeError, OverflowError) as e:
        return Error(f"fromJson: {e}")
    except RecursionError:
        return Error("fromJson: document is nested too deeply")


__all__ = [
    "to_builtin",
    "from_builtin",
    "serialize",
    "deserialize",
]
