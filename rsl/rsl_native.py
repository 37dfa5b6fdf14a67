"""
Native function registration.

Every native has the shape ``func(arguments: list) -> value``. Decorating it
with ``@rsl_native`` records it in the static ``NATIVE_FUNCTIONS`` table
under its script-visible name: the Python name converted from snake_case to
lowerCamelCase (``array_push_back`` -> ``arrayPushBack``) unless an explicit
``name=`` override is given. ``register_native_functions`` copies the table
into an interpreter's root environment before any script runs.

Natives never raise for bad input. They destructure arguments with
``expect_args``; a mismatch raises ``ArgumentError`` which the decorator turns
into an ``Error`` value for the script.
"""
import functools
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from rsl.rsl_datatypes import Array, Environment, Error, NativeFunction, RSLCallable, Table, type_name


@dataclass(frozen=True)
class NativeRegistration:
    name: str
    func: Callable[[List[Any]], Any]


NATIVE_FUNCTIONS: List[NativeRegistration] = []


class ArgumentError(Exception):
    """Raised by ``expect_args``; converted to an ``Error`` value by ``rsl_native``."""


def to_lower_camel(name: str) -> str:
    parts = name.split("_")
    result = parts[0]
    for part in parts[1:]:
        if not part:
            continue
        result += part[0].upper() + part[1:]
    return result


def rsl_native(func: Optional[Callable] = None, *, name: Optional[str] = None,
               registry: Optional[List[NativeRegistration]] = None):
    """Register ``func`` as a native. Usable bare or as ``@rsl_native(name="...")``."""
    table = NATIVE_FUNCTIONS if registry is None else registry

    def decorate(f: Callable) -> Callable:
        script_name = name if name is not None else to_lower_camel(f.__name__)

        @functools.wraps(f)
        def native(arguments: List[Any]) -> Any:
            try:
                return f(arguments)
            except ArgumentError as e:
                return Error(f"{script_name}: {e}")

        if any(entry.name == script_name for entry in table):
            raise ValueError(f"native function {script_name!r} is already registered")
        table.append(NativeRegistration(script_name, native))
        native.rsl_name = script_name
        return native

    if func is not None:
        return decorate(func)
    return decorate


_KIND_NAMES = {
    float: "number",
    str: "string",
    bool: "boolean",
    Table: "table",
    Array: "array",
    RSLCallable: "function",
}


def expect_args(arguments: List[Any], *kinds):
    """Check arity and types, returning the arguments.

    Each kind is a type (``float`` for Number, ``str``, ``bool``, ``Table``,
    ``Array``, ``RSLCallable``) or ``None`` to accept any value. Returns the
    single value when one kind is given, otherwise a tuple.
    """
    if len(arguments) < len(kinds):
        raise ArgumentError(f"missing argument (expected {len(kinds)}, got {len(arguments)})")
    if len(arguments) > len(kinds):
        raise ArgumentError(f"too many arguments (expected {len(kinds)}, got {len(arguments)})")

    for position, (value, kind) in enumerate(zip(arguments, kinds), start=1):
        if kind is None:
            continue
        # bool is a subclass of int, never of float, so Numbers stay distinct.
        if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
            raise ArgumentError(
                f"expected {_KIND_NAMES.get(kind, kind.__name__)} for argument {position}, "
                f"got {type_name(value)}"
            )

    if len(kinds) == 1:
        return arguments[0]
    return tuple(arguments)


def register_native_functions(environment: Environment,
                              registrations: Optional[List[NativeRegistration]] = None):
    for registration in (NATIVE_FUNCTIONS if registrations is None else registrations):
        environment.define(registration.name, NativeFunction(registration.name, registration.func))
