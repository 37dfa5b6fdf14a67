"""
Defines the core data types for the RSL language runtime.

Primitive values map onto Python objects:

    Null      -> None
    Boolean   -> bool
    Number    -> float
    String    -> str
    Table     -> Table   (shared, mutable, string-keyed)
    Array     -> Array   (shared, mutable, ordered)
    Error     -> Error   (recoverable failure carrying a message)
    Function  -> NativeFunction | Closure

Tables and arrays are reference types: every binding holding one sees the
others' mutations. Comparing two of them with ``==`` is always false, even
for the same object with the same contents.
"""

from abc import ABC
from collections import UserDict, UserList
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from rsl.rsl_errors import RSLRuntimeError, UndefinedVariable
from rsl.rsl_tokens import Span


class Table(UserDict):
    """A string-keyed mapping shared by reference."""

    def __eq__(self, other):
        return False

    def __ne__(self, other):
        return True

    # Hash by identity so tables can be tracked in sets (cycle detection).
    def __hash__(self):
        return id(self)

    def get_value(self, key: str) -> Any:
        """Missing keys read as Null."""
        return self.data.get(key)

    def merge(self, other: 'Table'):
        """Copy every key of ``other`` that is absent here; existing keys win."""
        for key, value in other.data.items():
            self.data.setdefault(key, value)

    def __repr__(self):
        from rsl.rsl_printer import Printer
        return Printer().pformat(self)


class Array(UserList):
    """An ordered sequence shared by reference."""

    def __eq__(self, other):
        return False

    def __ne__(self, other):
        return True

    def __hash__(self):
        return id(self)

    def __repr__(self):
        from rsl.rsl_printer import Printer
        return Printer().pformat(self)


class Error:
    """A first-class failure value. It never unwinds execution on its own."""
    __slots__ = ("message",)

    def __init__(self, message: str):
        self.message = message

    def __eq__(self, other):
        if not isinstance(other, Error):
            return NotImplemented
        return self.message == other.message

    def __hash__(self):
        return hash(("error", self.message))

    def __repr__(self) -> str:
        return f"Error({self.message!r})"


# =================================================================
# Functions
# =================================================================

class RSLCallable(ABC):
    """Abstract base class for all Function primitives."""
    name: Optional[str] = None


@dataclass(frozen=True)
class FunctionDefinition:
    """Parameter names and body, shared by every closure created from one declaration."""
    parameters: Tuple[str, ...]
    body: Tuple[Any, ...]


class NativeFunction(RSLCallable):
    """A host-implemented function with the shape ``(list of Primitives) -> Primitive``."""

    def __init__(self, name: str, func: Callable[[List[Any]], Any]):
        self.name = name
        self.func = func

    def __call__(self, arguments: List[Any]) -> Any:
        return self.func(arguments)

    def __repr__(self) -> str:
        return f"<native {self.name}>"


class Closure(RSLCallable):
    """A function defined in RSL with ``fn``.

    Bundles the shared definition with the environment it was created in,
    so calls resolve free variables lexically.
    """

    def __init__(self, definition: FunctionDefinition, closure: 'Environment', name: Optional[str] = None):
        self.definition = definition
        self.closure = closure
        self.name = name

    @property
    def parameters(self) -> Tuple[str, ...]:
        return self.definition.parameters

    @property
    def body(self) -> Tuple[Any, ...]:
        return self.definition.body

    def __repr__(self) -> str:
        params = ", ".join(self.parameters)
        return f"<fn {self.name or ''}({params})>"


# =================================================================
# Value helpers
# =================================================================

def is_number(value: Any) -> bool:
    # bool is an int subclass; Numbers are always floats here.
    return isinstance(value, float)


def is_truthy(value: Any) -> bool:
    """Only Null and false are falsy. 0, "" and empty composites are truthy."""
    return not (value is None or value is False)


def type_name(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case float():
            return "number"
        case str():
            return "string"
        case Table():
            return "table"
        case Array():
            return "array"
        case Error():
            return "error"
        case RSLCallable():
            return "function"
    return type(value).__name__


# =================================================================
# Environment
# =================================================================

class Environment:
    """A lexical scope: local bindings plus an optional enclosing scope.

    A child environment is created for every function call and every block
    execution, parented to the lexically enclosing scope. Python's reference
    counting keeps a scope alive for exactly as long as a closure or a
    running frame still refers to it.
    """

    def __init__(self, parent: Optional['Environment'] = None):
        self.bindings: Dict[str, Any] = {}
        self.parent = parent

    def define(self, name: str, value: Any):
        """Insert or overwrite ``name`` in this scope only."""
        self.bindings[name] = value

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the nearest Environment in the chain that binds ``name``."""
        env = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.parent
        return None

    def get(self, name: str, span: Optional[Span] = None) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            raise UndefinedVariable(name, span)
        return owner.bindings[name]

    def set(self, name: str, value: Any, span: Optional[Span] = None):
        """Rebind ``name`` in the nearest scope that already defines it."""
        owner = self.find_owner(name)
        if owner is None:
            raise RSLRuntimeError(f"cannot assign to undefined variable {name}", span)
        owner.bindings[name] = value

    def __contains__(self, name: str) -> bool:
        return self.find_owner(name) is not None

    @property
    def root(self) -> 'Environment':
        env = self
        while env.parent is not None:
            env = env.parent
        return env

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Environment bindings=[{keys}]{parent_id}>"
