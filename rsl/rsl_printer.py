"""
Display formatting for RSL values, as used by ``print`` and ``toString``.
"""
import math

from rsl.rsl_datatypes import Array, Closure, Error, NativeFunction, Table


class Printer:
    """Formats RSL values into their display strings."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format a value."""
        return self._format(obj, set())

    def _format(self, obj, active: set) -> str:
        handler = self._handlers.get(type(obj))
        if handler is None:
            # Subclasses and anything foreign fall back to repr
            for kind, candidate in self._handlers.items():
                if isinstance(obj, kind):
                    handler = candidate
                    break
            else:
                return repr(obj)
        return handler(obj, active)

    def _create_handlers(self):
        return {
            type(None): self._pformat_null,
            bool: self._pformat_bool,
            float: self._pformat_number,
            int: self._pformat_number,
            str: self._pformat_str,
            Array: self._pformat_array,
            Table: self._pformat_table,
            Error: self._pformat_error,
            NativeFunction: self._pformat_function,
            Closure: self._pformat_function,
        }

    def _pformat_null(self, obj, active):
        return "null"

    def _pformat_bool(self, obj, active):
        return "true" if obj else "false"

    def _pformat_number(self, obj, active):
        value = float(obj)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            return str(int(value))
        return repr(value)

    def _pformat_str(self, obj, active):
        return obj

    def _pformat_error(self, obj, active):
        return f"error: {obj.message}"

    def _pformat_function(self, obj, active):
        return f"<fn {obj.name}>" if obj.name else "<fn>"

    def _pformat_array(self, obj, active):
        if id(obj) in active:
            return "[...]"
        active.add(id(obj))
        try:
            return "[" + ", ".join(self._format(item, active) for item in obj.data) + "]"
        finally:
            active.discard(id(obj))

    def _pformat_table(self, obj, active):
        if id(obj) in active:
            return "{...}"
        active.add(id(obj))
        try:
            items = (f"{key}: {self._format(value, active)}" for key, value in obj.data.items())
            return "{" + ", ".join(items) + "}"
        finally:
            active.discard(id(obj))
