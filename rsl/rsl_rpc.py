"""
The bridge between the interpreter thread and the host application.

The host runs an ``RPCServer`` on its own asyncio loop, dispatching to the
``@rpc_method`` handlers of an ``RSLHost`` subclass. The interpreter thread
holds an ``RPCClient`` which submits JSON requests to that loop with
``asyncio.run_coroutine_threadsafe`` and blocks until the answer arrives, so
RPC calls happen in exactly the order the script makes them.

Only scalars and JSON text cross the boundary. Buffer ids are integers;
everything else is a string.
"""
import asyncio
import concurrent.futures
import inspect
import json
import logging
import math
import time
from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from rsl.rsl_datatypes import Closure, Error, NativeFunction, is_number, type_name
from rsl.rsl_errors import RPCTransportError
from rsl.rsl_native import ArgumentError, NativeRegistration, to_lower_camel

logger = logging.getLogger(__name__)

# How often a waiting call re-checks that the host loop is still serving.
POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class RPCMethod:
    name: str
    params: Tuple[Tuple[str, str], ...] = ()
    result: Optional[str] = None

    @property
    def script_name(self) -> str:
        return to_lower_camel(self.name)


# Parameter kinds: "id" (buffer id), "str", "fn" (function id: a String or a
# named Function). Result kinds: None, "id", "str".
RPC_METHODS: Tuple[RPCMethod, ...] = (
    RPCMethod("rlog", (("message", "str"),)),
    RPCMethod("set_active_buffer", (("id", "id"),)),
    RPCMethod("get_active_buffer", (), "id"),
    RPCMethod("register_global_keybind", (("definition", "str"), ("function_id", "fn"))),
    RPCMethod("create_special_buffer", (), "id"),
    RPCMethod("register_buffer_keybind", (("buffer_id", "id"), ("definition", "str"), ("function_id", "fn"))),
    RPCMethod("set_buffer_content", (("buffer_id", "id"), ("content", "str"))),
    RPCMethod("get_buffer_input", (("buffer_id", "id"),), "str"),
    RPCMethod("set_buffer_input", (("buffer_id", "id"), ("input", "str"))),
    RPCMethod("register_buffer_input_hook", (("buffer_id", "id"), ("function_id", "fn"))),
    RPCMethod("get_workspace_dir", (), "str"),
    RPCMethod("run_action", (("action", "str"),), "str"),
    RPCMethod("tts", (("text", "str"),)),
    RPCMethod("list_buffers", (), "str"),
    RPCMethod("get_actions", (), "str"),
    RPCMethod("get_definitions", (), "str"),
    RPCMethod("get_references", (), "str"),
    RPCMethod("get_workspace_diagnostics", (), "str"),
    RPCMethod("get_viewport_size", (), "str"),
    RPCMethod("select_range", (("selection", "str"),)),
    RPCMethod("open_file", (("path", "str"),)),
    RPCMethod("set_search_query", (("query", "str"),)),
)

RPC_METHODS_BY_NAME: Dict[str, RPCMethod] = {method.name: method for method in RPC_METHODS}


# ===================================================================
# Host side
# ===================================================================

def rpc_method(func):
    """A decorator to explicitly mark host methods as callable from scripts."""
    func._is_rpc_method = True
    return func


class RSLHost(ABC):
    """Base class for host applications. Override the ``@rpc_method`` handlers you support."""

    @rpc_method
    def rlog(self, message: str):
        logging.getLogger("rsl.host").info("%s", message)


class RPCServer:
    """Dispatches JSON requests to a host's ``@rpc_method`` handlers on the host loop."""

    def __init__(self, host: RSLHost):
        self.host = host
        self.handlers: Dict[str, Callable] = {}
        self.closed = False
        for name, member in inspect.getmembers(host):
            if not callable(member):
                continue
            is_rpc = getattr(member, "_is_rpc_method", False)
            if not is_rpc:
                func = getattr(member, "__func__", None)
                is_rpc = func is not None and getattr(func, "_is_rpc_method", False)
            if is_rpc:
                self.handlers[name] = member

    async def handle(self, request: str) -> str:
        try:
            payload = json.loads(request)
            method = payload["method"]
            params = payload.get("params", [])
        except (ValueError, KeyError, TypeError) as e:
            return json.dumps({"error": f"malformed request: {e}"})

        handler = self.handlers.get(method)
        if handler is None or method not in RPC_METHODS_BY_NAME:
            return json.dumps({"error": f"host does not implement {method}"})

        logger.debug("rpc %s %r", method, params)
        try:
            result = handler(*params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("rpc handler %s failed: %s", method, e)
            return json.dumps({"error": f"{type(e).__name__}: {e}"})

        try:
            return json.dumps({"result": result})
        except (TypeError, ValueError) as e:
            return json.dumps({"error": f"unserializable result from {method}: {e}"})


# ===================================================================
# Interpreter side
# ===================================================================

class RPCClient:
    """Blocking client used from the interpreter thread."""

    def __init__(self, server: RPCServer, loop: asyncio.AbstractEventLoop, timeout: Optional[float] = None):
        self.server = server
        self.loop = loop
        self.timeout = timeout

    def close(self):
        self.server.closed = True

    def call(self, method: str, *params) -> Any:
        """Send one request and wait for its response.

        Host-side failures and timeouts come back as ``Error`` values. A
        transport that is gone (server closed, loop stopped), before or during
        the call, raises ``RPCTransportError``.
        """
        if not self._reachable():
            raise RPCTransportError(f"cannot reach host for {method}: transport closed")

        request = json.dumps({"method": method, "params": list(params)})
        try:
            future = asyncio.run_coroutine_threadsafe(self.server.handle(request), self.loop)
        except RuntimeError as e:
            raise RPCTransportError(f"cannot reach host for {method}: {e}") from e

        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        while True:
            wait = POLL_INTERVAL
            if deadline is not None:
                wait = max(0.0, min(wait, deadline - time.monotonic()))
            try:
                response = future.result(wait)
                break
            except concurrent.futures.TimeoutError:
                if not self._reachable():
                    if not self.loop.is_closed():
                        future.cancel()
                    raise RPCTransportError(f"lost the host while waiting for {method}")
                if deadline is not None and time.monotonic() >= deadline:
                    future.cancel()
                    return Error(f"{method}: host did not respond within {self.timeout}s")
            except concurrent.futures.CancelledError as e:
                raise RPCTransportError(f"{method}: request cancelled by host") from e

        payload = json.loads(response)
        if "error" in payload:
            return Error(f"{method}: {payload['error']}")
        return payload.get("result")

    def _reachable(self) -> bool:
        return not self.server.closed and not self.loop.is_closed() and self.loop.is_running()


def start_rpc_server(host: RSLHost, loop: Optional[asyncio.AbstractEventLoop] = None,
                     timeout: Optional[float] = None) -> RPCClient:
    """Serve ``host`` on ``loop`` (default: the running loop) and return a client for the interpreter."""
    if loop is None:
        loop = asyncio.get_running_loop()
    return RPCClient(RPCServer(host), loop, timeout)


# ===================================================================
# Natives
# ===================================================================

def _buffer_id(value: Any, position: int) -> int:
    if not is_number(value):
        raise ArgumentError(f"expected number for argument {position}, got {type_name(value)}")
    if not math.isfinite(value) or value < 0 or value != int(value):
        raise ArgumentError(f"argument {position} is not a valid buffer id")
    return int(value)


def _function_id(value: Any, position: int) -> str:
    match value:
        case str():
            return value
        case NativeFunction() | Closure() if value.name:
            return value.name
    raise ArgumentError(f"expected function name for argument {position}, got {type_name(value)}")


def _convert_params(method: RPCMethod, arguments: List[Any]) -> List[Any]:
    expected = len(method.params)
    if len(arguments) < expected:
        raise ArgumentError(f"missing argument (expected {expected}, got {len(arguments)})")
    if len(arguments) > expected:
        raise ArgumentError(f"too many arguments (expected {expected}, got {len(arguments)})")

    params = []
    for position, ((_, kind), value) in enumerate(zip(method.params, arguments), start=1):
        match kind:
            case "id":
                params.append(_buffer_id(value, position))
            case "fn":
                params.append(_function_id(value, position))
            case _:
                if not isinstance(value, str):
                    raise ArgumentError(f"expected string for argument {position}, got {type_name(value)}")
                params.append(value)
    return params


def _convert_result(method: RPCMethod, result: Any) -> Any:
    match method.result, result:
        case None, _:
            return None
        case "id", int() | float() if not isinstance(result, bool):
            return float(result)
        case "str", str():
            return result
    return Error(f"{method.script_name}: host returned {type(result).__name__}, expected {method.result}")


def _make_native(client: RPCClient, method: RPCMethod) -> Callable[[List[Any]], Any]:
    def native(arguments: List[Any]) -> Any:
        try:
            params = _convert_params(method, arguments)
        except ArgumentError as e:
            return Error(f"{method.script_name}: {e}")
        result = client.call(method.name, *params)
        if isinstance(result, Error):
            return result
        return _convert_result(method, result)

    native.__name__ = method.name
    return native


def rpc_native_functions(client: RPCClient) -> List[NativeRegistration]:
    """One native per host RPC method, bound to ``client``."""
    return [NativeRegistration(method.script_name, _make_native(client, method)) for method in RPC_METHODS]
