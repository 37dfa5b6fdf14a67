"""
Running scripts.

``RSL`` owns one interpreter and its root environment. ``RuntimeHost`` pins
an ``RSL`` to a dedicated thread and feeds it source text from an ordered
queue, one script at a time, so a script blocked on the network delays only
the scripts queued behind it and never the host.
"""
import logging
import queue
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from rsl import rsl_serialize  # noqa: F401  registers toJson/fromJson
from rsl import rsl_stdlib  # noqa: F401  registers the standard library
from rsl.rsl_config import RSLConfig
from rsl.rsl_datatypes import Environment
from rsl.rsl_errors import RPCTransportError, RSLError, SubmissionClosed
from rsl.rsl_http import HTTPSettings, http_native_functions
from rsl.rsl_interpreter import Interpreter
from rsl.rsl_native import register_native_functions
from rsl.rsl_parser import parse
from rsl.rsl_printer import Printer
from rsl.rsl_rpc import RPCClient, rpc_native_functions
from rsl.rsl_scanner import scan
from rsl.rsl_tokens import Span

logger = logging.getLogger(__name__)
logging.getLogger("rsl").addHandler(logging.NullHandler())


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_span: Optional[Span] = None
    source: str = field(default="", repr=False)

    def format_error(self) -> str:
        """Formats the error with a source excerpt when the location is known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "unknown error")
        if self.error_span is None or not self.source:
            return msg
        context = _source_context(self.source, self.error_span)
        return f"{msg}\n{context}" if context else msg


def _source_context(source: str, span: Span, radius: int = 2) -> str:
    lines = source.split("\n")
    line = span.line
    if line < 1 or line > len(lines):
        return ""

    # Spans count bytes; the caret needs a character column.
    encoded = source.encode("utf-8")
    line_start = encoded.rfind(b"\n", 0, span.start_byte) + 1
    col = len(encoded[line_start:span.start_byte].decode("utf-8", errors="replace")) + 1

    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    width = len(str(end))
    out = []
    for i in range(start, end + 1):
        prefix = ">" if i == line else " "
        out.append(f"{prefix} {str(i).rjust(width)} | {lines[i - 1].rstrip(chr(13))}")
        if i == line:
            out.append(f"  {' ' * width} | {' ' * (col - 1)}^")
    return "\n".join(out)


class RSL:
    """One interpreter instance with its root environment."""

    def __init__(self, config: Optional[RSLConfig] = None, rpc_client: Optional[RPCClient] = None):
        self.config = config if config is not None else RSLConfig()
        self.environment = Environment()
        register_native_functions(self.environment)
        register_native_functions(self.environment, http_native_functions(HTTPSettings.from_config(self.config)))
        if rpc_client is not None:
            if rpc_client.timeout is None:
                rpc_client.timeout = self.config.rpc_timeout
            register_native_functions(self.environment, rpc_native_functions(rpc_client))
        self.interpreter = Interpreter(self.environment)
        self.printer = Printer()

        if self.config.load_bootstrap:
            self.bootstrap()

    def bootstrap(self) -> ExecutionResult:
        path = Path(self.config.bootstrap)
        if not path.is_absolute():
            path = Path(self.config.working_dir) / path
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("cannot read bootstrap script %s: %s", path, e)
            return ExecutionResult('error', error_message=f"cannot read bootstrap script: {e}")
        result = self.run(source)
        if result.status == 'error':
            logger.error("bootstrap script %s failed: %s", path, result.format_error())
        return result

    def run(self, source: str) -> ExecutionResult:
        """Scan, parse and execute ``source`` against the root environment.

        Script faults come back as an error result. Only a broken RPC
        transport propagates, since nothing after it can reach the host.
        """
        logger.debug("running script (%d chars)", len(source))
        try:
            statements = parse(scan(source))
            value = self.interpreter.interpret(statements)
        except RPCTransportError:
            raise
        except RSLError as e:
            return ExecutionResult('error', error_message=str(e), error_span=e.span, source=source)
        except RecursionError:
            return ExecutionResult('error', error_message="runtime error \"maximum call depth exceeded\"", source=source)
        except Exception as e:
            logger.exception("internal error while running script")
            return ExecutionResult('error', error_message=f"internal error: {e}", source=source)
        return ExecutionResult('success', value=value, source=source)


_STOP = object()


class RuntimeHost:
    """A dedicated interpreter thread fed by an ordered queue of scripts.

    ``submit`` is fire-and-forget and never blocks the caller: the queue is
    unbounded, and failures are logged, never reported back.
    The thread ends after ``close`` drains the queue, or immediately when the
    RPC transport breaks.
    """

    def __init__(self, config: Optional[RSLConfig] = None, rpc_client: Optional[RPCClient] = None):
        self.config = config if config is not None else RSLConfig()
        self.rpc_client = rpc_client
        self.queue: "queue.Queue[Any]" = queue.Queue()
        self.thread = threading.Thread(target=self._run, name="rsl-runtime", daemon=True)
        self._closed = threading.Event()

    def start(self) -> 'RuntimeHost':
        self.thread.start()
        return self

    @property
    def is_running(self) -> bool:
        return self.thread.is_alive() and not self._closed.is_set()

    def submit(self, source: str):
        if self._closed.is_set() or (self.thread.ident is not None and not self.thread.is_alive()):
            raise SubmissionClosed("runtime host is not accepting scripts")
        self.queue.put_nowait(source)

    def close(self):
        """Stop accepting scripts; the thread exits once the queued ones have run."""
        if not self._closed.is_set():
            self._closed.set()
            self.queue.put(_STOP)

    def join(self, timeout: Optional[float] = None):
        self.thread.join(timeout)

    def _run(self):
        logger.info("runtime thread started")
        try:
            runtime = RSL(self.config, self.rpc_client)
            while True:
                source = self.queue.get()
                if source is _STOP:
                    break
                result = runtime.run(source)
                if result.status == 'error':
                    logger.error("script failed: %s", result.format_error())
                else:
                    logger.debug("script finished: %s", runtime.printer.pformat(result.value))
        except RPCTransportError as e:
            logger.error("rpc transport failed, stopping runtime: %s", e)
        finally:
            self._closed.set()
            logger.info("runtime thread stopped")
