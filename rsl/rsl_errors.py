"""
Exception types for faults that abort a script.

Recoverable, in-language failures are not exceptions: they are ``Error``
values (see ``rsl_datatypes``) that scripts branch on explicitly.
"""
from typing import Optional

from rsl.rsl_tokens import Span


class RSLError(Exception):
    """Base class for faults that stop the current script."""
    kind = "rsl"

    def __init__(self, message: str, span: Optional[Span] = None):
        super().__init__(message)
        self.message = message
        self.span = span

    def __str__(self) -> str:
        if self.span is None:
            return f'{self.kind} error "{self.message}"'
        return f'{self.kind} error "{self.message}" on line:{self.span.line}'


class ScanError(RSLError):
    kind = "scan"


class ParseError(RSLError):
    kind = "parse"


class RSLRuntimeError(RSLError):
    kind = "runtime"


class UndefinedVariable(RSLRuntimeError):
    def __init__(self, name: str, span: Optional[Span] = None):
        super().__init__(f"undefined variable {name}", span)
        self.name = name


class RPCTransportError(RSLError):
    """The interpreter can no longer reach the host. Fatal for the runtime thread."""
    kind = "rpc"


class SubmissionClosed(RSLError):
    """Raised when submitting to a runtime host that is no longer accepting scripts."""
    kind = "submission"
