"""
Statement and expression nodes produced by the parser.

Nodes are immutable; function bodies are tuples so a single body can be
shared by every closure created from the same definition.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from rsl.rsl_tokens import Span


class Expression:
    """Base class for expression nodes."""
    span: Optional[Span] = None


class Statement:
    """Base class for statement nodes."""
    span: Optional[Span] = None


# =================================================================
# Expressions
# =================================================================

@dataclass(frozen=True)
class Literal(Expression):
    value: Any
    span: Optional[Span] = None


@dataclass(frozen=True)
class Variable(Expression):
    name: str
    span: Optional[Span] = None


@dataclass(frozen=True)
class Unary(Expression):
    operator: str
    operand: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Binary(Expression):
    left: Expression
    operator: str
    right: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Logical(Expression):
    """``and`` / ``or``; kept apart from Binary because the right side may not run."""
    left: Expression
    operator: str
    right: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Grouping(Expression):
    expression: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Call(Expression):
    callee: Expression
    arguments: Tuple[Expression, ...]
    span: Optional[Span] = None


@dataclass(frozen=True)
class Index(Expression):
    target: Expression
    index: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    items: Tuple[Expression, ...]
    span: Optional[Span] = None


@dataclass(frozen=True)
class FunctionExpression(Expression):
    """Anonymous ``fn (params) { body }``."""
    parameters: Tuple[str, ...]
    body: Tuple[Statement, ...]
    span: Optional[Span] = None


# =================================================================
# Statements
# =================================================================

@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Let(Statement):
    name: str
    value: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Export(Statement):
    name: str
    value: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class Assign(Statement):
    name: str
    value: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class IndexAssign(Statement):
    target: Expression
    index: Expression
    value: Expression
    span: Optional[Span] = None


@dataclass(frozen=True)
class FunctionDeclaration(Statement):
    name: str
    parameters: Tuple[str, ...]
    body: Tuple[Statement, ...]
    exported: bool = False
    span: Optional[Span] = None


@dataclass(frozen=True)
class If(Statement):
    condition: Expression
    then_branch: Tuple[Statement, ...]
    else_branch: Optional[Tuple[Statement, ...]] = None
    span: Optional[Span] = None


@dataclass(frozen=True)
class Loop(Statement):
    body: Tuple[Statement, ...]
    span: Optional[Span] = None


@dataclass(frozen=True)
class BreakStatement(Statement):
    span: Optional[Span] = None


@dataclass(frozen=True)
class ReturnStatement(Statement):
    value: Optional[Expression] = None
    span: Optional[Span] = None
