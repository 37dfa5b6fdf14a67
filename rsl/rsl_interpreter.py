"""
The RSL tree-walking interpreter.

Statements execute to one of three control outcomes: ``NORMAL``, ``BREAK``
or ``Return(value)``. A block stops at the first non-normal outcome and
hands it to its caller unchanged; ``loop`` absorbs ``BREAK``; a function
call absorbs ``Return``.

Expressions evaluate to a single value. Operators applied to the wrong
types produce an ``Error`` value rather than aborting the script; only
structural faults (undefined names, calling a non-function, wrong arity)
raise ``RSLRuntimeError``.
"""
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from rsl.rsl_ast import (
    ArrayLiteral, Assign, Binary, BreakStatement, Call, Export, Expression,
    ExpressionStatement, FunctionDeclaration, FunctionExpression, Grouping, If,
    Index, IndexAssign, Let, Literal, Logical, Loop, ReturnStatement, Statement,
    Unary, Variable,
)
from rsl.rsl_datatypes import (
    Array, Closure, Environment, Error, FunctionDefinition, NativeFunction,
    RSLCallable, Table, is_number, is_truthy, type_name,
)
from rsl.rsl_errors import RSLRuntimeError
from rsl.rsl_printer import Printer
from rsl.rsl_stdlib import array_index
from rsl.rsl_tokens import Span


class _Signal:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


NORMAL = _Signal("NORMAL")
BREAK = _Signal("BREAK")


@dataclass(frozen=True)
class Return:
    value: Any = None


_printer = Printer()


# =================================================================
# Operators
# =================================================================

def _mismatch(operator: str, left: Any, right: Any) -> Error:
    return Error(f"cannot apply '{operator}' to {type_name(left)} and {type_name(right)}")


def _divide(left: float, right: float) -> float:
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _remainder(left: float, right: float) -> float:
    if right == 0.0 or math.isinf(left):
        return math.nan
    return math.fmod(left, right)


def values_equal(left: Any, right: Any) -> bool:
    """Language-level ``==``. Tables and arrays are never equal to anything."""
    if isinstance(left, (Table, Array)) or isinstance(right, (Table, Array)):
        return False
    if isinstance(left, RSLCallable) or isinstance(right, RSLCallable):
        return left is right
    if type(left) is not type(right):
        return False
    return left == right


def apply_binary(operator: str, left: Any, right: Any) -> Any:
    match operator:
        case "==":
            return values_equal(left, right)
        case "!=":
            return not values_equal(left, right)

    if is_number(left) and is_number(right):
        match operator:
            case "+":
                return left + right
            case "-":
                return left - right
            case "*":
                return left * right
            case "/":
                return _divide(left, right)
            case "%":
                return _remainder(left, right)
            case "<":
                return left < right
            case "<=":
                return left <= right
            case ">":
                return left > right
            case ">=":
                return left >= right

    if isinstance(left, str) and isinstance(right, str):
        match operator:
            case "+":
                return left + right
            case "<":
                return left < right
            case "<=":
                return left <= right
            case ">":
                return left > right
            case ">=":
                return left >= right

    if operator == "+":
        scalar = (bool, float, type(None))
        if isinstance(left, str) and isinstance(right, scalar):
            return left + _printer.pformat(right)
        if isinstance(right, str) and isinstance(left, scalar):
            return _printer.pformat(left) + right

    return _mismatch(operator, left, right)


def apply_unary(operator: str, operand: Any) -> Any:
    match operator:
        case "not":
            return not is_truthy(operand)
        case "-" if is_number(operand):
            return -operand
    return Error(f"cannot apply unary '{operator}' to {type_name(operand)}")


def index_value(target: Any, index: Any) -> Any:
    match target:
        case Array():
            if not is_number(index):
                return Error(f"array index must be a number, got {type_name(index)}")
            i = array_index(index)
            if i is None or i >= len(target.data):
                return Error(f"index {_printer.pformat(index)} out of bounds for array of length {len(target.data)}")
            return target.data[i]
        case Table():
            if not isinstance(index, str):
                return Error(f"table key must be a string, got {type_name(index)}")
            return target.get_value(index)
    return Error(f"cannot index into {type_name(target)}")


def assign_index(target: Any, index: Any, value: Any) -> Any:
    match target:
        case Array():
            if not is_number(index):
                return Error(f"array index must be a number, got {type_name(index)}")
            i = array_index(index)
            if i is None or i >= len(target.data):
                return Error(f"index {_printer.pformat(index)} out of bounds for array of length {len(target.data)}")
            target.data[i] = value
            return None
        case Table():
            if not isinstance(index, str):
                return Error(f"table key must be a string, got {type_name(index)}")
            target.data[index] = value
            return None
    return Error(f"cannot assign an index on {type_name(target)}")


# =================================================================
# Interpreter
# =================================================================

class Interpreter:
    """Executes parsed statements against a root environment."""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment if environment is not None else Environment()

    def interpret(self, statements: Sequence[Statement], environment: Optional[Environment] = None) -> Any:
        """Run top-level statements. Returns the last expression value or the top-level return value."""
        env = environment if environment is not None else self.environment
        result = None
        for statement in statements:
            if isinstance(statement, ExpressionStatement):
                result = self.evaluate(statement.expression, env)
                continue
            outcome = self.execute(statement, env)
            if isinstance(outcome, Return):
                return outcome.value
            if outcome is BREAK:
                break
        return result

    def execute_block(self, statements: Sequence[Statement], env: Environment):
        for statement in statements:
            outcome = self.execute(statement, env)
            if outcome is not NORMAL:
                return outcome
        return NORMAL

    def execute(self, statement: Statement, env: Environment):
        match statement:
            case ExpressionStatement(expression=expression):
                self.evaluate(expression, env)
                return NORMAL

            case Let(name=name, value=value):
                env.define(name, self.evaluate(value, env))
                return NORMAL

            case Export(name=name, value=value):
                env.root.define(name, self.evaluate(value, env))
                return NORMAL

            case Assign(name=name, value=value, span=span):
                env.set(name, self.evaluate(value, env), span)
                return NORMAL

            case IndexAssign(target=target, index=index, value=value):
                container = self.evaluate(target, env)
                key = self.evaluate(index, env)
                # An invalid index assignment yields an Error that nothing observes,
                # matching arraySet's contract when its result is ignored.
                assign_index(container, key, self.evaluate(value, env))
                return NORMAL

            case FunctionDeclaration(name=name, parameters=parameters, body=body, exported=exported):
                closure = Closure(FunctionDefinition(parameters, body), env, name)
                (env.root if exported else env).define(name, closure)
                return NORMAL

            case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
                if is_truthy(self.evaluate(condition, env)):
                    return self.execute_block(then_branch, Environment(env))
                if else_branch is not None:
                    return self.execute_block(else_branch, Environment(env))
                return NORMAL

            case Loop(body=body):
                while True:
                    outcome = self.execute_block(body, Environment(env))
                    if outcome is BREAK:
                        return NORMAL
                    if isinstance(outcome, Return):
                        return outcome

            case BreakStatement():
                return BREAK

            case ReturnStatement(value=value):
                return Return(None if value is None else self.evaluate(value, env))

        raise RSLRuntimeError(f"unknown statement {type(statement).__name__}", statement.span)

    def evaluate(self, expression: Expression, env: Environment) -> Any:
        match expression:
            case Literal(value=value):
                return value

            case Variable(name=name, span=span):
                return env.get(name, span)

            case Grouping(expression=inner):
                return self.evaluate(inner, env)

            case Unary(operator=operator, operand=operand):
                return apply_unary(operator, self.evaluate(operand, env))

            case Logical(left=left, operator=operator, right=right):
                left_value = is_truthy(self.evaluate(left, env))
                if operator == "or":
                    return left_value or is_truthy(self.evaluate(right, env))
                return left_value and is_truthy(self.evaluate(right, env))

            case Binary(left=left, operator=operator, right=right):
                return apply_binary(operator, self.evaluate(left, env), self.evaluate(right, env))

            case Index(target=target, index=index):
                return index_value(self.evaluate(target, env), self.evaluate(index, env))

            case ArrayLiteral(items=items):
                return Array([self.evaluate(item, env) for item in items])

            case FunctionExpression(parameters=parameters, body=body):
                return Closure(FunctionDefinition(parameters, body), env)

            case Call(callee=callee, arguments=arguments, span=span):
                func = self.evaluate(callee, env)
                values = [self.evaluate(argument, env) for argument in arguments]
                return self.call(func, values, span)

        raise RSLRuntimeError(f"unknown expression {type(expression).__name__}", expression.span)

    def call(self, func: Any, arguments: List[Any], span: Optional[Span] = None) -> Any:
        match func:
            case NativeFunction():
                return func(arguments)
            case Closure():
                if len(arguments) != len(func.parameters):
                    raise RSLRuntimeError(
                        f"{func.name or 'function'} expects {len(func.parameters)} "
                        f"argument(s), got {len(arguments)}",
                        span,
                    )
                frame = Environment(func.closure)
                for name, value in zip(func.parameters, arguments):
                    frame.define(name, value)
                outcome = self.execute_block(func.body, frame)
                if isinstance(outcome, Return):
                    return outcome.value
                return None
        raise RSLRuntimeError(f"cannot call {type_name(func)}", span)
