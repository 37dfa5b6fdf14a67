"""
Recursive-descent parser turning a token list into RSL statements.

Operator precedence, loosest first: ``or``, ``and``, equality, comparison,
``+ -``, ``* / %``, unary ``not ! -``, then calls and indexing.
"""
from typing import List, Optional, Tuple

from rsl.rsl_ast import (
    ArrayLiteral, Assign, Binary, BreakStatement, Call, Export, Expression,
    ExpressionStatement, FunctionDeclaration, FunctionExpression, Grouping, If,
    Index, IndexAssign, Let, Literal, Logical, Loop, ReturnStatement, Statement,
    Unary, Variable,
)
from rsl.rsl_errors import ParseError
from rsl.rsl_tokens import Token, TokenKind

_EQUALITY = {TokenKind.IS_EQUAL: "==", TokenKind.NOT_EQUAL: "!="}
_COMPARISON = {
    TokenKind.LESS_THAN: "<",
    TokenKind.LESS_THAN_EQUAL: "<=",
    TokenKind.GREATER_THAN: ">",
    TokenKind.GREATER_THAN_EQUAL: ">=",
}
_TERM = {TokenKind.PLUS: "+", TokenKind.MINUS: "-"}
_FACTOR = {TokenKind.ASTERISK: "*", TokenKind.SLASH: "/", TokenKind.PERCENT: "%"}
_UNARY = {TokenKind.NOT: "not", TokenKind.MINUS: "-"}

_DESCRIBE = {
    TokenKind.LEFT_PAREN: "(",
    TokenKind.RIGHT_PAREN: ")",
    TokenKind.LEFT_BRACE: "{",
    TokenKind.RIGHT_BRACE: "}",
    TokenKind.RIGHT_BRACKET: "]",
    TokenKind.EQUALS: "=",
    TokenKind.IDENTIFIER: "identifier",
}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0

    def parse(self) -> List[Statement]:
        statements = []
        while not self.is_at_eof():
            statements.append(self.statement())
        return statements

    # --- Statements ---

    def statement(self) -> Statement:
        stmt = self._statement()
        self.consume_if(TokenKind.SEMICOLON)
        return stmt

    def _statement(self) -> Statement:
        token = self.peek()
        match token.kind:
            case TokenKind.FN if self.peek_n(1).kind == TokenKind.IDENTIFIER:
                self.consume()
                return self.function_declaration(exported=False, span=token.span)
            case TokenKind.EXPORT:
                self.consume()
                if self.consume_if(TokenKind.FN):
                    return self.function_declaration(exported=True, span=token.span)
                name = self.expect(TokenKind.IDENTIFIER).value
                self.expect(TokenKind.EQUALS)
                return Export(name, self.expression(), token.span)
            case TokenKind.LET:
                self.consume()
                name = self.expect(TokenKind.IDENTIFIER).value
                self.expect(TokenKind.EQUALS)
                return Let(name, self.expression(), token.span)
            case TokenKind.IF:
                self.consume()
                return self.if_statement(token)
            case TokenKind.LOOP:
                self.consume()
                return Loop(self.block(), token.span)
            case TokenKind.BREAK:
                self.consume()
                return BreakStatement(token.span)
            case TokenKind.RETURN:
                self.consume()
                if self.peek().kind in (TokenKind.SEMICOLON, TokenKind.RIGHT_BRACE, TokenKind.EOF):
                    return ReturnStatement(None, token.span)
                return ReturnStatement(self.expression(), token.span)
        return self.expression_or_assignment()

    def function_declaration(self, exported: bool, span) -> Statement:
        name = self.expect(TokenKind.IDENTIFIER).value
        parameters = self.parameters()
        body = self.block()
        return FunctionDeclaration(name, parameters, body, exported, span)

    def parameters(self) -> Tuple[str, ...]:
        self.expect(TokenKind.LEFT_PAREN)
        names: List[str] = []
        if self.peek().kind != TokenKind.RIGHT_PAREN:
            while True:
                ident = self.expect(TokenKind.IDENTIFIER)
                if ident.value in names:
                    raise ParseError(f"duplicate parameter {ident.value}", ident.span)
                names.append(ident.value)
                if not self.consume_if(TokenKind.COMMA):
                    break
        self.expect(TokenKind.RIGHT_PAREN)
        return tuple(names)

    def if_statement(self, if_token: Token) -> Statement:
        condition = self.expression()
        then_branch = self.block()
        else_branch = None
        if self.consume_if(TokenKind.ELSE):
            else_token = self.peek()
            if self.consume_if(TokenKind.IF):
                # `else if` chains nest as a single-statement else block
                else_branch = (self.if_statement(else_token),)
            else:
                else_branch = self.block()
        return If(condition, then_branch, else_branch, if_token.span)

    def block(self) -> Tuple[Statement, ...]:
        self.expect(TokenKind.LEFT_BRACE)
        statements = []
        while self.peek().kind != TokenKind.RIGHT_BRACE and not self.is_at_eof():
            statements.append(self.statement())
        self.expect(TokenKind.RIGHT_BRACE)
        return tuple(statements)

    def expression_or_assignment(self) -> Statement:
        start = self.peek()
        expression = self.expression()
        if self.peek().kind != TokenKind.EQUALS:
            return ExpressionStatement(expression, start.span)

        equals = self.consume()
        value = self.expression()
        match expression:
            case Variable(name=name):
                return Assign(name, value, start.span)
            case Index(target=target, index=index):
                return IndexAssign(target, index, value, start.span)
        raise ParseError("invalid assignment target", equals.span)

    # --- Expressions ---

    def expression(self) -> Expression:
        return self.or_expression()

    def or_expression(self) -> Expression:
        expression = self.and_expression()
        while self.peek().kind == TokenKind.OR:
            span = self.consume().span
            expression = Logical(expression, "or", self.and_expression(), span)
        return expression

    def and_expression(self) -> Expression:
        expression = self.binary(_EQUALITY, self.comparison_expression)
        while self.peek().kind == TokenKind.AND:
            span = self.consume().span
            right = self.binary(_EQUALITY, self.comparison_expression)
            expression = Logical(expression, "and", right, span)
        return expression

    def comparison_expression(self) -> Expression:
        return self.binary(_COMPARISON, self.term_expression)

    def term_expression(self) -> Expression:
        return self.binary(_TERM, self.factor_expression)

    def factor_expression(self) -> Expression:
        return self.binary(_FACTOR, self.unary_expression)

    def binary(self, operators, operand) -> Expression:
        """Left-associative chain of ``operand (op operand)*`` for the given operator table."""
        expression = operand()
        while self.peek().kind in operators:
            token = self.consume()
            expression = Binary(expression, operators[token.kind], operand(), token.span)
        return expression

    def unary_expression(self) -> Expression:
        if self.peek().kind in _UNARY:
            token = self.consume()
            return Unary(_UNARY[token.kind], self.unary_expression(), token.span)
        return self.postfix_expression()

    def postfix_expression(self) -> Expression:
        expression = self.primary_expression()
        while True:
            token = self.peek()
            # A call or index must open on the line its target ends on.
            if token.span.line != self.tokens[self.current - 1].span.line:
                return expression
            if self.consume_if(TokenKind.LEFT_PAREN):
                arguments = self.arguments(TokenKind.RIGHT_PAREN)
                expression = Call(expression, arguments, token.span)
            elif self.consume_if(TokenKind.LEFT_BRACKET):
                index = self.expression()
                self.expect(TokenKind.RIGHT_BRACKET)
                expression = Index(expression, index, token.span)
            else:
                return expression

    def arguments(self, closing: TokenKind) -> Tuple[Expression, ...]:
        items: List[Expression] = []
        if self.peek().kind != closing:
            while True:
                items.append(self.expression())
                if not self.consume_if(TokenKind.COMMA):
                    break
        self.expect(closing)
        return tuple(items)

    def primary_expression(self) -> Expression:
        token = self.consume()
        match token.kind:
            case TokenKind.NULL:
                return Literal(None, token.span)
            case TokenKind.TRUE:
                return Literal(True, token.span)
            case TokenKind.FALSE:
                return Literal(False, token.span)
            case TokenKind.NUMBER | TokenKind.STRING:
                return Literal(token.value, token.span)
            case TokenKind.IDENTIFIER:
                return Variable(token.value, token.span)
            case TokenKind.LEFT_PAREN:
                inner = self.expression()
                self.expect(TokenKind.RIGHT_PAREN)
                return Grouping(inner, token.span)
            case TokenKind.LEFT_BRACKET:
                return ArrayLiteral(self.arguments(TokenKind.RIGHT_BRACKET), token.span)
            case TokenKind.FN:
                parameters = self.parameters()
                return FunctionExpression(parameters, self.block(), token.span)
        raise ParseError(f"expected expression, found {self._describe(token)}", token.span)

    # --- Token helpers ---

    def _describe(self, token: Token) -> str:
        if token.kind == TokenKind.EOF:
            return "end of input"
        if token.value is not None:
            return f"{token.kind.name.lower()} {token.value!r}"
        return token.kind.name.lower()

    def expect(self, kind: TokenKind) -> Token:
        token = self.peek()
        if token.kind != kind:
            wanted = _DESCRIBE.get(kind, kind.name.lower())
            raise ParseError(f"expected {wanted}, found {self._describe(token)}", token.span)
        return self.consume()

    def consume_if(self, kind: TokenKind) -> Optional[Token]:
        if self.peek().kind == kind:
            return self.consume()
        return None

    def consume(self) -> Token:
        token = self.tokens[self.current]
        if token.kind != TokenKind.EOF:
            self.current += 1
        return token

    def peek(self) -> Token:
        return self.tokens[self.current]

    def peek_n(self, n: int) -> Token:
        index = min(self.current + n, len(self.tokens) - 1)
        return self.tokens[index]

    def is_at_eof(self) -> bool:
        return self.peek().kind == TokenKind.EOF


def parse(tokens: List[Token]) -> List[Statement]:
    return Parser(tokens).parse()
