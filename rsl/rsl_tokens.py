"""
Token vocabulary and source positions for the RSL scanner and parser.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class TokenKind(Enum):
    # Operators
    PLUS = auto()
    MINUS = auto()
    ASTERISK = auto()
    SLASH = auto()
    PERCENT = auto()
    EQUALS = auto()

    # Comparisons
    LESS_THAN = auto()
    LESS_THAN_EQUAL = auto()
    GREATER_THAN = auto()
    GREATER_THAN_EQUAL = auto()
    IS_EQUAL = auto()
    NOT_EQUAL = auto()

    # Delimiters
    SEMICOLON = auto()
    COMMA = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()

    # Keywords
    AND = auto()
    OR = auto()
    NOT = auto()
    IF = auto()
    ELSE = auto()
    LOOP = auto()
    FN = auto()
    BREAK = auto()
    RETURN = auto()
    LET = auto()
    EXPORT = auto()

    # Literals
    NULL = auto()
    TRUE = auto()
    FALSE = auto()
    NUMBER = auto()
    STRING = auto()

    IDENTIFIER = auto()
    EOF = auto()


KEYWORDS = {
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "loop": TokenKind.LOOP,
    "fn": TokenKind.FN,
    "break": TokenKind.BREAK,
    "return": TokenKind.RETURN,
    "let": TokenKind.LET,
    "export": TokenKind.EXPORT,
    "null": TokenKind.NULL,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
}

SINGLE_CHAR_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.ASTERISK,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
}

# First char -> (kind when followed by '=', kind otherwise)
TWO_CHAR_TOKENS = {
    "<": (TokenKind.LESS_THAN_EQUAL, TokenKind.LESS_THAN),
    ">": (TokenKind.GREATER_THAN_EQUAL, TokenKind.GREATER_THAN),
    "=": (TokenKind.IS_EQUAL, TokenKind.EQUALS),
    "!": (TokenKind.NOT_EQUAL, TokenKind.NOT),
}


@dataclass(frozen=True)
class Span:
    """Byte range ``[start_byte, end_byte)`` into the UTF-8 source, plus the starting line."""
    start_byte: int
    end_byte: int
    line: int


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    span: Span
    # Decoded payload for NUMBER (float), STRING (str) and IDENTIFIER (str).
    value: Any = None

    def __repr__(self) -> str:
        if self.value is None:
            return f"Token({self.kind.name})"
        return f"Token({self.kind.name}, {self.value!r})"
