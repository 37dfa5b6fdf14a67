"""
Converts RSL source text into a list of spanned tokens.

Positions are tracked as UTF-8 byte offsets so spans match what the host
sees in its own buffers, while iteration happens over code points.
"""
from typing import List, Optional

from rsl.rsl_errors import ScanError
from rsl.rsl_tokens import KEYWORDS, SINGLE_CHAR_TOKENS, TWO_CHAR_TOKENS, Span, Token, TokenKind

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def _is_ident_start(c: str) -> bool:
    return c == "_" or ("a" <= c <= "z") or ("A" <= c <= "Z")


def _is_ident_char(c: str) -> bool:
    return _is_ident_start(c) or ("0" <= c <= "9")


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


class Scanner:
    """Single-pass scanner. Use ``Scanner(source).scan()``."""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        # Code point cursor and the matching byte offset.
        self.current = 0
        self.current_byte = 0
        self.start = 0
        self.start_byte = 0
        self.line = 1
        self.start_line = 1

    def scan(self) -> List[Token]:
        while not self.is_at_eof():
            self.start = self.current
            self.start_byte = self.current_byte
            self.start_line = self.line
            self.scan_token()
        end = Span(self.current_byte, self.current_byte, self.line)
        self.tokens.append(Token(TokenKind.EOF, end))
        return self.tokens

    def scan_token(self):
        c = self.advance()

        if c in (" ", "\r", "\t", "\n"):
            return
        if c == "#":
            while self.peek() != "\n" and not self.is_at_eof():
                self.advance()
            return
        if c in TWO_CHAR_TOKENS:
            with_equals, alone = TWO_CHAR_TOKENS[c]
            self.add_token(with_equals if self.match("=") else alone)
            return
        if c in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[c])
            return
        if c == '"':
            self.string()
            return
        if _is_digit(c):
            self.number()
            return
        if _is_ident_start(c):
            self.identifier()
            return

        raise ScanError(f"unexpected character {c!r}", self.current_span())

    def string(self):
        chars: List[str] = []
        while self.peek() != '"':
            if self.is_at_eof():
                raise ScanError("unterminated string", self.current_span())
            c = self.advance()
            if c == "\\":
                chars.append(self.escape())
            else:
                chars.append(c)
        # closing quote
        self.advance()
        self.add_token(TokenKind.STRING, "".join(chars))

    def escape(self) -> str:
        if self.is_at_eof():
            raise ScanError("unterminated string", self.current_span())
        escape_start = self.current_byte - 1
        c = self.advance()
        if c in _ESCAPES:
            return _ESCAPES[c]
        if c == "u" and self.match("{"):
            digits = []
            while self.peek() != "}" and not self.is_at_eof() and len(digits) <= 6:
                digits.append(self.advance())
            if self.match("}") and digits:
                try:
                    return chr(int("".join(digits), 16))
                except ValueError:
                    pass
        raise ScanError(
            f"invalid escape sequence \\{c}",
            Span(escape_start, self.current_byte, self.line),
        )

    def number(self):
        while _is_digit(self.peek()):
            self.advance()
        if self.peek() == "." and _is_digit(self.peek_n(1)):
            self.advance()
            while _is_digit(self.peek()):
                self.advance()
        text = self.source[self.start:self.current]
        self.add_token(TokenKind.NUMBER, float(text))

    def identifier(self):
        while _is_ident_char(self.peek()):
            self.advance()
        text = self.source[self.start:self.current]
        kind = KEYWORDS.get(text)
        if kind is not None:
            self.add_token(kind)
        else:
            self.add_token(TokenKind.IDENTIFIER, text)

    def add_token(self, kind: TokenKind, value: Optional[object] = None):
        self.tokens.append(Token(kind, self.current_span(), value))

    def current_span(self) -> Span:
        return Span(self.start_byte, self.current_byte, self.start_line)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        self.current_byte += len(c.encode("utf-8"))
        if c == "\n":
            self.line += 1
        return c

    def match(self, expected: str) -> bool:
        if self.is_at_eof() or self.source[self.current] != expected:
            return False
        self.advance()
        return True

    def peek(self) -> str:
        if self.is_at_eof():
            return "\0"
        return self.source[self.current]

    def peek_n(self, n: int) -> str:
        index = self.current + n
        if index >= len(self.source):
            return "\0"
        return self.source[index]

    def is_at_eof(self) -> bool:
        return self.current >= len(self.source)


def scan(source: str) -> List[Token]:
    return Scanner(source).scan()
