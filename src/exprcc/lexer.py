"""
Expression Lexer (Tokenizer)
============================

This module implements the lexer for arithmetic expressions.
It converts source text into a list of tokens for the parser.

Token Categories
----------------
- Numbers: maximal runs of decimal digits
- Punctuators: + - * / ( ) < > == != <= >=
- EOF: one synthetic end marker after the last real token

Two-character punctuators are matched before one-character ones, so
`<=` is never split into `<` followed by `=`.

Example Usage
-------------
>>> from exprcc.lexer import tokenize
>>> for token in tokenize("1 <= 23"):
...     print(token)
Token(NUMBER, 1, @0)
Token(PUNCTUATION, '<=', @2)
Token(NUMBER, 23, @5)
Token(EOF, @7)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from exprcc.errors import SourceLocation, InvalidTokenError, NumberRangeError

logger = logging.getLogger(__name__)


# =============================================================================
# Token Kind Enumeration
# =============================================================================

class TokenKind(Enum):
    """Token kinds for the expression language."""
    NUMBER = auto()         # Integer literal
    PUNCTUATION = auto()    # Operator or parenthesis
    EOF = auto()            # End of input


# Punctuators, longest first
TWO_CHAR_PUNCTUATORS = ("==", "!=", "<=", ">=")
ONE_CHAR_PUNCTUATORS = "+-*/()<>"

WHITESPACE = " \t\n\r\f\v"

# Largest literal representable in a signed 64-bit register
MAX_LITERAL = 2**63 - 1


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token of expression source.

    Attributes:
        kind: The TokenKind classification
        text: Exact source text of the token (empty for EOF)
        offset: Character offset of the token in the source
        value: Integer value, only for NUMBER tokens
    """
    kind: TokenKind
    text: str
    offset: int
    value: Optional[int] = None

    def __repr__(self) -> str:
        if self.kind == TokenKind.NUMBER:
            return f"Token({self.kind.name}, {self.value}, @{self.offset})"
        if self.kind == TokenKind.EOF:
            return f"Token({self.kind.name}, @{self.offset})"
        return f"Token({self.kind.name}, {self.text!r}, @{self.offset})"

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.offset, self.length)

    def is_punctuator(self, text: str) -> bool:
        """Return True if this token is the punctuator `text`."""
        return self.kind == TokenKind.PUNCTUATION and self.text == text


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes an arithmetic expression.

    Usage:
        lexer = Lexer(source)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The expression being tokenized
    """

    def __init__(self, source: str):
        self.source = source
        self._pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source.

        Yields:
            Token objects, always ending with a single EOF token

        Raises:
            InvalidTokenError: On a character that starts no token
            NumberRangeError: On a literal wider than 64 bits
        """
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            yield self._scan_token()

        yield Token(TokenKind.EOF, "", self._pos)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        """Current character, or empty string at end of source."""
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in WHITESPACE:
            self._pos += 1

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start = self._pos

        # Two-character operators take priority
        pair = self.source[start:start + 2]
        if pair in TWO_CHAR_PUNCTUATORS:
            self._pos += 2
            return Token(TokenKind.PUNCTUATION, pair, start)

        char = self._peek()
        if char in ONE_CHAR_PUNCTUATORS:
            self._pos += 1
            return Token(TokenKind.PUNCTUATION, char, start)

        if char in string.digits:
            return self._scan_number(start)

        raise InvalidTokenError(
            char,
            SourceLocation(start, 1),
            self.source,
        )

    def _scan_number(self, start: int) -> Token:
        """Scan a maximal run of decimal digits."""
        while not self._at_end() and self._peek() in string.digits:
            self._pos += 1

        text = self.source[start:self._pos]
        value = int(text)
        if value > MAX_LITERAL:
            raise NumberRangeError(
                text,
                SourceLocation(start, len(text)),
                self.source,
            )

        return Token(TokenKind.NUMBER, text, start, value)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str) -> list[Token]:
    """
    Tokenize an expression into a list ending with an EOF token.

    Raises:
        LexicalError: If the source contains an invalid character
    """
    tokens = list(Lexer(source).tokenize())
    logger.debug(f"Tokenized {len(tokens)} tokens from {len(source)} characters")
    return tokens
