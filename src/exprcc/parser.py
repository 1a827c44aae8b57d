"""
Expression Recursive Descent Parser
===================================

This module implements a recursive descent parser for arithmetic
expressions. It takes the token list from the lexer and builds an
Abstract Syntax Tree (AST).

Grammar (lowest to highest precedence)
--------------------------------------
expression      ::= equality
equality        ::= relational (('==' | '!=') relational)*
relational      ::= additive (('<' | '<=' | '>' | '>=') additive)*
additive        ::= multiplicative (('+' | '-') multiplicative)*
multiplicative  ::= unary (('*' | '/') unary)*
unary           ::= ('+' | '-')? unary | primary
primary         ::= '(' expression ')' | NUMBER

Each binary level loops to fold chains from the left, so `8-3-2`
parses as `(8-3)-2` and `1==1==1` as `(1==1)==1`. Chains and runs of
unary signs are handled iteratively and have no length limit.
Parentheses recurse, and nest at most MAX_NESTING_DEPTH levels deep.

Lowering performed while parsing:
- `a > b`  becomes `b < a`
- `a >= b` becomes `b <= a`
- `+x`     becomes `x`
- `-x`     becomes `0 - x`

Example Usage
-------------
>>> from exprcc.parser import parse_source
>>> from exprcc.ast import to_infix
>>> to_infix(parse_source("3 > 2"))
'(2 < 3)'
"""

import logging
from typing import Callable

from exprcc.errors import (
    SourceLocation,
    ExpectedNumberError,
    MissingTokenError,
    UnexpectedTokenError,
    NestingDepthError,
)
from exprcc.lexer import Token, TokenKind, tokenize
from exprcc.ast import (
    Expression,
    BinaryExpression,
    NumberLiteral,
    BinaryOperator,
)

logger = logging.getLogger(__name__)


# Deepest parenthesis nesting accepted, the minimum C requires of a
# conforming compiler. Each level costs a handful of Python frames.
MAX_NESTING_DEPTH = 63


class Parser:
    """
    Recursive descent parser for arithmetic expressions.

    The parser owns a cursor into the token list. The cursor only ever
    moves forward. The first error raises immediately; there is no
    recovery.

    Attributes:
        tokens: List of tokens to parse, ending with EOF
        source: Original source text, used for diagnostics
    """

    def __init__(self, tokens: list[Token], source: str = ""):
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            raise ValueError("token list must end with an EOF token")

        self.tokens = tokens
        self.source = source

        # Index of the next unconsumed token
        self._pos = 0

        # Parentheses currently open
        self._depth = 0

    def parse(self) -> Expression:
        """
        Parse the whole token list into an AST.

        Returns:
            Root expression node

        Raises:
            ExprSyntaxError: If the tokens do not form exactly one expression
        """
        expr = self.parse_expression()

        current = self._peek()
        if current.kind != TokenKind.EOF:
            raise UnexpectedTokenError(current.text, current.location, self.source)

        return expr

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    @property
    def position(self) -> int:
        """Index of the next unconsumed token."""
        return self._pos

    def _peek(self) -> Token:
        return self.tokens[self._pos]

    def _advance(self) -> Token:
        """Consume and return the current token. EOF is never consumed."""
        token = self.tokens[self._pos]
        if token.kind != TokenKind.EOF:
            self._pos += 1
        return token

    def _match(self, text: str) -> bool:
        """Consume the current token if it is the punctuator `text`."""
        if self._peek().is_punctuator(text):
            self._advance()
            return True
        return False

    def _expect(self, text: str) -> Token:
        """
        Expect and consume the punctuator `text`.

        Raises:
            MissingTokenError: If the current token is anything else
        """
        if self._peek().is_punctuator(text):
            return self._advance()

        current = self._peek()
        raise MissingTokenError(text, current.location, self.source)

    def _expect_number(self) -> Token:
        """
        Expect and consume a NUMBER token.

        Raises:
            ExpectedNumberError: If the current token is not a number
        """
        current = self._peek()
        if current.kind != TokenKind.NUMBER:
            raise ExpectedNumberError(current.location, self.source)
        return self._advance()

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def parse_expression(self) -> Expression:
        """Parse expression (top-level rule)."""
        return self._parse_equality()

    def _parse_equality(self) -> Expression:
        """Parse equality expression (== !=)."""
        return self._parse_binary(
            self._parse_relational,
            {
                "==": BinaryOperator.EQUAL,
                "!=": BinaryOperator.NOT_EQUAL,
            },
        )

    def _parse_relational(self) -> Expression:
        """Parse relational expression (< <= > >=)."""
        return self._parse_binary(
            self._parse_additive,
            {
                "<": BinaryOperator.LESS_THAN,
                "<=": BinaryOperator.LESS_OR_EQUAL,
                ">": BinaryOperator.LESS_THAN,
                ">=": BinaryOperator.LESS_OR_EQUAL,
            },
            swapped=frozenset({">", ">="}),
        )

    def _parse_additive(self) -> Expression:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            self._parse_multiplicative,
            {
                "+": BinaryOperator.ADD,
                "-": BinaryOperator.SUBTRACT,
            },
        )

    def _parse_multiplicative(self) -> Expression:
        """Parse multiplicative expression (* /)."""
        return self._parse_binary(
            self._parse_unary,
            {
                "*": BinaryOperator.MULTIPLY,
                "/": BinaryOperator.DIVIDE,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[str, BinaryOperator],
        swapped: frozenset[str] = frozenset(),
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Function to parse operands
            operators: Map of punctuator text to binary operators
            swapped: Punctuators whose operands are exchanged in the tree
        """
        expr = operand_parser()

        while True:
            token = self._peek()
            if token.kind != TokenKind.PUNCTUATION or token.text not in operators:
                return expr

            self._advance()
            right = operand_parser()

            if token.text in swapped:
                left, right = right, expr
            else:
                left = expr

            expr = BinaryExpression(
                location=token.location,
                operator=operators[token.text],
                left=left,
                right=right,
            )

    def _parse_unary(self) -> Expression:
        """
        Parse unary expression (+ -).

        Signs are collected in a loop and applied innermost first, so a
        long run of signs costs no recursion.
        """
        signs = []
        while self._peek().is_punctuator("+") or self._peek().is_punctuator("-"):
            signs.append(self._advance())

        expr = self._parse_primary()

        for token in reversed(signs):
            if token.text == "-":
                expr = BinaryExpression(
                    location=token.location,
                    operator=BinaryOperator.SUBTRACT,
                    left=NumberLiteral(location=SourceLocation(token.offset, 0), value=0),
                    right=expr,
                )

        return expr

    def _parse_primary(self) -> Expression:
        """
        Parse primary expression (parenthesized or literal).

        Raises:
            NestingDepthError: If parentheses nest deeper than MAX_NESTING_DEPTH
        """
        token = self._peek()
        if self._match("("):
            if self._depth >= MAX_NESTING_DEPTH:
                raise NestingDepthError(token.location, self.source)

            self._depth += 1
            expr = self.parse_expression()
            self._depth -= 1

            self._expect(")")
            return expr

        token = self._expect_number()
        return NumberLiteral(location=token.location, value=token.value)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(tokens: list[Token], source: str = "") -> Expression:
    """Parse a token list into an AST."""
    return Parser(tokens, source).parse()


def parse_source(source: str) -> Expression:
    """
    Parse expression source into an AST.

    This is a convenience function that combines lexing and parsing.

    Raises:
        CompileError: If lexing or parsing fails
    """
    tokens = tokenize(source)
    tree = Parser(tokens, source).parse()
    logger.debug(f"Parsed {source!r}")
    return tree
