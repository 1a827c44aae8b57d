"""
Expression Abstract Syntax Tree (AST) Definitions
=================================================

This module defines the AST node types produced by the parser.

Node Hierarchy
--------------
ASTNode (base)
└── Expression
    ├── NumberLiteral - integer constant (leaf)
    └── BinaryExpression - operator with exactly two children

Design Notes
------------
- All nodes are dataclasses for clean representation
- Each node stores its source location for error reporting
- A node is either a leaf literal or a binary node; there are no
  unary nodes. The parser lowers `-x` to `0 - x` and drops `+x`.
- `>` and `>=` have no operator of their own. The parser swaps the
  operands and uses LESS_THAN / LESS_OR_EQUAL instead.
- Each node owns its children outright: no sharing, no cycles
"""

from dataclasses import dataclass
from enum import Enum, auto

from exprcc.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.offset}"


@dataclass
class Expression(ASTNode):
    """Base class for all expression nodes."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types."""
    # Arithmetic
    ADD = auto()            # +
    SUBTRACT = auto()       # -
    MULTIPLY = auto()       # *
    DIVIDE = auto()         # /

    # Comparison
    EQUAL = auto()          # ==
    NOT_EQUAL = auto()      # !=
    LESS_THAN = auto()      # <  (also a > b, swapped)
    LESS_OR_EQUAL = auto()  # <= (also a >= b, swapped)

    @property
    def symbol(self) -> str:
        return _OPERATOR_SYMBOLS[self]

    @property
    def is_comparison(self) -> bool:
        return self in (
            BinaryOperator.EQUAL,
            BinaryOperator.NOT_EQUAL,
            BinaryOperator.LESS_THAN,
            BinaryOperator.LESS_OR_EQUAL,
        )


_OPERATOR_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.NOT_EQUAL: "!=",
    BinaryOperator.LESS_THAN: "<",
    BinaryOperator.LESS_OR_EQUAL: "<=",
}


@dataclass
class NumberLiteral(Expression):
    """
    Integer constant.

    Attributes:
        value: The literal value
    """
    value: int = 0


@dataclass
class BinaryExpression(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        operator: The binary operator
        left: Left operand expression
        right: Right operand expression
    """
    operator: BinaryOperator
    left: Expression
    right: Expression


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care
    about.

    Usage:
        class LiteralCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_NumberLiteral(self, node):
                self.count += 1

        counter = LiteralCounter()
        counter.visit(tree)
    """

    def visit(self, node: ASTNode):
        """Visit a node by dispatching to the matching visit_* method."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all children of the node, left to right."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)

    def visit_NumberLiteral(self, node: NumberLiteral): return self.generic_visit(node)
    def visit_BinaryExpression(self, node: BinaryExpression): return self.generic_visit(node)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(tree))

    Output for `1+2*3`:
        Binary +
          Number 1
          Binary *
            Number 2
            Number 3
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

        # (node, indent level) pairs still to print
        self._pending: list[tuple[ASTNode, int]] = []

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self._pending = [(node, 0)]

        while self._pending:
            node, self.indent_level = self._pending.pop()
            self.visit(node)

        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def visit_NumberLiteral(self, node: NumberLiteral):
        self._emit(f"Number {node.value}")

    def visit_BinaryExpression(self, node: BinaryExpression):
        self._emit(f"Binary {node.operator.symbol}")
        self._pending.append((node.right, self.indent_level + 1))
        self._pending.append((node.left, self.indent_level + 1))


def to_infix(node: Expression) -> str:
    """
    Render an expression as fully parenthesized infix text.

    Useful for asserting tree shape in tests:
        to_infix(parse_source("8-3-2")) == "((8 - 3) - 2)"
    """
    if isinstance(node, NumberLiteral):
        return str(node.value)
    if isinstance(node, BinaryExpression):
        return f"({to_infix(node.left)} {node.operator.symbol} {to_infix(node.right)})"
    return f"<{type(node).__name__}>"
