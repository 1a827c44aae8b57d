"""
x86-64 Code Generator for Expressions
=====================================

This module generates x86-64 assembly (Intel syntax, GNU assembler
dialect) from the expression AST.

Code Generation Strategy
------------------------
The code generator uses a simple stack-based evaluation model:

1. A literal pushes its value onto the machine stack
2. A binary node generates its left operand, then its right operand,
   pops them into RDI (right) and RAX (left), combines them into RAX
   and pushes RAX back
3. After the whole tree, the single remaining value is popped into
   RAX, the return-value register, and `main` returns

Every subtree therefore leaves exactly one more value on the stack
than it found, which is what makes the final `pop rax` correct.

Register Usage
--------------
| Register | Usage                                    |
|----------|------------------------------------------|
| RAX      | Left operand, result, return value       |
| RDI      | Right operand                            |
| RDX      | High half of the dividend (set by CQO)   |
| AL       | Comparison result before zero-extension  |

Operator Lowering
-----------------
| Operator | Instructions                          |
|----------|---------------------------------------|
| +        | add rax, rdi                          |
| -        | sub rax, rdi                          |
| *        | imul rax, rdi                         |
| /        | cqo / idiv rdi                        |
| ==       | cmp rax, rdi / sete al / movzb rax, al  |
| !=       | cmp rax, rdi / setne al / movzb rax, al |
| <        | cmp rax, rdi / setl al / movzb rax, al  |
| <=       | cmp rax, rdi / setle al / movzb rax, al |

`>` and `>=` never reach this module; the parser has already swapped
their operands. Division by zero and quotient overflow are not checked
here. IDIV traps on both.

Example output for `1+2`:
    .intel_syntax noprefix
    .globl main
    main:
      push 1
      push 2
      pop rdi
      pop rax
      add rax, rdi
      push rax
      pop rax
      ret
"""

import logging
from typing import Optional, Union

from exprcc.ast import (
    ASTVisitor,
    Expression,
    BinaryExpression,
    NumberLiteral,
    BinaryOperator,
)

logger = logging.getLogger(__name__)


# Range of a sign-extended 32-bit immediate accepted by PUSH
IMM32_MIN = -(2**31)
IMM32_MAX = 2**31 - 1

INDENT = "  "

# Condition suffixes for comparison operators
_SETCC = {
    BinaryOperator.EQUAL: "sete",
    BinaryOperator.NOT_EQUAL: "setne",
    BinaryOperator.LESS_THAN: "setl",
    BinaryOperator.LESS_OR_EQUAL: "setle",
}


class CodeGenerator(ASTVisitor):
    """
    Generates x86-64 assembly from an expression AST.

    Attributes:
        entry_symbol: Name of the generated global function
        output_comments: Emit the source text as leading comment lines
    """

    def __init__(self, entry_symbol: str = "main", output_comments: bool = False):
        self.entry_symbol = entry_symbol
        self.output_comments = output_comments

        # Assembly output lines
        self._output: list[str] = []

        # Work stack of nodes still to visit and operators still to emit
        self._pending: list[Union[Expression, BinaryOperator]] = []

    def generate(self, tree: Expression, source: Optional[str] = None) -> str:
        """
        Generate a complete assembly listing.

        Args:
            tree: The root AST node
            source: Original expression, used only for the header comment

        Returns:
            Assembly text, newline terminated
        """
        self._output = []

        if self.output_comments and source is not None:
            # One comment per source line; a bare continuation line
            # would be read as an instruction
            for line in source.splitlines() or [source]:
                self._emit(f"# {line}")

        self._emit(".intel_syntax noprefix")
        self._emit(f".globl {self.entry_symbol}")
        self._emit(f"{self.entry_symbol}:")

        self._walk(tree)

        # The value of the whole expression is the only thing left on
        # the stack; it becomes the return value
        self._emit_instruction("pop rax")
        self._emit_instruction("ret")

        logger.debug(f"Generated {len(self._output)} lines of assembly")
        return "\n".join(self._output) + "\n"

    @property
    def lines(self) -> list[str]:
        """Lines produced by the most recent generate() call."""
        return list(self._output)

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit(self, line: str) -> None:
        self._output.append(line)

    def _emit_instruction(self, instruction: str) -> None:
        self._output.append(f"{INDENT}{instruction}")

    # =========================================================================
    # Tree Walk
    # =========================================================================

    def _walk(self, tree: Expression) -> None:
        """
        Post-order walk driven by an explicit work stack.

        Visiting a binary node only schedules its left operand, its right
        operand and then its operator. Tree depth is therefore bounded by
        memory, not by the interpreter's recursion limit.
        """
        self._pending = [tree]

        while self._pending:
            item = self._pending.pop()
            if isinstance(item, BinaryOperator):
                self._emit_operator(item)
            else:
                self.visit(item)

    # =========================================================================
    # Node Visitors
    # =========================================================================

    def visit_NumberLiteral(self, node: NumberLiteral):
        value = node.value
        if IMM32_MIN <= value <= IMM32_MAX:
            self._emit_instruction(f"push {value}")
        else:
            # PUSH only takes a 32-bit immediate
            self._emit_instruction(f"mov rax, {value}")
            self._emit_instruction("push rax")

    def visit_BinaryExpression(self, node: BinaryExpression):
        # Popped in reverse: left first, as it must end up in RAX
        self._pending.append(node.operator)
        self._pending.append(node.right)
        self._pending.append(node.left)

    def _emit_operator(self, op: BinaryOperator) -> None:
        """Combine the two topmost stack values with `op`."""
        self._emit_instruction("pop rdi")
        self._emit_instruction("pop rax")

        if op == BinaryOperator.ADD:
            self._emit_instruction("add rax, rdi")
        elif op == BinaryOperator.SUBTRACT:
            self._emit_instruction("sub rax, rdi")
        elif op == BinaryOperator.MULTIPLY:
            self._emit_instruction("imul rax, rdi")
        elif op == BinaryOperator.DIVIDE:
            self._emit_instruction("cqo")
            self._emit_instruction("idiv rdi")
        elif op.is_comparison:
            self._emit_instruction("cmp rax, rdi")
            self._emit_instruction(f"{_SETCC[op]} al")
            self._emit_instruction("movzb rax, al")
        else:
            raise ValueError(f"unsupported operator: {op}")

        self._emit_instruction("push rax")


# =============================================================================
# Convenience Functions
# =============================================================================

def generate(tree: Expression, entry_symbol: str = "main") -> str:
    """Generate assembly for an AST with default options."""
    return CodeGenerator(entry_symbol=entry_symbol).generate(tree)
