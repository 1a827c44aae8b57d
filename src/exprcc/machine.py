"""
Stack Machine Simulator
=======================

Executes the x86-64 instruction subset emitted by the code generator,
so generated programs can be checked without an assembler, a linker
or an x86 host.

Machine Model
-------------
- 64-bit registers: RAX, RDI, RDX (stored unsigned, read back signed)
- AL: low byte of RAX, written by SETcc
- A value stack for PUSH / POP, empty when `main` starts
- The operands of the most recent CMP, consumed by SETcc

Arithmetic wraps modulo 2**64, as on hardware. IDIV faults on a zero
divisor and on a quotient that does not fit in 64 bits
(INT64_MIN / -1); both raise ExecutionError, standing in for the
divide-error trap.

Supported Instructions
----------------------
| Mnemonic        | Operands          |
|-----------------|-------------------|
| push            | imm32 or register |
| pop             | register          |
| mov             | register, imm64 or register |
| add, sub, imul  | register, register |
| cqo             | (none)            |
| idiv            | register          |
| cmp             | register, register |
| sete, setne, setl, setle | al       |
| movzb           | rax, al           |
| ret             | (none)            |

Directives (`.intel_syntax`), labels (`main:`), comments (`#`) and blank
lines are ignored.

Example:
    >>> from exprcc import compile_expression
    >>> from exprcc.machine import StackMachine
    >>> StackMachine().run(compile_expression("2+3*4"))
    14
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from exprcc.errors import ExecutionError

logger = logging.getLogger(__name__)


MASK64 = 2**64 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

REGISTERS = ("rax", "rdi", "rdx")


def to_signed(value: int) -> int:
    """Interpret a 64-bit pattern as a two's-complement integer."""
    value &= MASK64
    if value & (1 << 63):
        return value - (1 << 64)
    return value


def parse_instruction(line: str) -> Optional[tuple[str, list[str]]]:
    """
    Split an assembly line into mnemonic and operands.

    Returns None for lines that are not instructions (directives,
    labels, comments, blank lines).
    """
    text = line.split("#", 1)[0].strip()
    if not text or text.startswith(".") or text.endswith(":"):
        return None

    mnemonic, _, rest = text.partition(" ")
    operands = [op.strip() for op in rest.split(",")] if rest.strip() else []
    return mnemonic.lower(), operands


# =============================================================================
# Machine State
# =============================================================================

@dataclass
class MachineState:
    """
    Complete machine state for snapshotting.

    Register values are stored as unsigned 64-bit patterns.
    """
    rax: int = 0
    rdi: int = 0
    rdx: int = 0
    stack: list[int] = field(default_factory=list)
    compare: Optional[tuple[int, int]] = None
    steps: int = 0
    halted: bool = False


# =============================================================================
# Simulator
# =============================================================================

class StackMachine:
    """
    Interpreter for generated expression programs.

    Example:
        >>> machine = StackMachine()
        >>> machine.run("main:\\n  push 7\\n  pop rax\\n  ret\\n")
        7
        >>> machine.state.steps
        3
    """

    def __init__(self):
        self.state = MachineState()
        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "push": self._op_push,
            "pop": self._op_pop,
            "mov": self._op_mov,
            "add": self._op_add,
            "sub": self._op_sub,
            "imul": self._op_imul,
            "cqo": self._op_cqo,
            "idiv": self._op_idiv,
            "cmp": self._op_cmp,
            "sete": self._op_setcc,
            "setne": self._op_setcc,
            "setl": self._op_setcc,
            "setle": self._op_setcc,
            "movzb": self._op_movzb,
            "ret": self._op_ret,
        }
        self._mnemonic = ""

    # =========================================================================
    # Execution
    # =========================================================================

    def reset(self) -> None:
        self.state = MachineState()

    def run(self, assembly: str) -> int:
        """
        Execute a program from the first instruction to `ret`.

        Args:
            assembly: Assembly text as produced by CodeGenerator

        Returns:
            RAX at `ret`, as a signed integer

        Raises:
            ExecutionError: On a fault or a malformed program
        """
        self.reset()

        for line_number, line in enumerate(assembly.splitlines(), start=1):
            instruction = parse_instruction(line)
            if instruction is None:
                continue

            try:
                self.step(*instruction)
            except ExecutionError as e:
                if e.line_number is None:
                    raise ExecutionError(e.message, line_number, line) from e
                raise

            if self.state.halted:
                result = to_signed(self.state.rax)
                logger.debug(f"Halted after {self.state.steps} steps, result {result}")
                return result

        raise ExecutionError("program ended without 'ret'")

    def step(self, mnemonic: str, operands: list[str]) -> None:
        """Execute one instruction."""
        handler = self._handlers.get(mnemonic)
        if handler is None:
            raise ExecutionError(f"unknown instruction '{mnemonic}'")

        self._mnemonic = mnemonic
        handler(operands)
        self.state.steps += 1

    # =========================================================================
    # Operand Access
    # =========================================================================

    def _get(self, register: str) -> int:
        if register not in REGISTERS:
            raise ExecutionError(f"unknown register '{register}'")
        return getattr(self.state, register)

    def _set(self, register: str, value: int) -> None:
        if register not in REGISTERS:
            raise ExecutionError(f"unknown register '{register}'")
        setattr(self.state, register, value & MASK64)

    def _value(self, operand: str) -> int:
        """Read a register or an immediate operand."""
        if operand in REGISTERS:
            return self._get(operand)
        try:
            return int(operand) & MASK64
        except ValueError:
            raise ExecutionError(f"invalid operand '{operand}'") from None

    def _operands(self, operands: list[str], count: int) -> list[str]:
        if len(operands) != count:
            raise ExecutionError(
                f"'{self._mnemonic}' takes {count} operand(s), got {len(operands)}"
            )
        return operands

    # =========================================================================
    # Instruction Implementations
    # =========================================================================

    def _op_push(self, operands: list[str]) -> None:
        (source,) = self._operands(operands, 1)
        self.state.stack.append(self._value(source))

    def _op_pop(self, operands: list[str]) -> None:
        (target,) = self._operands(operands, 1)
        if not self.state.stack:
            raise ExecutionError("stack underflow")
        self._set(target, self.state.stack.pop())

    def _op_mov(self, operands: list[str]) -> None:
        target, source = self._operands(operands, 2)
        self._set(target, self._value(source))

    def _op_add(self, operands: list[str]) -> None:
        target, source = self._operands(operands, 2)
        self._set(target, self._get(target) + self._get(source))

    def _op_sub(self, operands: list[str]) -> None:
        target, source = self._operands(operands, 2)
        self._set(target, self._get(target) - self._get(source))

    def _op_imul(self, operands: list[str]) -> None:
        target, source = self._operands(operands, 2)
        product = to_signed(self._get(target)) * to_signed(self._get(source))
        self._set(target, product)

    def _op_cqo(self, operands: list[str]) -> None:
        self._operands(operands, 0)
        self.state.rdx = MASK64 if to_signed(self.state.rax) < 0 else 0

    def _op_idiv(self, operands: list[str]) -> None:
        (source,) = self._operands(operands, 1)
        divisor = to_signed(self._get(source))
        if divisor == 0:
            raise ExecutionError("division by zero")

        dividend = (to_signed(self.state.rdx) << 64) | self.state.rax

        # Truncate toward zero
        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        if not INT64_MIN <= quotient <= INT64_MAX:
            raise ExecutionError("division overflow")

        remainder = dividend - quotient * divisor
        self._set("rax", quotient)
        self._set("rdx", remainder)

    def _op_cmp(self, operands: list[str]) -> None:
        left, right = self._operands(operands, 2)
        self.state.compare = (to_signed(self._get(left)), to_signed(self._get(right)))

    def _op_setcc(self, operands: list[str]) -> None:
        (target,) = self._operands(operands, 1)
        if target != "al":
            raise ExecutionError(f"'{self._mnemonic}' only supports 'al'")
        if self.state.compare is None:
            raise ExecutionError(f"'{self._mnemonic}' without a preceding 'cmp'")

        left, right = self.state.compare
        condition = {
            "sete": left == right,
            "setne": left != right,
            "setl": left < right,
            "setle": left <= right,
        }[self._mnemonic]

        self.state.rax = (self.state.rax & ~0xFF & MASK64) | int(condition)

    def _op_movzb(self, operands: list[str]) -> None:
        target, source = self._operands(operands, 2)
        if source != "al":
            raise ExecutionError("'movzb' only supports 'al' as source")
        self._set(target, self.state.rax & 0xFF)

    def _op_ret(self, operands: list[str]) -> None:
        self._operands(operands, 0)
        if self.state.stack:
            raise ExecutionError(
                f"'ret' with {len(self.state.stack)} value(s) left on the stack"
            )
        self.state.halted = True


# =============================================================================
# Static Stack Analysis
# =============================================================================

@dataclass
class StackProfile:
    """
    Result of statically simulating push/pop effects.

    Attributes:
        depths: Stack depth after each instruction, in order
        max_depth: Deepest point reached
        depth_before_return_pop: Depth just before the final pop into RAX
        final_depth: Depth after the last instruction
    """
    depths: list[int] = field(default_factory=list)
    max_depth: int = 0
    depth_before_return_pop: Optional[int] = None
    final_depth: int = 0


def analyze_stack(assembly: str) -> StackProfile:
    """
    Track stack depth through a program without executing it.

    Raises:
        ExecutionError: If a pop would underflow the stack
    """
    profile = StackProfile()
    depth = 0

    for line in assembly.splitlines():
        instruction = parse_instruction(line)
        if instruction is None:
            continue

        mnemonic, operands = instruction
        if mnemonic == "push":
            depth += 1
        elif mnemonic == "pop":
            if depth == 0:
                raise ExecutionError("stack underflow", instruction=line)
            if operands == ["rax"]:
                profile.depth_before_return_pop = depth
            depth -= 1

        profile.depths.append(depth)
        profile.max_depth = max(profile.max_depth, depth)

    profile.final_depth = depth
    return profile


def run_assembly(assembly: str) -> int:
    """Execute generated assembly and return its result."""
    return StackMachine().run(assembly)
