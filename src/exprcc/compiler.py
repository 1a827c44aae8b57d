"""
Expression Compiler Main Module
===============================

This module provides the main compiler interface. It orchestrates the
complete compilation process:

    Source → Lex → Parse → Generate → Assembly

Usage
-----
Command line:
    $ exprcc "2+3*4" > prog.s

Programmatic:
    >>> from exprcc import compile_expression
    >>> asm = compile_expression("2+3*4")

Error Handling
--------------
Errors are raised as exceptions and propagate unchanged to the caller.
The first error terminates compilation; only the command-line tool
decides to exit the process.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from exprcc.lexer import Token, tokenize
from exprcc.parser import Parser
from exprcc.codegen import CodeGenerator
from exprcc.ast import Expression

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        entry_symbol: Name of the generated global function
        output_comments: Emit the source expression as a leading comment
    """
    entry_symbol: str = "main"
    output_comments: bool = False


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        source: The compiled expression
        success: True if compilation succeeded
        assembly: Generated assembly code
        tokens: Tokens produced by the lexer
        ast: Root of the abstract syntax tree
    """
    source: str = ""
    success: bool = False
    assembly: str = ""
    tokens: list[Token] = field(default_factory=list)
    ast: Optional[Expression] = None

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class ExpressionCompiler:
    """
    Compiler for single arithmetic expressions.

    Example:
        compiler = ExpressionCompiler()
        result = compiler.compile_source("(2+3)*4")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str) -> CompilerResult:
        """
        Compile an expression to assembly.

        Args:
            source: Expression text

        Returns:
            CompilerResult containing tokens, AST and assembly

        Raises:
            CompileError: If lexing or parsing fails
        """
        result = CompilerResult(source=source)

        # Stage 1: Lexical analysis
        result.tokens = tokenize(source)

        # Stage 2: Parsing
        result.ast = Parser(result.tokens, source).parse()
        logger.debug("Parsed expression into AST")

        # Stage 3: Code generation
        generator = CodeGenerator(
            entry_symbol=self.options.entry_symbol,
            output_comments=self.options.output_comments,
        )
        result.assembly = generator.generate(result.ast, source)
        result.success = True

        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_expression(source: str, options: Optional[CompilerOptions] = None) -> str:
    """
    Compile an expression to x86-64 assembly.

    Raises:
        CompileError: If compilation fails

    Example:
        >>> print(compile_expression("1+2"))
    """
    return ExpressionCompiler(options).compile_source(source).assembly
