"""
exprcc - Arithmetic Expression Compiler
=======================================

This package compiles a single integer arithmetic expression into x86-64
assembly (Intel syntax) that evaluates it on the machine stack and
returns the result from `main`.

Main Components
---------------
- **lexer**: source text to tokens
- **parser**: recursive descent parser producing an AST
- **codegen**: stack-based x86-64 code generator
- **compiler**: the lex → parse → generate pipeline
- **machine**: simulator for generated code, used for verification

Supported Language
------------------
- Decimal integer literals
- Binary operators: + - * /
- Comparisons: == != < <= > >=  (result is 0 or 1)
- Unary + and -
- Parentheses

Quick Start
-----------
Compile an expression:
    >>> from exprcc import compile_expression
    >>> print(compile_expression("(2+3)*4"))

Compile and evaluate in-process:
    >>> from exprcc import compile_expression, run_assembly
    >>> run_assembly(compile_expression("(2+3)*4"))
    20

Or use the command-line tool:
    $ exprcc "(2+3)*4" > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    20
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from exprcc.compiler import (
    ExpressionCompiler,
    CompilerOptions,
    CompilerResult,
    compile_expression,
)
from exprcc.errors import (
    ExprError,
    SourceLocation,
    CompileError,
    LexicalError,
    InvalidTokenError,
    NumberRangeError,
    ExprSyntaxError,
    ExpectedNumberError,
    MissingTokenError,
    NestingDepthError,
    UnexpectedTokenError,
    ExecutionError,
)
from exprcc.lexer import Lexer, Token, TokenKind, tokenize
from exprcc.parser import Parser, parse, parse_source
from exprcc.codegen import CodeGenerator, generate
from exprcc.ast import (
    ASTNode,
    Expression,
    NumberLiteral,
    BinaryExpression,
    BinaryOperator,
    ASTPrinter,
)
from exprcc.machine import StackMachine, StackProfile, analyze_stack, run_assembly

__all__ = [
    # Version
    "__version__",
    # Main API
    "ExpressionCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_expression",
    # Errors
    "ExprError",
    "SourceLocation",
    "CompileError",
    "LexicalError",
    "InvalidTokenError",
    "NumberRangeError",
    "ExprSyntaxError",
    "ExpectedNumberError",
    "MissingTokenError",
    "NestingDepthError",
    "UnexpectedTokenError",
    "ExecutionError",
    # Lexer
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    "generate",
    # AST
    "ASTNode",
    "Expression",
    "NumberLiteral",
    "BinaryExpression",
    "BinaryOperator",
    "ASTPrinter",
    # Simulator
    "StackMachine",
    "StackProfile",
    "analyze_stack",
    "run_assembly",
]
