"""
Expression Compiler Integration Tests
=====================================

End-to-end tests for the compilation pipeline: source text goes in,
assembly comes out, and the stack machine confirms what the assembly
computes.

Test Organization
-----------------
- TestEvaluation: Known expressions and their results
- TestReferenceEquivalence: Generated code agrees with direct AST evaluation
- TestCompilerAPI: CompilerOptions, CompilerResult, compile_expression
- TestCompileErrors: Error propagation through the pipeline
- TestLargeExpressions: Long chains, long sign runs and deep nesting
"""

import pytest
from exprcc import (
    ExpressionCompiler,
    CompilerOptions,
    CompilerResult,
    compile_expression,
    run_assembly,
    parse_source,
)
from exprcc.ast import ASTVisitor, BinaryOperator
from exprcc.machine import analyze_stack, to_signed
from exprcc.parser import MAX_NESTING_DEPTH
from exprcc.errors import (
    CompileError,
    InvalidTokenError,
    NumberRangeError,
    ExpectedNumberError,
    MissingTokenError,
    UnexpectedTokenError,
    NestingDepthError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def evaluate(source: str) -> int:
    """Compile an expression and run it in the stack machine."""
    return run_assembly(compile_expression(source))


class ReferenceEvaluator(ASTVisitor):
    """Evaluate a tree directly with 64-bit C integer semantics."""

    def visit_NumberLiteral(self, node):
        return node.value

    def visit_BinaryExpression(self, node):
        left = self.visit(node.left)
        right = self.visit(node.right)
        op = node.operator

        if op == BinaryOperator.ADD:
            return to_signed(left + right)
        if op == BinaryOperator.SUBTRACT:
            return to_signed(left - right)
        if op == BinaryOperator.MULTIPLY:
            return to_signed(left * right)
        if op == BinaryOperator.DIVIDE:
            quotient = abs(left) // abs(right)
            return -quotient if (left < 0) != (right < 0) else quotient
        if op == BinaryOperator.EQUAL:
            return int(left == right)
        if op == BinaryOperator.NOT_EQUAL:
            return int(left != right)
        if op == BinaryOperator.LESS_THAN:
            return int(left < right)
        if op == BinaryOperator.LESS_OR_EQUAL:
            return int(left <= right)
        raise AssertionError(f"unhandled operator {op}")


# =============================================================================
# Evaluation Tests
# =============================================================================

class TestEvaluation:
    """Test that compiled programs return the expected values."""

    @pytest.mark.parametrize("source,expected", [
        ("0", 0),
        ("42", 42),
        ("2+3*4", 14),
        ("8-3-2", 3),
        ("16/4/2", 2),
        ("(2+3)*4", 20),
        ("5+6*7", 47),
        ("5*(9-6)", 15),
        ("(3+5)/2", 4),
        ("10/3*3", 9),
        (" 12 + 34 - 5 ", 41),
        ("-5+8", 3),
        ("-(3+2)", -5),
        ("- - +10", 10),
        ("-10+20", 10),
        ("+5", 5),
    ])
    def test_arithmetic(self, source, expected):
        assert evaluate(source) == expected

    @pytest.mark.parametrize("source,expected", [
        ("0==1", 0),
        ("42==42", 1),
        ("0!=1", 1),
        ("42!=42", 0),
        ("0<1", 1),
        ("1<1", 0),
        ("2<1", 0),
        ("0<=1", 1),
        ("1<=1", 1),
        ("2<=1", 0),
        ("1>0", 1),
        ("1>1", 0),
        ("1>2", 0),
        ("1>=0", 1),
        ("1>=1", 1),
        ("1>=2", 0),
        ("3>2", 1),
        ("2<3", 1),
        ("3>=3", 1),
        ("3<2", 0),
    ])
    def test_comparisons(self, source, expected):
        assert evaluate(source) == expected

    @pytest.mark.parametrize("source,expected", [
        ("1==1==1", 1),
        ("2==2==2", 0),
        ("1<2<3", 1),
        ("3>2>1", 0),
        ("1+(2<3)", 2),
        ("(1<2)*10", 10),
    ])
    def test_chained_comparisons(self, source, expected):
        assert evaluate(source) == expected

    def test_largest_literal(self):
        assert evaluate("9223372036854775807") == 9223372036854775807

    def test_wide_literal_arithmetic(self):
        assert evaluate("3000000000-1") == 2999999999


# =============================================================================
# Reference Equivalence Tests
# =============================================================================

class TestReferenceEquivalence:
    """Generated code computes what the tree says it computes."""

    @pytest.mark.parametrize("source", [
        "1+2*3-4/2",
        "(1+2)*(3-4)/(5+6)",
        "-7/2+7/-2",
        "100/7*7+100-100/7*7",
        "1<2==2>1",
        "(3>=3)+(3>3)+(3<=3)+(3<3)",
        "-(-(-(5)))*-1",
        "9223372036854775807*2",
        "((((1+2)*3)-4)/5)==1",
        "1-2-3-4-5-6-7-8-9",
    ])
    def test_matches_reference(self, source):
        expected = ReferenceEvaluator().visit(parse_source(source))
        assert evaluate(source) == expected

    @pytest.mark.parametrize("source", ["2+3*4", "(1<2)-(2<1)", "-(8/3)"])
    def test_stack_balanced(self, source):
        profile = analyze_stack(compile_expression(source))
        assert profile.depth_before_return_pop == 1
        assert profile.final_depth == 0


# =============================================================================
# Compiler API Tests
# =============================================================================

class TestCompilerAPI:
    """Test the compiler driver interface."""

    def test_compile_expression_returns_text(self):
        assembly = compile_expression("1")
        assert assembly.startswith(".intel_syntax noprefix\n")
        assert assembly.endswith("  ret\n")

    def test_result_contents(self):
        result = ExpressionCompiler().compile_source("1+2")
        assert isinstance(result, CompilerResult)
        assert result.success
        assert result.source == "1+2"
        assert result.token_count == 4
        assert result.ast is not None
        assert result.assembly == compile_expression("1+2")

    def test_default_options(self):
        options = CompilerOptions()
        assert options.entry_symbol == "main"
        assert not options.output_comments

    def test_entry_symbol_option(self):
        options = CompilerOptions(entry_symbol="expr")
        assembly = compile_expression("1", options)
        assert ".globl expr\nexpr:\n" in assembly
        assert run_assembly(assembly) == 1

    def test_comment_option(self):
        options = CompilerOptions(output_comments=True)
        assembly = compile_expression("6 * 7", options)
        assert assembly.splitlines()[0] == "# 6 * 7"
        assert run_assembly(assembly) == 42

    def test_deterministic(self):
        assert compile_expression("(2+3)*4") == compile_expression("(2+3)*4")

    def test_whitespace_does_not_change_code(self):
        assert compile_expression("1 +\t2") == compile_expression("1+2")


# =============================================================================
# Compile Error Tests
# =============================================================================

class TestCompileErrors:
    """Test that the first error propagates out of the pipeline."""

    @pytest.mark.parametrize("source,error_type,offset", [
        ("1@2", InvalidTokenError, 1),
        ("1+", ExpectedNumberError, 2),
        ("(1+2", MissingTokenError, 4),
        ("1 2", UnexpectedTokenError, 2),
        ("", ExpectedNumberError, 0),
        ("99999999999999999999", NumberRangeError, 0),
    ])
    def test_error_types(self, source, error_type, offset):
        with pytest.raises(error_type) as exc_info:
            compile_expression(source)
        assert exc_info.value.offset == offset

    def test_lexical_error_reported_before_syntax(self):
        """The lexer runs to completion before the parser starts."""
        with pytest.raises(InvalidTokenError):
            compile_expression("1+ $")

    def test_diagnostic_text(self):
        with pytest.raises(CompileError) as exc_info:
            compile_expression("12 + (3 *")
        assert str(exc_info.value) == "12 + (3 *\n         ^ expected a number"

    def test_nesting_limit_reported(self):
        source = "(" * 100 + "1" + ")" * 100
        with pytest.raises(NestingDepthError) as exc_info:
            compile_expression(source)
        assert exc_info.value.offset == MAX_NESTING_DEPTH


# =============================================================================
# Large Expression Tests
# =============================================================================

class TestLargeExpressions:
    """Test that long expressions compile, run and stay stack-balanced."""

    def test_long_sum(self):
        assembly = compile_expression("+".join(["1"] * 10000))
        assert run_assembly(assembly) == 10000

        profile = analyze_stack(assembly)
        assert profile.max_depth == 2
        assert profile.depth_before_return_pop == 1
        assert profile.final_depth == 0

    def test_long_sign_run(self):
        assert evaluate("-" * 1001 + "7") == -7
        assert evaluate("-" * 1000 + "7") == 7

    def test_deepest_nesting(self):
        source = "1+(" * MAX_NESTING_DEPTH + "1" + ")" * MAX_NESTING_DEPTH
        assembly = compile_expression(source)
        assert run_assembly(assembly) == MAX_NESTING_DEPTH + 1
        assert analyze_stack(assembly).max_depth == MAX_NESTING_DEPTH + 1
