"""
Unit tests for the Pluto parser.
"""

import io
import textwrap

import pytest
from pluto import (
    tokenize, parse, Parser, ParserError, TokenType, print_ast,
    Program, Assignment, ExpressionStatement, ActionDefinition,
    Conditional, ForEach, WhileLoop, Block,
    Literal, Identifier, BinaryOp, UnaryOp, Call, MemberAccess, ArrayLiteral,
)


def parse_source(source: str) -> Program:
    """Helper to tokenize and parse source."""
    source = textwrap.dedent(source)
    return parse(tokenize(source), source=source)


def parse_expr(source: str):
    """Parse a single expression statement and return the expression."""
    program = parse_source(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestProgramParsing:
    """Test program-level parsing."""

    def test_empty_program(self):
        """Empty source parses to an empty program."""
        program = parse_source("")
        assert program.statements == []

    def test_newlines_are_ignored(self):
        """Blank lines produce no statements."""
        program = parse_source("\n\n\nx = 1\n\n")
        assert len(program.statements) == 1

    def test_statements_need_no_separator(self):
        """Statements on one line are split by the grammar alone."""
        program = parse_source("x = 1 y = 2")
        assert [s.name for s in program.statements] == ["x", "y"]

    def test_assignment(self):
        """Identifier followed by '=' is an assignment."""
        program = parse_source("total = 1 + 2")
        stmt = program.statements[0]
        assert isinstance(stmt, Assignment)
        assert stmt.name == "total"
        assert isinstance(stmt.value, BinaryOp)

    def test_equality_is_not_assignment(self):
        """'x == 1' is an expression statement."""
        expr = parse_expr("x == 1")
        assert isinstance(expr, BinaryOp)
        assert expr.operator == TokenType.EQ

    def test_requires_eof_terminated_stream(self):
        """A token list without EOF is rejected."""
        tokens = tokenize("x")[:-1]
        with pytest.raises(ValueError):
            Parser(tokens)


class TestExpressions:
    """Test expression parsing and precedence."""

    def test_literals(self):
        """Number, string and boolean literals."""
        assert parse_expr("42").value == 42
        assert parse_expr('"hi"').value == "hi"
        lit = parse_expr("true")
        assert isinstance(lit, Literal)
        assert lit.value is True
        assert lit.literal_type == TokenType.BOOLEAN

    def test_multiplication_binds_tighter(self):
        """2 + 3 * 4 groups the multiplication."""
        expr = parse_expr("2 + 3 * 4")
        assert expr.operator == TokenType.PLUS
        assert expr.right.operator == TokenType.STAR

    def test_parentheses_override(self):
        """(2 + 3) * 4 groups the addition."""
        expr = parse_expr("(2 + 3) * 4")
        assert expr.operator == TokenType.STAR
        assert expr.left.operator == TokenType.PLUS

    def test_left_associative(self):
        """10 - 4 - 3 is (10 - 4) - 3."""
        expr = parse_expr("10 - 4 - 3")
        assert expr.operator == TokenType.MINUS
        assert isinstance(expr.left, BinaryOp)
        assert expr.right.value == 3

    def test_precedence_ladder(self):
        """|| < && < equality < relational < additive."""
        expr = parse_expr("a || b && c == d < e + f")
        assert expr.operator == TokenType.OR
        and_expr = expr.right
        assert and_expr.operator == TokenType.AND
        eq_expr = and_expr.right
        assert eq_expr.operator == TokenType.EQ
        lt_expr = eq_expr.right
        assert lt_expr.operator == TokenType.LT
        assert lt_expr.right.operator == TokenType.PLUS

    def test_unary_operators(self):
        """Unary minus and not nest."""
        expr = parse_expr("!-x")
        assert isinstance(expr, UnaryOp)
        assert expr.operator == TokenType.NOT
        assert expr.operand.operator == TokenType.MINUS

    def test_unary_binds_tighter_than_binary(self):
        """-a * b negates only a."""
        expr = parse_expr("-a * b")
        assert expr.operator == TokenType.STAR
        assert isinstance(expr.left, UnaryOp)

    def test_call(self):
        """Call with arguments."""
        expr = parse_expr("max(1, x, 3)")
        assert isinstance(expr, Call)
        assert isinstance(expr.callee, Identifier)
        assert expr.callee.name == "max"
        assert len(expr.arguments) == 3

    def test_call_trailing_comma(self):
        """A trailing comma is accepted in argument lists."""
        expr = parse_expr("f(1, 2,)")
        assert len(expr.arguments) == 2

    def test_chained_calls(self):
        """Calls chain as postfix operators."""
        expr = parse_expr("make()(1)")
        assert isinstance(expr, Call)
        assert isinstance(expr.callee, Call)

    def test_dotted_access(self):
        """obj.name stores the name as a string."""
        expr = parse_expr("items.length")
        assert isinstance(expr, MemberAccess)
        assert expr.computed is False
        assert expr.property == "length"

    def test_index_access(self):
        """obj[expr] stores the index expression."""
        expr = parse_expr("items[i + 1]")
        assert isinstance(expr, MemberAccess)
        assert expr.computed is True
        assert isinstance(expr.property, BinaryOp)

    def test_postfix_chain(self):
        """Member access and calls combine left to right."""
        expr = parse_expr("pop(xs).array[0]")
        assert expr.computed is True
        assert expr.object.property == "array"
        assert isinstance(expr.object.object, Call)

    def test_array_literal(self):
        """Array literal elements."""
        expr = parse_expr("[1, [2, 3], x]")
        assert isinstance(expr, ArrayLiteral)
        assert len(expr.elements) == 3
        assert isinstance(expr.elements[1], ArrayLiteral)

    def test_empty_array(self):
        """Empty array literal."""
        assert parse_expr("[]").elements == []

    def test_spans(self):
        """Binary nodes span both operands."""
        expr = parse_expr("a + bc")
        assert expr.span.start.column == 1
        assert expr.span.end.column == 7


class TestStatements:
    """Test compound statements."""

    def test_action_definition(self):
        """Action with parameters and a body."""
        program = parse_source("""
            action add(a, b)
                result = a + b
            end
        """)
        action = program.statements[0]
        assert isinstance(action, ActionDefinition)
        assert action.name == "add"
        assert action.parameters == ["a", "b"]
        assert isinstance(action.body, Block)
        assert len(action.body.statements) == 1

    def test_action_without_parameters(self):
        """Empty parameter list and empty body."""
        action = parse_source("action noop() end").statements[0]
        assert action.parameters == []
        assert action.body.statements == []

    def test_check_with_else(self):
        """check with both branches."""
        program = parse_source("""
            check (x > 0)
                sign = 1
            else
                sign = -1
            end
        """)
        stmt = program.statements[0]
        assert isinstance(stmt, Conditional)
        assert len(stmt.consequent.statements) == 1
        assert stmt.alternate is not None
        assert len(stmt.alternate.statements) == 1

    def test_check_without_else(self):
        """check with no alternate."""
        stmt = parse_source("check (ok) print(1) end").statements[0]
        assert stmt.alternate is None

    def test_each(self):
        """each loop header."""
        stmt = parse_source("each (item in [1, 2, 3]) total = total + item end").statements[0]
        assert isinstance(stmt, ForEach)
        assert stmt.variable == "item"
        assert isinstance(stmt.iterable, ArrayLiteral)

    def test_as(self):
        """as loop header."""
        stmt = parse_source("as (x > 0) x = x - 1 end").statements[0]
        assert isinstance(stmt, WhileLoop)
        assert stmt.condition.operator == TokenType.GT

    def test_nested_blocks(self):
        """Blocks nest and each 'end' closes the innermost."""
        program = parse_source("""
            action f(xs)
                each (x in xs)
                    check (x > 1)
                        print(x)
                    end
                end
                done = true
            end
        """)
        action = program.statements[0]
        assert len(action.body.statements) == 2
        loop = action.body.statements[0]
        assert isinstance(loop.body.statements[0], Conditional)


class TestParserErrors:
    """Test parser error handling."""

    def test_missing_end(self):
        """Block running into end of input."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("action f()\n  x = 1\n")
        err = exc_info.value
        assert err.code == "E102"
        assert err.expected == "'end'"
        assert err.found == "EOF"

    def test_missing_in(self):
        """each header without 'in'."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("each (x of xs) end")
        err = exc_info.value
        assert err.expected == "'in'"
        assert err.found == "IDENTIFIER"
        assert "line 1" in str(err)

    def test_bad_primary(self):
        """An operator where an expression should start."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("x = * 2")
        assert exc_info.value.expected == "expression"
        assert exc_info.value.found == "STAR"

    def test_error_reports_line(self):
        """Errors name the line of the offending token."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("x = 1\ny = 2\nz = )")
        assert exc_info.value.line == 3
        assert "line 3" in str(exc_info.value)

    def test_braces_are_rejected(self):
        """Braces scan but no rule accepts them."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("x = {}")
        assert exc_info.value.found == "LBRACE"

    def test_stray_end(self):
        """'end' at top level is an error."""
        with pytest.raises(ParserError):
            parse_source("x = 1 end")

    def test_else_outside_check(self):
        """'else' may only close a check consequent."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("as (x) else end")
        assert exc_info.value.found == "ELSE"

    def test_keyword_as_name_hint(self):
        """Using a keyword as a parameter name suggests why it failed."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("action f(end) end")
        assert "reserved keyword" in str(exc_info.value)

    def test_check_requires_parentheses(self):
        """check conditions are parenthesised."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("check x > 1 print(x) end")
        assert exc_info.value.expected == "'('"


class TestPrintAst:
    """Test the debug printer."""

    def test_print_ast_to_stream(self):
        """print_ast writes node names and fields."""
        out = io.StringIO()
        print_ast(parse_source("x = 1 + 2"), file=out)
        text = out.getvalue()
        assert "Program" in text
        assert "Assignment" in text
        assert "operator: PLUS" in text

    def test_print_ast_stdout(self, capsys):
        """print_ast defaults to stdout."""
        print_ast(parse_source("print(1)"))
        assert "Call" in capsys.readouterr().out
