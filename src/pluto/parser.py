"""
Recursive descent parser for the Pluto language.

Converts a token stream into an Abstract Syntax Tree (AST). Newlines carry
no meaning in Pluto: they are dropped before parsing and blocks are closed
only by the 'end' and 'else' keywords.
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, is_keyword
from .ast import (
    # Expressions
    Expression, Literal, Identifier, BinaryOp, UnaryOp,
    Call, MemberAccess, ArrayLiteral,
    # Statements
    Statement, Assignment, ExpressionStatement, ActionDefinition,
    Conditional, ForEach, WhileLoop, Block, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
)


class Parser:
    """
    Recursive descent parser for Pluto.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    The parser implements standard precedence climbing for expressions:
        Lowest:  ||
                 &&
                 == !=
                 < > <= >=
                 + -
                 * / %
        Highest: unary (! -)
    """

    # Binary operator binding strength, loosest first
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    # Tokens that close a block
    BLOCK_TERMINATORS = (TokenType.END, TokenType.ELSE, TokenType.EOF)

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = [t for t in tokens if t.type != TokenType.NEWLINE]
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            raise ValueError("token stream must end with an EOF token")
        self.filename = filename
        self.source = source  # Original source code for error excerpts
        self.pos = 0
        self._lines = source.splitlines() if source is not None else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Token `offset` places ahead, clamped to EOF."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        """True when only EOF remains."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """True if the current token has `token_type`."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """True if the current token has one of `token_types`."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Return the current token and move past it (EOF is never passed)."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume a token of `token_type` or fail naming `expected`."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume and return the current token if its type is listed."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        hints = []
        if expected == "identifier" and is_keyword(token.lexeme):
            hints.append(f"'{token.lexeme}' is a reserved keyword and cannot be used as a name")
        raise error_unexpected_token(
            expected, token.type.name, token.span,
            self._source_line(token.line), hints
        )

    def _span_from(self, start: Token) -> SourceSpan:
        """Span from `start` to the end of the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_binary_expr(1)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Precedence climbing over PRECEDENCE; every level is left-associative."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator

            # All binary operators are left-associative
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (!, -)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Calls, `.name` and `[expr]` suffixes, chained left to right."""
        expr = self._parse_primary_expr()

        while True:
            if self._check(TokenType.LPAREN):
                expr = self._parse_call(expr)
            elif self._match(TokenType.DOT):
                member = self._consume(TokenType.IDENTIFIER, "identifier").value
                expr = MemberAccess(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    object=expr,
                    property=member,
                    computed=False
                )
            elif self._match(TokenType.LBRACKET):
                index = self._parse_expression()
                self._consume(TokenType.RBRACKET, "']'")
                expr = MemberAccess(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    object=expr,
                    property=index,
                    computed=True
                )
            else:
                break

        return expr

    def _parse_call(self, callee: Expression) -> Call:
        """Parse call arguments."""
        self._consume(TokenType.LPAREN, "'('")
        args = self._parse_expression_list(TokenType.RPAREN, "')'")
        return Call(
            span=SourceSpan(callee.span.start, self.tokens[self.pos - 1].span.end),
            callee=callee,
            arguments=args
        )

    def _parse_expression_list(self, closer: TokenType, closer_text: str) -> List[Expression]:
        """Parse comma-separated expressions up to and including the closer."""
        items = []

        if not self._check(closer):
            items.append(self._parse_expression())

            while self._match(TokenType.COMMA):
                if self._check(closer):
                    break  # Allow trailing comma
                items.append(self._parse_expression())

        self._consume(closer, closer_text)
        return items

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, identifiers, arrays, grouping)."""
        token = self._current()

        if token.type in (TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN):
            self._advance()
            return Literal(
                span=token.span,
                value=token.value,
                literal_type=token.type
            )

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LBRACKET:
            self._advance()
            elements = self._parse_expression_list(TokenType.RBRACKET, "']'")
            return ArrayLiteral(span=self._span_from(token), elements=elements)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        self._error("expression")

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        token = self._current()

        if token.type == TokenType.ACTION:
            return self._parse_action_definition()

        if token.type == TokenType.CHECK:
            return self._parse_conditional()

        if token.type == TokenType.EACH:
            return self._parse_for_each()

        if token.type == TokenType.AS:
            return self._parse_while_loop()

        # Assignment is an identifier directly followed by '='
        if token.type == TokenType.IDENTIFIER and self._peek(1).type == TokenType.ASSIGN:
            name = self._advance().value
            self._advance()  # consume '='
            value = self._parse_expression()
            return Assignment(
                span=SourceSpan(token.span.start, value.span.end),
                name=name,
                value=value
            )

        expr = self._parse_expression()
        return ExpressionStatement(span=expr.span, expression=expr)

    def _parse_block(self) -> Block:
        """Parse statements until 'end', 'else' or end of input."""
        start = self._current()
        statements = []

        while not self._check_any(*self.BLOCK_TERMINATORS):
            statements.append(self._parse_statement())

        if statements:
            span = SourceSpan(statements[0].span.start, statements[-1].span.end)
        else:
            span = start.span
        return Block(span=span, statements=statements)

    def _parse_action_definition(self) -> ActionDefinition:
        """Parse 'action name(params) ... end'."""
        start = self._advance()  # consume 'action'
        name = self._consume(TokenType.IDENTIFIER, "identifier").value

        self._consume(TokenType.LPAREN, "'('")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._consume(TokenType.IDENTIFIER, "identifier").value)
            while self._match(TokenType.COMMA):
                if self._check(TokenType.RPAREN):
                    break
                parameters.append(self._consume(TokenType.IDENTIFIER, "identifier").value)
        self._consume(TokenType.RPAREN, "')'")

        body = self._parse_block()
        self._consume(TokenType.END, "'end'")

        return ActionDefinition(
            span=self._span_from(start),
            name=name,
            parameters=parameters,
            body=body
        )

    def _parse_conditional(self) -> Conditional:
        """Parse 'check (condition) ... [else ...] end'."""
        start = self._advance()  # consume 'check'
        self._consume(TokenType.LPAREN, "'('")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')'")

        consequent = self._parse_block()

        alternate = None
        if self._match(TokenType.ELSE):
            alternate = self._parse_block()

        self._consume(TokenType.END, "'end'")

        return Conditional(
            span=self._span_from(start),
            condition=condition,
            consequent=consequent,
            alternate=alternate
        )

    def _parse_for_each(self) -> ForEach:
        """Parse 'each (name in iterable) ... end'."""
        start = self._advance()  # consume 'each'
        self._consume(TokenType.LPAREN, "'('")
        variable = self._consume(TokenType.IDENTIFIER, "identifier").value
        self._consume(TokenType.IN, "'in'")
        iterable = self._parse_expression()
        self._consume(TokenType.RPAREN, "')'")

        body = self._parse_block()
        self._consume(TokenType.END, "'end'")

        return ForEach(
            span=self._span_from(start),
            variable=variable,
            iterable=iterable,
            body=body
        )

    def _parse_while_loop(self) -> WhileLoop:
        """Parse 'as (condition) ... end'."""
        start = self._advance()  # consume 'as'
        self._consume(TokenType.LPAREN, "'('")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')'")

        body = self._parse_block()
        self._consume(TokenType.END, "'end'")

        return WhileLoop(
            span=self._span_from(start),
            condition=condition,
            body=body
        )

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self._current()
        statements = []

        while not self._is_at_end():
            statements.append(self._parse_statement())

        return Program(span=self._span_from(start), statements=statements)


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer (NEWLINE tokens are ignored)
        filename: Optional filename for error messages
        source: Optional original source code for error excerpts

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()
