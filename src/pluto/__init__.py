"""
Pluto: a small scripting language with actions and implicit returns.

This package provides:
- Lexer: Tokenizes Pluto source code
- Parser: Builds an AST from tokens
- Interpreter: Walks the AST against a persistent global scope
- PlutoInterpreter: One-call embedding API with a single error type

Usage:
    from pluto import PlutoInterpreter, unwrap_value

    interp = PlutoInterpreter()
    result = interp.execute('''
    action stats(a, b)
        sum = a + b
        diff = a - b
    end
    stats(10, 5)
    ''')
    print(unwrap_value(result))   # {'sum': 15.0, 'diff': 5.0}
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    is_keyword,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Identifier,
    BinaryOp,
    UnaryOp,
    Call,
    MemberAccess,
    ArrayLiteral,
    # Statements
    Statement,
    Assignment,
    ExpressionStatement,
    ActionDefinition,
    Conditional,
    ForEach,
    WhileLoop,
    Block,
    Program,
    # Helpers
    print_ast,
)

from .errors import (
    ERROR_MARKER,
    Diagnostic,
    PlutoError,
    LexerError,
    ParserError,
    EvaluationError,
    UndefinedVariableError,
    NotCallableError,
    TypeMismatchError,
    ArityError,
    IterationLimitError,
    ExecutionError,
)

from .runtime import (
    Interpreter,
    Action,
    DEFAULT_MAX_ITERATIONS,
    Value,
    ValueKind,
    ABSENT,
    Scope,
    format_value,
    wrap_value,
    unwrap_value,
)

from .engine import (
    PlutoInterpreter,
    run_source,
)

__version__ = "0.1.0"

# Library logging stays silent unless the application configures it
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    'is_keyword',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',

    # AST nodes
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Identifier',
    'BinaryOp',
    'UnaryOp',
    'Call',
    'MemberAccess',
    'ArrayLiteral',
    'Statement',
    'Assignment',
    'ExpressionStatement',
    'ActionDefinition',
    'Conditional',
    'ForEach',
    'WhileLoop',
    'Block',
    'Program',
    'print_ast',

    # Errors
    'ERROR_MARKER',
    'Diagnostic',
    'PlutoError',
    'LexerError',
    'ParserError',
    'EvaluationError',
    'UndefinedVariableError',
    'NotCallableError',
    'TypeMismatchError',
    'ArityError',
    'IterationLimitError',
    'ExecutionError',

    # Runtime
    'Interpreter',
    'Action',
    'DEFAULT_MAX_ITERATIONS',
    'Value',
    'ValueKind',
    'ABSENT',
    'Scope',
    'format_value',
    'wrap_value',
    'unwrap_value',

    # Embedding
    'PlutoInterpreter',
    'run_source',

    '__version__',
]
