"""
Abstract Syntax Tree (AST) node definitions for the Pluto language.

The AST is produced by the parser and walked directly by the interpreter.
Every node carries the span of the source it was parsed from so runtime
errors can point back at the offending line.
"""

from dataclasses import dataclass
from typing import Optional, List, Union, Any, TextIO
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (number, string, boolean)."""
    value: Union[float, str, bool]
    literal_type: TokenType  # NUMBER, STRING, BOOLEAN


@dataclass
class Identifier(Expression):
    """A variable or action name reference."""
    name: str


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x && y)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (e.g., !x, -n)."""
    operator: TokenType  # MINUS or NOT
    operand: Expression


@dataclass
class Call(Expression):
    """A call (e.g., print(x), make()(1))."""
    callee: Expression
    arguments: List[Expression]


@dataclass
class MemberAccess(Expression):
    """Member or index access.

    ``obj.name`` is stored with ``computed=False`` and ``property`` holding
    the name as a string; ``obj[expr]`` is stored with ``computed=True`` and
    ``property`` holding the index expression.
    """
    object: Expression
    property: Union[Expression, str]
    computed: bool


@dataclass
class ArrayLiteral(Expression):
    """An array literal (e.g., [1, 2, 3])."""
    elements: List[Expression]


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class Assignment(Statement):
    """An assignment (e.g., total = total + 1)."""
    name: str
    value: Expression


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass
class Block(AstNode):
    """A sequence of statements closed by 'end' or 'else'."""
    statements: List[Statement]


@dataclass
class ActionDefinition(Statement):
    """A named action definition.

    Syntax:
        action name(param1, param2)
            ...
        end
    """
    name: str
    parameters: List[str]
    body: Block


@dataclass
class Conditional(Statement):
    """A check statement.

    Syntax:
        check (condition)
            ...
        else
            ...
        end
    """
    condition: Expression
    consequent: Block
    alternate: Optional[Block] = None


@dataclass
class ForEach(Statement):
    """An each loop (e.g., each (item in items) ... end)."""
    variable: str
    iterable: Expression
    body: Block


@dataclass
class WhileLoop(Statement):
    """An as loop (e.g., as (i < 10) ... end)."""
    condition: Expression
    body: Block


@dataclass
class Program(AstNode):
    """Root node: the top-level statements of one source text."""
    statements: List[Statement]


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, file: Optional[TextIO] = None):
        self.indent = indent
        self.file = file

    def _print(self, text: str) -> None:
        print("  " * self.indent + text, file=self.file)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.file)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                self._child().generic_visit(value)
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child().generic_visit(item)
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, TokenType):
                self._print(f"  {name}: {value.name}")
            else:
                self._print(f"  {name}: {value!r}")


def print_ast(node: AstNode, file: Optional[TextIO] = None) -> None:
    """Print an AST node for debugging."""
    PrintVisitor(file=file).generic_visit(node)
