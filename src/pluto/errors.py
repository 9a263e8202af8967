"""
Pluto exceptions and error handling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors

Every error aborts the current run; there is no multi-error collection.
"""

from dataclasses import dataclass, field
from typing import Optional, List
from .tokens import SourceSpan


ERROR_MARKER = "Pluto Error"


@dataclass
class Diagnostic:
    """A single error message with its source location."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        if self.span is not None:
            parts.append(f"{self.span.start}: error[{self.code}]: {self.message}")
        else:
            parts.append(f"error[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "code": self.code,
            "message": self.message,
            "hints": self.hints,
        }
        if self.span is not None:
            data["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return data


class PlutoError(Exception):
    """Base exception for Pluto errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def line(self) -> Optional[int]:
        if self.diagnostic.span is None:
            return None
        return self.diagnostic.span.start.line

    @property
    def column(self) -> Optional[int]:
        if self.diagnostic.span is None:
            return None
        return self.diagnostic.span.start.column

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(PlutoError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(PlutoError):
    """Error during parsing (E1xx)."""

    def __init__(self, diagnostic: Diagnostic, expected: str, found: str):
        super().__init__(diagnostic)
        self.expected = expected
        self.found = found


class EvaluationError(PlutoError):
    """Error during evaluation (E4xx)."""
    pass


class UndefinedVariableError(EvaluationError):
    """A name was read or updated but is bound nowhere in the scope chain."""

    def __init__(self, diagnostic: Diagnostic, name: str):
        super().__init__(diagnostic)
        self.name = name


class NotCallableError(EvaluationError):
    """The callee of a call expression is not a callable."""
    pass


class TypeMismatchError(EvaluationError):
    """An operand or argument has the wrong kind of value."""
    pass


class ArityError(EvaluationError):
    """A builtin was called with too few arguments."""
    pass


class IterationLimitError(EvaluationError):
    """An 'as' loop ran past the iteration ceiling."""
    pass


class ExecutionError(PlutoError):
    """
    The single error reported by an embedding run.

    Wraps the first lexer, parser or runtime error encountered and renders it
    behind the fixed marker prefix.
    """

    def __init__(self, cause: PlutoError):
        self.cause = cause
        super().__init__(cause.diagnostic)

    @property
    def message(self) -> str:
        return f"{ERROR_MARKER}: {self.diagnostic.message}"

    def __str__(self) -> str:
        return f"{ERROR_MARKER}: {self.diagnostic.format()}"


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with matching quotes"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None, hints: List[str] = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found} at line {span.start.line}",
        span=span,
        source_line=source_line,
        hints=hints or [],
    )
    return ParserError(diag, expected, found)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of input."""
    diag = Diagnostic(
        code="E102",
        message=f"expected {expected}, found EOF at line {span.start.line}",
        span=span,
        hints=["blocks opened by 'action', 'check', 'each' and 'as' are closed with 'end'"],
    )
    return ParserError(diag, expected, "EOF")


# --- Runtime error codes ---

def error_undefined_variable(name: str, span: SourceSpan = None,
                             source_line: str = None) -> UndefinedVariableError:
    """E401: Undefined variable."""
    diag = Diagnostic(
        code="E401",
        message=f"undefined variable '{name}'",
        span=span,
        source_line=source_line,
    )
    return UndefinedVariableError(diag, name)


def error_not_callable(description: str, kind: str, span: SourceSpan,
                       source_line: str = None) -> NotCallableError:
    """E402: Call on a non-callable value."""
    diag = Diagnostic(
        code="E402",
        message=f"{description} is not callable (got {kind})",
        span=span,
        source_line=source_line,
    )
    return NotCallableError(diag)


def error_type_mismatch(message: str, span: SourceSpan,
                        source_line: str = None) -> TypeMismatchError:
    """E403: Wrong kind of value."""
    diag = Diagnostic(
        code="E403",
        message=message,
        span=span,
        source_line=source_line,
    )
    return TypeMismatchError(diag)


def error_arity(message: str, span: SourceSpan, source_line: str = None) -> ArityError:
    """E404: Too few arguments."""
    diag = Diagnostic(
        code="E404",
        message=message,
        span=span,
        source_line=source_line,
    )
    return ArityError(diag)


def error_iteration_limit(limit: int, span: SourceSpan,
                          source_line: str = None) -> IterationLimitError:
    """E405: Loop iteration ceiling exceeded."""
    diag = Diagnostic(
        code="E405",
        message=f"maximum iteration limit ({limit}) exceeded in 'as' loop",
        span=span,
        source_line=source_line,
        hints=["check that the loop condition eventually becomes false"],
    )
    return IterationLimitError(diag)


def error_recursion_depth(span: SourceSpan = None) -> EvaluationError:
    """E406: Host recursion limit reached."""
    diag = Diagnostic(
        code="E406",
        message="maximum recursion depth exceeded",
        span=span,
        hints=["actions are not tail-call optimised; deep recursion exhausts the host stack"],
    )
    return EvaluationError(diag)
