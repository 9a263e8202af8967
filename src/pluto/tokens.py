"""
Token types for the Pluto lexer.

Error code ranges used throughout the package:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the Pluto lexer."""

    # --- Literals ---
    NUMBER = auto()             # 42, 3.14
    STRING = auto()             # "hello", 'world'
    BOOLEAN = auto()            # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    CHECK = auto()              # check (conditional)
    ELSE = auto()               # else
    EACH = auto()               # each (for-each loop)
    AS = auto()                 # as (while loop)
    ACTION = auto()             # action (callable definition)
    END = auto()                # end
    IN = auto()                 # in

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # !

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # { (scanned, never accepted by the grammar)
    RBRACE = auto()             # }
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COMMA = auto()              # ,
    DOT = auto()                # .

    # --- Special ---
    NEWLINE = auto()            # kept in the raw stream, dropped by the parser
    EOF = auto()                # end of input


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float, bool or str depending on the type
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.STRING,
                         TokenType.BOOLEAN, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - exact text match, so 'True' or 'End' are identifiers
KEYWORDS: dict[str, TokenType] = {
    "check": TokenType.CHECK,
    "else": TokenType.ELSE,
    "each": TokenType.EACH,
    "as": TokenType.AS,
    "action": TokenType.ACTION,
    "end": TokenType.END,
    "in": TokenType.IN,
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
}


# Operators that need one character of lookahead, keyed by first character
TWO_CHAR_OPERATORS: dict[str, tuple[str, TokenType]] = {
    "=": ("=", TokenType.EQ),
    "!": ("=", TokenType.NE),
    "<": ("=", TokenType.LE),
    ">": ("=", TokenType.GE),
    "&": ("&", TokenType.AND),
    "|": ("|", TokenType.OR),
}


SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}


def is_keyword(text: str) -> bool:
    """Check if a word is a reserved keyword."""
    return text in KEYWORDS
