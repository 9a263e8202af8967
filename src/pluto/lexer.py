"""
Lexer for the Pluto language.

Turns Pluto source text into tokens for the parser.
Supports:
- Keywords (check, else, each, as, action, end, in, true, false)
- Decimal number literals with at most one decimal point
- Single- and double-quoted strings with escape sequences
- Two-character operators (== != <= >= && ||) via one character of lookahead
- Line comments (//)
- NEWLINE tokens, which the parser discards
"""

from typing import List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan,
    KEYWORDS, TWO_CHAR_OPERATORS, SINGLE_CHAR_TOKENS,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
)


ESCAPE_CHARS = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
}


class Lexer:
    """
    Tokenizer for Pluto source text.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Source split into lines, computed on first use."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Return source line `line_num` (1-based), or None past the end."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Character `offset` places ahead, or NUL past the end."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume one character, keeping line and column current."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume the next character only if it equals `expected`."""
        if not self._is_at_end() and self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """True once every character has been consumed."""
        return self.pos >= len(self.source)

    def _skip_whitespace(self) -> None:
        """Skip spaces, tabs and carriage returns. Newlines are tokens."""
        while not self._is_at_end() and self._peek() in ' \t\r':
            self._advance()

    def _skip_comment(self) -> None:
        """Skip a // comment up to (not including) the newline."""
        while not self._is_at_end() and self._peek() != '\n':
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a quoted string literal. Strings may span lines."""
        start = self._location()
        quote = self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != quote:
            ch = self._advance()
            if ch == '\\':
                if self._is_at_end():
                    break
                escaped = self._advance()
                # Unknown escapes keep the escaped character
                chars.append(ESCAPE_CHARS.get(escaped, escaped))
            else:
                chars.append(ch)

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING, ''.join(chars), start)

    def _scan_number(self) -> Token:
        """Scan a decimal literal: digits with at most one decimal point."""
        start = self._location()
        seen_dot = False

        while not self._is_at_end():
            ch = self._peek()
            if ch.isdigit() and ch.isascii():
                self._advance()
            elif ch == '.' and not seen_dot:
                seen_dot = True
                self._advance()
            else:
                break

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER, float(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan a name; reserved words become keyword tokens."""
        start = self._location()

        while not self._is_at_end() and _is_identifier_char(self._peek()):
            self._advance()

        lexeme = self.source[start.offset:self.pos]

        if lexeme in KEYWORDS:
            token_type = KEYWORDS[lexeme]
            if token_type == TokenType.BOOLEAN:
                value = lexeme == "true"
            else:
                value = lexeme
            return self._make_token(token_type, value, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Optional[Token]:
        """Scan the next token. Returns None for skipped input (comments)."""
        start = self._location()
        ch = self._peek()

        if ch == '/' and self._peek(1) == '/':
            self._skip_comment()
            return None

        if ch == '\n':
            self._advance()
            return self._make_token(TokenType.NEWLINE, '\n', start)

        if ch in '"\'':
            return self._scan_string()

        if ch.isascii() and ch.isdigit():
            return self._scan_number()

        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators first, then fall back to single characters
        if ch in TWO_CHAR_OPERATORS:
            second, token_type = TWO_CHAR_OPERATORS[ch]
            if self._match(second):
                return self._make_token(token_type, ch + second, start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, ending with EOF."""
        while True:
            self._skip_whitespace()
            if self._is_at_end():
                break
            token = self._scan_token()
            if token is not None:
                yield token
        yield self._make_token(TokenType.EOF, None, self._location(), "")

    def tokenize(self) -> List[Token]:
        """Scan the whole source into a list ending with EOF."""
        return list(self)


def _is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == '_')


def _is_identifier_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == '_')


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Scan source text into a token list.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, always terminated by an EOF token

    Raises:
        LexerError: On an unexpected character or unterminated string
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
