"""
Lexer for Pidgin.

Converts source text into a stream of tokens for the parser.
Supports:
- Decimal number literals (stored as floats)
- Double-quoted string literals with escape sequences
- Case-insensitive keywords
- Line comments (// to end of line)
- Backtick transform literals (`from->to`) for String.replaceChar
"""

from typing import Iterator, List, Optional
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, TransformPart, KEYWORDS,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_transform,
    error_malformed_transform,
)


ESCAPE_CHARS = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
}

SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '=': TokenType.ASSIGN,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    ':': TokenType.COLON,
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
}


class Lexer:
    """
    Tokenizer for Pidgin source.

    Newlines are ordinary whitespace; statements are terminated by ';'.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
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
        """Consume character if it matches expected."""
        if not self._is_at_end() and self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a double-quoted string literal."""
        start = self._location()
        self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != '"':
            ch = self._advance()
            if ch == '\\' and not self._is_at_end():
                escaped = self._advance()
                # Unknown escapes keep the backslash
                chars.append(ESCAPE_CHARS.get(escaped, '\\' + escaped))
            else:
                chars.append(ch)

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start), self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_transform(self) -> Token:
        """Scan a backtick transform literal: `from->to`."""
        start = self._location()
        self._advance()  # consume opening backtick

        body_start = self.pos
        while not self._is_at_end() and self._peek() != '`':
            self._advance()

        if self._is_at_end():
            raise error_unterminated_transform(
                self._span(start), self.get_source_line(start.line)
            )

        body = self.source[body_start:self.pos]
        self._advance()  # consume closing backtick

        if '->' not in body:
            raise error_malformed_transform(
                body, self._span(start), self.get_source_line(start.line)
            )
        source_text, target_text = body.split('->', 1)
        value = (_transform_part(source_text), _transform_part(target_text))
        return self._make_token(TokenType.TRANSFORM_LITERAL, value, start)

    def _scan_number(self) -> Token:
        """Scan a decimal number literal."""
        start = self._location()

        while _is_digit(self._peek()):
            self._advance()

        # A '.' belongs to the number only when a digit follows
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER_LITERAL, float(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while _is_identifier_char(self._peek()):
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        keyword = KEYWORDS.get(lexeme.lower())

        if keyword == TokenType.BOOL_LITERAL:
            return self._make_token(keyword, lexeme.lower() == 'true', start, lexeme)
        if keyword == TokenType.NIL_LITERAL:
            return self._make_token(keyword, None, start, lexeme)
        if keyword is not None:
            return self._make_token(keyword, lexeme.lower(), start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        start = self._location()
        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, start, "")

        ch = self._peek()

        if ch == '"':
            return self._scan_string()
        if ch == '`':
            return self._scan_transform()
        if _is_digit(ch):
            return self._scan_number()
        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)
        if ch == '<' and self._match('='):
            return self._make_token(TokenType.LE, "<=", start)
        if ch == '<' and self._match('-'):
            return self._make_token(TokenType.ARROW_LEFT, "<-", start)
        if ch == '>' and self._match('='):
            return self._make_token(TokenType.GE, ">=", start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


# Identifiers are ASCII only: [A-Za-z_][A-Za-z0-9_]*
def _is_identifier_start(ch: str) -> bool:
    return 'a' <= ch <= 'z' or 'A' <= ch <= 'Z' or ch == '_'


def _is_identifier_char(ch: str) -> bool:
    return _is_identifier_start(ch) or _is_digit(ch)


def _transform_part(text: str) -> TransformPart:
    text = text.strip()
    if len(text) > 2 and text.startswith('{') and text.endswith('}'):
        return TransformPart(text[1:-1].strip(), is_reference=True)
    return TransformPart(text)


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens ending with EOF

    Raises:
        LexError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
