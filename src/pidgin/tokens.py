"""
Token types for the Pidgin lexer.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Type errors
- E3xx: Index errors
- E4xx: Name errors
- E5xx: Module errors
- E6xx: Resource errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the Pidgin lexer."""

    # --- Literals ---
    NUMBER_LITERAL = auto()     # 42, 3.5
    STRING_LITERAL = auto()     # "hello"
    BOOL_LITERAL = auto()       # true, false
    NIL_LITERAL = auto()        # nil
    TRANSFORM_LITERAL = auto()  # `from->to`

    # --- Identifiers ---
    IDENTIFIER = auto()

    # --- Keywords ---
    LET = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    PRINT = auto()
    FUNCTION = auto()
    RETURN = auto()
    GET = auto()                # module import
    FROM = auto()

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COLON = auto()              # :
    SEMICOLON = auto()          # ;
    COMMA = auto()              # ,
    DOT = auto()                # .
    ARROW_LEFT = auto()         # <- (alternate import separator)

    # --- Special ---
    EOF = auto()


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
class TransformPart:
    """One side of a transform literal.

    ``{name}`` is a reference to a variable; anything else is plain text.
    """
    text: str
    is_reference: bool = False

    def __str__(self) -> str:
        if self.is_reference:
            return "{" + self.text + "}"
        return self.text


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float, str, bool, (TransformPart, TransformPart) or None
    lexeme: str             # The original source text
    span: SourceSpan

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER_LITERAL, TokenType.STRING_LITERAL,
                         TokenType.BOOL_LITERAL, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        if self.type == TokenType.TRANSFORM_LITERAL:
            source, target = self.value
            return f"{self.type.name}({source}->{target})"
        return self.type.name


# Keyword mapping, matched against the lowercased lexeme
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "print": TokenType.PRINT,
    "function": TokenType.FUNCTION,
    "return": TokenType.RETURN,
    "get": TokenType.GET,
    "from": TokenType.FROM,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
    "nil": TokenType.NIL_LITERAL,
}


def is_keyword_token(token_type: TokenType) -> bool:
    """Check if a token type was produced from a keyword."""
    return token_type in KEYWORDS.values()


def format_tokens(tokens: list[Token]) -> str:
    """Render a token list one per line, prefixed by its position."""
    lines = []
    for token in tokens:
        start = token.span.start
        lines.append(f"{start.line}:{start.column}\t{token}")
    return "\n".join(lines)
