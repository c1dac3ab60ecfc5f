"""
Pidgin exceptions and error handling.

Every failure raised by the lexer, parser, interpreter or module loader is a
``PidginError`` carrying a ``Diagnostic``. Errors are built by the factory
functions below so that codes and messages stay in one place.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Type errors
- E3xx: Index errors
- E4xx: Name errors
- E5xx: Module errors
- E6xx: Resource errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    kind: str                       # LexError, TypeError, ...
    message: str                    # Human-readable message
    span: Optional[SourceSpan] = None
    severity: ErrorSeverity = ErrorSeverity.ERROR
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    @property
    def line(self) -> Optional[int]:
        return self.span.start.line if self.span else None

    @property
    def column(self) -> Optional[int]:
        return self.span.start.column if self.span else None

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        header = f"{self.severity.value}[{self.code}] {self.kind}: {self.message}"
        if self.span is not None:
            header = f"{self.span.start}: {header}"
        parts.append(header)

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result = {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
        }
        if self.span is not None:
            result["range"] = {
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
        return result


class PidginError(Exception):
    """Base exception for Pidgin errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def kind(self) -> str:
        return self.diagnostic.kind

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def attach_source(self, source: str, filename: Optional[str] = None) -> "PidginError":
        """Fill in the offending source line when the error points into ``source``."""
        span = self.diagnostic.span
        if span is None or self.diagnostic.source_line is not None:
            return self
        if span.start.filename != filename:
            return self
        lines = source.splitlines()
        if 1 <= span.start.line <= len(lines):
            self.diagnostic.source_line = lines[span.start.line - 1]
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexError(PidginError):
    """Error during lexical analysis (E0xx)."""

    def __init__(self, diagnostic: Diagnostic, character: Optional[str] = None):
        super().__init__(diagnostic)
        self.character = character


class ParseError(PidginError):
    """Error during parsing (E1xx)."""

    def __init__(self, diagnostic: Diagnostic, expected: str = "", found: str = ""):
        super().__init__(diagnostic)
        self.expected = expected
        self.found = found


class TypeError(PidginError):
    """Operation applied to values of the wrong kind (E2xx)."""

    def __init__(self, diagnostic: Diagnostic, operation: str = "",
                 operands: Sequence[str] = ()):
        super().__init__(diagnostic)
        self.operation = operation
        self.operands = tuple(operands)


class IndexError(PidginError):
    """Array index outside the valid range (E3xx)."""

    def __init__(self, diagnostic: Diagnostic, index: int, length: int):
        super().__init__(diagnostic)
        self.index = index
        self.length = length


class NameError(PidginError):
    """Reference to an unbound identifier (E4xx)."""

    def __init__(self, diagnostic: Diagnostic, name: str):
        super().__init__(diagnostic)
        self.name = name


class ModuleError(PidginError):
    """Error while importing a module (E5xx)."""
    pass


class ExportVisibilityError(ModuleError):
    """Import of a module binding that is not exported."""

    def __init__(self, diagnostic: Diagnostic, name: str):
        super().__init__(diagnostic)
        self.name = name


class ModuleNotFoundError(ModuleError):
    """No candidate file exists for a module path."""

    def __init__(self, diagnostic: Diagnostic, path: str, attempted: Sequence[str]):
        super().__init__(diagnostic)
        self.path = path
        self.attempted = list(attempted)


class NameNotFoundError(ModuleError):
    """A requested name is not bound by the loaded module."""

    def __init__(self, diagnostic: Diagnostic, name: str, module: str):
        super().__init__(diagnostic)
        self.name = name
        self.module = module


class CircularImportError(ModuleError):
    """A module imports itself, directly or through other modules."""

    def __init__(self, diagnostic: Diagnostic, path: str, chain: Sequence[str]):
        super().__init__(diagnostic)
        self.path = path
        self.chain = list(chain)


class SourceReadError(ModuleError):
    """A source file exists but cannot be read as UTF-8 text."""

    def __init__(self, diagnostic: Diagnostic, path: str):
        super().__init__(diagnostic)
        self.path = path


class RecursionDepthError(PidginError):
    """Function calls nested beyond the configured limit (E6xx)."""

    def __init__(self, diagnostic: Diagnostic, depth: Optional[int] = None):
        super().__init__(diagnostic)
        self.depth = depth


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        kind="LexError",
        message=f"unexpected character '{char}'",
        span=span,
        source_line=source_line,
    )
    if char == "!":
        diag.hints.append("'!' is only valid as part of '!='")
    return LexError(diag, character=char)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        kind="LexError",
        message="unterminated string literal",
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with a double quote"],
    )
    return LexError(diag, character='"')


def error_unterminated_transform(span: SourceSpan, source_line: str = None) -> LexError:
    """E003: Unterminated transform literal."""
    diag = Diagnostic(
        code="E003",
        kind="LexError",
        message="unterminated transform literal (expected closing `)",
        span=span,
        source_line=source_line,
    )
    return LexError(diag, character="`")


def error_malformed_transform(text: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E004: Transform literal without a '->' separator."""
    diag = Diagnostic(
        code="E004",
        kind="LexError",
        message=f"malformed transform literal `{text}`",
        span=span,
        source_line=source_line,
        hints=["transform literals have the form `from->to`"],
    )
    return LexError(diag, character="`")


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParseError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        kind="ParseError",
        message=f"expected {expected}, found {found}",
        span=span,
        source_line=source_line,
    )
    return ParseError(diag, expected=expected, found=found)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParseError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        kind="ParseError",
        message=f"unexpected end of file, expected {expected}",
        span=span,
    )
    return ParseError(diag, expected=expected, found="EOF")


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParseError:
    """E103: Assignment to something other than a variable."""
    diag = Diagnostic(
        code="E103",
        kind="ParseError",
        message="invalid assignment target",
        span=span,
        source_line=source_line,
        hints=["only variables can be assigned; use a.set(k, v) or a.push(v) and reassign"],
    )
    return ParseError(diag, expected="identifier", found="expression")


def error_unknown_method(name: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E104: Method name not in the method table."""
    diag = Diagnostic(
        code="E104",
        kind="ParseError",
        message=f"unknown method '{name}'",
        span=span,
        source_line=source_line,
    )
    return ParseError(diag, expected="method name", found=name)


def error_return_outside_function(span: SourceSpan, source_line: str = None) -> ParseError:
    """E105: Return statement at the top level."""
    diag = Diagnostic(
        code="E105",
        kind="ParseError",
        message="'return' outside of a function",
        span=span,
        source_line=source_line,
    )
    return ParseError(diag, expected="statement", found="RETURN")


def error_nesting_too_deep(limit: int, span: SourceSpan, source_line: str = None) -> ParseError:
    """E106: Expressions or statements nested beyond the parser limit."""
    diag = Diagnostic(
        code="E106",
        kind="ParseError",
        message=f"nesting deeper than {limit} levels",
        span=span,
        source_line=source_line,
        hints=["split the expression using intermediate variables"],
    )
    return ParseError(diag, expected="expression", found="nested construct")


# --- Type error codes ---

def error_invalid_operands(operator: str, left: str, right: str,
                           span: Optional[SourceSpan]) -> TypeError:
    """E201: Binary operator applied to unsupported operands."""
    diag = Diagnostic(
        code="E201",
        kind="TypeError",
        message=f"unsupported operands for '{operator}': {left} and {right}",
        span=span,
    )
    return TypeError(diag, operation=operator, operands=(left, right))


def error_invalid_operand(operator: str, operand: str,
                          span: Optional[SourceSpan]) -> TypeError:
    """E202: Unary operator applied to an unsupported operand."""
    diag = Diagnostic(
        code="E202",
        kind="TypeError",
        message=f"unsupported operand for unary '{operator}': {operand}",
        span=span,
    )
    return TypeError(diag, operation=operator, operands=(operand,))


def error_division_by_zero(left: str, right: str, span: Optional[SourceSpan]) -> TypeError:
    """E203: Division by zero."""
    diag = Diagnostic(
        code="E203",
        kind="TypeError",
        message="division by zero",
        span=span,
    )
    return TypeError(diag, operation="/", operands=(left, right))


def error_method_not_supported(method: str, kind: str,
                               span: Optional[SourceSpan]) -> TypeError:
    """E204: Method invoked on a receiver kind that does not define it."""
    diag = Diagnostic(
        code="E204",
        kind="TypeError",
        message=f"method '{method}' is not defined for {kind}",
        span=span,
    )
    return TypeError(diag, operation=method, operands=(kind,))


def error_not_callable(name: str, kind: str, span: Optional[SourceSpan]) -> TypeError:
    """E205: Call of a value that is not a function."""
    diag = Diagnostic(
        code="E205",
        kind="TypeError",
        message=f"'{name}' is a {kind}, not a function",
        span=span,
    )
    return TypeError(diag, operation="call", operands=(kind,))


def error_arity_mismatch(name: str, expected: int, found: int,
                         span: Optional[SourceSpan]) -> TypeError:
    """E206: Wrong number of arguments."""
    plural = "" if expected == 1 else "s"
    diag = Diagnostic(
        code="E206",
        kind="TypeError",
        message=f"'{name}' expects {expected} argument{plural}, got {found}",
        span=span,
    )
    return TypeError(diag, operation=name)


def error_invalid_argument(operation: str, message: str, operand: str,
                           span: Optional[SourceSpan]) -> TypeError:
    """E207: Argument of the wrong kind for an operation."""
    diag = Diagnostic(
        code="E207",
        kind="TypeError",
        message=f"{operation}: {message}, got {operand}",
        span=span,
    )
    return TypeError(diag, operation=operation, operands=(operand,))


def error_invalid_date(text: str, span: Optional[SourceSpan]) -> TypeError:
    """E208: Date constructor with unparseable input."""
    diag = Diagnostic(
        code="E208",
        kind="TypeError",
        message=f"invalid date {text}",
        span=span,
        hints=['use Date(), Date("YYYY-MM-DD"), Date("YYYY-MM-DD HH:MM:SS") or Date(y, m, d)'],
    )
    return TypeError(diag, operation="Date", operands=(text,))


def error_not_indexable(operand: str, span: Optional[SourceSpan]) -> TypeError:
    """E209: Indexing applied to something other than an array."""
    diag = Diagnostic(
        code="E209",
        kind="TypeError",
        message=f"cannot index {operand}; only arrays support [index]",
        span=span,
    )
    return TypeError(diag, operation="[]", operands=(operand,))


# --- Index error codes ---

def error_index_out_of_range(index: int, length: int,
                             span: Optional[SourceSpan]) -> IndexError:
    """E301: Index outside 0..length-1."""
    diag = Diagnostic(
        code="E301",
        kind="IndexError",
        message=f"index {index} out of range for length {length}",
        span=span,
    )
    return IndexError(diag, index=index, length=length)


# --- Name error codes ---

def error_undefined_name(name: str, span: Optional[SourceSpan]) -> NameError:
    """E401: Undefined identifier."""
    diag = Diagnostic(
        code="E401",
        kind="NameError",
        message=f"undefined variable '{name}'",
        span=span,
    )
    return NameError(diag, name=name)


def error_assign_undefined(name: str, span: Optional[SourceSpan]) -> NameError:
    """E402: Assignment to an identifier that was never declared."""
    diag = Diagnostic(
        code="E402",
        kind="NameError",
        message=f"cannot assign to undeclared variable '{name}'",
        span=span,
        hints=[f"declare it first with 'let {name} = ...;'"],
    )
    return NameError(diag, name=name)


# --- Module error codes ---

def error_export_visibility(name: str, module: str,
                            span: Optional[SourceSpan]) -> ExportVisibilityError:
    """E501: Imported name does not start with an uppercase letter."""
    diag = Diagnostic(
        code="E501",
        kind="ExportVisibilityError",
        message=f"'{name}' in module '{module}' is not exported",
        span=span,
        hints=["only names starting with an uppercase letter can be imported"],
    )
    return ExportVisibilityError(diag, name=name)


def error_module_not_found(path: str, attempted: Sequence[str],
                           span: Optional[SourceSpan]) -> ModuleNotFoundError:
    """E502: Module file not found in any search location."""
    tried = ", ".join(attempted)
    diag = Diagnostic(
        code="E502",
        kind="ModuleNotFoundError",
        message=f"module '{path}' not found (tried: {tried})",
        span=span,
    )
    return ModuleNotFoundError(diag, path=path, attempted=attempted)


def error_name_not_found(name: str, module: str,
                         span: Optional[SourceSpan]) -> NameNotFoundError:
    """E503: Requested name not bound by the module."""
    diag = Diagnostic(
        code="E503",
        kind="NameNotFoundError",
        message=f"'{name}' not found in module '{module}'",
        span=span,
    )
    return NameNotFoundError(diag, name=name, module=module)


def error_circular_import(path: str, chain: Sequence[str],
                          span: Optional[SourceSpan]) -> CircularImportError:
    """E504: Module already being loaded further up the import chain."""
    cycle = " -> ".join(list(chain) + [path])
    diag = Diagnostic(
        code="E504",
        kind="CircularImportError",
        message=f"circular import of '{path}' ({cycle})",
        span=span,
    )
    return CircularImportError(diag, path=path, chain=chain)


def error_source_unreadable(path: str, reason: str,
                            span: Optional[SourceSpan]) -> SourceReadError:
    """E505: Source file could not be read or is not valid UTF-8."""
    diag = Diagnostic(
        code="E505",
        kind="SourceReadError",
        message=f"cannot read '{path}': {reason}",
        span=span,
    )
    return SourceReadError(diag, path=path)


# --- Resource error codes ---

def error_recursion_depth(depth: int, span: Optional[SourceSpan]) -> RecursionDepthError:
    """E601: Call depth limit exceeded."""
    diag = Diagnostic(
        code="E601",
        kind="RecursionDepthError",
        message=f"maximum call depth of {depth} exceeded",
        span=span,
        hints=["raise max_call_depth in pidgin.yaml for deeper recursion"],
    )
    return RecursionDepthError(diag, depth=depth)


def error_stack_exhausted(span: Optional[SourceSpan] = None) -> RecursionDepthError:
    """E602: Program nested too deeply for the host interpreter stack."""
    diag = Diagnostic(
        code="E602",
        kind="RecursionDepthError",
        message="program nested too deeply to evaluate",
        span=span,
    )
    return RecursionDepthError(diag)
