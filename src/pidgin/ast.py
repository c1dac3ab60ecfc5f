"""
Abstract Syntax Tree (AST) node definitions for Pidgin.

Nodes are built once by the parser and never modified afterwards. Every node
carries the span of source it was parsed from; binary operators additionally
record the span of the operator token itself.
"""

from dataclasses import dataclass, field, fields
from typing import Any, List, Optional, Tuple, Union
from abc import ABC
from .tokens import SourceSpan, TokenType, TransformPart


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
    """A literal value (number, string, boolean, nil)."""
    value: Union[float, str, bool, None]
    literal_type: TokenType  # NUMBER_LITERAL, STRING_LITERAL, BOOL_LITERAL, NIL_LITERAL


@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b)."""
    left: Expression
    operator: TokenType
    right: Expression
    operator_span: SourceSpan  # position of the operator token


@dataclass
class UnaryOp(Expression):
    """A unary operation (-n)."""
    operator: TokenType
    operand: Expression


@dataclass
class Assignment(Expression):
    """Assignment to an existing variable (x = value)."""
    name: str
    value: Expression


@dataclass
class Call(Expression):
    """A call of a named function (e.g., add(1, 2))."""
    name: str
    arguments: List[Expression]


@dataclass
class MethodCall(Expression):
    """A built-in method call (e.g., arr.push(4)).

    The number of arguments is fixed by the method name; ``replaceChar``
    takes a single Transform.
    """
    receiver: Expression
    method: str
    arguments: List[Expression]


@dataclass
class IndexAccess(Expression):
    """Index access (e.g., arr[0])."""
    receiver: Expression
    index: Expression


@dataclass
class FixedArrayLiteral(Expression):
    """A fixed-length array literal: [1, 2, 3]."""
    elements: List[Expression]


@dataclass
class DynamicArrayLiteral(Expression):
    """A growable array literal: {1, 2, 3}."""
    elements: List[Expression]


@dataclass
class ObjectLiteral(Expression):
    """An object literal: {name: "Ann", age: 3} or Object()."""
    entries: List[Tuple[Expression, Expression]] = field(default_factory=list)


@dataclass
class DateLiteral(Expression):
    """A date constructor: Date(), Date("2024-01-31") or Date(2024, 1, 31)."""
    arguments: List[Expression]


@dataclass
class Transform(Expression):
    """A `from->to` transform literal used by String.replaceChar."""
    source: TransformPart
    target: TransformPart


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass
class PrintStatement(Statement):
    """print value; or print "{} and {}", a, b;"""
    value: Expression
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class VarDeclaration(Statement):
    """let name = value;"""
    name: str
    initializer: Optional[Expression] = None


@dataclass
class Block(Statement):
    """A brace-delimited statement list."""
    statements: List[Statement]


@dataclass
class IfStatement(Statement):
    """if (cond) stmt else stmt"""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    """while (cond) stmt"""
    condition: Expression
    body: Statement


@dataclass
class FunctionDeclaration(Statement):
    """function name(a, b) { ... }"""
    name: str
    parameters: List[str]
    body: Block


@dataclass
class ReturnStatement(Statement):
    """return value;"""
    value: Optional[Expression] = None


@dataclass
class ImportStatement(Statement):
    """get Name from path; or get {A, B} from path;"""
    names: List[str]
    module_path: str


@dataclass
class Program(AstNode):
    """A parsed source file."""
    statements: List[Statement]


# =============================================================================
# Visitor Helpers
# =============================================================================

def _scalar_text(value: Any) -> str:
    if isinstance(value, TokenType):
        return value.name
    if isinstance(value, TransformPart):
        return repr(str(value))
    return repr(value)


class AstFormatter(AstVisitor):
    """Visitor that renders the AST structure as indented text."""

    def __init__(self, indent: int = 0):
        self.indent = indent
        self.lines: List[str] = []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _nested(self, node: AstNode, extra: int) -> None:
        child = AstFormatter(self.indent + extra)
        node.accept(child)
        self.lines.extend(child.lines)

    def generic_visit(self, node: AstNode) -> List[str]:
        self._emit(node.__class__.__name__)
        for f in fields(node):
            if f.name in ("span", "operator_span"):
                continue
            value = getattr(node, f.name)
            if isinstance(value, AstNode):
                self._emit(f"  {f.name}:")
                self._nested(value, 2)
            elif isinstance(value, list):
                self._emit(f"  {f.name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._nested(item, 2)
                    elif isinstance(item, tuple):
                        # object literal entry
                        for part in item:
                            self._nested(part, 2)
                    else:
                        self._emit(f"    {_scalar_text(item)}")
                self._emit("  ]")
            elif value is None:
                self._emit(f"  {f.name}: None")
            else:
                self._emit(f"  {f.name}: {_scalar_text(value)}")
        return self.lines


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    return "\n".join(node.accept(AstFormatter()))


def ast_to_dict(node: Any) -> Any:
    """Convert an AST into plain dicts and lists, suitable for JSON output."""
    if isinstance(node, AstNode):
        result = {"node": node.__class__.__name__,
                  "line": node.span.start.line,
                  "column": node.span.start.column}
        for f in fields(node):
            if f.name in ("span", "operator_span"):
                continue
            result[f.name] = ast_to_dict(getattr(node, f.name))
        return result
    if isinstance(node, (list, tuple)):
        return [ast_to_dict(item) for item in node]
    if isinstance(node, TokenType):
        return node.name
    if isinstance(node, TransformPart):
        return str(node)
    return node
