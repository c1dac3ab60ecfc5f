"""
Tree-walking interpreter for Pidgin.

Executes statements against an explicit ``Environment`` and evaluates
expressions to ``Value`` objects. Runtime failures raise ``PidginError``
subclasses carrying the span of the node that caused them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import IO, List, Optional
import logging
import operator
import sys

from .values import (
    Value, ValueKind, Function, NIL,
    number_val, string_val, bool_val, fixed_array_val, dynamic_array_val,
    object_val, function_val, format_value, describe_value, values_equal,
)
from .environment import Environment
from .builtins import call_builtin, call_method, get_builtin_registry, make_date, check_index
from .modules import ModuleLoader

from ..ast import (
    Program, Statement, ExpressionStatement, PrintStatement, VarDeclaration,
    Block, IfStatement, WhileStatement, FunctionDeclaration, ReturnStatement,
    ImportStatement,
    Expression, Literal, Identifier, BinaryOp, UnaryOp, Assignment, Call,
    MethodCall, IndexAccess, FixedArrayLiteral, DynamicArrayLiteral,
    ObjectLiteral, DateLiteral, Transform,
)
from ..config import PidginConfig
from ..errors import (
    error_invalid_operands,
    error_invalid_operand,
    error_division_by_zero,
    error_not_callable,
    error_not_indexable,
    error_arity_mismatch,
    error_invalid_argument,
    error_undefined_name,
    error_assign_undefined,
    error_recursion_depth,
)
from ..tokens import TokenType, TransformPart, SourceSpan

logger = logging.getLogger(__name__)

# Upper bound on Python frames used by one Pidgin call
FRAMES_PER_CALL = 40

OPERATOR_SYMBOLS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
}

ARITHMETIC = {
    TokenType.MINUS: operator.sub,
    TokenType.STAR: operator.mul,
    TokenType.SLASH: operator.truediv,
}

ORDERING = {
    TokenType.LT: operator.lt,
    TokenType.GT: operator.gt,
    TokenType.LE: operator.le,
    TokenType.GE: operator.ge,
}

ORDERED_KINDS = (ValueKind.NUMBER, ValueKind.STRING, ValueKind.BOOLEAN, ValueKind.DATE)

TEXT_KINDS = (ValueKind.STRING, ValueKind.NUMBER, ValueKind.BOOLEAN)


class CompletionType(Enum):
    NORMAL = "normal"
    RETURN = "return"


@dataclass(frozen=True)
class Completion:
    """How a statement finished: normally, or by returning a value."""
    type: CompletionType
    value: Optional[Value] = None

    @property
    def is_return(self) -> bool:
        return self.type == CompletionType.RETURN


NORMAL = Completion(CompletionType.NORMAL)


class Interpreter:
    """
    Tree-walking interpreter for Pidgin.

    Evaluates AST nodes by dispatching to node-specific methods. ``print``
    writes to ``out``; ``printErr`` writes to ``err``; ``readline`` reads
    from ``input``.
    """

    def __init__(self, out: Optional[IO[str]] = None, err: Optional[IO[str]] = None,
                 input: Optional[IO[str]] = None, config: Optional[PidginConfig] = None,
                 loader: Optional[ModuleLoader] = None):
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.input = input if input is not None else sys.stdin
        self.config = config if config is not None else PidginConfig()
        self.loader = loader if loader is not None else ModuleLoader(self.config)
        self.registry = get_builtin_registry()
        self.call_depth = 0

        needed = self.config.max_call_depth * FRAMES_PER_CALL + 1000
        if sys.getrecursionlimit() < needed:
            sys.setrecursionlimit(needed)

    def spawn(self) -> "Interpreter":
        """A fresh interpreter sharing this one's streams, config and loader."""
        return Interpreter(out=self.out, err=self.err, input=self.input,
                           config=self.config, loader=self.loader)

    # =========================================================================
    # Statements
    # =========================================================================

    def execute_program(self, program: Program, env: Environment) -> Completion:
        return self.execute(program.statements, env)

    def execute(self, statements: List[Statement], env: Environment) -> Completion:
        """Execute statements in order, stopping at the first return."""
        for stmt in statements:
            completion = self._execute_statement(stmt, env)
            if completion.is_return:
                return completion
        return NORMAL

    def _execute_statement(self, stmt: Statement, env: Environment) -> Completion:
        if isinstance(stmt, ExpressionStatement):
            self.evaluate(stmt.expression, env)
            return NORMAL
        elif isinstance(stmt, PrintStatement):
            self._execute_print(stmt, env)
            return NORMAL
        elif isinstance(stmt, VarDeclaration):
            value = NIL
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer, env)
            env.define(stmt.name, value)
            return NORMAL
        elif isinstance(stmt, Block):
            # Blocks share the enclosing environment
            return self.execute(stmt.statements, env)
        elif isinstance(stmt, IfStatement):
            if self.evaluate(stmt.condition, env).is_truthy():
                return self._execute_statement(stmt.then_branch, env)
            if stmt.else_branch is not None:
                return self._execute_statement(stmt.else_branch, env)
            return NORMAL
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt, env)
        elif isinstance(stmt, FunctionDeclaration):
            function = Function(stmt.name, tuple(stmt.parameters), stmt.body, env)
            env.define(stmt.name, function_val(function))
            return NORMAL
        elif isinstance(stmt, ReturnStatement):
            value = NIL
            if stmt.value is not None:
                value = self.evaluate(stmt.value, env)
            return Completion(CompletionType.RETURN, value)
        elif isinstance(stmt, ImportStatement):
            self.loader.load(stmt.names, stmt.module_path, env, stmt.span, importer=self)
            return NORMAL
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_while(self, stmt: WhileStatement, env: Environment) -> Completion:
        while self.evaluate(stmt.condition, env).is_truthy():
            completion = self._execute_statement(stmt.body, env)
            if completion.is_return:
                return completion
        return NORMAL

    def _execute_print(self, stmt: PrintStatement, env: Environment) -> None:
        value = self.evaluate(stmt.value, env)
        if not stmt.arguments:
            self.out.write(format_value(value) + "\n")
            return

        arguments = [self.evaluate(arg, env) for arg in stmt.arguments]
        if value.kind != ValueKind.STRING:
            raise error_invalid_argument("print", "format must be a String",
                                         describe_value(value), stmt.value.span)

        # Each {} takes the next argument; unmatched placeholders stay as {}
        pieces = value.data.split("{}")
        text = [pieces[0]]
        for i, piece in enumerate(pieces[1:]):
            text.append(format_value(arguments[i]) if i < len(arguments) else "{}")
            text.append(piece)
        self.out.write("".join(text) + "\n")

    # =========================================================================
    # Expressions
    # =========================================================================

    def evaluate(self, expr: Expression, env: Environment) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Identifier):
            value = env.get(expr.name)
            if value is None:
                raise error_undefined_name(expr.name, expr.span)
            return value
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, env)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, env)
        elif isinstance(expr, Assignment):
            value = self.evaluate(expr.value, env)
            if not env.assign(expr.name, value):
                raise error_assign_undefined(expr.name, expr.span)
            return value
        elif isinstance(expr, Call):
            return self._eval_call(expr, env)
        elif isinstance(expr, MethodCall):
            return self._eval_method_call(expr, env)
        elif isinstance(expr, IndexAccess):
            return self._eval_index(expr, env)
        elif isinstance(expr, FixedArrayLiteral):
            return fixed_array_val(self.evaluate(e, env) for e in expr.elements)
        elif isinstance(expr, DynamicArrayLiteral):
            return dynamic_array_val(self.evaluate(e, env) for e in expr.elements)
        elif isinstance(expr, ObjectLiteral):
            return self._eval_object_literal(expr, env)
        elif isinstance(expr, DateLiteral):
            args = [self.evaluate(arg, env) for arg in expr.arguments]
            return make_date(args, expr.span)
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        if lit.literal_type == TokenType.NUMBER_LITERAL:
            return number_val(lit.value)
        elif lit.literal_type == TokenType.STRING_LITERAL:
            return string_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        elif lit.literal_type == TokenType.NIL_LITERAL:
            return NIL
        else:
            raise RuntimeError(f"Unknown literal type: {lit.literal_type}")

    def _eval_binary_op(self, op: BinaryOp, env: Environment) -> Value:
        """Evaluate a binary operation; errors point at the operator token."""
        left = self.evaluate(op.left, env)
        right = self.evaluate(op.right, env)
        symbol = OPERATOR_SYMBOLS[op.operator]

        def invalid():
            return error_invalid_operands(symbol, describe_value(left),
                                          describe_value(right), op.operator_span)

        if op.operator == TokenType.PLUS:
            if ValueKind.STRING in (left.kind, right.kind):
                if left.kind not in TEXT_KINDS or right.kind not in TEXT_KINDS:
                    raise invalid()
                return string_val(format_value(left) + format_value(right))
            if left.kind == ValueKind.NUMBER and right.kind == ValueKind.NUMBER:
                return number_val(left.data + right.data)
            raise invalid()

        if op.operator in ARITHMETIC:
            if left.kind != ValueKind.NUMBER or right.kind != ValueKind.NUMBER:
                raise invalid()
            if op.operator == TokenType.SLASH and right.data == 0:
                raise error_division_by_zero(describe_value(left), describe_value(right),
                                             op.operator_span)
            return number_val(ARITHMETIC[op.operator](left.data, right.data))

        if op.operator in ORDERING:
            if left.kind != right.kind or left.kind not in ORDERED_KINDS:
                raise invalid()
            return bool_val(ORDERING[op.operator](left.data, right.data))

        if op.operator in (TokenType.EQ, TokenType.NE):
            comparable = (left.kind == right.kind
                          or ValueKind.NIL in (left.kind, right.kind))
            if not comparable:
                raise invalid()
            equal = values_equal(left, right)
            return bool_val(equal if op.operator == TokenType.EQ else not equal)

        raise RuntimeError(f"Unknown binary operator: {op.operator}")

    def _eval_unary_op(self, op: UnaryOp, env: Environment) -> Value:
        operand = self.evaluate(op.operand, env)
        if op.operator == TokenType.MINUS:
            if operand.kind != ValueKind.NUMBER:
                raise error_invalid_operand("-", describe_value(operand), op.span)
            return number_val(-operand.data)
        raise RuntimeError(f"Unknown unary operator: {op.operator}")

    def _eval_call(self, call: Call, env: Environment) -> Value:
        """Evaluate a call of a built-in or user-defined function."""
        if self.registry.get_function(call.name) is not None:
            args = [self.evaluate(arg, env) for arg in call.arguments]
            return call_builtin(self, call.name, args, call.span)

        callee = env.get(call.name)
        if callee is None:
            raise error_undefined_name(call.name, call.span)
        if callee.kind != ValueKind.FUNCTION:
            raise error_not_callable(call.name, str(callee.kind), call.span)

        function = callee.data
        if len(call.arguments) != function.arity:
            raise error_arity_mismatch(call.name, function.arity,
                                       len(call.arguments), call.span)

        args = [self.evaluate(arg, env) for arg in call.arguments]
        return self.call_function(function, args, call.span)

    def call_function(self, function: Function, args: List[Value],
                      span: Optional[SourceSpan] = None) -> Value:
        """Invoke a user-defined function with already-evaluated arguments."""
        if self.call_depth >= self.config.max_call_depth:
            raise error_recursion_depth(self.config.max_call_depth, span)

        call_env = function.closure.child(function.name)
        for name, value in zip(function.parameters, args):
            call_env.define(name, value)

        self.call_depth += 1
        logger.debug("call %s (depth %d)", function.name, self.call_depth)
        try:
            completion = self.execute(function.body.statements, call_env)
        finally:
            self.call_depth -= 1

        if completion.is_return:
            return completion.value
        return NIL

    def _eval_method_call(self, call: MethodCall, env: Environment) -> Value:
        receiver = self.evaluate(call.receiver, env)
        args = []
        for arg in call.arguments:
            if isinstance(arg, Transform):
                args.append(self._resolve_transform_part(arg.source, env, call.span))
                args.append(self._resolve_transform_part(arg.target, env, call.span))
            else:
                args.append(self.evaluate(arg, env))
        return call_method(receiver, call.method, args, call.span)

    def _resolve_transform_part(self, part: TransformPart, env: Environment,
                                span: SourceSpan) -> Value:
        """
        Resolve one side of a transform literal to a String.

        ``{name}`` must name a bound variable. Plain text that names a bound
        variable is replaced by that variable's text; otherwise it is literal.
        """
        bound = env.get(part.text) if part.text.isidentifier() else None
        if bound is None:
            if part.is_reference:
                raise error_undefined_name(part.text, span)
            return string_val(part.text)
        if bound.kind not in TEXT_KINDS:
            raise error_invalid_argument(
                "replaceChar", f"'{part.text}' must be a String, Number or Boolean",
                describe_value(bound), span)
        return string_val(format_value(bound))

    def _eval_index(self, expr: IndexAccess, env: Environment) -> Value:
        receiver = self.evaluate(expr.receiver, env)
        index = self.evaluate(expr.index, env)
        if not receiver.is_array:
            raise error_not_indexable(describe_value(receiver), expr.span)
        position = check_index(index, len(receiver.data), "index", expr.span)
        return receiver.data[position]

    def _eval_object_literal(self, expr: ObjectLiteral, env: Environment) -> Value:
        entries = {}
        for key_expr, value_expr in expr.entries:
            key = self.evaluate(key_expr, env)
            if key.kind != ValueKind.STRING:
                raise error_invalid_argument("object literal", "keys must be Strings",
                                             describe_value(key), key_expr.span)
            entries[key.data] = self.evaluate(value_expr, env)
        return object_val(entries)
