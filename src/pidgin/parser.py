"""
Recursive descent parser for Pidgin.

Converts a token stream into an Abstract Syntax Tree (AST). Parsing is a
single pass without error recovery: the first unexpected token raises a
ParseError.
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, is_keyword_token
from .ast import (
    # Expressions
    Expression, Literal, Identifier, BinaryOp, UnaryOp, Assignment,
    Call, MethodCall, IndexAccess,
    FixedArrayLiteral, DynamicArrayLiteral, ObjectLiteral, DateLiteral, Transform,
    # Statements
    Statement, ExpressionStatement, PrintStatement, VarDeclaration, Block,
    IfStatement, WhileStatement, FunctionDeclaration, ReturnStatement,
    ImportStatement, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_assignment_target,
    error_unknown_method,
    error_return_outside_function,
    error_nesting_too_deep,
)


# Deepest nesting of statements and expressions the parser accepts
MAX_NESTING_DEPTH = 64

# Marker arity for methods that take a transform literal
TRANSFORM_ARGUMENT = -1

# Number of arguments each built-in method takes
METHOD_ARITY: dict[str, int] = {
    "length": 0,
    "pop": 0,
    "clear": 0,
    "reverse": 0,
    "toUpper": 0,
    "toLower": 0,
    "trim": 0,
    "keys": 0,
    "getYear": 0,
    "getMonth": 0,
    "getDay": 0,
    "push": 1,
    "remove": 1,
    "get": 1,
    "has": 1,
    "format": 1,
    "insert": 2,
    "set": 2,
    "replaceChar": TRANSFORM_ARGUMENT,
}


class Parser:
    """
    Recursive descent parser for Pidgin.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    Expression precedence, lowest to highest:
        assignment  (right-associative)
        == !=
        < > <= >=
        + -
        * /
        unary -
        postfix     ([index], .method(...))
        primary
    """

    EQUALITY = (TokenType.EQ, TokenType.NE)
    COMPARISON = (TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE)
    TERM = (TokenType.PLUS, TokenType.MINUS)
    FACTOR = (TokenType.STAR, TokenType.SLASH)

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source
        self.pos = 0
        self.function_depth = 0
        self.nesting = 0
        self._lines: Optional[List[str]] = None

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _previous(self) -> Token:
        return self.tokens[max(0, self.pos - 1)]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line: int) -> Optional[str]:
        if self.source is None:
            return None
        if self._lines is None:
            self._lines = self.source.splitlines()
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error at the current token."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        found = token.lexeme or token.type.name
        raise error_unexpected_token(
            expected, f"'{found}'", token.span, self._source_line(token.span.start.line)
        )

    def _enter(self) -> None:
        """Open one nesting level, failing past MAX_NESTING_DEPTH."""
        self.nesting += 1
        if self.nesting > MAX_NESTING_DEPTH:
            token = self._current()
            raise error_nesting_too_deep(
                MAX_NESTING_DEPTH, token.span, self._source_line(token.span.start.line)
            )

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        return SourceSpan(start.span.start, self._previous().span.end)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse the whole token stream."""
        start = self._current()
        statements = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
        return Program(span=self._span_from(start), statements=statements)

    def _parse_statement(self) -> Statement:
        self._enter()
        try:
            return self._parse_statement_kind()
        finally:
            self.nesting -= 1

    def _parse_statement_kind(self) -> Statement:
        token_type = self._current().type
        if token_type == TokenType.PRINT:
            return self._parse_print()
        if token_type == TokenType.LET:
            return self._parse_var_declaration()
        if token_type == TokenType.LBRACE:
            return self._parse_block()
        if token_type == TokenType.IF:
            return self._parse_if()
        if token_type == TokenType.WHILE:
            return self._parse_while()
        if token_type == TokenType.FUNCTION:
            return self._parse_function_declaration()
        if token_type == TokenType.RETURN:
            return self._parse_return()
        if token_type == TokenType.GET:
            return self._parse_import()
        return self._parse_expression_statement()

    def _parse_print(self) -> PrintStatement:
        """Parse print in either form:

            print value;
            print "{} and {}", a, b;
            print("{} and {}", a, b);
        """
        start = self._advance()  # consume 'print'

        # print(fmt, args...) is only a call form when a comma follows the first
        # expression; otherwise the parenthesis opens an ordinary expression
        if self._check(TokenType.LPAREN):
            saved_pos = self.pos
            self._advance()
            value = self._parse_expression()
            if self._match(TokenType.COMMA):
                arguments = self._parse_expression_list(TokenType.RPAREN)
                self._consume(TokenType.RPAREN, "')' after print arguments")
                self._consume(TokenType.SEMICOLON, "';' after print statement")
                return PrintStatement(span=self._span_from(start), value=value,
                                      arguments=arguments)
            self.pos = saved_pos

        value = self._parse_expression()
        arguments = []
        while self._match(TokenType.COMMA):
            arguments.append(self._parse_expression())
        self._consume(TokenType.SEMICOLON, "';' after print statement")
        return PrintStatement(span=self._span_from(start), value=value, arguments=arguments)

    def _parse_var_declaration(self) -> VarDeclaration:
        start = self._advance()  # consume 'let'
        name = self._consume(TokenType.IDENTIFIER, "variable name").value
        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after variable declaration")
        return VarDeclaration(span=self._span_from(start), name=name, initializer=initializer)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        statements = []
        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_statement())
        self._consume(TokenType.RBRACE, "'}'")
        return Block(span=self._span_from(start), statements=statements)

    def _parse_if(self) -> IfStatement:
        start = self._advance()  # consume 'if'
        self._consume(TokenType.LPAREN, "'(' after 'if'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after if condition")
        then_branch = self._parse_statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()
        return IfStatement(span=self._span_from(start), condition=condition,
                           then_branch=then_branch, else_branch=else_branch)

    def _parse_while(self) -> WhileStatement:
        start = self._advance()  # consume 'while'
        self._consume(TokenType.LPAREN, "'(' after 'while'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after while condition")
        body = self._parse_statement()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_function_declaration(self) -> FunctionDeclaration:
        start = self._advance()  # consume 'function'
        name = self._consume(TokenType.IDENTIFIER, "function name").value

        self._consume(TokenType.LPAREN, "'(' after function name")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
            while self._match(TokenType.COMMA):
                parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
        self._consume(TokenType.RPAREN, "')' after parameters")

        self.function_depth += 1
        try:
            body = self._parse_block()
        finally:
            self.function_depth -= 1

        return FunctionDeclaration(span=self._span_from(start), name=name,
                                   parameters=parameters, body=body)

    def _parse_return(self) -> ReturnStatement:
        start = self._advance()  # consume 'return'
        if self.function_depth == 0:
            raise error_return_outside_function(
                start.span, self._source_line(start.span.start.line)
            )
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_import(self) -> ImportStatement:
        """Parse an import statement.

            get Name from path;
            get {A, B} from path;
            get Name <- path;
        """
        start = self._advance()  # consume 'get'

        names = []
        if self._match(TokenType.LBRACE):
            names.append(self._consume(TokenType.IDENTIFIER, "name in import list").value)
            while self._match(TokenType.COMMA):
                names.append(self._consume(TokenType.IDENTIFIER, "name in import list").value)
            self._consume(TokenType.RBRACE, "'}' after import list")
        else:
            names.append(self._consume(TokenType.IDENTIFIER, "name after 'get'").value)

        if not self._match(TokenType.FROM, TokenType.ARROW_LEFT):
            self._error("'from' or '<-' after import names")

        if self._check(TokenType.STRING_LITERAL):
            module_path = self._advance().value
        else:
            parts = [self._parse_module_path_component()]
            while self._match(TokenType.DOT):
                parts.append(self._parse_module_path_component())
            module_path = ".".join(parts)

        self._consume(TokenType.SEMICOLON, "';' after import statement")
        return ImportStatement(span=self._span_from(start), names=names,
                               module_path=module_path)

    def _parse_module_path_component(self) -> str:
        token = self._current()
        if token.type == TokenType.IDENTIFIER or is_keyword_token(token.type):
            self._advance()
            return token.lexeme
        self._error("module path")

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._current()
        expression = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        self._enter()
        try:
            return self._parse_assignment()
        finally:
            self.nesting -= 1

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative, identifier targets only)."""
        expr = self._parse_binary_level(0)

        if self._check(TokenType.ASSIGN):
            equals = self._advance()
            value = self._parse_assignment()
            if isinstance(expr, Identifier):
                return Assignment(span=SourceSpan(expr.span.start, value.span.end),
                                  name=expr.name, value=value)
            raise error_invalid_assignment_target(
                equals.span, self._source_line(equals.span.start.line)
            )

        return expr

    def _parse_binary_level(self, level: int) -> Expression:
        """Parse one left-associative binary precedence level."""
        levels = (self.EQUALITY, self.COMPARISON, self.TERM, self.FACTOR)
        if level == len(levels):
            return self._parse_unary()

        left = self._parse_binary_level(level + 1)
        while self._check_any(*levels[level]):
            op_token = self._advance()
            right = self._parse_binary_level(level + 1)
            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right,
                operator_span=op_token.span,
            )
        return left

    def _parse_unary(self) -> Expression:
        if self._check(TokenType.MINUS):
            op = self._advance()
            self._enter()
            try:
                operand = self._parse_unary()
            finally:
                self.nesting -= 1
            return UnaryOp(span=SourceSpan(op.span.start, operand.span.end),
                           operator=op.type, operand=operand)
        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        """Parse chains of indexing and method calls, left to right."""
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.LBRACKET):
                index = self._parse_expression()
                self._consume(TokenType.RBRACKET, "']' after index")
                expr = IndexAccess(span=SourceSpan(expr.span.start, self._previous().span.end),
                                   receiver=expr, index=index)
            elif self._match(TokenType.DOT):
                expr = self._parse_method_call(expr)
            else:
                break

        return expr

    def _parse_method_call(self, receiver: Expression) -> MethodCall:
        """Parse `.name(...)` with the argument count fixed by the name."""
        name_token = self._current()
        if name_token.type != TokenType.IDENTIFIER and not is_keyword_token(name_token.type):
            self._error("method name after '.'")
        self._advance()
        method = name_token.lexeme

        arity = METHOD_ARITY.get(method)
        if arity is None:
            raise error_unknown_method(
                method, name_token.span, self._source_line(name_token.span.start.line)
            )

        if arity == TRANSFORM_ARGUMENT:
            # replaceChar`a->b` and replaceChar(`a->b`) are both accepted
            parenthesized = self._match(TokenType.LPAREN) is not None
            transform_token = self._consume(TokenType.TRANSFORM_LITERAL,
                                            f"transform literal after '{method}'")
            source, target = transform_token.value
            arguments = [Transform(span=transform_token.span, source=source, target=target)]
            if parenthesized:
                self._consume(TokenType.RPAREN, f"')' after {method} argument")
        else:
            self._consume(TokenType.LPAREN, f"'(' after '{method}'")
            arguments = []
            for i in range(arity):
                if i > 0:
                    self._consume(TokenType.COMMA, f"',' between {method} arguments")
                arguments.append(self._parse_expression())
            plural = "" if arity == 1 else "s"
            self._consume(TokenType.RPAREN, f"')' after {arity} argument{plural} to '{method}'")

        return MethodCall(span=SourceSpan(receiver.span.start, self._previous().span.end),
                          receiver=receiver, method=method, arguments=arguments)

    def _parse_primary(self) -> Expression:
        token = self._current()

        if token.type in (TokenType.NUMBER_LITERAL, TokenType.STRING_LITERAL,
                          TokenType.BOOL_LITERAL, TokenType.NIL_LITERAL):
            self._advance()
            return Literal(span=token.span, value=token.value, literal_type=token.type)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                return self._parse_call(token)
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')' after expression")
            return expr

        if token.type == TokenType.LBRACKET:
            self._advance()
            elements = self._parse_expression_list(TokenType.RBRACKET)
            self._consume(TokenType.RBRACKET, "']' after array elements")
            return FixedArrayLiteral(span=self._span_from(token), elements=elements)

        if token.type == TokenType.LBRACE:
            return self._parse_brace_literal()

        self._error("expression")

    def _parse_call(self, name_token: Token) -> Expression:
        """Parse name(args); Date(...) and Object() are constructors."""
        self._consume(TokenType.LPAREN, "'('")
        arguments = self._parse_expression_list(TokenType.RPAREN)
        self._consume(TokenType.RPAREN, "')' after arguments")
        span = self._span_from(name_token)

        if name_token.value == "Date":
            if len(arguments) not in (0, 1, 3):
                raise error_unexpected_token(
                    "Date(), Date(text) or Date(year, month, day)",
                    f"{len(arguments)} arguments", span,
                    self._source_line(span.start.line),
                )
            return DateLiteral(span=span, arguments=arguments)
        if name_token.value == "Object":
            if arguments:
                raise error_unexpected_token(
                    "Object()", f"{len(arguments)} arguments", span,
                    self._source_line(span.start.line),
                )
            return ObjectLiteral(span=span, entries=[])
        return Call(span=span, name=name_token.value, arguments=arguments)

    def _parse_brace_literal(self) -> Expression:
        """Parse {a, b} as a dynamic array or {k: v, ...} as an object."""
        start = self._advance()  # consume '{'

        if self._match(TokenType.RBRACE):
            return DynamicArrayLiteral(span=self._span_from(start), elements=[])

        first = self._parse_expression()
        if not self._match(TokenType.COLON):
            elements = [first]
            while self._match(TokenType.COMMA):
                elements.append(self._parse_expression())
            self._consume(TokenType.RBRACE, "'}' after array elements")
            return DynamicArrayLiteral(span=self._span_from(start), elements=elements)

        entries = [(self._object_key(first), self._parse_expression())]
        while self._match(TokenType.COMMA):
            key = self._object_key(self._parse_expression())
            self._consume(TokenType.COLON, "':' after object key")
            entries.append((key, self._parse_expression()))
        self._consume(TokenType.RBRACE, "'}' after object entries")
        return ObjectLiteral(span=self._span_from(start), entries=entries)

    @staticmethod
    def _object_key(expr: Expression) -> Expression:
        # A bare identifier key names the key itself, as in {name: "Ann"}
        if isinstance(expr, Identifier):
            return Literal(span=expr.span, value=expr.name,
                           literal_type=TokenType.STRING_LITERAL)
        return expr

    def _parse_expression_list(self, closing: TokenType) -> List[Expression]:
        items = []
        if not self._check(closing):
            items.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                items.append(self._parse_expression())
        return items


def parse(tokens: List[Token], filename: Optional[str] = None,
          source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for error messages

    Returns:
        Parsed Program AST

    Raises:
        ParseError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()
