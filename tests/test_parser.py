"""
Unit tests for the Pidgin parser.
"""

import pytest
import textwrap
from pidgin import (
    tokenize, parse, Parser, ParseError, TokenType, TransformPart,
    format_ast, ast_to_dict, dump_ast,
    # AST nodes
    Program, Literal, Identifier, BinaryOp, UnaryOp, Assignment, Call,
    MethodCall, IndexAccess, FixedArrayLiteral, DynamicArrayLiteral,
    ObjectLiteral, DateLiteral, Transform,
    ExpressionStatement, PrintStatement, VarDeclaration, Block, IfStatement,
    WhileStatement, FunctionDeclaration, ReturnStatement, ImportStatement,
)


def parse_source(source: str) -> Program:
    """Helper to tokenize and parse source."""
    source = textwrap.dedent(source)
    return parse(tokenize(source), source=source)


def parse_expr(source: str):
    """Parse a single expression statement and return its expression."""
    program = parse_source(source + ";")
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestStatements:
    """Test statement parsing."""

    def test_empty_program(self):
        assert parse_source("").statements == []

    def test_let_with_initializer(self):
        stmt = parse_source("let x = 10;").statements[0]
        assert isinstance(stmt, VarDeclaration)
        assert stmt.name == "x"
        assert isinstance(stmt.initializer, Literal)
        assert stmt.initializer.value == 10.0

    def test_let_without_initializer(self):
        stmt = parse_source("let x;").statements[0]
        assert stmt.initializer is None

    def test_print(self):
        stmt = parse_source("print x + y;").statements[0]
        assert isinstance(stmt, PrintStatement)
        assert isinstance(stmt.value, BinaryOp)
        assert stmt.arguments == []

    def test_print_with_format_arguments(self):
        stmt = parse_source('print "{} and {}", a, b;').statements[0]
        assert stmt.value.value == "{} and {}"
        assert [a.name for a in stmt.arguments] == ["a", "b"]

    def test_print_call_form(self):
        """print(fmt, args) is the parenthesized form of print fmt, args."""
        stmt = parse_source('print("{}!", name);').statements[0]
        assert stmt.value.value == "{}!"
        assert [a.name for a in stmt.arguments] == ["name"]

    def test_print_parenthesized_expression(self):
        """Without a comma, the parentheses group an ordinary expression."""
        stmt = parse_source("print (1 + 2) * 3;").statements[0]
        assert isinstance(stmt.value, BinaryOp)
        assert stmt.value.operator == TokenType.STAR
        assert stmt.arguments == []

    def test_if_else(self):
        source = """
        if (x > 5) {
            print "big";
        } else {
            print "small";
        }
        """
        stmt = parse_source(source).statements[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.condition, BinaryOp)
        assert isinstance(stmt.then_branch, Block)
        assert isinstance(stmt.else_branch, Block)

    def test_else_if_chain(self):
        source = """
        if (x == 1) print "one";
        else if (x == 2) print "two";
        else print "many";
        """
        stmt = parse_source(source).statements[0]
        assert isinstance(stmt.else_branch, IfStatement)
        assert isinstance(stmt.else_branch.else_branch, PrintStatement)

    def test_if_requires_parentheses(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("if x > 5 { print x; }")
        assert exc_info.value.code == "E101"

    def test_while(self):
        stmt = parse_source("while (i < 3) { i = i + 1; }").statements[0]
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.body, Block)
        assert isinstance(stmt.body.statements[0].expression, Assignment)

    def test_function_declaration(self):
        source = """
        function add(a, b) {
            return a + b;
        }
        """
        stmt = parse_source(source).statements[0]
        assert isinstance(stmt, FunctionDeclaration)
        assert stmt.name == "add"
        assert stmt.parameters == ["a", "b"]
        ret = stmt.body.statements[0]
        assert isinstance(ret, ReturnStatement)
        assert isinstance(ret.value, BinaryOp)

    def test_function_without_parameters(self):
        stmt = parse_source("function f() { return; }").statements[0]
        assert stmt.parameters == []
        assert stmt.body.statements[0].value is None

    def test_return_outside_function(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("return 1;")
        assert exc_info.value.code == "E105"

    def test_return_in_nested_block_of_function(self):
        source = """
        function f(x) {
            if (x) { return 1; }
            return 2;
        }
        """
        stmt = parse_source(source).statements[0]
        assert isinstance(stmt, FunctionDeclaration)

    def test_block_statement(self):
        stmt = parse_source("{ let a = 1; print a; }").statements[0]
        assert isinstance(stmt, Block)
        assert len(stmt.statements) == 2


class TestImports:
    """Test 'get ... from ...' import statements."""

    def test_single_name(self):
        stmt = parse_source("get Alpha from M;").statements[0]
        assert isinstance(stmt, ImportStatement)
        assert stmt.names == ["Alpha"]
        assert stmt.module_path == "M"

    def test_name_list(self):
        stmt = parse_source("get {Add, Sub} from lib.math;").statements[0]
        assert stmt.names == ["Add", "Sub"]
        assert stmt.module_path == "lib.math"

    def test_arrow_separator(self):
        stmt = parse_source("get Alpha <- M;").statements[0]
        assert stmt.module_path == "M"

    def test_path_with_extension(self):
        stmt = parse_source("get X from missing.pg;").statements[0]
        assert stmt.module_path == "missing.pg"

    def test_string_path(self):
        stmt = parse_source('get X from "lib/util.pg";').statements[0]
        assert stmt.module_path == "lib/util.pg"

    def test_keywords_case_insensitive(self):
        stmt = parse_source("GET Alpha FROM M;").statements[0]
        assert isinstance(stmt, ImportStatement)

    def test_missing_from(self):
        with pytest.raises(ParseError):
            parse_source("get Alpha M;")


class TestExpressions:
    """Test expression parsing and precedence."""

    def test_precedence(self):
        """Multiplication binds tighter than addition."""
        expr = parse_expr("1 + 2 * 3")
        assert expr.operator == TokenType.PLUS
        assert expr.right.operator == TokenType.STAR

    def test_left_associative(self):
        expr = parse_expr("10 - 4 - 3")
        assert expr.operator == TokenType.MINUS
        assert isinstance(expr.left, BinaryOp)
        assert expr.right.value == 3.0

    def test_comparison_below_arithmetic(self):
        expr = parse_expr("a + 1 < b * 2")
        assert expr.operator == TokenType.LT
        assert expr.left.operator == TokenType.PLUS
        assert expr.right.operator == TokenType.STAR

    def test_equality_lowest(self):
        expr = parse_expr("a < b == c > d")
        assert expr.operator == TokenType.EQ

    def test_operator_span(self):
        """BinaryOp records the position of the operator token."""
        expr = parse_expr("ab + cd")
        assert expr.operator_span.start.column == 4

    def test_unary_minus(self):
        expr = parse_expr("-x * 2")
        assert expr.operator == TokenType.STAR
        assert isinstance(expr.left, UnaryOp)

    def test_grouping(self):
        expr = parse_expr("(1 + 2) * 3")
        assert expr.operator == TokenType.STAR
        assert expr.left.operator == TokenType.PLUS

    def test_assignment_is_right_associative(self):
        expr = parse_expr("a = b = 3")
        assert isinstance(expr, Assignment)
        assert expr.name == "a"
        assert isinstance(expr.value, Assignment)

    def test_invalid_assignment_target(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("a[0] = 1;")
        err = exc_info.value
        assert err.code == "E103"
        assert err.span.start.column == 6

    def test_call(self):
        expr = parse_expr("add(1, 2)")
        assert isinstance(expr, Call)
        assert expr.name == "add"
        assert len(expr.arguments) == 2

    def test_call_without_arguments(self):
        expr = parse_expr("readline()")
        assert isinstance(expr, Call)
        assert expr.arguments == []


class TestCollections:
    """Test array, object and date literals."""

    def test_fixed_array(self):
        expr = parse_expr("[1, 2, 3]")
        assert isinstance(expr, FixedArrayLiteral)
        assert len(expr.elements) == 3

    def test_empty_fixed_array(self):
        assert parse_expr("[]").elements == []

    def test_dynamic_array(self):
        stmt = parse_source("let a = {1, 2, 3};").statements[0]
        assert isinstance(stmt.initializer, DynamicArrayLiteral)
        assert len(stmt.initializer.elements) == 3

    def test_empty_braces_are_dynamic_array(self):
        stmt = parse_source("let a = {};").statements[0]
        assert isinstance(stmt.initializer, DynamicArrayLiteral)
        assert stmt.initializer.elements == []

    def test_object_literal(self):
        stmt = parse_source('let o = {name: "Ann", "age": 3};').statements[0]
        obj = stmt.initializer
        assert isinstance(obj, ObjectLiteral)
        keys = [k.value for k, _ in obj.entries]
        assert keys == ["name", "age"]

    def test_object_constructor(self):
        stmt = parse_source("let o = Object();").statements[0]
        assert isinstance(stmt.initializer, ObjectLiteral)
        assert stmt.initializer.entries == []

    def test_date_forms(self):
        for source, count in (("Date()", 0), ('Date("2024-01-31")', 1),
                              ("Date(2024, 1, 31)", 3)):
            expr = parse_expr(source)
            assert isinstance(expr, DateLiteral)
            assert len(expr.arguments) == count

    def test_date_with_two_arguments(self):
        with pytest.raises(ParseError):
            parse_expr("Date(2024, 1)")


class TestPostfix:
    """Test indexing and method calls."""

    def test_index(self):
        expr = parse_expr("arr[2]")
        assert isinstance(expr, IndexAccess)
        assert expr.receiver.name == "arr"
        assert expr.index.value == 2.0

    def test_method_call(self):
        expr = parse_expr("arr.push(4)")
        assert isinstance(expr, MethodCall)
        assert expr.method == "push"
        assert len(expr.arguments) == 1

    def test_chained(self):
        expr = parse_expr("a.push(1).length()")
        assert expr.method == "length"
        assert expr.receiver.method == "push"

    def test_index_then_method(self):
        expr = parse_expr("names[0].toUpper()")
        assert isinstance(expr.receiver, IndexAccess)

    def test_keyword_method_name(self):
        """'get' is a keyword but also an object method."""
        expr = parse_expr('obj.get("k")')
        assert expr.method == "get"

    def test_method_arity_is_fixed(self):
        with pytest.raises(ParseError):
            parse_expr("arr.push(1, 2)")
        with pytest.raises(ParseError):
            parse_expr("obj.set(1)")

    def test_unknown_method(self):
        with pytest.raises(ParseError) as exc_info:
            parse_expr("arr.append(1)")
        assert exc_info.value.code == "E104"

    def test_replace_char_with_parentheses(self):
        expr = parse_expr("t.replaceChar(`World->Pidgin`)")
        transform = expr.arguments[0]
        assert isinstance(transform, Transform)
        assert transform.source == TransformPart("World")
        assert transform.target == TransformPart("Pidgin")

    def test_replace_char_without_parentheses(self):
        expr = parse_expr("t.replaceChar`a->b`")
        assert isinstance(expr.arguments[0], Transform)

    def test_replace_char_requires_transform(self):
        with pytest.raises(ParseError):
            parse_expr('t.replaceChar("a")')


class TestParseErrors:
    """Test parser error reporting."""

    def test_missing_semicolon(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("let x = 1 let y = 2;")
        err = exc_info.value
        assert err.code == "E101"
        assert err.found == "'let'"

    def test_unexpected_eof(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("let x = ")
        assert exc_info.value.code == "E102"

    def test_unclosed_block(self):
        with pytest.raises(ParseError):
            parse_source("while (true) { print 1;")

    def test_error_message_shows_source(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("let = 5;")
        text = str(exc_info.value)
        assert "error[E101] ParseError: expected variable name, found '='" in text
        assert "let = 5;" in text


class TestNestingLimit:
    """Deeply nested input fails with a ParseError."""

    def test_moderate_nesting_parses(self):
        expr = parse_expr("(" * 40 + "1" + ")" * 40)
        assert isinstance(expr, Literal)

    def test_nested_parentheses(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("print " + "(" * 600 + "1" + ")" * 600 + ";")
        assert exc_info.value.code == "E106"

    def test_nested_blocks(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("{" * 300 + "}" * 300)
        assert exc_info.value.code == "E106"

    def test_unary_chain(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("print " + "-" * 300 + "1;")
        assert exc_info.value.code == "E106"

    def test_nested_arrays(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("let x = " + "[" * 200 + "]" * 200 + ";")
        assert exc_info.value.code == "E106"


class TestAstDump:
    """Test AST projections."""

    def test_format_ast(self):
        text = format_ast(parse_source("let x = 1 + 2;"))
        lines = text.splitlines()
        assert lines[0] == "Program"
        assert "VarDeclaration" in text
        assert "operator: PLUS" in text
        assert "value: 1.0" in text

    def test_dump_ast_from_source(self):
        assert dump_ast("print 1;").startswith("Program")

    def test_ast_to_dict(self):
        data = ast_to_dict(parse_source("print x;"))
        assert data["node"] == "Program"
        stmt = data["statements"][0]
        assert stmt["node"] == "PrintStatement"
        assert stmt["value"] == {"node": "Identifier", "line": 1, "column": 7, "name": "x"}

    def test_parser_class(self):
        program = Parser(tokenize("let a = 1;")).parse_program()
        assert isinstance(program, Program)
