"""
Pidgin - a small dynamically typed scripting language.

This package provides:
- Lexer: Tokenizes Pidgin source code
- Parser: Builds an AST from tokens
- Interpreter: Executes programs against explicit environments
- ModuleLoader: Imports exported names from other .pg files

Usage:
    from pidgin import run, run_file

    result = run('''
    function square(x) { return x * x; }
    let total = 0;
    let i = 1;
    while (i <= 3) { total = total + square(i); i = i + 1; }
    print "total: {}", total;
    ''')
    if result.success:
        print(result.output)
    else:
        print(result.error_message)
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    TransformPart,
    KEYWORDS,
    is_keyword_token,
    format_tokens,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Identifier,
    BinaryOp,
    UnaryOp,
    Assignment,
    Call,
    MethodCall,
    IndexAccess,
    FixedArrayLiteral,
    DynamicArrayLiteral,
    ObjectLiteral,
    DateLiteral,
    Transform,
    # Statements
    Statement,
    ExpressionStatement,
    PrintStatement,
    VarDeclaration,
    Block,
    IfStatement,
    WhileStatement,
    FunctionDeclaration,
    ReturnStatement,
    ImportStatement,
    Program,
    # Helpers
    format_ast,
    ast_to_dict,
)

from .errors import (
    PidginError,
    LexError,
    ParseError,
    TypeError,
    IndexError,
    NameError,
    ModuleError,
    ExportVisibilityError,
    ModuleNotFoundError,
    NameNotFoundError,
    CircularImportError,
    SourceReadError,
    RecursionDepthError,
    Diagnostic,
    ErrorSeverity,
)

from .config import (
    PidginConfig,
    load_config,
)

from .runtime import (
    Interpreter,
    Environment,
    ModuleLoader,
    Value,
    ValueKind,
    format_value,
)

from .driver import (
    RunResult,
    run,
    run_file,
    evaluate_one,
    dump_tokens,
    dump_ast,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'TransformPart',
    'KEYWORDS',
    'is_keyword_token',
    'format_tokens',
    # Lexer
    'Lexer',
    'tokenize',
    # Parser
    'Parser',
    'parse',
    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Identifier',
    'BinaryOp',
    'UnaryOp',
    'Assignment',
    'Call',
    'MethodCall',
    'IndexAccess',
    'FixedArrayLiteral',
    'DynamicArrayLiteral',
    'ObjectLiteral',
    'DateLiteral',
    'Transform',
    'Statement',
    'ExpressionStatement',
    'PrintStatement',
    'VarDeclaration',
    'Block',
    'IfStatement',
    'WhileStatement',
    'FunctionDeclaration',
    'ReturnStatement',
    'ImportStatement',
    'Program',
    'format_ast',
    'ast_to_dict',
    # Errors
    'PidginError',
    'LexError',
    'ParseError',
    'TypeError',
    'IndexError',
    'NameError',
    'ModuleError',
    'ExportVisibilityError',
    'ModuleNotFoundError',
    'NameNotFoundError',
    'CircularImportError',
    'SourceReadError',
    'RecursionDepthError',
    'Diagnostic',
    'ErrorSeverity',
    # Config
    'PidginConfig',
    'load_config',
    # Runtime
    'Interpreter',
    'Environment',
    'ModuleLoader',
    'Value',
    'ValueKind',
    'format_value',
    # Driver
    'RunResult',
    'run',
    'run_file',
    'evaluate_one',
    'dump_tokens',
    'dump_ast',
]
