"""
Pidgin runtime - tree-walking interpreter for Pidgin programs.

This module provides:
- Interpreter: Executes statements and evaluates expressions
- Value: Immutable runtime values tagged with a ValueKind
- Environment: Variable scopes chained through function closures
- BuiltinRegistry: Methods per receiver kind, plus readline/printErr
- ModuleLoader: Resolves and imports from .pg modules
"""

from .values import (
    Value,
    ValueKind,
    Function,
    NIL,
    TRUE,
    FALSE,
    number_val,
    string_val,
    bool_val,
    nil_val,
    fixed_array_val,
    dynamic_array_val,
    object_val,
    date_val,
    function_val,
    format_number,
    format_value,
    describe_value,
    values_equal,
    to_python,
    from_python,
)

from .environment import (
    Environment,
)

from .builtins import (
    BuiltinMethod,
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
    call_method,
    make_date,
)

from .modules import (
    ModuleLoader,
    is_exported,
    read_source,
)

from .interpreter import (
    Interpreter,
    Completion,
    CompletionType,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'Function',
    'NIL',
    'TRUE',
    'FALSE',
    'number_val',
    'string_val',
    'bool_val',
    'nil_val',
    'fixed_array_val',
    'dynamic_array_val',
    'object_val',
    'date_val',
    'function_val',
    'format_number',
    'format_value',
    'describe_value',
    'values_equal',
    'to_python',
    'from_python',
    # Environment
    'Environment',
    # Builtins
    'BuiltinMethod',
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',
    'call_method',
    'make_date',
    # Modules
    'ModuleLoader',
    'is_exported',
    'read_source',
    # Interpreter
    'Interpreter',
    'Completion',
    'CompletionType',
]
