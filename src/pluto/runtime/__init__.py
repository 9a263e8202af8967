"""
Pluto Runtime - Tree-walking interpreter for Pluto programs.

This module provides:
- Interpreter: Executes parsed programs against a persistent global scope
- Value: Tagged runtime values and their constructors
- Scope: Variable scope chain
- BuiltinRegistry: Built-in function implementations
"""

from .values import (
    Value,
    ValueKind,
    ABSENT,
    number_val,
    string_val,
    bool_val,
    array_val,
    record_val,
    callable_val,
    type_name,
    values_equal,
    format_value,
    format_number,
    wrap_value,
    unwrap_value,
)

from .context import (
    Scope,
    ActionFrame,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    BuiltinError,
    BuiltinArityError,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    Action,
    DEFAULT_MAX_ITERATIONS,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'ABSENT',
    'number_val',
    'string_val',
    'bool_val',
    'array_val',
    'record_val',
    'callable_val',
    'type_name',
    'values_equal',
    'format_value',
    'format_number',
    'wrap_value',
    'unwrap_value',

    # Context
    'Scope',
    'ActionFrame',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'BuiltinError',
    'BuiltinArityError',
    'get_builtin_registry',
    'call_builtin',

    # Interpreter
    'Interpreter',
    'Action',
    'DEFAULT_MAX_ITERATIONS',
]
