"""
Runtime values for the Pluto interpreter.

Every runtime value is a `Value` tagged with one of a closed set of kinds.
The `data` field holds the Python representation:

    NUMBER    float
    STRING    str
    BOOLEAN   bool
    ARRAY     list of Value (never mutated once built)
    RECORD    dict of str -> Value, insertion ordered
    CALLABLE  Action or BuiltinFunction
    ABSENT    None
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List


class ValueKind(Enum):
    """The closed set of Pluto value kinds."""
    NUMBER = "Number"
    STRING = "String"
    BOOLEAN = "Boolean"
    ARRAY = "Array"
    RECORD = "Record"
    CALLABLE = "Callable"
    ABSENT = "Absent"


@dataclass
class Value:
    """
    A runtime value with its kind.

    The `data` field holds the actual Python object.
    The `kind` field selects which variant it is.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind.value})"

    def is_truthy(self) -> bool:
        """Check if this value is truthy in boolean context."""
        if self.kind == ValueKind.ABSENT:
            return False
        if self.kind == ValueKind.BOOLEAN:
            return self.data
        if self.kind == ValueKind.NUMBER:
            return self.data != 0
        if self.kind == ValueKind.STRING:
            return self.data != ""
        # Arrays, records and callables are always truthy
        return True

    @property
    def is_absent(self) -> bool:
        return self.kind == ValueKind.ABSENT


ABSENT = Value(None, ValueKind.ABSENT)


# Convenience constructors

def number_val(x: float) -> Value:
    """Create a number value."""
    return Value(float(x), ValueKind.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueKind.BOOLEAN)


def array_val(items: List[Value]) -> Value:
    """Create an array value from a list of Values (the list is copied)."""
    return Value(list(items), ValueKind.ARRAY)


def record_val(fields: Dict[str, Value]) -> Value:
    """Create a record value (the mapping is copied, order preserved)."""
    return Value(dict(fields), ValueKind.RECORD)


def callable_val(fn: Any) -> Value:
    """Create a callable value wrapping an Action or BuiltinFunction."""
    return Value(fn, ValueKind.CALLABLE)


def type_name(value: Value) -> str:
    """Kind name used in error messages."""
    return value.kind.value


def values_equal(a: Value, b: Value) -> bool:
    """
    Exact value-and-kind equality, no coercion.

    Arrays and records compare structurally, callables by identity.
    """
    if a.kind != b.kind:
        return False
    if a.kind == ValueKind.ABSENT:
        return True
    if a.kind == ValueKind.CALLABLE:
        return a.data is b.data
    if a.kind == ValueKind.ARRAY:
        return (len(a.data) == len(b.data) and
                all(values_equal(x, y) for x, y in zip(a.data, b.data)))
    if a.kind == ValueKind.RECORD:
        if a.data.keys() != b.data.keys():
            return False
        return all(values_equal(a.data[k], b.data[k]) for k in a.data)
    return a.data == b.data


def format_number(x: float) -> str:
    """Format a number the way Pluto prints it."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x.is_integer():
        return str(int(x))
    return repr(x)


def format_value(value: Value, nested: bool = False) -> str:
    """
    Display string for a value.

    Strings are shown raw at the top level and quoted inside arrays and
    records.
    """
    kind = value.kind
    if kind == ValueKind.NUMBER:
        return format_number(value.data)
    if kind == ValueKind.STRING:
        return f'"{value.data}"' if nested else value.data
    if kind == ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if kind == ValueKind.ARRAY:
        return "[" + ", ".join(format_value(v, True) for v in value.data) + "]"
    if kind == ValueKind.RECORD:
        fields = (f"{k}: {format_value(v, True)}" for k, v in value.data.items())
        return "{" + ", ".join(fields) + "}"
    if kind == ValueKind.CALLABLE:
        return str(value.data)
    return "absent"


# Host conversion

def unwrap_value(v: Value) -> Any:
    """Convert a Value to plain Python data. Callables stay wrapped."""
    if v.kind == ValueKind.ARRAY:
        return [unwrap_value(item) for item in v.data]
    if v.kind == ValueKind.RECORD:
        return {k: unwrap_value(item) for k, item in v.data.items()}
    if v.kind == ValueKind.CALLABLE:
        return v
    return v.data


def wrap_value(data: Any) -> Value:
    """Convert plain Python data to a Value."""
    if isinstance(data, Value):
        return data
    if data is None:
        return ABSENT
    # bool first: bool is a subclass of int
    if isinstance(data, bool):
        return bool_val(data)
    if isinstance(data, (int, float)):
        return number_val(data)
    if isinstance(data, str):
        return string_val(data)
    if isinstance(data, (list, tuple)):
        return array_val([wrap_value(item) for item in data])
    if isinstance(data, dict):
        return record_val({str(k): wrap_value(item) for k, item in data.items()})
    raise TypeError(f"cannot convert {type(data).__name__} to a Pluto value")
