"""
Built-in function registry for the Pluto interpreter.

Every builtin receives the calling interpreter first (for console output and
for invoking callbacks) followed by its argument Values. Builtins never
mutate their inputs: array operations always build new arrays.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import math
import random

from .values import (
    Value, ValueKind, ABSENT,
    number_val, string_val, bool_val, array_val, record_val,
    format_value, type_name,
)


class BuiltinError(Exception):
    """Raised by a builtin on bad arguments; converted at the call site."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BuiltinArityError(BuiltinError):
    """Raised when a builtin receives fewer arguments than it requires."""
    pass


@dataclass(eq=False)
class BuiltinFunction:
    """
    A built-in function with its implementation and argument bounds.

    `max_args` of None means variadic. Arguments past `max_args` are
    dropped before the implementation is called.
    """
    name: str
    min_args: int
    max_args: Optional[int]
    implementation: Callable[..., Value]

    def __str__(self) -> str:
        return f"<builtin {self.name}>"

    def __call__(self, runtime, args: List[Value]) -> Value:
        """Apply the argument bounds and run the implementation."""
        if len(args) < self.min_args:
            raise BuiltinArityError(
                f"{self.name}() expects at least {self.min_args} argument(s), got {len(args)}"
            )
        if self.max_args is not None:
            args = args[:self.max_args]
        return self.implementation(runtime, *args)


# Sentinel for optional arguments that were not passed at all
_MISSING = Value(None, ValueKind.ABSENT)


# --- Argument helpers ---

def _expect(value: Value, kind: ValueKind, func: str, position: int) -> Any:
    if value.kind != kind:
        raise BuiltinError(
            f"{func}() argument {position} must be {kind.value}, got {type_name(value)}"
        )
    return value.data


def _number(value: Value, func: str, position: int = 1) -> float:
    return _expect(value, ValueKind.NUMBER, func, position)


def _array(value: Value, func: str, position: int = 1) -> List[Value]:
    return _expect(value, ValueKind.ARRAY, func, position)


def _text(value: Value) -> str:
    """String coercion used by the string builtins."""
    return format_value(value)


def _index(x: float) -> int:
    """Truncate a number to an index; NaN counts as 0."""
    if math.isnan(x):
        return 0
    if math.isinf(x):
        return -(2 ** 31) if x < 0 else 2 ** 31
    return int(x)


def _numbers(items: List[Value], func: str) -> List[float]:
    result = []
    for i, item in enumerate(items):
        if item.kind != ValueKind.NUMBER:
            raise BuiltinError(
                f"{func}() expects an array of Numbers, element {i} is {type_name(item)}"
            )
        result.append(item.data)
    return result


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and bound into each interpreter's
    global scope.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return list(self._functions)

    def functions(self) -> List[BuiltinFunction]:
        return list(self._functions.values())

    def _add(self, name: str, impl: Callable[..., Value], min_args: int,
             max_args: Optional[int]) -> None:
        self.register(BuiltinFunction(name, min_args, max_args, impl))

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_console_functions()
        self._register_math_functions()
        self._register_string_functions()
        self._register_array_functions()
        self._register_conversion_functions()
        self._register_predicate_functions()

    # --- Console Functions ---

    def _register_console_functions(self) -> None:
        """Register print and log."""

        def _print(rt, *args: Value) -> Value:
            rt.write(" ".join(format_value(a) for a in args) + "\n")
            if len(args) == 1:
                return args[0]
            return array_val(args)

        self._add("print", _print, 0, None)
        self._add("log", _print, 0, None)

    # --- Math Functions ---

    def _register_math_functions(self) -> None:
        """Register mathematical functions."""

        def _abs(rt, x: Value) -> Value:
            return number_val(abs(_number(x, "abs")))

        def _sqrt(rt, x: Value) -> Value:
            n = _number(x, "sqrt")
            if n < 0:
                return number_val(math.nan)
            return number_val(math.sqrt(n))

        def _pow(rt, base: Value, exp: Value) -> Value:
            b = _number(base, "pow", 1)
            e = _number(exp, "pow", 2)
            try:
                return number_val(math.pow(b, e))
            except OverflowError:
                return number_val(math.inf)
            except ValueError:
                # 0 to a negative power, or a fractional power of a negative
                return number_val(math.inf if b == 0 else math.nan)

        def _min(rt, *args: Value) -> Value:
            values = [_number(a, "min", i + 1) for i, a in enumerate(args)]
            return number_val(min(values, default=math.inf))

        def _max(rt, *args: Value) -> Value:
            values = [_number(a, "max", i + 1) for i, a in enumerate(args)]
            return number_val(max(values, default=-math.inf))

        def _random(rt) -> Value:
            return number_val(random.random())

        def _rounding(name: str, fn: Callable[[float], float]):
            def impl(rt, x: Value) -> Value:
                n = _number(x, name)
                if not math.isfinite(n):
                    return number_val(n)
                return number_val(fn(n))
            return impl

        math_funcs = [
            ("abs", _abs, 1, 1),
            ("sqrt", _sqrt, 1, 1),
            ("pow", _pow, 2, 2),
            ("min", _min, 0, None),
            ("max", _max, 0, None),
            ("random", _random, 0, 0),
            ("floor", _rounding("floor", math.floor), 1, 1),
            ("ceil", _rounding("ceil", math.ceil), 1, 1),
            # Halves round up, toward positive infinity
            ("round", _rounding("round", lambda n: math.floor(n + 0.5)), 1, 1),
        ]

        for name, impl, min_args, max_args in math_funcs:
            self._add(name, impl, min_args, max_args)

    # --- String Functions ---

    def _register_string_functions(self) -> None:
        """Register string functions. Non-string subjects are coerced."""

        def _length(rt, x: Value) -> Value:
            if x.kind in (ValueKind.ARRAY, ValueKind.STRING):
                return number_val(len(x.data))
            return number_val(len(_text(x)))

        def _substring(rt, s: Value, start: Value, end: Value = _MISSING) -> Value:
            text = _text(s)
            lo = min(max(_index(_number(start, "substring", 2)), 0), len(text))
            if end is _MISSING or end.is_absent:
                hi = len(text)
            else:
                hi = min(max(_index(_number(end, "substring", 3)), 0), len(text))
            if lo > hi:
                lo, hi = hi, lo
            return string_val(text[lo:hi])

        def _index_of(rt, s: Value, search: Value) -> Value:
            return number_val(_text(s).find(_text(search)))

        def _upper(rt, s: Value) -> Value:
            return string_val(_text(s).upper())

        def _lower(rt, s: Value) -> Value:
            return string_val(_text(s).lower())

        def _split(rt, s: Value, sep: Value = _MISSING) -> Value:
            text = _text(s)
            if sep is _MISSING or sep.is_absent:
                return array_val([string_val(text)])
            separator = _text(sep)
            if separator == "":
                return array_val([string_val(ch) for ch in text])
            return array_val([string_val(part) for part in text.split(separator)])

        def _trim(rt, s: Value) -> Value:
            return string_val(_text(s).strip())

        def _replace(rt, s: Value, search: Value, replacement: Value) -> Value:
            return string_val(_text(s).replace(_text(search), _text(replacement), 1))

        string_funcs = [
            ("length", _length, 1, 1),
            ("substring", _substring, 2, 3),
            ("indexOf", _index_of, 2, 2),
            ("toUpperCase", _upper, 1, 1),
            ("toLowerCase", _lower, 1, 1),
            ("split", _split, 1, 2),
            ("trim", _trim, 1, 1),
            ("replace", _replace, 3, 3),
        ]

        for name, impl, min_args, max_args in string_funcs:
            self._add(name, impl, min_args, max_args)

    # --- Array Functions ---

    def _register_array_functions(self) -> None:
        """Register array functions. All of them return new values."""

        def _push(rt, arr: Value, *items: Value) -> Value:
            return array_val(_array(arr, "push") + list(items))

        def _pop(rt, arr: Value) -> Value:
            items = list(_array(arr, "pop"))
            item = items.pop() if items else ABSENT
            return record_val({"array": array_val(items), "item": item})

        def _slice(rt, seq: Value, start: Value = _MISSING, end: Value = _MISSING) -> Value:
            if seq.kind not in (ValueKind.ARRAY, ValueKind.STRING):
                raise BuiltinError(
                    f"slice() argument 1 must be Array or String, got {type_name(seq)}"
                )
            lo = None if start is _MISSING or start.is_absent else _index(_number(start, "slice", 2))
            hi = None if end is _MISSING or end.is_absent else _index(_number(end, "slice", 3))
            if seq.kind == ValueKind.STRING:
                return string_val(seq.data[lo:hi])
            return array_val(seq.data[lo:hi])

        def _map(rt, arr: Value, fn: Value) -> Value:
            items = _array(arr, "map")
            return array_val([
                rt.call_value(fn, [item, number_val(i), arr])
                for i, item in enumerate(items)
            ])

        def _filter(rt, arr: Value, fn: Value) -> Value:
            items = _array(arr, "filter")
            return array_val([
                item for i, item in enumerate(items)
                if rt.call_value(fn, [item, number_val(i), arr]).is_truthy()
            ])

        def _reduce(rt, arr: Value, fn: Value, initial: Value = _MISSING) -> Value:
            items = _array(arr, "reduce")
            start = 0
            if initial is _MISSING:
                if not items:
                    raise BuiltinError("reduce() of empty array with no initial value")
                acc = items[0]
                start = 1
            else:
                acc = initial
            for i in range(start, len(items)):
                acc = rt.call_value(fn, [acc, items[i], number_val(i), arr])
            return acc

        def _join(rt, arr: Value, sep: Value = _MISSING) -> Value:
            items = _array(arr, "join")
            separator = "," if sep is _MISSING or sep.is_absent else _text(sep)
            return string_val(separator.join(
                "" if item.is_absent else format_value(item) for item in items
            ))

        def _reverse(rt, arr: Value) -> Value:
            return array_val(list(reversed(_array(arr, "reverse"))))

        def _sort(rt, arr: Value) -> Value:
            items = _array(arr, "sort")
            if all(item.kind == ValueKind.NUMBER for item in items):
                return array_val(sorted(items, key=lambda v: v.data))
            return array_val(sorted(items, key=format_value))

        def _sum(rt, arr: Value) -> Value:
            return number_val(math.fsum(_numbers(_array(arr, "sum"), "sum")))

        def _average(rt, arr: Value) -> Value:
            values = _numbers(_array(arr, "average"), "average")
            if not values:
                return number_val(math.nan)
            return number_val(math.fsum(values) / len(values))

        def _minimum(rt, arr: Value) -> Value:
            return number_val(min(_numbers(_array(arr, "minimum"), "minimum"), default=math.inf))

        def _maximum(rt, arr: Value) -> Value:
            return number_val(max(_numbers(_array(arr, "maximum"), "maximum"), default=-math.inf))

        array_funcs = [
            ("push", _push, 1, None),
            ("pop", _pop, 1, 1),
            ("slice", _slice, 1, 3),
            ("map", _map, 2, 2),
            ("filter", _filter, 2, 2),
            ("reduce", _reduce, 2, 3),
            ("join", _join, 1, 2),
            ("reverse", _reverse, 1, 1),
            ("sort", _sort, 1, 1),
            ("sum", _sum, 1, 1),
            ("average", _average, 1, 1),
            ("minimum", _minimum, 1, 1),
            ("maximum", _maximum, 1, 1),
        ]

        for name, impl, min_args, max_args in array_funcs:
            self._add(name, impl, min_args, max_args)

    # --- Conversion Functions ---

    def _register_conversion_functions(self) -> None:
        """Register toString, toNumber and toBoolean."""

        def _to_string(rt, x: Value) -> Value:
            return string_val(format_value(x))

        def _to_number(rt, x: Value) -> Value:
            if x.kind == ValueKind.NUMBER:
                return x
            if x.kind == ValueKind.BOOLEAN:
                return number_val(1 if x.data else 0)
            if x.kind == ValueKind.STRING:
                text = x.data.strip()
                if text == "":
                    return number_val(0)
                try:
                    return number_val(float(text))
                except ValueError:
                    return number_val(math.nan)
            return number_val(math.nan)

        def _to_boolean(rt, x: Value) -> Value:
            return bool_val(x.is_truthy())

        self._add("toString", _to_string, 1, 1)
        self._add("toNumber", _to_number, 1, 1)
        self._add("toBoolean", _to_boolean, 1, 1)

    # --- Predicates ---

    def _register_predicate_functions(self) -> None:
        """Register the is* kind predicates."""

        predicates = [
            ("isNumber", ValueKind.NUMBER),
            ("isString", ValueKind.STRING),
            ("isBoolean", ValueKind.BOOLEAN),
            ("isArray", ValueKind.ARRAY),
            ("isObject", ValueKind.RECORD),
        ]

        for name, kind in predicates:
            def impl(rt, x: Value, kind=kind) -> Value:
                return bool_val(x.kind == kind)
            self._add(name, impl, 1, 1)


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(runtime, name: str, args: List[Value]) -> Value:
    """
    Call a built-in function by name.

    Raises KeyError if the function is not found and BuiltinError on bad
    arguments.
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise KeyError(f"Unknown built-in function: {name}")
    return func(runtime, args)
