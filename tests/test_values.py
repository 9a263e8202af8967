"""
Tests for runtime values and scopes.
"""

import math

import pytest
from pluto import UndefinedVariableError
from pluto.runtime import (
    Value, ValueKind, ABSENT,
    number_val, string_val, bool_val, array_val, record_val,
    values_equal, format_value, format_number, wrap_value, unwrap_value,
    Scope, ActionFrame,
)


class TestValues:
    """Test runtime value constructors."""

    def test_number_value(self):
        """Numbers are stored as floats."""
        v = number_val(42)
        assert v.data == 42.0
        assert isinstance(v.data, float)
        assert v.kind == ValueKind.NUMBER

    def test_string_value(self):
        """Test string value creation."""
        v = string_val("hello")
        assert v.data == "hello"
        assert v.kind == ValueKind.STRING

    def test_bool_value(self):
        """Test boolean value creation."""
        assert bool_val(True).data is True
        assert bool_val(0).data is False

    def test_array_value_copies(self):
        """array_val copies the list it is given."""
        items = [number_val(1)]
        v = array_val(items)
        items.append(number_val(2))
        assert len(v.data) == 1

    def test_record_value_keeps_order(self):
        """Records keep insertion order."""
        v = record_val({"b": number_val(1), "a": number_val(2)})
        assert list(v.data) == ["b", "a"]

    def test_absent(self):
        """ABSENT is its own kind."""
        assert ABSENT.kind == ValueKind.ABSENT
        assert ABSENT.is_absent


class TestTruthiness:
    """Test truthiness rules."""

    def test_absent_is_false(self):
        """Test that absent is falsy."""
        assert not ABSENT.is_truthy()

    def test_booleans(self):
        """Test boolean truthiness."""
        assert bool_val(True).is_truthy()
        assert not bool_val(False).is_truthy()

    def test_numbers(self):
        """Only zero is false."""
        assert not number_val(0).is_truthy()
        assert number_val(-1).is_truthy()
        assert number_val(math.nan).is_truthy()

    def test_strings(self):
        """Only the empty string is false."""
        assert not string_val("").is_truthy()
        assert string_val("0").is_truthy()

    def test_containers_always_true(self):
        """Empty arrays and records are still true."""
        assert array_val([]).is_truthy()
        assert record_val({}).is_truthy()


class TestEquality:
    """Test value equality."""

    def test_no_coercion(self):
        """Different kinds are never equal."""
        assert not values_equal(number_val(1), bool_val(True))
        assert not values_equal(number_val(1), string_val("1"))
        assert not values_equal(ABSENT, bool_val(False))

    def test_absent_equals_absent(self):
        """Test that absent equals itself."""
        assert values_equal(ABSENT, ABSENT)

    def test_structural_arrays(self):
        """Arrays compare element by element."""
        a = array_val([number_val(1), string_val("x")])
        b = array_val([number_val(1), string_val("x")])
        c = array_val([number_val(1)])
        assert values_equal(a, b)
        assert not values_equal(a, c)

    def test_structural_records(self):
        """Records compare by keys and values."""
        a = record_val({"x": number_val(1)})
        b = record_val({"x": number_val(1)})
        c = record_val({"x": number_val(2)})
        assert values_equal(a, b)
        assert not values_equal(a, c)

    def test_nan_not_equal(self):
        """Test that NaN is not equal to NaN."""
        assert not values_equal(number_val(math.nan), number_val(math.nan))


class TestFormatting:
    """Test display formatting."""

    def test_integral_numbers(self):
        """Whole numbers print without a fraction."""
        assert format_number(10.0) == "10"
        assert format_number(-3.0) == "-3"

    def test_fractional_numbers(self):
        """Test fractional number formatting."""
        assert format_number(3.14) == "3.14"
        assert format_number(0.1 + 0.2) == "0.30000000000000004"

    def test_special_numbers(self):
        """Test infinity and NaN formatting."""
        assert format_number(math.inf) == "Infinity"
        assert format_number(-math.inf) == "-Infinity"
        assert format_number(math.nan) == "NaN"

    def test_scalars(self):
        """Test scalar formatting."""
        assert format_value(bool_val(True)) == "true"
        assert format_value(string_val("hi")) == "hi"
        assert format_value(ABSENT) == "absent"

    def test_containers(self):
        """Strings are quoted inside containers."""
        v = array_val([number_val(1), string_val("a"), array_val([])])
        assert format_value(v) == '[1, "a", []]'
        r = record_val({"sum": number_val(15), "name": string_val("x")})
        assert format_value(r) == '{sum: 15, name: "x"}'


class TestHostConversion:
    """Test wrap_value and unwrap_value."""

    def test_wrap_scalars(self):
        """Test wrapping Python scalars."""
        assert wrap_value(None) is ABSENT
        assert wrap_value(True).kind == ValueKind.BOOLEAN
        assert wrap_value(3).kind == ValueKind.NUMBER
        assert wrap_value("s").kind == ValueKind.STRING

    def test_wrap_nested(self):
        """Test wrapping nested containers."""
        v = wrap_value({"xs": [1, 2], "ok": False})
        assert v.kind == ValueKind.RECORD
        assert v.data["xs"].kind == ValueKind.ARRAY

    def test_wrap_rejects_unknown(self):
        """Test wrapping an unsupported object."""
        with pytest.raises(TypeError):
            wrap_value(object())

    def test_unwrap(self):
        """Test unwrapping nested values."""
        v = record_val({"a": array_val([number_val(1), ABSENT])})
        assert unwrap_value(v) == {"a": [1.0, None]}

    def test_wrap_returns_values_unchanged(self):
        """Test wrapping a Value."""
        v = number_val(1)
        assert wrap_value(v) is v


class TestScope:
    """Test the scope chain."""

    def test_define_and_get(self):
        """Test defining and reading a binding."""
        scope = Scope()
        scope.define("x", number_val(1))
        assert scope.get("x").data == 1

    def test_get_walks_parents(self):
        """Test lookups through parent scopes."""
        parent = Scope(name="global")
        parent.define("x", number_val(1))
        child = parent.child("inner")
        assert child.get("x").data == 1
        assert child.has("x")
        assert not child.has_local("x")

    def test_define_shadows(self):
        """define never touches ancestors."""
        parent = Scope()
        parent.define("x", number_val(1))
        child = parent.child("inner")
        child.define("x", number_val(2))
        assert parent.get("x").data == 1
        assert child.get("x").data == 2

    def test_set_updates_nearest(self):
        """set updates the first scope holding the name."""
        parent = Scope()
        parent.define("x", number_val(1))
        child = parent.child("inner")
        child.set("x", number_val(5))
        assert parent.get("x").data == 5
        assert child.variables == {}

    def test_get_undefined(self):
        """Test reading an unbound name."""
        with pytest.raises(UndefinedVariableError) as exc_info:
            Scope().get("missing")
        assert exc_info.value.name == "missing"
        assert "undefined variable 'missing'" in str(exc_info.value)

    def test_set_undefined(self):
        """Test updating an unbound name."""
        with pytest.raises(UndefinedVariableError):
            Scope().set("missing", number_val(1))


class TestActionFrame:
    """Test implicit-return bookkeeping."""

    def test_records_in_order_without_duplicates(self):
        """Test recording order and deduplication."""
        frame = ActionFrame(Scope(), ["a"])
        frame.record("y")
        frame.record("x")
        frame.record("y")
        assert frame.assigned == ["y", "x"]

    def test_skips_parameters(self):
        """Test that parameters are never recorded."""
        frame = ActionFrame(Scope(), ["a", "b"])
        frame.record("a")
        assert frame.assigned == []
