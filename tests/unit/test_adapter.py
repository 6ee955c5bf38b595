"""Tests for native value conversion at the host boundary."""

from __future__ import annotations

import pytest

from bql.core.adapter import bind, to_native, to_object
from bql.core.errors import ConversionError, EvaluationError
from bql.core.ir.nodes import BlockStatement
from bql.core.ir.objects import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Environment,
    Error,
    Function,
    HashMap,
    Integer,
    String,
)
from bql.core.lang.builtins import BUILTINS


class TestToObject:
    def test_scalars(self) -> None:
        assert to_object(True) is TRUE
        assert to_object(False) is FALSE
        assert to_object(None) is NULL
        assert to_object(5) == Integer(5)
        assert to_object("hi") == String("hi")

    @pytest.mark.parametrize("value,expected", [(3.9, 3), (-3.9, -3), (0.5, 0)])
    def test_float_truncates(self, value: float, expected: int) -> None:
        assert to_object(value) == Integer(expected)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float(self, value: float) -> None:
        with pytest.raises(ConversionError, match="unsupported float value"):
            to_object(value)

    def test_sequences(self) -> None:
        result = to_object([1, "a", (True,)])
        assert isinstance(result, Array)
        assert result.inspect() == '[1, "a", [true]]'

    def test_mapping(self) -> None:
        result = to_object({"a": 1, "b": [2]})
        assert isinstance(result, HashMap)
        assert result.get(String("a")) == Integer(1)

    def test_integer_range(self) -> None:
        assert to_object(2**63 - 1) == Integer(2**63 - 1)
        assert to_object(-(2**63)) == Integer(-(2**63))
        with pytest.raises(ConversionError, match="out of 64-bit range"):
            to_object(2**63)

    def test_unsupported_type(self) -> None:
        with pytest.raises(ConversionError, match="unsupported value type: set"):
            to_object({1, 2})

    def test_non_string_key(self) -> None:
        with pytest.raises(ConversionError, match="unsupported hashmap key type: int"):
            to_object({1: "a"})

    def test_nested_failure(self) -> None:
        with pytest.raises(ConversionError):
            to_object({"a": [object()]})

    def test_cyclic_list(self) -> None:
        data: list[object] = [1]
        data.append(data)
        with pytest.raises(ConversionError, match="cannot convert cyclic list"):
            to_object(data)

    def test_shared_list_is_not_cyclic(self) -> None:
        shared = [1]
        assert to_object([shared, shared]).inspect() == "[[1], [1]]"


class TestToNative:
    def test_scalars(self) -> None:
        assert to_native(Integer(-2)) == -2
        assert to_native(TRUE) is True
        assert to_native(String("x")) == "x"
        assert to_native(NULL) is None

    def test_round_trip(self) -> None:
        value = {"a": [1, True, None, "x"], "b": {"c": -5}}
        assert to_native(to_object(value)) == value

    def test_hashmap_keys_become_text(self) -> None:
        hashmap = HashMap()
        hashmap.put(Integer(1), String("one"))
        hashmap.put(TRUE, Integer(2))
        assert to_native(hashmap) == {"1": "one", "true": 2}

    def test_error_raises(self) -> None:
        with pytest.raises(EvaluationError, match="boom"):
            to_native(Error("boom"))

    def test_cyclic_array(self) -> None:
        array = Array([Integer(1)])
        array.elements.append(array)
        with pytest.raises(ConversionError, match="cannot convert cyclic ARRAY"):
            to_native(array)

    def test_cyclic_hashmap(self) -> None:
        hashmap = HashMap()
        hashmap.put(String("self"), Array([hashmap]))
        with pytest.raises(ConversionError, match="cannot convert cyclic HASHMAP"):
            to_native(hashmap)

    def test_shared_array_is_not_cyclic(self) -> None:
        shared = Array([Integer(1)])
        assert to_native(Array([shared, shared])) == [[1], [1]]

    def test_function_is_not_convertible(self) -> None:
        fn = Function(parameters=[], body=BlockStatement(), env=Environment())
        with pytest.raises(ConversionError, match="cannot convert FUNCTION"):
            to_native(fn)

    def test_builtin_is_not_convertible(self) -> None:
        with pytest.raises(ConversionError, match="cannot convert BUILTIN"):
            to_native(BUILTINS["len"])


class TestBind:
    def test_binds_everything_by_default(self) -> None:
        env = bind(Environment(), {"x": 1, "y": "two"})
        assert env.get("x") == Integer(1)
        assert env.get("y") == String("two")

    def test_names_select_a_subset(self) -> None:
        env = bind(Environment(), {"x": 1, "y": 2}, names=["x"])
        assert env.get("x") == Integer(1)
        assert env.get("y") is None

    def test_missing_name(self) -> None:
        with pytest.raises(ConversionError, match="variable does not exist: z"):
            bind(Environment(), {"x": 1}, names=["x", "z"])
