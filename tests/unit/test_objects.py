"""Tests for the BQL runtime object model and environments."""

from __future__ import annotations

from bql.core.ir.objects import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Builtin,
    Environment,
    Error,
    HashKey,
    HashMap,
    Hashable,
    Integer,
    ObjectType,
    ReturnValue,
    String,
    fnv1a_64,
    native_bool_to_boolean,
    wrap_int64,
)

# ============================================================================
# Hash keys
# ============================================================================


class TestHashKeys:
    def test_equal_strings_share_a_key(self) -> None:
        assert String("Hello World").hash_key() == String("Hello World").hash_key()

    def test_different_strings_differ(self) -> None:
        assert String("My name is johnny").hash_key() != String("Hello World").hash_key()

    def test_integer_key(self) -> None:
        assert Integer(7).hash_key() == HashKey(ObjectType.INTEGER, 7)

    def test_negative_integer_key_is_unsigned(self) -> None:
        assert Integer(-1).hash_key().value == 2**64 - 1

    def test_boolean_keys(self) -> None:
        assert TRUE.hash_key() == HashKey(ObjectType.BOOLEAN, 1)
        assert FALSE.hash_key() == HashKey(ObjectType.BOOLEAN, 0)

    def test_type_is_part_of_the_key(self) -> None:
        assert Integer(1).hash_key() != TRUE.hash_key()

    def test_fnv1a(self) -> None:
        assert fnv1a_64("") == 0xCBF29CE484222325
        assert fnv1a_64("a") == 0xAF63DC4C8601EC8C

    def test_only_scalars_are_hashable(self) -> None:
        assert isinstance(Integer(1), Hashable)
        assert isinstance(String("x"), Hashable)
        assert isinstance(TRUE, Hashable)
        assert not isinstance(Array(), Hashable)
        assert not isinstance(HashMap(), Hashable)
        assert not isinstance(NULL, Hashable)


class TestWrapInt64:
    def test_in_range(self) -> None:
        assert wrap_int64(42) == 42
        assert wrap_int64(-1) == -1

    def test_overflow(self) -> None:
        assert wrap_int64(2**63) == -(2**63)
        assert wrap_int64(-(2**63) - 1) == 2**63 - 1


# ============================================================================
# Values
# ============================================================================


class TestValues:
    def test_singletons(self) -> None:
        assert native_bool_to_boolean(True) is TRUE
        assert native_bool_to_boolean(False) is FALSE

    def test_inspect_scalars(self) -> None:
        assert Integer(-3).inspect() == "-3"
        assert TRUE.inspect() == "true"
        assert String("hi").inspect() == "hi"
        assert NULL.inspect() == "null"
        assert Error("boom").inspect() == "error: boom"

    def test_inspect_collections_quote_strings(self) -> None:
        assert Array([Integer(1), String("a"), NULL]).inspect() == '[1, "a", null]'
        hashmap = HashMap()
        hashmap.put(String("a"), Integer(1))
        hashmap.put(Integer(2), Array([TRUE]))
        assert hashmap.inspect() == '{"a": 1, 2: [true]}'

    def test_inspect_self_containing_collections(self) -> None:
        array = Array([Integer(1)])
        array.elements.append(array)
        assert array.inspect() == "[1, [...]]"
        hashmap = HashMap()
        hashmap.put(String("me"), hashmap)
        assert hashmap.inspect() == '{"me": {...}}'

    def test_hashmap_put_replaces(self) -> None:
        hashmap = HashMap()
        hashmap.put(String("k"), Integer(1))
        hashmap.put(String("k"), Integer(2))
        assert hashmap.get(String("k")) == Integer(2)
        assert len(hashmap.pairs) == 1

    def test_hashmap_missing_key(self) -> None:
        assert HashMap().get(String("nope")) is None

    def test_hashmap_keeps_original_key(self) -> None:
        hashmap = HashMap()
        hashmap.put(Integer(5), String("five"))
        pair = hashmap.pairs[Integer(5).hash_key()]
        assert pair.key == Integer(5)

    def test_type_tags(self) -> None:
        assert Integer(1).type == ObjectType.INTEGER
        assert ReturnValue(Integer(1)).type == ObjectType.RETURN_VALUE
        assert Builtin("f", lambda *args: NULL).type == ObjectType.BUILTIN


# ============================================================================
# Environment
# ============================================================================


class TestEnvironment:
    def test_get_and_set(self) -> None:
        env = Environment()
        env.set("x", Integer(1))
        assert env.get("x") == Integer(1)
        assert env.get("y") is None

    def test_lookup_walks_outward(self) -> None:
        outer = Environment()
        outer.set("x", Integer(1))
        inner = Environment.enclosed(outer)
        assert inner.get("x") == Integer(1)
        assert "x" in inner

    def test_set_writes_innermost_scope(self) -> None:
        outer = Environment()
        outer.set("x", Integer(1))
        inner = Environment.enclosed(outer)
        inner.set("x", Integer(2))
        assert inner.get("x") == Integer(2)
        assert outer.get("x") == Integer(1)

    def test_inner_names_are_invisible_outside(self) -> None:
        outer = Environment()
        inner = Environment.enclosed(outer)
        inner.set("y", Integer(1))
        assert "y" not in outer
