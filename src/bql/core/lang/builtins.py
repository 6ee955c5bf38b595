"""
Native functions available to every BQL program.

The registry is built once at import time and exposed as a read-only
mapping, so concurrent evaluations can share it without locking.
Identifiers are resolved against the environment chain first and against
this registry second.
"""

from __future__ import annotations

from types import MappingProxyType

from bql.core.ir.objects import (
    NULL,
    Array,
    Builtin,
    Error,
    Integer,
    Object,
    ObjectType,
    String,
)


def _wrong_arity(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments: {got} want: {want}")


def _len(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arity(len(args), 1)

    arg = args[0]
    if isinstance(arg, String):
        return Integer(len(arg.value))
    if isinstance(arg, Array):
        return Integer(len(arg.elements))
    return Error(f"type of argument not supported: {arg.type}")


def _push(*args: Object) -> Object:
    """Append to an array in place and return that same array."""
    if len(args) != 2:
        return _wrong_arity(len(args), 2)

    array = args[0]
    if not isinstance(array, Array):
        return Error(f"first argument must be {ObjectType.ARRAY}, got: {array.type}")

    array.elements.append(args[1])
    return array


def _first(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arity(len(args), 1)

    array = args[0]
    if not isinstance(array, Array):
        return Error(f"argument must be {ObjectType.ARRAY}, got: {array.type}")
    if array.elements:
        return array.elements[0]
    return NULL


def _last(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arity(len(args), 1)

    array = args[0]
    if not isinstance(array, Array):
        return Error(f"argument must be {ObjectType.ARRAY}, got: {array.type}")
    if array.elements:
        return array.elements[-1]
    return NULL


def _int_to_string(*args: Object) -> Object:
    if len(args) != 1:
        return _wrong_arity(len(args), 1)

    number = args[0]
    if not isinstance(number, Integer):
        return Error(f"argument must be {ObjectType.INTEGER}, got: {number.type}")
    return String(str(number.value))


BUILTINS: MappingProxyType[str, Builtin] = MappingProxyType(
    {
        "len": Builtin("len", _len),
        "push": Builtin("push", _push),
        "first": Builtin("first", _first),
        "last": Builtin("last", _last),
        "intToString": Builtin("intToString", _int_to_string),
    }
)
