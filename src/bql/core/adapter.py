"""
Conversion between host-native values and BQL runtime objects.

Host applications pass JSON-like data (scalars, lists, string-keyed maps)
as input bindings and get the program result back in the same shape.

    native           object
    -------------    ---------------------------
    bool             Boolean
    int              Integer (signed 64-bit)
    float            Integer (truncated toward zero)
    str              String
    None             Null
    list / tuple     Array
    Mapping[str, …]  HashMap with String keys

On the way back, hashmap keys become their textual form.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from bql.core.errors import ConversionError, EvaluationError
from bql.core.ir.objects import (
    FALSE,
    INT64_MAX,
    INT64_MIN,
    NULL,
    TRUE,
    Array,
    Boolean,
    Environment,
    Error,
    HashMap,
    Integer,
    Null,
    Object,
    String,
)


def to_object(value: Any) -> Object:
    """Convert a native value into a runtime object.

    Raises:
        ConversionError: If the value (or anything nested in it) has an
            unsupported type, is a non-finite float, contains itself, or
            an integer is out of range.
    """
    return _to_object(value, set())


def _to_object(value: Any, active: set[int]) -> Object:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, int):
        return _to_integer(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ConversionError(f"unsupported float value: {value}")
        return _to_integer(int(value))
    if isinstance(value, str):
        return String(value)
    if value is None:
        return NULL
    if isinstance(value, (list, tuple, Mapping)):
        # ids of the containers on the current path; shared children are fine
        if id(value) in active:
            raise ConversionError(f"cannot convert cyclic {type(value).__name__}")
        active.add(id(value))
        try:
            if isinstance(value, Mapping):
                return _to_hashmap(value, active)
            return Array([_to_object(v, active) for v in value])
        finally:
            active.discard(id(value))
    raise ConversionError(f"unsupported value type: {type(value).__name__}")


def _to_integer(value: int) -> Integer:
    if value < INT64_MIN or value > INT64_MAX:
        raise ConversionError(f"integer out of 64-bit range: {value}")
    return Integer(value)


def _to_hashmap(data: Mapping[Any, Any], active: set[int]) -> HashMap:
    hashmap = HashMap()
    for key, value in data.items():
        if not isinstance(key, str):
            raise ConversionError(f"unsupported hashmap key type: {type(key).__name__}")
        hashmap.put(String(key), _to_object(value, active))
    return hashmap


def to_native(obj: Object) -> Any:
    """Convert a runtime object back into a native value.

    Raises:
        EvaluationError: If the object is a runtime error.
        ConversionError: If the object has no native counterpart
            (functions, builtins, and arrays or hashmaps that contain
            themselves).
    """
    return _to_native(obj, set())


def _to_native(obj: Object, active: set[int]) -> Any:
    if isinstance(obj, Error):
        raise EvaluationError(obj.message)
    if isinstance(obj, (Integer, Boolean, String)):
        return obj.value
    if isinstance(obj, Null):
        return None
    if isinstance(obj, (Array, HashMap)):
        if id(obj) in active:
            raise ConversionError(f"cannot convert cyclic {obj.type}")
        active.add(id(obj))
        try:
            if isinstance(obj, Array):
                return [_to_native(e, active) for e in obj.elements]
            return {
                pair.key.inspect(): _to_native(pair.value, active)
                for pair in obj.pairs.values()
            }
        finally:
            active.discard(id(obj))
    raise ConversionError(f"cannot convert {obj.type} to a native value")


def bind(
    env: Environment,
    bindings: Mapping[str, Any],
    names: Iterable[str] | None = None,
) -> Environment:
    """Bind native values into ``env``.

    Args:
        env: Environment to populate.
        bindings: Name -> native value mapping supplied by the host.
        names: Optional subset of names to import. Every listed name must
            be present in ``bindings``. When omitted, all bindings are
            imported.

    Returns:
        The same environment, for chaining.

    Raises:
        ConversionError: If a listed name is missing or a value cannot be
            converted.
    """
    selected = bindings.keys() if names is None else names
    for name in selected:
        if name not in bindings:
            raise ConversionError(f"variable does not exist: {name}")
        env.set(name, to_object(bindings[name]))
    return env
