"""
Runtime object model for the BQL evaluator.

Values are instances of a closed set of classes, each tagged with an
``ObjectType``. Only ``Integer``, ``Boolean`` and ``String`` are hashable
and may be used as hashmap keys; they derive from ``Hashable``.

``TRUE``, ``FALSE`` and ``NULL`` are process-wide singletons, so boolean and
null values can be compared by identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, NamedTuple

if TYPE_CHECKING:
    from bql.core.ir.nodes import BlockStatement, Identifier

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_UINT64_MASK = 2**64 - 1
_FNV_OFFSET_BASIS = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3


class ObjectType(StrEnum):
    """Type tags reported in error messages."""

    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    NULL = "NULL"
    ARRAY = "ARRAY"
    HASHMAP = "HASHMAP"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    ERROR = "ERROR"
    RETURN_VALUE = "RETURN_VALUE"


class HashKey(NamedTuple):
    """Hashable projection of a runtime value used to index hashmap storage."""

    type: ObjectType
    value: int


def fnv1a_64(text: str) -> int:
    """64-bit FNV-1a hash of the UTF-8 encoding of ``text``."""
    h = _FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & _UINT64_MASK
    return h


def wrap_int64(value: int) -> int:
    """Wrap an arbitrary Python int to signed 64-bit two's complement."""
    value &= _UINT64_MASK
    if value > INT64_MAX:
        value -= 2**64
    return value


class Object(ABC):
    """Base class for every runtime value."""

    type: ClassVar[ObjectType]

    @abstractmethod
    def inspect(self) -> str:
        """Textual form used for printing and hashmap key conversion."""


class Hashable(Object):
    """Capability of values that may be used as hashmap keys."""

    @abstractmethod
    def hash_key(self) -> HashKey: ...


@dataclass(frozen=True)
class Integer(Hashable):
    value: int

    type: ClassVar[ObjectType] = ObjectType.INTEGER

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value & _UINT64_MASK)


@dataclass(frozen=True)
class Boolean(Hashable):
    value: bool

    type: ClassVar[ObjectType] = ObjectType.BOOLEAN

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(self.type, 1 if self.value else 0)


@dataclass(frozen=True)
class String(Hashable):
    value: str

    type: ClassVar[ObjectType] = ObjectType.STRING

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.type, fnv1a_64(self.value))


class Null(Object):
    type: ClassVar[ObjectType] = ObjectType.NULL

    def inspect(self) -> str:
        return "null"

    def __repr__(self) -> str:
        return "NULL"


@dataclass(eq=False)
class Array(Object):
    """Ordered elements. The only object whose storage is mutated in place."""

    elements: list[Object] = field(default_factory=list)

    type: ClassVar[ObjectType] = ObjectType.ARRAY

    def inspect(self) -> str:
        return _inspect_element(self, set())


class HashPair(NamedTuple):
    """Original key object alongside its value."""

    key: Hashable
    value: Object


@dataclass(eq=False)
class HashMap(Object):
    pairs: dict[HashKey, HashPair] = field(default_factory=dict)

    type: ClassVar[ObjectType] = ObjectType.HASHMAP

    def inspect(self) -> str:
        return _inspect_element(self, set())

    def get(self, key: Hashable) -> Object | None:
        pair = self.pairs.get(key.hash_key())
        return pair.value if pair is not None else None

    def put(self, key: Hashable, value: Object) -> None:
        self.pairs[key.hash_key()] = HashPair(key, value)


@dataclass(eq=False)
class Function(Object):
    """User-defined function closing over the environment it was defined in."""

    parameters: list[Identifier]
    body: BlockStatement
    env: Environment

    type: ClassVar[ObjectType] = ObjectType.FUNCTION

    def inspect(self) -> str:
        params = ", ".join(p.name for p in self.parameters)
        return f"fn({params}) {self.body}"


BuiltinFunction = Callable[..., Object]


@dataclass(frozen=True, eq=False)
class Builtin(Object):
    """Native callable exposed under a fixed name."""

    name: str
    fn: BuiltinFunction

    type: ClassVar[ObjectType] = ObjectType.BUILTIN

    def inspect(self) -> str:
        return f"builtin {self.name}"


@dataclass(frozen=True)
class Error(Object):
    """Runtime error value; propagates through blocks like an exception."""

    message: str

    type: ClassVar[ObjectType] = ObjectType.ERROR

    def inspect(self) -> str:
        return f"error: {self.message}"


@dataclass(frozen=True, eq=False)
class ReturnValue(Object):
    """Control-flow signal carrying the value of a ``return`` statement."""

    value: Object

    type: ClassVar[ObjectType] = ObjectType.RETURN_VALUE

    def inspect(self) -> str:
        return self.value.inspect()


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


def _inspect_element(obj: Object, active: set[int]) -> str:
    # Strings nested in collections are shown quoted
    if isinstance(obj, String):
        return f'"{obj.value}"'
    if not isinstance(obj, (Array, HashMap)):
        return obj.inspect()
    # A collection that contains itself prints as [...] or {...}
    if id(obj) in active:
        return "[...]" if isinstance(obj, Array) else "{...}"
    active.add(id(obj))
    try:
        if isinstance(obj, Array):
            return "[" + ", ".join(_inspect_element(e, active) for e in obj.elements) + "]"
        items = (
            f"{_inspect_element(p.key, active)}: {_inspect_element(p.value, active)}"
            for p in obj.pairs.values()
        )
        return "{" + ", ".join(items) + "}"
    finally:
        active.discard(id(obj))


class Environment:
    """
    One lexical scope: a name -> object store plus an optional outer scope.

    Lookups walk outward until the name is found. Writes always target this
    scope. Closures keep a reference to the environment they were defined in,
    so a scope lives as long as its longest-lived referrer.
    """

    __slots__ = ("store", "outer")

    def __init__(self, outer: Environment | None = None) -> None:
        self.store: dict[str, Object] = {}
        self.outer = outer

    @classmethod
    def enclosed(cls, outer: Environment) -> Environment:
        """Create a child scope of ``outer`` (used for function calls)."""
        return cls(outer)

    def get(self, name: str) -> Object | None:
        env: Environment | None = self
        while env is not None:
            obj = env.store.get(name)
            if obj is not None:
                return obj
            env = env.outer
        return None

    def set(self, name: str, value: Object) -> Object:
        self.store[name] = value
        return value

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __repr__(self) -> str:
        return f"Environment(names={sorted(self.store)}, outer={self.outer is not None})"
