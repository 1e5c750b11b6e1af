"""Shared statement machinery: column definitions, kinds and the wire codec."""

from __future__ import annotations

import dataclasses
import functools
import inspect
import struct
import types
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, ClassVar, Optional, Union, get_args, get_origin

import msgpack

_PREFIX = struct.Struct(">I")

_SIMPLE_HINTS: dict[str, Any] = {
    "str": str,
    "int": int,
    "bool": bool,
    "float": float,
    "bytes": bytes,
    "None": type(None),
    "NoneType": type(None),
    "Any": Any,
}


class StatementError(ValueError):
    """Raised when a statement cannot be encoded or decoded."""


class StatementKind(Enum):
    """The kind of operation a statement describes."""

    CREATE_DATABASE = auto()
    DROP_DATABASE = auto()
    SHOW_DATABASES = auto()
    USE_DATABASE = auto()

    CREATE_TABLE = auto()
    DROP_TABLE = auto()
    ALTER_TABLE = auto()
    RENAME_TABLE = auto()
    TRUNCATE_TABLE = auto()
    SHOW_TABLES = auto()
    DESCRIBE_TABLE = auto()

    CREATE_INDEX = auto()
    DROP_INDEX = auto()
    SHOW_INDEXES = auto()

    INSERT = auto()
    SELECT = auto()
    UPDATE = auto()
    DELETE = auto()
    BULK_INSERT = auto()
    UPSERT = auto()

    BEGIN_TRANSACTION = auto()
    COMMIT = auto()
    ROLLBACK = auto()
    SAVEPOINT = auto()
    RELEASE_SAVEPOINT = auto()

    PING = auto()
    PONG = auto()
    GREETING = auto()
    WELCOME = auto()
    UNKNOWN_COMMAND = auto()


def _split_top(text: str, sep: str) -> list[str]:
    """Split on a separator that is not nested inside brackets."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _resolve(hint: Any, owner: type) -> Any:
    """Turn an annotation, possibly written as text, into a type hint object."""
    if not isinstance(hint, str):
        return hint
    text = hint.strip().strip("'\"")
    alternatives = _split_top(text, "|")
    if len(alternatives) > 1:
        return Union[tuple(_resolve(alt, owner) for alt in alternatives)]
    if text.endswith("]") and "[" in text:
        head, _, rest = text.partition("[")
        head = head.strip().removeprefix("typing.")
        args = [_resolve(arg, owner) for arg in _split_top(rest[:-1], ",")]
        if head in ("list", "List") and len(args) == 1:
            return list[args[0]]
        if head in ("dict", "Dict") and len(args) == 2:
            return dict[args[0], args[1]]
        if head == "Optional" and len(args) == 1:
            return Optional[args[0]]
        if head == "Union" and args:
            return Union[tuple(args)]
        return Any
    name = text.removeprefix("typing.")
    if name in _SIMPLE_HINTS:
        return _SIMPLE_HINTS[name]
    target: Any = inspect.getmodule(owner)
    for part in name.split("."):
        target = getattr(target, part, None)
        if target is None:
            return Any
    return target


@functools.cache
def _field_hints(cls: type) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    for base in reversed(cls.__mro__):
        for name, hint in base.__dict__.get("__annotations__", {}).items():
            hints[name] = _resolve(hint, base)
    return hints


def _is_optional(hint: Any) -> bool:
    return get_origin(hint) in (Union, types.UnionType) and type(None) in get_args(hint)


def _conform(value: Any, hint: Any, path: str) -> Any:
    """Check a decoded value against a type hint and convert nested records."""
    if hint is Any:
        return value
    origin = get_origin(hint)
    if origin in (Union, types.UnionType):
        args = get_args(hint)
        if value is None and type(None) in args:
            return None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _conform(value, arg, path)
            except StatementError:
                continue
        raise StatementError(f"invalid value for `{path}`: {value!r}")
    if origin is list:
        if not isinstance(value, (list, tuple)):
            raise StatementError(f"`{path}` must be a sequence, got {type(value).__name__}")
        (item,) = get_args(hint) or (Any,)
        return [_conform(v, item, f"{path}[]") for v in value]
    if origin is dict:
        if not isinstance(value, Mapping):
            raise StatementError(f"`{path}` must be a map, got {type(value).__name__}")
        key_hint, value_hint = get_args(hint) or (Any, Any)
        return {
            _conform(k, key_hint, f"{path} key"): _conform(v, value_hint, f"{path}.{k}")
            for k, v in value.items()
        }
    if hint is bool:
        if not isinstance(value, bool):
            raise StatementError(f"`{path}` must be a boolean, got {value!r}")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise StatementError(f"`{path}` must be an integer, got {value!r}")
        return value
    if hint is str:
        if not isinstance(value, str):
            raise StatementError(f"`{path}` must be a string, got {value!r}")
        return value
    if isinstance(hint, type) and hasattr(hint, "from_dict"):
        if isinstance(value, hint):
            return value
        return hint.from_dict(value)
    return value


def _build(cls: type, data: Any) -> Any:
    """Build a dataclass instance from a decoded map (or positional array)."""
    fields = [f for f in dataclasses.fields(cls) if f.init]
    if isinstance(data, (list, tuple)):
        if len(data) > len(fields):
            raise StatementError(f"too many values for {cls.__name__}")
        data = {f.name: value for f, value in zip(fields, data)}
    if not isinstance(data, Mapping):
        raise StatementError(f"expected a map for {cls.__name__}, got {type(data).__name__}")
    hints = _field_hints(cls)
    kwargs = {}
    for f in fields:
        hint = hints.get(f.name, Any)
        if f.name in data:
            kwargs[f.name] = _conform(data[f.name], hint, f.name)
        elif _is_optional(hint):
            kwargs[f.name] = None
        else:
            raise StatementError(f"missing field `{f.name}` for {cls.__name__}")
    return cls(**kwargs)


def _plain(value: Any) -> Any:
    """Turn a field value into plain data suitable for MessagePack."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass
class ColumnDefinition:
    """The definition of one table column."""

    name: str
    type: str
    length: int
    primary_key: bool
    index: bool
    default_value: str

    def to_dict(self) -> dict[str, Any]:
        """Return the column as a map with its wire field names."""
        return {
            "name": self.name,
            "type": self.type,
            "length": self.length,
            "primary_key": self.primary_key,
            "index": self.index,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ColumnDefinition:
        """Build a column from a decoded map."""
        return _build(cls, data)


class Statement:
    """Base for dataclass statements sent as length-prefixed MessagePack."""

    kind: ClassVar[StatementKind]

    def protocol(self) -> StatementKind:
        """Return the kind of operation this statement describes."""
        return self.kind

    def to_dict(self) -> dict[str, Any]:
        """Return the statement's fields as a map, in declaration order."""
        return {f.name: _plain(getattr(self, f.name)) for f in dataclasses.fields(self)}

    @classmethod
    def from_dict(cls, data: Any) -> Statement:
        """Build a statement from a decoded map, validating field types."""
        return _build(cls, data)

    def _to_wire(self) -> Any:
        return self.to_dict()

    @classmethod
    def _from_wire(cls, obj: Any) -> Statement:
        return cls.from_dict(obj)

    def to_bytes(self) -> bytes:
        """Encode as a 4-byte big-endian length followed by MessagePack."""
        try:
            payload = msgpack.packb(self._to_wire(), use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as exc:
            raise StatementError(f"cannot encode {type(self).__name__}: {exc}") from exc
        return _PREFIX.pack(len(payload)) + payload

    @classmethod
    def from_bytes(cls, data: bytes) -> Statement:
        """Decode from length-prefixed MessagePack; the prefix value is not checked."""
        if len(data) < _PREFIX.size:
            raise StatementError("Invalid MessagePack data: not enough bytes for length prefix")
        try:
            obj = msgpack.unpackb(bytes(data[_PREFIX.size:]), raw=False)
        except (ValueError, TypeError, msgpack.exceptions.UnpackException) as exc:
            raise StatementError(f"Invalid MessagePack data: {exc}") from exc
        return cls._from_wire(obj)