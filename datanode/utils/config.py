"""Node configuration loaded from a TOML file."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_U64_MAX = 2**64 - 1


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    value = data[name]
    if not isinstance(value, Mapping):
        raise ValueError(f"`{name}` must be a table")
    return value


def _string(table: Mapping[str, Any], key: str, section: str) -> str:
    if key not in table:
        raise ValueError(f"missing field `{key}` in [{section}]")
    value = table[key]
    if not isinstance(value, str):
        raise ValueError(f"`{section}.{key}` must be a string")
    return value


@dataclass(frozen=True)
class Master:
    """Where the master node listens."""

    addr: str

    @classmethod
    def _from_mapping(cls, table: Mapping[str, Any]) -> Master:
        return cls(addr=_string(table, "addr", "master"))


@dataclass(frozen=True)
class StorageConfig:
    """Local storage settings."""

    path: str
    max_size_mb: int

    @classmethod
    def _from_mapping(cls, table: Mapping[str, Any]) -> StorageConfig:
        path = _string(table, "path", "storage")
        if "max_size_mb" not in table:
            raise ValueError("missing field `max_size_mb` in [storage]")
        size = table["max_size_mb"]
        if isinstance(size, bool) or not isinstance(size, int) or not 0 <= size <= _U64_MAX:
            raise ValueError("`storage.max_size_mb` must be a non-negative integer")
        return cls(path=path, max_size_mb=size)


@dataclass(frozen=True)
class Config:
    """The whole node configuration."""

    storage: StorageConfig
    master: Master

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> Config:
        """Read and validate a TOML configuration file."""
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        return cls(
            storage=StorageConfig._from_mapping(_section(data, "storage")),
            master=Master._from_mapping(_section(data, "master")),
        )