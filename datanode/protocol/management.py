"""Database management statements."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from datanode.protocol.statement import Statement, StatementError, StatementKind


@dataclass
class CreateDatabaseStatement(Statement):
    """Create a database."""

    kind = StatementKind.CREATE_DATABASE

    database_name: str


@dataclass
class DropDatabaseStatement(Statement):
    """Drop a database."""

    kind = StatementKind.DROP_DATABASE

    database_name: str


@dataclass
class ShowDatabasesStatement(Statement):
    """List all databases; carries no fields and travels as nil."""

    kind = StatementKind.SHOW_DATABASES

    def _to_wire(self) -> Any:
        return None

    @classmethod
    def _from_wire(cls, obj: Any) -> ShowDatabasesStatement:
        if obj is None or (isinstance(obj, (list, tuple, Mapping)) and not obj):
            return cls()
        raise StatementError(f"unexpected payload for {cls.__name__}: {obj!r}")


@dataclass
class UseDatabaseStatement(Statement):
    """Select the database for subsequent statements."""

    kind = StatementKind.USE_DATABASE

    database_name: str