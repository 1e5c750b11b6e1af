"""Table statements: creating, changing, renaming and inspecting tables."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from datanode.protocol.statement import (
    ColumnDefinition,
    Statement,
    StatementError,
    StatementKind,
)


@dataclass(frozen=True)
class AddColumn:
    """Add a column to a table."""

    column: ColumnDefinition

    def to_dict(self) -> dict[str, Any]:
        """Return the operation in its tagged wire form."""
        return {"AddColumn": self.column.to_dict()}


@dataclass(frozen=True)
class DropColumn:
    """Remove a column from a table."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        """Return the operation in its tagged wire form."""
        return {"DropColumn": self.name}


@dataclass(frozen=True)
class RenameColumn:
    """Give a column a new name."""

    old_name: str
    new_name: str

    def to_dict(self) -> dict[str, Any]:
        """Return the operation in its tagged wire form."""
        return {"RenameColumn": {"old_name": self.old_name, "new_name": self.new_name}}


@dataclass(frozen=True)
class ModifyColumn:
    """Replace the definition of an existing column."""

    column: ColumnDefinition

    def to_dict(self) -> dict[str, Any]:
        """Return the operation in its tagged wire form."""
        return {"ModifyColumn": self.column.to_dict()}


AlterOperation = AddColumn | DropColumn | RenameColumn | ModifyColumn
_OPERATION_TYPES = (AddColumn, DropColumn, RenameColumn, ModifyColumn)


def alter_operation_to_wire(operation: AlterOperation) -> dict[str, Any]:
    """Encode an alter operation as a single-entry map keyed by its variant."""
    if not isinstance(operation, _OPERATION_TYPES):
        raise StatementError(f"not an alter operation: {operation!r}")
    return operation.to_dict()


def _rename_from_wire(value: Any) -> RenameColumn:
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise StatementError("RenameColumn expects two values")
        value = {"old_name": value[0], "new_name": value[1]}
    if not isinstance(value, Mapping):
        raise StatementError(f"RenameColumn expects a map, got {type(value).__name__}")
    names = []
    for key in ("old_name", "new_name"):
        if key not in value:
            raise StatementError(f"missing field `{key}` for RenameColumn")
        if not isinstance(value[key], str):
            raise StatementError(f"`{key}` must be a string, got {value[key]!r}")
        names.append(value[key])
    return RenameColumn(*names)


def alter_operation_from_wire(data: Any) -> AlterOperation:
    """Decode an alter operation from its tagged wire form."""
    if not isinstance(data, Mapping) or len(data) != 1:
        raise StatementError(f"an alter operation must be a map with one variant, got {data!r}")
    ((tag, value),) = data.items()
    if tag == "AddColumn":
        return AddColumn(ColumnDefinition.from_dict(value))
    if tag == "ModifyColumn":
        return ModifyColumn(ColumnDefinition.from_dict(value))
    if tag == "DropColumn":
        if not isinstance(value, str):
            raise StatementError(f"DropColumn expects a column name, got {value!r}")
        return DropColumn(value)
    if tag == "RenameColumn":
        return _rename_from_wire(value)
    raise StatementError(f"unknown alter operation `{tag}`")


@dataclass
class CreateTableStatement(Statement):
    """Create a table with the given columns and storage kind."""

    kind = StatementKind.CREATE_TABLE

    table_name: str
    columns: list[ColumnDefinition]
    storage: str


@dataclass
class DropTableStatement(Statement):
    """Drop a table."""

    kind = StatementKind.DROP_TABLE

    table_name: str


@dataclass
class AlterTableStatement(Statement):
    """Apply a sequence of column operations to a table."""

    kind = StatementKind.ALTER_TABLE

    table_name: str
    operations: list[AlterOperation]

    @classmethod
    def from_dict(cls, data: Any) -> AlterTableStatement:
        """Build the statement from a decoded map, decoding each operation."""
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise StatementError("AlterTableStatement expects two values")
            data = {"table_name": data[0], "operations": data[1]}
        if not isinstance(data, Mapping):
            raise StatementError(
                f"expected a map for {cls.__name__}, got {type(data).__name__}"
            )
        for key in ("table_name", "operations"):
            if key not in data:
                raise StatementError(f"missing field `{key}` for {cls.__name__}")
        table_name = data["table_name"]
        if not isinstance(table_name, str):
            raise StatementError(f"`table_name` must be a string, got {table_name!r}")
        operations = data["operations"]
        if not isinstance(operations, (list, tuple)):
            raise StatementError("`operations` must be a sequence")
        return cls(table_name, [alter_operation_from_wire(op) for op in operations])


@dataclass
class RenameTableStatement(Statement):
    """Rename a table."""

    kind = StatementKind.RENAME_TABLE

    old_table_name: str
    new_table_name: str


@dataclass
class TruncateTableStatement(Statement):
    """Remove every row from a table."""

    kind = StatementKind.TRUNCATE_TABLE

    table_name: str


@dataclass
class ShowTablesStatement(Statement):
    """List the tables of a database."""

    kind = StatementKind.SHOW_TABLES

    database_name: str


@dataclass
class DescribeTableStatement(Statement):
    """Return the column definitions of a table."""

    kind = StatementKind.DESCRIBE_TABLE

    table_name: str