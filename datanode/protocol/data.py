"""Data statements: inserting, reading, changing and removing rows."""

from __future__ import annotations

from dataclasses import dataclass, field

from datanode.protocol.statement import Statement, StatementError, StatementKind

_U32_MAX = 0xFFFF_FFFF


def _check_u32_fields(statement: Statement, *names: str) -> None:
    """Reject optional counters that do not fit in 32 unsigned bits."""
    for name in names:
        value = getattr(statement, name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
            raise StatementError(f"`{name}` must be an unsigned 32-bit integer, got {value!r}")


@dataclass
class InsertStatement(Statement):
    """Insert rows, each a map of column name to value."""

    kind = StatementKind.INSERT

    table_name: str
    columns: list[str] = field(default_factory=list)
    values: list[dict[str, str]] = field(default_factory=list)


@dataclass
class SelectStatement(Statement):
    """Read rows from a table, optionally filtered, ordered and paged."""

    kind = StatementKind.SELECT

    table_name: str
    columns: list[str] = field(default_factory=list)
    conditions: dict[str, str] = field(default_factory=dict)
    limit: int | None = None
    offset: int | None = None
    order_by: str | None = None
    order_direction: str | None = None

    def __post_init__(self) -> None:
        _check_u32_fields(self, "limit", "offset")


@dataclass
class UpdateStatement(Statement):
    """Change column values in rows that match the conditions."""

    kind = StatementKind.UPDATE

    table_name: str
    updates: dict[str, str] = field(default_factory=dict)
    conditions: dict[str, str] = field(default_factory=dict)
    limit: int | None = None

    def __post_init__(self) -> None:
        _check_u32_fields(self, "limit")


@dataclass
class DeleteStatement(Statement):
    """Remove rows that match the conditions."""

    kind = StatementKind.DELETE

    table_name: str
    conditions: dict[str, str] = field(default_factory=dict)
    limit: int | None = None

    def __post_init__(self) -> None:
        _check_u32_fields(self, "limit")


@dataclass
class BulkInsertStatement(Statement):
    """Insert many rows at once."""

    kind = StatementKind.BULK_INSERT

    table_name: str
    columns: list[str] = field(default_factory=list)
    values: list[dict[str, str]] = field(default_factory=list)


@dataclass
class UpsertStatement(Statement):
    """Insert a row, or update it when the conflict columns already match."""

    kind = StatementKind.UPSERT

    table_name: str
    columns: list[str] = field(default_factory=list)
    values: dict[str, str] = field(default_factory=dict)
    conflict_columns: list[str] = field(default_factory=list)