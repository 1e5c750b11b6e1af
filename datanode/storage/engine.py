"""In-memory storage engine: databases of tables holding string-valued rows."""

from __future__ import annotations

import dataclasses
import functools
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from datanode.protocol.statement import ColumnDefinition

DEFAULT_DATABASE = ""

Row = dict[str, str]

_F = TypeVar("_F", bound=Callable[..., Any])


def _locked(method: _F) -> _F:
    @functools.wraps(method)
    def wrapper(self: Engine, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


@dataclass
class _Index:
    columns: tuple[str, ...]
    unique: bool


@dataclass
class Table:
    """A table: its schema, storage kind, rows and indexes."""

    columns: list[ColumnDefinition]
    storage: str
    rows: list[Row] = field(default_factory=list)
    indexes: dict[str, _Index] = field(default_factory=dict)

    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def check_columns(self, names: Iterable[str]) -> None:
        unknown = sorted(set(names) - set(self.column_names()))
        if unknown:
            raise ValueError(f"unknown column(s): {', '.join(unknown)}")

    def complete(self, values: Mapping[str, str]) -> Row:
        """Return a full row, filling absent columns with their defaults."""
        self.check_columns(values)
        return {c.name: values.get(c.name, c.default_value) for c in self.columns}

    def unique_keys(self) -> list[tuple[str, ...]]:
        keys = []
        primary = tuple(c.name for c in self.columns if c.primary_key)
        if primary:
            keys.append(primary)
        keys.extend(index.columns for index in self.indexes.values() if index.unique)
        return keys

    def check_unique(self, rows: Sequence[Row], keys: Iterable[tuple[str, ...]] | None = None) -> None:
        for columns in self.unique_keys() if keys is None else keys:
            seen: set[tuple[Any, ...]] = set()
            for row in rows:
                key = tuple(row.get(name) for name in columns)
                if key in seen:
                    raise ValueError(
                        f"duplicate value {key!r} for unique key ({', '.join(columns)})"
                    )
                seen.add(key)


@dataclass
class Database:
    """A named collection of tables."""

    tables: dict[str, Table] = field(default_factory=dict)


class Engine:
    """Thread-safe in-memory store; the unnamed default database always exists."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._databases: dict[str, Database] = {DEFAULT_DATABASE: Database()}
        self._transactions: dict[str, str | None] = {}

    def _database(self, name: str) -> Database:
        try:
            return self._databases[name]
        except KeyError:
            raise KeyError(f"database {name!r} does not exist") from None

    def _table(self, database_name: str, table_name: str) -> Table:
        try:
            return self._database(database_name).tables[table_name]
        except KeyError as exc:
            if database_name not in self._databases:
                raise
            raise KeyError(
                f"table {table_name!r} does not exist in database {database_name!r}"
            ) from exc

    # Databases

    @_locked
    def create_database(self, database_name: str) -> None:
        """Create an empty database."""
        if database_name in self._databases:
            raise ValueError(f"database {database_name!r} already exists")
        self._databases[database_name] = Database()

    @_locked
    def drop_database(self, database_name: str) -> None:
        """Drop a database and all its tables."""
        if database_name == DEFAULT_DATABASE:
            raise ValueError("the default database cannot be dropped")
        self._database(database_name)
        del self._databases[database_name]

    @_locked
    def show_databases(self) -> list[str]:
        """Return the names of all named databases, oldest first."""
        return [name for name in self._databases if name != DEFAULT_DATABASE]

    # Tables

    @_locked
    def create_table(
        self,
        database_name: str,
        table_name: str,
        columns: Iterable[ColumnDefinition],
        storage: str,
    ) -> None:
        """Create a table with the given columns."""
        database = self._database(database_name)
        if table_name in database.tables:
            raise ValueError(f"table {table_name!r} already exists")
        columns = [dataclasses.replace(column) for column in columns]
        names = [column.name for column in columns]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate column names in table {table_name!r}")
        database.tables[table_name] = Table(columns=columns, storage=storage)

    @_locked
    def drop_table(self, database_name: str, table_name: str) -> None:
        """Drop a table."""
        self._table(database_name, table_name)
        del self._databases[database_name].tables[table_name]

    @_locked
    def alter_table(self, database_name: str, table_name: str) -> list[ColumnDefinition]:
        """Check that the table exists and return its current columns."""
        table = self._table(database_name, table_name)
        return [dataclasses.replace(column) for column in table.columns]

    @_locked
    def rename_table(self, database_name: str, old_name: str, new_name: str) -> None:
        """Rename a table, keeping its position in the listing."""
        self._table(database_name, old_name)
        database = self._databases[database_name]
        if new_name == old_name:
            return
        if new_name in database.tables:
            raise ValueError(f"table {new_name!r} already exists")
        database.tables = {
            (new_name if name == old_name else name): table
            for name, table in database.tables.items()
        }

    @_locked
    def truncate_table(self, database_name: str, table_name: str) -> int:
        """Remove every row; return how many were removed."""
        table = self._table(database_name, table_name)
        removed = len(table.rows)
        table.rows.clear()
        return removed

    @_locked
    def show_tables(self, database_name: str) -> list[str]:
        """Return the table names of a database."""
        return list(self._database(database_name).tables)

    @_locked
    def describe_table(self, database_name: str, table_name: str) -> list[ColumnDefinition]:
        """Return copies of the table's column definitions."""
        table = self._table(database_name, table_name)
        return [dataclasses.replace(column) for column in table.columns]

    # Indexes

    @_locked
    def create_index(
        self,
        database_name: str,
        table_name: str,
        index_name: str,
        columns: Sequence[str],
        unique: bool,
    ) -> None:
        """Create an index; a unique one must hold for the rows already stored."""
        table = self._table(database_name, table_name)
        if index_name in table.indexes:
            raise ValueError(f"index {index_name!r} already exists on {table_name!r}")
        key = tuple(columns)
        if not key:
            raise ValueError("an index needs at least one column")
        table.check_columns(key)
        if unique:
            table.check_unique(table.rows, [key])
        table.indexes[index_name] = _Index(columns=key, unique=bool(unique))

    @_locked
    def drop_index(self, database_name: str, table_name: str, index_name: str) -> None:
        """Drop an index from a table."""
        table = self._table(database_name, table_name)
        if index_name not in table.indexes:
            raise KeyError(f"index {index_name!r} does not exist on {table_name!r}")
        del table.indexes[index_name]

    @_locked
    def show_indexes(self, database_name: str, table_name: str) -> list[str]:
        """Return the index names of a table."""
        return list(self._table(database_name, table_name).indexes)

    # Data

    @_locked
    def insert(
        self, database_name: str, table_name: str, rows: Iterable[Mapping[str, str]]
    ) -> int:
        """Insert rows all at once or not at all; return how many were added."""
        table = self._table(database_name, table_name)
        new_rows = [table.complete(row) for row in rows]
        table.check_unique(table.rows + new_rows)
        table.rows.extend(new_rows)
        return len(new_rows)

    @_locked
    def select(self, database_name: str, table_name: str) -> list[Row]:
        """Return copies of every row in insertion order."""
        return [dict(row) for row in self._table(database_name, table_name).rows]

    @_locked
    def update(self, database_name: str, table_name: str, row: Mapping[str, str]) -> int:
        """Set the given column values on every row; return how many changed."""
        table = self._table(database_name, table_name)
        table.check_columns(row)
        updated = [{**existing, **row} for existing in table.rows]
        table.check_unique(updated)
        table.rows[:] = updated
        return len(updated)

    @_locked
    def delete(self, database_name: str, table_name: str) -> int:
        """Delete every row; return how many were deleted."""
        table = self._table(database_name, table_name)
        removed = len(table.rows)
        table.rows.clear()
        return removed

    @_locked
    def bulk_insert(
        self,
        database_name: str,
        table_name: str,
        columns: Sequence[str],
        values: Iterable[Mapping[str, str]],
    ) -> int:
        """Insert rows limited to the named columns, when any are named."""
        table = self._table(database_name, table_name)
        table.check_columns(columns)
        rows = list(values)
        if columns:
            allowed = set(columns)
            for row in rows:
                extra = sorted(set(row) - allowed)
                if extra:
                    raise ValueError(f"column(s) not in the column list: {', '.join(extra)}")
        return self.insert(database_name, table_name, rows)

    @_locked
    def upsert(self, database_name: str, table_name: str, row: Mapping[str, str]) -> bool:
        """Update the row that conflicts on a unique key, or insert a new one.

        Returns True when a row was inserted.
        """
        table = self._table(database_name, table_name)
        complete = table.complete(row)
        keys = table.unique_keys()
        for position, existing in enumerate(table.rows):
            if any(all(existing[c] == complete[c] for c in key) for key in keys):
                candidate = list(table.rows)
                candidate[position] = {**existing, **row}
                table.check_unique(candidate)
                table.rows[:] = candidate
                return False
        table.check_unique(table.rows + [complete])
        table.rows.append(complete)
        return True

    # Transactions

    @_locked
    def begin_transaction(self, transaction_id: str, isolation_level: str | None) -> None:
        """Register a new open transaction under a unique id."""
        if not transaction_id:
            raise ValueError("a transaction needs an id")
        if transaction_id in self._transactions:
            raise ValueError(f"transaction {transaction_id!r} is already open")
        self._transactions[transaction_id] = isolation_level