"""Index statements."""

from __future__ import annotations

from dataclasses import dataclass, field

from datanode.protocol.statement import Statement, StatementKind


@dataclass
class CreateIndexStatement(Statement):
    """Create an index over columns of a table."""

    kind = StatementKind.CREATE_INDEX

    index_name: str
    table_name: str
    columns: list[str] = field(default_factory=list)
    unique: bool = False


@dataclass
class DropIndexStatement(Statement):
    """Drop an index from a table."""

    kind = StatementKind.DROP_INDEX

    index_name: str
    table_name: str


@dataclass
class ShowIndexesStatement(Statement):
    """List the indexes of a table."""

    kind = StatementKind.SHOW_INDEXES

    table_name: str