"""Transaction statements."""

from __future__ import annotations

from dataclasses import dataclass

from datanode.protocol.statement import Statement, StatementKind


@dataclass
class BeginTransactionStatement(Statement):
    """Open a transaction, optionally at a given isolation level."""

    kind = StatementKind.BEGIN_TRANSACTION

    transaction_id: str
    isolation_level: str | None = None


@dataclass
class CommitStatement(Statement):
    """Commit a transaction."""

    kind = StatementKind.COMMIT

    transaction_id: str


@dataclass
class RollbackStatement(Statement):
    """Roll a transaction back."""

    kind = StatementKind.ROLLBACK

    transaction_id: str