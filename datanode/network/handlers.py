"""Request handlers: one coroutine per message type, each replying to the sender."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from datanode.network.transport import Message, MessageType
from datanode.protocol.data import (
    BulkInsertStatement,
    DeleteStatement,
    InsertStatement,
    SelectStatement,
    UpdateStatement,
)
from datanode.protocol.index import (
    CreateIndexStatement,
    DropIndexStatement,
    ShowIndexesStatement,
)
from datanode.protocol.management import (
    CreateDatabaseStatement,
    DropDatabaseStatement,
    UseDatabaseStatement,
)
from datanode.protocol.operations import (
    AlterTableStatement,
    CreateTableStatement,
    DescribeTableStatement,
    DropTableStatement,
    RenameTableStatement,
    TruncateTableStatement,
)
from datanode.protocol.statement import Statement, StatementError
from datanode.protocol.transaction import BeginTransactionStatement
from datanode.storage.engine import DEFAULT_DATABASE, Engine

logger = logging.getLogger(__name__)

_FAILED = object()


class _Peer(Protocol):
    def storage(self) -> Engine: ...

    async def send(self, message_id: bytes, message_type: int, body: bytes) -> None: ...


Handler = Callable[[_Peer, Message], Awaitable[None]]


def _parse(cls: type[Statement], message: Message, label: str) -> Any:
    """Decode the message body, logging and returning None when it is invalid."""
    try:
        return cls.from_bytes(message.body)
    except StatementError as exc:
        logger.error("Failed to parse statement for %s: %s", label, exc)
        return None


def _store(label: str, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a storage call, logging and returning a sentinel when it is refused."""
    try:
        return action(*args, **kwargs)
    except (KeyError, ValueError) as exc:
        logger.error("%s failed: %s", label, exc)
        return _FAILED


async def _reply(
    server: _Peer, message: Message, reply_type: int, body: bytes, done: str
) -> None:
    try:
        await server.send(message.header.message_id, reply_type, body)
    except OSError as exc:
        logger.error("Failed to send response: %s", exc)
    else:
        logger.info(done)


# Database management


async def handle_create_database(server: _Peer, message: Message) -> None:
    """Create a database."""
    logger.info("Received CREATE DATABASE")
    stm = _parse(CreateDatabaseStatement, message, "CREATE DATABASE")
    if stm is None:
        return
    if _store("CREATE DATABASE", server.storage().create_database, stm.database_name) is _FAILED:
        return
    # The reply travels with the CREATE TABLE code.
    await _reply(server, message, MessageType.CREATE_TABLE, b"DATABASE CREATED", "Database created")


async def handle_drop_database(server: _Peer, message: Message) -> None:
    """Drop a database."""
    logger.info("Received DROP DATABASE")
    stm = _parse(DropDatabaseStatement, message, "DROP DATABASE")
    if stm is None:
        return
    if _store("DROP DATABASE", server.storage().drop_database, stm.database_name) is _FAILED:
        return
    await _reply(server, message, MessageType.DROP_DATABASE, b"DATABASE DROPPED", "Database dropped")


async def handle_show_databases(server: _Peer, message: Message) -> None:
    """Reply with the database names, one per line."""
    logger.info("Received SHOW DATABASES")
    databases = server.storage().show_databases()
    body = "\n".join(databases).encode()
    await _reply(server, message, MessageType.SHOW_DATABASES, body, "Databases sent")


async def handle_use_database(server: _Peer, message: Message) -> None:
    """Acknowledge the database chosen for the session."""
    logger.info("Received USE DATABASE")
    stm = _parse(UseDatabaseStatement, message, "USE DATABASE")
    if stm is None:
        return
    body = b"DATABASE USED" + stm.database_name.encode()
    await _reply(server, message, MessageType.USE_DATABASE, body, "Database used")


# Table operations


async def handle_create_table(server: _Peer, message: Message) -> None:
    """Create a table in the default database."""
    logger.info("Received CREATE TABLE")
    stm = _parse(CreateTableStatement, message, "CREATE TABLE")
    if stm is None:
        return
    result = _store(
        "CREATE TABLE",
        server.storage().create_table,
        DEFAULT_DATABASE,
        stm.table_name,
        stm.columns,
        stm.storage,
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.CREATE_TABLE, b"TABLE CREATED", "Table created")


async def handle_drop_table(server: _Peer, message: Message) -> None:
    """Drop a table."""
    logger.info("Received DROP TABLE")
    stm = _parse(DropTableStatement, message, "DROP TABLE")
    if stm is None:
        return
    if _store("DROP TABLE", server.storage().drop_table, DEFAULT_DATABASE, stm.table_name) is _FAILED:
        return
    await _reply(server, message, MessageType.DROP_TABLE, b"TABLE DROPPED", "Table dropped")


async def handle_alter_table(server: _Peer, message: Message) -> None:
    """Alter a table."""
    logger.info("Received ALTER TABLE")
    stm = _parse(AlterTableStatement, message, "ALTER TABLE")
    if stm is None:
        return
    if _store("ALTER TABLE", server.storage().alter_table, DEFAULT_DATABASE, stm.table_name) is _FAILED:
        return
    await _reply(server, message, MessageType.ALTER_TABLE, b"TABLE ALTERED", "Table altered")


async def handle_rename_table(server: _Peer, message: Message) -> None:
    """Rename a table."""
    logger.info("Received RENAME TABLE")
    stm = _parse(RenameTableStatement, message, "RENAME TABLE")
    if stm is None:
        return
    result = _store(
        "RENAME TABLE",
        server.storage().rename_table,
        DEFAULT_DATABASE,
        stm.old_table_name,
        stm.new_table_name,
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.RENAME_TABLE, b"TABLE RENAMED", "Table renamed")


async def handle_truncate_table(server: _Peer, message: Message) -> None:
    """Remove every row of a table."""
    logger.info("Received TRUNCATE TABLE")
    stm = _parse(TruncateTableStatement, message, "TRUNCATE TABLE")
    if stm is None:
        return
    result = _store(
        "TRUNCATE TABLE", server.storage().truncate_table, DEFAULT_DATABASE, stm.table_name
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.TRUNCATE_TABLE, b"TABLE TRUNCATED", "Table truncated")


async def handle_show_tables(server: _Peer, message: Message) -> None:
    """Reply with the table names, one per line."""
    logger.info("Received SHOW TABLES")
    tables = _store("SHOW TABLES", server.storage().show_tables, DEFAULT_DATABASE)
    if tables is _FAILED:
        return
    body = "\n".join(tables).encode()
    await _reply(server, message, MessageType.SHOW_TABLES, body, "Tables sent")


async def handle_describe_table(server: _Peer, message: Message) -> None:
    """Reply with the table's column definitions, one per line."""
    logger.info("Received DESCRIBE TABLE")
    stm = _parse(DescribeTableStatement, message, "DESCRIBE TABLE")
    if stm is None:
        return
    columns = _store(
        "DESCRIBE TABLE", server.storage().describe_table, DEFAULT_DATABASE, stm.table_name
    )
    if columns is _FAILED:
        return
    body = "\n".join(repr(column) for column in columns).encode()
    await _reply(server, message, MessageType.DESCRIBE_TABLE, body, "Table schema sent")


# Index operations


async def handle_create_index(server: _Peer, message: Message) -> None:
    """Create an index on a table."""
    logger.info("Received CREATE INDEX")
    stm = _parse(CreateIndexStatement, message, "CREATE INDEX")
    if stm is None:
        return
    result = _store(
        "CREATE INDEX",
        server.storage().create_index,
        DEFAULT_DATABASE,
        table_name=stm.table_name,
        index_name=stm.index_name,
        columns=stm.columns,
        unique=stm.unique,
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.CREATE_INDEX, b"INDEX CREATED", "Index created")


async def handle_drop_index(server: _Peer, message: Message) -> None:
    """Drop an index from a table."""
    logger.info("Received DROP INDEX")
    stm = _parse(DropIndexStatement, message, "DROP INDEX")
    if stm is None:
        return
    result = _store(
        "DROP INDEX",
        server.storage().drop_index,
        DEFAULT_DATABASE,
        stm.table_name,
        stm.index_name,
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.DROP_INDEX, b"INDEX DROPPED", "Index dropped")


async def handle_show_indexes(server: _Peer, message: Message) -> None:
    """Reply with the index names of a table, one per line."""
    logger.info("Received SHOW INDEXES")
    stm = _parse(ShowIndexesStatement, message, "SHOW INDEXES")
    if stm is None:
        return
    indexes = _store(
        "SHOW INDEXES", server.storage().show_indexes, DEFAULT_DATABASE, stm.table_name
    )
    if indexes is _FAILED:
        return
    body = "\n".join(indexes).encode()
    await _reply(server, message, MessageType.SHOW_INDEXES, body, "Indexes sent")


# Data operations


async def handle_insert(server: _Peer, message: Message) -> None:
    """Insert rows."""
    logger.info("Received INSERT")
    stm = _parse(InsertStatement, message, "INSERT")
    if stm is None:
        return
    result = _store(
        "INSERT", server.storage().insert, DEFAULT_DATABASE, stm.table_name, stm.values
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.INSERT, b"ROW INSERTED", "Row inserted")


async def handle_select(server: _Peer, message: Message) -> None:
    """Reply with every row of a table, one per line."""
    logger.info("Received SELECT")
    stm = _parse(SelectStatement, message, "SELECT")
    if stm is None:
        return
    rows = _store("SELECT", server.storage().select, DEFAULT_DATABASE, stm.table_name)
    if rows is _FAILED:
        return
    body = "\n".join(repr(row) for row in rows).encode()
    await _reply(server, message, MessageType.SELECT, body, "Rows sent")


async def handle_update(server: _Peer, message: Message) -> None:
    """Apply column updates to the rows of a table."""
    logger.info("Received UPDATE")
    stm = _parse(UpdateStatement, message, "UPDATE")
    if stm is None:
        return
    result = _store(
        "UPDATE", server.storage().update, DEFAULT_DATABASE, stm.table_name, stm.updates
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.UPDATE, b"ROWS UPDATED", "Rows updated")


async def handle_delete(server: _Peer, message: Message) -> None:
    """Delete the rows of a table."""
    logger.info("Received DELETE")
    stm = _parse(DeleteStatement, message, "DELETE")
    if stm is None:
        return
    if _store("DELETE", server.storage().delete, DEFAULT_DATABASE, stm.table_name) is _FAILED:
        return
    await _reply(server, message, MessageType.DELETE, b"ROWS DELETED", "Rows deleted")


async def handle_bulk_insert(server: _Peer, message: Message) -> None:
    """Insert many rows at once."""
    logger.info("Received BULK INSERT")
    stm = _parse(BulkInsertStatement, message, "BULK INSERT")
    if stm is None:
        return
    result = _store(
        "BULK INSERT",
        server.storage().bulk_insert,
        DEFAULT_DATABASE,
        stm.table_name,
        stm.columns,
        stm.values,
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.BULK_INSERT, b"ROWS INSERTED", "Rows inserted")


async def handle_upsert(server: _Peer, message: Message) -> None:
    """Insert a row or update the one it conflicts with; the body is an update statement."""
    logger.info("Received UPSERT")
    stm = _parse(UpdateStatement, message, "UPSERT")
    if stm is None:
        return
    result = _store(
        "UPSERT", server.storage().upsert, DEFAULT_DATABASE, stm.table_name, stm.updates
    )
    if result is _FAILED:
        return
    await _reply(server, message, MessageType.UPSERT, b"ROWS UPSERTED", "Rows upserted")


# Transaction management


async def handle_begin_transaction(server: _Peer, message: Message) -> None:
    """Open a transaction."""
    logger.info("Received BEGIN TRANSACTION")
    stm = _parse(BeginTransactionStatement, message, "BEGIN TRANSACTION")
    if stm is None:
        return
    result = _store(
        "BEGIN TRANSACTION",
        server.storage().begin_transaction,
        stm.transaction_id,
        stm.isolation_level,
    )
    if result is _FAILED:
        return
    await _reply(
        server, message, MessageType.BEGIN_TRANSACTION, b"TRANSACTION BEGUN", "Transaction begun"
    )


async def handle_commit(server: _Peer, message: Message) -> None:
    """Acknowledge a commit."""
    logger.info("Received COMMIT")
    await _reply(server, message, MessageType.COMMIT, b"TRANSACTION COMMITTED", "COMMIT sent")


async def handle_rollback(server: _Peer, message: Message) -> None:
    """Acknowledge a rollback."""
    logger.info("Received ROLLBACK")
    await _reply(server, message, MessageType.ROLLBACK, b"TRANSACTION ROLLED BACK", "ROLLBACK sent")


async def handle_savepoint(server: _Peer, message: Message) -> None:
    """Acknowledge a savepoint."""
    logger.info("Received SAVEPOINT")
    await _reply(server, message, MessageType.SAVEPOINT, b"SAVEPOINT CREATED", "SAVEPOINT sent")


async def handle_release_savepoint(server: _Peer, message: Message) -> None:
    """Acknowledge the release of a savepoint."""
    logger.info("Received RELEASE SAVEPOINT")
    await _reply(
        server,
        message,
        MessageType.RELEASE_SAVEPOINT,
        b"SAVEPOINT RELEASED",
        "RELEASE SAVEPOINT sent",
    )


# Utility commands


async def handle_ping(server: _Peer, message: Message) -> None:
    """Answer a ping with a pong."""
    logger.info("Received PING")
    logger.info("Sending PONG")
    await _reply(server, message, MessageType.PONG, b"PONG", "PONG sent")


async def handle_greeting(server: _Peer, message: Message) -> None:
    """Answer a greeting."""
    logger.info("Received GREETING")
    await _reply(server, message, MessageType.GREETING, b"GREETINGS", "GREETINGS sent")


async def handle_welcome(server: _Peer, message: Message) -> None:
    """Answer a welcome."""
    logger.info("Received WELCOME")
    await _reply(server, message, MessageType.WELCOME, b"WELCOME", "WELCOME sent")


async def handle_unknown_command(server: _Peer, message: Message) -> None:
    """Tell the sender its command is not supported."""
    logger.error("Received UNKNOWN COMMAND")
    await _reply(
        server,
        message,
        MessageType.UNKNOWN_COMMAND,
        b"Unsuppported command",
        "Unknown command sent",
    )


_HANDLERS: dict[int, Handler] = {
    MessageType.CREATE_DATABASE: handle_create_database,
    MessageType.DROP_DATABASE: handle_drop_database,
    MessageType.SHOW_DATABASES: handle_show_databases,
    MessageType.USE_DATABASE: handle_use_database,
    MessageType.CREATE_TABLE: handle_create_table,
    MessageType.DROP_TABLE: handle_drop_table,
    MessageType.ALTER_TABLE: handle_alter_table,
    MessageType.RENAME_TABLE: handle_rename_table,
    MessageType.TRUNCATE_TABLE: handle_truncate_table,
    MessageType.SHOW_TABLES: handle_show_tables,
    MessageType.DESCRIBE_TABLE: handle_describe_table,
    MessageType.CREATE_INDEX: handle_create_index,
    MessageType.DROP_INDEX: handle_drop_index,
    MessageType.SHOW_INDEXES: handle_show_indexes,
    MessageType.INSERT: handle_insert,
    MessageType.SELECT: handle_select,
    MessageType.UPDATE: handle_update,
    MessageType.DELETE: handle_delete,
    MessageType.BULK_INSERT: handle_bulk_insert,
    MessageType.UPSERT: handle_upsert,
    MessageType.BEGIN_TRANSACTION: handle_begin_transaction,
    MessageType.COMMIT: handle_commit,
    MessageType.ROLLBACK: handle_rollback,
    MessageType.SAVEPOINT: handle_savepoint,
    MessageType.RELEASE_SAVEPOINT: handle_release_savepoint,
    MessageType.PING: handle_ping,
    MessageType.GREETING: handle_greeting,
    MessageType.WELCOME: handle_welcome,
    MessageType.UNKNOWN_COMMAND: handle_unknown_command,
}


def handler_for(message_type: int) -> Handler:
    """Return the handler for a message type code; unknown codes get the fallback."""
    return _HANDLERS.get(int(message_type), handle_unknown_command)