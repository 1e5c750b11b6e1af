"""Wire framing: message type codes, the fixed 24-byte header and messages."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

HEADER_SIZE = 24
MESSAGE_ID_SIZE = 16
_HEADER_FORMAT = ">16sII"
_U32_MAX = 0xFFFF_FFFF


class MessageType(IntEnum):
    """Numeric message type codes carried in a message header."""

    # Database management
    CREATE_DATABASE = 1
    DROP_DATABASE = 2
    SHOW_DATABASES = 3
    USE_DATABASE = 4

    # Table operations
    CREATE_TABLE = 10
    DROP_TABLE = 11
    ALTER_TABLE = 12
    RENAME_TABLE = 13
    TRUNCATE_TABLE = 14
    SHOW_TABLES = 15
    DESCRIBE_TABLE = 16

    # Index operations
    CREATE_INDEX = 20
    DROP_INDEX = 21
    SHOW_INDEXES = 22

    # Data operations
    INSERT = 30
    SELECT = 31
    UPDATE = 32
    DELETE = 33
    BULK_INSERT = 34
    UPSERT = 35

    # Transaction management
    BEGIN_TRANSACTION = 40
    COMMIT = 41
    ROLLBACK = 42
    SAVEPOINT = 43
    RELEASE_SAVEPOINT = 44

    # Utility commands
    PING = 90
    PONG = 91
    GREETING = 92
    WELCOME = 93
    UNKNOWN_COMMAND = 255


_NAMES: dict[int, str] = {
    MessageType.CREATE_DATABASE: "CreateDatabase",
    MessageType.DROP_DATABASE: "DropDatabase",
    MessageType.SHOW_DATABASES: "ShowDatabases",
    MessageType.CREATE_TABLE: "CreateTable",
    MessageType.DROP_TABLE: "DropTable",
    MessageType.ALTER_TABLE: "AlterTable",
    MessageType.RENAME_TABLE: "RenameTable",
    MessageType.TRUNCATE_TABLE: "TruncateTable",
    MessageType.SHOW_TABLES: "ShowTables",
    MessageType.DESCRIBE_TABLE: "DescribeTable",
    MessageType.CREATE_INDEX: "CreateIndex",
    MessageType.DROP_INDEX: "DropIndex",
    MessageType.SHOW_INDEXES: "ShowIndexes",
    MessageType.INSERT: "Insert",
    MessageType.SELECT: "Select",
    MessageType.UPDATE: "Update",
    MessageType.DELETE: "Delete",
    MessageType.BULK_INSERT: "BulkInsert",
    MessageType.UPSERT: "Upsert",
    MessageType.BEGIN_TRANSACTION: "BeginTransaction",
    MessageType.COMMIT: "Commit",
    MessageType.ROLLBACK: "Rollback",
    MessageType.SAVEPOINT: "Savepoint",
    MessageType.RELEASE_SAVEPOINT: "ReleaseSavepoint",
    MessageType.PING: "Ping",
    MessageType.PONG: "Pong",
    MessageType.GREETING: "Greeting",
    MessageType.WELCOME: "Welcome",
    MessageType.UNKNOWN_COMMAND: "UnknownCommand",
}


def message_type_name(message_type: int) -> str:
    """Return the display name of a message type code."""
    return _NAMES.get(int(message_type), "UnknownMessageType")


def _check_u32(value: int, what: str) -> None:
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{what} must fit in 32 unsigned bits, got {value}")


@dataclass(frozen=True)
class MessageHeader:
    """Fixed-size header: a 16-byte id, a type code and the body length."""

    message_id: bytes
    message_type: int
    body_size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "message_id", bytes(self.message_id))
        if len(self.message_id) != MESSAGE_ID_SIZE:
            raise ValueError(
                f"message id must be {MESSAGE_ID_SIZE} bytes, got {len(self.message_id)}"
            )
        _check_u32(self.message_type, "message type")
        _check_u32(self.body_size, "body size")

    def to_bytes(self) -> bytes:
        """Encode the header as 24 big-endian bytes."""
        return struct.pack(_HEADER_FORMAT, self.message_id, self.message_type, self.body_size)

    @classmethod
    def from_bytes(cls, data: bytes) -> MessageHeader:
        """Decode a header from exactly 24 bytes."""
        if len(data) != HEADER_SIZE:
            raise ValueError(f"header must be {HEADER_SIZE} bytes, got {len(data)}")
        message_id, message_type, body_size = struct.unpack(_HEADER_FORMAT, bytes(data))
        return cls(message_id, message_type, body_size)


@dataclass(frozen=True)
class Message:
    """A header followed by its body."""

    header: MessageHeader
    body: bytes = field(default=b"")

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", bytes(self.body))

    def to_bytes(self) -> bytes:
        """Encode header and body as one frame."""
        return self.header.to_bytes() + self.body