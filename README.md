# datanode

A data node for a distributed database. On start it connects to a master
over TCP, sends it a ping (message type 90, body `Hello, server!`) and then
waits for requests. Each request is answered on the same connection. If the
connection cannot be made or drops, the node retries every five seconds until
the master is reachable again.

## Installing

```
pip install .
```

Python 3.11 or newer is required. The only runtime dependency is `msgpack`.

## Configuration

The node reads a TOML file, `config.toml` in the working directory by default:

```toml
[storage]
path = "./data"
max_size_mb = 1024

[master]
addr = "127.0.0.1:7000"
```

`master.addr` is the `host:port` (or `[v6-address]:port`) the node connects
to. Both sections and all four keys are required; `Config.load` in
`datanode.utils.config` raises `ValueError` when one is missing or has the
wrong type.

## Running

```
datanode
datanode --config path/to/config.toml
```

`-c` / `--config` names the configuration file. Logging goes to standard
error at INFO level. Stop the node with Ctrl-C (exit status 0); if the
configuration cannot be read or is invalid, the node prints the error and
exits with status 1.

From Python, `datanode.cli.run(config_path)` is the coroutine behind the
command, and `datanode.network.server.Server` can be used directly:

```python
from datanode.network.server import Server
from datanode.storage.engine import Engine

async with Server(Engine(), retry_delay=1.0) as server:
    await server.connect("127.0.0.1:7000")
    await server.listen()
```

`Server.send` and `Server.receive` raise `NotConnectedError` when no
connection is open.

## Wire format

Every message starts with a 24-byte header, followed by the body:

| bytes  | field        | encoding              |
|--------|--------------|-----------------------|
| 0–15   | message id   | 16 raw bytes (a UUID) |
| 16–19  | message type | unsigned, big-endian  |
| 20–23  | body size    | unsigned, big-endian  |

`MessageHeader`, `Message`, `MessageType` and `message_type_name` live in
`datanode.network.transport`.

A statement body is a 4-byte big-endian length followed by a MessagePack map
with named fields (`ShowDatabasesStatement`, which has no fields, travels as
nil). When decoding, the length value itself is not checked. The statement
classes live in `datanode.protocol.management`, `datanode.protocol.operations`,
`datanode.protocol.index`, `datanode.protocol.data` and
`datanode.protocol.transaction`; all derive from `Statement` in
`datanode.protocol.statement`.

```python
from datanode.protocol.management import CreateDatabaseStatement

payload = CreateDatabaseStatement("shop").to_bytes()
assert CreateDatabaseStatement.from_bytes(payload).database_name == "shop"
```

If a body cannot be decoded, `StatementError` from `datanode.protocol.statement`
is raised.

### Message types

| group        | types                                                         |
|--------------|---------------------------------------------------------------|
| databases    | 1 create, 2 drop, 3 show, 4 use                                |
| tables       | 10 create, 11 drop, 12 alter, 13 rename, 14 truncate, 15 show, 16 describe |
| indexes      | 20 create, 21 drop, 22 show                                    |
| data         | 30 insert, 31 select, 32 update, 33 delete, 34 bulk insert, 35 upsert |
| transactions | 40 begin, 41 commit, 42 rollback, 43 savepoint, 44 release savepoint |
| utility      | 90 ping, 91 pong, 92 greeting, 93 welcome, 255 unknown command |

Replies carry the request's message id. A ping is answered with type 91 and
body `PONG`; a create-database request is answered with type 10 and body
`DATABASE CREATED`. Lists (databases, tables, indexes, rows, columns) are sent
one item per line. A message whose type the node does not know is answered
with type 255 and the body `Unsuppported command`.

When a request body cannot be decoded, or the storage engine refuses the
request (for example a missing table or a duplicate key), the error is logged
and no reply is sent.

## Limitations

- Storage is in memory only (`datanode.storage.engine.Engine`). Nothing is
  written to disk; `storage.path` and `storage.max_size_mb` are read from the
  configuration but not used.
- Table, index and data requests always act on the unnamed default database.
  A use-database request is acknowledged but does not switch databases.
- Select returns every row, update sets the given values on every row and
  delete removes every row; conditions, limits, offsets and ordering in the
  statements are ignored.
- Alter table checks that the table exists but does not apply the column
  operations.
- Begin transaction only records the transaction id. Commit, rollback,
  savepoint and release savepoint are acknowledged and change nothing.
- The node does not accept connections itself; it only connects to the
  configured master.

## Tests

```
pip install .[test]
pytest
```