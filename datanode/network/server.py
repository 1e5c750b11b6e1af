"""Client side of the node's link to the master: framing, dispatch and reconnects."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from types import TracebackType

from datanode.network.handlers import handler_for
from datanode.network.transport import HEADER_SIZE, Message, MessageHeader
from datanode.storage.engine import Engine

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 5.0


class NotConnectedError(ConnectionError):
    """Raised when sending or receiving without an open connection."""

    def __init__(self, message: str = "Not connected to the server") -> None:
        super().__init__(message)


def _split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid address {address!r}: expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    number = int(port)
    if number > 0xFFFF:
        raise ValueError(f"invalid port in address {address!r}")
    return host, number


class Server:
    """A connection to the master that answers the requests it sends."""

    def __init__(self, storage: Engine, *, retry_delay: float = DEFAULT_RETRY_DELAY) -> None:
        self._storage = storage
        self._address: str | None = None
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._retry_delay = retry_delay

    async def __aenter__(self) -> Server:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._disconnect()

    def storage(self) -> Engine:
        """Return the storage engine shared with the handlers."""
        return self._storage

    def address(self) -> str | None:
        """Return the address last connected to, if any."""
        return self._address

    async def _disconnect(self) -> None:
        writer, self._reader, self._writer = self._writer, None, None
        if writer is not None:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

    async def connect(self, address: str) -> None:
        """Connect to ``address``, retrying until it succeeds."""
        host, port = _split_address(address)
        self._address = address
        await self._disconnect()
        while True:
            try:
                self._reader, self._writer = await asyncio.open_connection(host, port)
            except OSError as exc:
                logger.error(
                    "Failed to connect to %s: %s. Retrying in %s seconds...",
                    address,
                    exc,
                    self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)
            else:
                logger.info("Connected to server at %s", address)
                return

    async def send(self, message_id: bytes, message_type: int, body: bytes) -> None:
        """Send one framed message."""
        if self._writer is None:
            raise NotConnectedError()
        header = MessageHeader(message_id, int(message_type), len(body))
        self._writer.write(Message(header, body).to_bytes())
        await self._writer.drain()

    async def receive(self) -> Message:
        """Read one framed message."""
        if self._reader is None:
            raise NotConnectedError()
        try:
            header = MessageHeader.from_bytes(await self._reader.readexactly(HEADER_SIZE))
            body = await self._reader.readexactly(header.body_size)
        except asyncio.IncompleteReadError as exc:
            raise ConnectionError("connection closed by peer") from exc
        return Message(header, body)

    async def listen(self) -> None:
        """Handle incoming messages forever, reconnecting when the link drops."""
        logger.info("Listening for messages...")
        while True:
            try:
                message = await self.receive()
            except OSError as exc:
                logger.error("Failed to receive message: %s", exc)
                if self._address is None:
                    raise NotConnectedError() from exc
                await self.connect(self._address)
            else:
                await self.handle_message(message)

    async def handle_message(self, message: Message) -> None:
        """Dispatch a message to the handler for its type."""
        await handler_for(message.header.message_type)(self, message)