import asyncio

import pytest

from datanode.cli import main, run
from datanode.network.transport import Message, MessageHeader, MessageType

TIMEOUT = 5


def _write_config(tmp_path, addr):
    path = tmp_path / "config.toml"
    path.write_text(
        f'[storage]\npath = "data"\nmax_size_mb = 10\n\n[master]\naddr = "{addr}"\n',
        encoding="utf-8",
    )
    return path


async def _read_frame(reader) -> Message:
    header = MessageHeader.from_bytes(await asyncio.wait_for(reader.readexactly(24), TIMEOUT))
    body = await asyncio.wait_for(reader.readexactly(header.body_size), TIMEOUT)
    return Message(header, body)


@pytest.mark.asyncio
async def test_run_greets_master_then_serves(tmp_path):
    connections: asyncio.Queue = asyncio.Queue()

    async def accept(reader, writer):
        await connections.put((reader, writer))

    master = await asyncio.start_server(accept, "127.0.0.1", 0)
    port = master.sockets[0].getsockname()[1]
    config = _write_config(tmp_path, f"127.0.0.1:{port}")
    task = asyncio.create_task(run(config))
    writer = None
    try:
        reader, writer = await asyncio.wait_for(connections.get(), TIMEOUT)
        greeting = await _read_frame(reader)
        assert greeting.header.message_type == MessageType.PING
        assert greeting.body == b"Hello, server!"
        assert len(greeting.header.message_id) == 16

        ping_id = bytes(16)
        writer.write(Message(MessageHeader(ping_id, MessageType.PING, 0), b"").to_bytes())
        await writer.drain()
        reply = await _read_frame(reader)
        assert reply.header.message_type == MessageType.PONG
        assert reply.header.message_id == ping_id
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        if writer is not None:
            writer.close()
        master.close()


@pytest.mark.asyncio
async def test_run_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        await run(tmp_path / "absent.toml")


def test_main_missing_config_fails(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "absent.toml")]) == 1
    assert "error" in capsys.readouterr().err


def test_main_invalid_toml_fails(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[master\naddr = ", encoding="utf-8")
    assert main(["-c", str(path)]) == 1


def test_main_config_without_master_fails(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[storage]\npath = "data"\nmax_size_mb = 1\n', encoding="utf-8")
    assert main(["-c", str(path)]) == 1


def test_main_bad_master_address_fails(tmp_path):
    path = _write_config(tmp_path, "not-an-address")
    assert main(["-c", str(path)]) == 1