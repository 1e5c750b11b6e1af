"""Command-line entry point: connect to the master and serve its requests."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import uuid
from collections.abc import Sequence

from datanode.network.server import Server
from datanode.network.transport import MessageType
from datanode.storage.engine import Engine
from datanode.utils.config import Config
from datanode.utils.logger import init_logger

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.toml"
GREETING_BODY = b"Hello, server!"


async def run(config_path: str | os.PathLike[str] = DEFAULT_CONFIG) -> None:
    """Load the configuration, greet the master with a ping and serve forever."""
    init_logger()
    config = Config.load(config_path)
    async with Server(Engine()) as server:
        await server.connect(config.master.addr)
        await server.send(uuid.uuid4().bytes, MessageType.PING, GREETING_BODY)
        await server.listen()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the node until interrupted; return the process exit status."""
    parser = argparse.ArgumentParser(prog="datanode", description="Run a storage data node.")
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG,
        help=f"path of the TOML configuration file (default: {DEFAULT_CONFIG})",
    )
    args = parser.parse_args(argv)
    try:
        asyncio.run(run(args.config))
    except KeyboardInterrupt:
        return 0
    except (OSError, ValueError) as exc:
        logger.error("Failed to run: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0