"""The broker's TCP server and command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import socket
import sys
from typing import TextIO

from .handler import Broker

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9000
MAX_PARTITIONS = 6

_USIZE_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


class SettingsError(ValueError):
    """Raised when the partition settings entered are not acceptable."""


def _read_count(stream: TextIO, what: str) -> int:
    text = stream.readline().strip()
    if not _UNSIGNED.fullmatch(text):
        raise SettingsError(f"invalid {what}: {text!r}")
    value = int(text)
    if value > _USIZE_MAX:
        raise SettingsError(f"{what} is too large: {text}")
    return value


def read_settings(stream: TextIO) -> tuple[int, int]:
    """Prompt for and read the partition count and the partition size."""
    print("Enter the number of partitions (must be less than 6):", flush=True)
    partitions = _read_count(stream, "number of partitions")
    if partitions >= MAX_PARTITIONS:
        raise SettingsError("Number of partitions must be less than 6")
    print("Enter the partition size:", flush=True)
    partition_size = _read_count(stream, "partition size")
    return partitions, partition_size


async def start_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    stream: TextIO | None = None,
) -> None:
    """Bind, read the settings from ``stream`` (stdin by default), then serve forever."""
    sock = socket.create_server((host, port))
    print(f"Listening on {host}:{port}", flush=True)
    try:
        partitions, partition_size = await asyncio.to_thread(
            read_settings, stream if stream is not None else sys.stdin
        )
    except BaseException:
        sock.close()
        raise

    broker = Broker(partitions, partition_size)

    async def on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        logger.info("Connected: %s", writer.get_extra_info("peername"))
        await broker.handle_client(reader, writer)

    server = await asyncio.start_server(on_connect, sock=sock)
    async with server:
        await server.serve_forever()


def main(argv: list[str] | None = None) -> int:
    """Run the broker until interrupted; return the exit status."""
    parser = argparse.ArgumentParser(
        prog="minikafka", description="A small partitioned message broker."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to bind")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        asyncio.run(start_server(args.host, args.port))
    except (SettingsError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())