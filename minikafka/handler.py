"""Per-connection protocol handling for producers and consumers."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from dataclasses import dataclass
from typing import Any

from .groups import ConsumerAlreadyInGroupError, ConsumerGroupManager
from .messages import MessageFormatError, parse_message
from .partitions import PartitionManager

logger = logging.getLogger(__name__)

READ_SIZE = 1024
POLL_INTERVAL = 0.2

_INVALID_CONSUMER_FORMAT = "Invalid format. Use group_id:consumer_id:offset"


@dataclass(frozen=True)
class ConsumerRequest:
    """What a consumer asks for when it connects."""

    group_id: str
    consumer_id: str
    start_from_latest: bool = False


def parse_consumer_request(text: str) -> ConsumerRequest:
    """Parse ``group_id:consumer_id[:true]``; raise ValueError if malformed."""
    parts = text.strip().split(":")
    if len(parts) < 2:
        raise ValueError(_INVALID_CONSUMER_FORMAT)
    start_from_latest = len(parts) > 2 and parts[2] == "true"
    return ConsumerRequest(parts[0], parts[1], start_from_latest)


async def _read(reader: Any) -> bytes:
    """Read one chunk; a broken connection reads as end of stream."""
    try:
        return await reader.read(READ_SIZE)
    except ConnectionError:
        return b""


async def _send(writer: Any, text: str) -> bool:
    """Write ``text``; return False if the connection is gone."""
    if writer.is_closing():
        return False
    try:
        writer.write(text.encode("utf-8"))
        await writer.drain()
    except ConnectionError:
        return False
    return True


class Broker:
    """Shared broker state and the handlers for client connections."""

    def __init__(self, partitions: int, partition_size: int) -> None:
        self.partition_manager = PartitionManager(partitions, partition_size)
        self.group_manager = ConsumerGroupManager(
            self.partition_manager.total_partitions()
        )
        self.poll_interval = POLL_INTERVAL
        self._round_robin = itertools.count()

    def _next_partition(self) -> int:
        total = self.partition_manager.total_partitions()
        counter = next(self._round_robin)
        return counter % total if total else counter

    async def handle_client(self, reader: Any, writer: Any) -> None:
        """Read the client's role and serve it until it is done."""
        try:
            data = await _read(reader)
            role = data.decode("utf-8", errors="replace").strip().lower()
            if role == "producer":
                await self.handle_producer(reader, writer)
            elif role == "consumer":
                await self.handle_consumer(reader, writer)
            else:
                await _send(writer, "Invalid role\n")
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    async def handle_producer(self, reader: Any, writer: Any) -> None:
        """Store every message the producer sends until it disconnects."""
        while data := await _read(reader):
            try:
                incoming = parse_message(data)
            except MessageFormatError as exc:
                logger.warning("Failed to parse message: %s", exc)
                await _send(writer, "Please provide the data in correct format\n")
                continue

            if incoming.partition_id is None:
                partition_id = self._next_partition()
            else:
                partition_id = incoming.partition_id
            logger.info("current assigned partition is %d", partition_id)

            buffer = self.partition_manager.get_partition(partition_id)
            if buffer is None:
                await _send(writer, f"Partition {partition_id} does not exist\n")
                continue

            buffer.push(incoming.message)
            logger.debug("circular buffer is %s", buffer.get_all())
            await _send(writer, f"Message added to partition {partition_id}\n")

    async def handle_consumer(self, reader: Any, writer: Any) -> None:
        """Join the consumer's group and stream it messages from its partitions."""
        data = await _read(reader)
        if not data:
            return
        try:
            request = parse_consumer_request(data.decode("utf-8", errors="replace"))
        except ValueError:
            await _send(writer, _INVALID_CONSUMER_FORMAT + "\n")
            return

        group_id, consumer_id = request.group_id, request.consumer_id
        try:
            self.group_manager.join_group(group_id, consumer_id)
        except ConsumerAlreadyInGroupError as exc:
            await _send(writer, f"Error: {exc}\n")
            return

        try:
            while True:
                assigned = self.group_manager.get_assignments(group_id, consumer_id)
                if not assigned:
                    await asyncio.sleep(self.poll_interval)
                    continue

                found = False
                for partition_id in assigned:
                    buffer = self.partition_manager.get_partition(partition_id)
                    if buffer is None:
                        continue
                    offset = self.group_manager.get_or_init_offset(
                        group_id, partition_id, request.start_from_latest, len(buffer)
                    )
                    messages = buffer.get_all()
                    if offset < len(messages):
                        found = True
                        line = f"[partition {partition_id}] {messages[offset]}\n"
                        if not await _send(writer, line):
                            return
                        self.group_manager.commit_offset(
                            group_id, partition_id, offset + 1
                        )

                if not found:
                    await asyncio.sleep(self.poll_interval)
        finally:
            self.group_manager.leave_group(group_id, consumer_id)