import asyncio

import pytest

from minikafka.groups import ConsumerAlreadyInGroupError
from minikafka.handler import Broker, ConsumerRequest, parse_consumer_request


class ChunkReader:
    def __init__(self, *chunks):
        self._chunks = list(chunks)

    async def read(self, n=-1):
        if not self._chunks:
            return b""
        return self._chunks.pop(0)


class RecordingWriter:
    def __init__(self, fail=False):
        self.data = bytearray()
        self.closed = False
        self.fail = fail

    def write(self, data):
        self.data += data

    async def drain(self):
        if self.fail:
            raise ConnectionResetError

    def is_closing(self):
        return self.closed

    def close(self):
        self.closed = True

    async def wait_closed(self):
        return None

    def lines(self):
        return self.data.decode("utf-8").splitlines()


async def wait_for_lines(writer, count):
    async def _poll():
        while len(writer.lines()) < count:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), 2.0)


async def wait_until(predicate):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), 2.0)


async def stop(task):
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_parse_consumer_request_two_parts():
    assert parse_consumer_request("g1:c1") == ConsumerRequest("g1", "c1", False)


def test_parse_consumer_request_start_from_latest():
    assert parse_consumer_request("  g1:c1:true\n").start_from_latest is True
    assert parse_consumer_request("g1:c1:yes").start_from_latest is False


def test_parse_consumer_request_rejects_single_part():
    with pytest.raises(ValueError):
        parse_consumer_request("lonely")


@pytest.mark.asyncio
async def test_invalid_role():
    broker = Broker(2, 4)
    writer = RecordingWriter()
    await broker.handle_client(ChunkReader(b"spectator"), writer)
    assert bytes(writer.data) == b"Invalid role\n"
    assert writer.closed


@pytest.mark.asyncio
async def test_producer_explicit_partition():
    broker = Broker(2, 4)
    writer = RecordingWriter()
    reader = ChunkReader(b"Producer\n", b'{"partitionId": 1, "message": "hi"}')
    await broker.handle_client(reader, writer)
    assert writer.lines() == ["Message added to partition 1"]
    assert broker.partition_manager.get_partition(1).get_all() == ["hi"]
    assert broker.partition_manager.get_partition(0).get_all() == []


@pytest.mark.asyncio
async def test_producer_round_robin():
    broker = Broker(2, 4)
    writer = RecordingWriter()
    reader = ChunkReader(
        b"producer",
        b'{"message": "a"}',
        b'{"message": "b"}',
        b'{"message": "c"}',
    )
    await broker.handle_client(reader, writer)
    assert writer.lines() == [
        "Message added to partition 0",
        "Message added to partition 1",
        "Message added to partition 0",
    ]
    assert broker.partition_manager.get_partition(0).get_all() == ["a", "c"]


@pytest.mark.asyncio
async def test_producer_unknown_partition():
    broker = Broker(2, 4)
    writer = RecordingWriter()
    reader = ChunkReader(b"producer", b'{"partitionId": 7, "message": "x"}')
    await broker.handle_client(reader, writer)
    assert writer.lines() == ["Partition 7 does not exist"]


@pytest.mark.asyncio
async def test_producer_bad_payload_then_good():
    broker = Broker(1, 4)
    writer = RecordingWriter()
    reader = ChunkReader(b"producer", b"not json", b'{"message": "ok"}')
    await broker.handle_client(reader, writer)
    assert writer.lines() == [
        "Please provide the data in correct format",
        "Message added to partition 0",
    ]


@pytest.mark.asyncio
async def test_consumer_invalid_format():
    broker = Broker(1, 4)
    writer = RecordingWriter()
    await broker.handle_client(ChunkReader(b"consumer", b"nogroup"), writer)
    assert writer.lines() == ["Invalid format. Use group_id:consumer_id:offset"]


@pytest.mark.asyncio
async def test_consumer_duplicate_id():
    broker = Broker(1, 4)
    broker.group_manager.join_group("g1", "c1")
    writer = RecordingWriter()
    await broker.handle_client(ChunkReader(b"consumer", b"g1:c1"), writer)
    assert writer.lines() == [f"Error: {ConsumerAlreadyInGroupError('g1', 'c1')}"]
    assert broker.group_manager.get_assignments("g1", "c1") == [0]


@pytest.mark.asyncio
async def test_consumer_receives_messages_and_commits():
    broker = Broker(2, 5)
    broker.poll_interval = 0.01
    broker.partition_manager.get_partition(0).push("a")
    broker.partition_manager.get_partition(0).push("b")
    broker.partition_manager.get_partition(1).push("c")
    writer = RecordingWriter()
    task = asyncio.create_task(
        broker.handle_client(ChunkReader(b"consumer", b"g1:c1"), writer)
    )
    await wait_for_lines(writer, 3)
    await stop(task)
    assert writer.lines() == [
        "[partition 0] a",
        "[partition 1] c",
        "[partition 0] b",
    ]
    assert broker.group_manager.get_or_init_offset("g1", 0, True, 99) == 2
    assert broker.group_manager.get_or_init_offset("g1", 1, True, 99) == 1
    assert broker.group_manager.get_assignments("g1", "c1") == []


@pytest.mark.asyncio
async def test_consumers_share_partitions():
    broker = Broker(2, 5)
    broker.poll_interval = 0.01
    first, second = RecordingWriter(), RecordingWriter()
    tasks = [
        asyncio.create_task(
            broker.handle_client(ChunkReader(b"consumer", b"g:c1"), first)
        ),
        asyncio.create_task(
            broker.handle_client(ChunkReader(b"consumer", b"g:c2"), second)
        ),
    ]
    await wait_until(lambda: broker.group_manager.get_assignments("g", "c2"))
    broker.partition_manager.get_partition(0).push("x")
    broker.partition_manager.get_partition(1).push("y")
    await wait_for_lines(first, 1)
    await wait_for_lines(second, 1)
    for task in tasks:
        await stop(task)
    assert first.lines() == ["[partition 0] x"]
    assert second.lines() == ["[partition 1] y"]


@pytest.mark.asyncio
async def test_consumer_start_from_latest_skips_history():
    broker = Broker(1, 5)
    broker.poll_interval = 0.01
    broker.partition_manager.get_partition(0).push("old")
    writer = RecordingWriter()
    task = asyncio.create_task(
        broker.handle_client(ChunkReader(b"consumer", b"g:c:true"), writer)
    )
    await wait_until(lambda: broker.group_manager.get_assignments("g", "c"))
    broker.partition_manager.get_partition(0).push("new")
    await wait_for_lines(writer, 1)
    await stop(task)
    assert writer.lines() == ["[partition 0] new"]


@pytest.mark.asyncio
async def test_consumer_leaves_group_when_write_fails():
    broker = Broker(1, 5)
    broker.partition_manager.get_partition(0).push("m")
    writer = RecordingWriter(fail=True)
    await asyncio.wait_for(
        broker.handle_client(ChunkReader(b"consumer", b"g:c"), writer), 2.0
    )
    assert broker.group_manager.get_assignments("g", "c") == []
    assert broker.group_manager.get_or_init_offset("g", 0, True, 50) == 0
    broker.group_manager.join_group("g", "c")
    assert broker.group_manager.get_assignments("g", "c") == [0]