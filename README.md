# minikafka

minikafka is a small message broker that keeps everything in memory. It runs
as a TCP server. Producers send JSON messages to numbered partitions. Consumers
join consumer groups and read messages from the partitions that their group
assigns to them.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running the broker

```
minikafka [--host HOST] [--port PORT]
```

By default the broker binds to `0.0.0.0:9000`. After binding, it asks two
questions on standard input:

1. The number of partitions. It must be a whole number less than 6.
2. The partition size. This is how many messages each partition keeps. When a
   partition is full, each new message overwrites the oldest one.

If either answer is not a non-negative whole number, or there are 6 or more
partitions, the command prints `Error: ...` and exits with status 1. Status
messages, such as new connections and group rebalances, are logged to standard
error. Press Ctrl-C to stop the broker.

## Protocol

The first thing a client sends is its role, either `producer` or `consumer`.
Case and surrounding whitespace are ignored. For any other role the broker
replies `Invalid role` and closes the connection.

### Producers

After the role, a producer sends one JSON message per write:

```
{"partitionId": 1, "message": "hello"}
```

`partitionId` is optional and may be `null`. When it is left out, the broker
picks partitions in round-robin order. The broker also accepts a two-element
array, `[1, "hello"]`. The broker answers each message with one of these
lines:

- `Message added to partition N`
- `Partition N does not exist`
- `Please provide the data in correct format`

With a partition size of 0, partitions cannot hold messages. A producer that
writes to one is disconnected.

### Consumers

After the role, a consumer sends `group_id:consumer_id`, optionally followed by
`:true`. With `:true`, a partition that the group has not read before is read
from its current end, so only new messages arrive. Otherwise reading starts
at the oldest message the partition still holds. If there is no `:` in the
line, the broker replies
`Invalid format. Use group_id:consumer_id:offset` and closes the connection.

When a consumer joins or leaves a group, the group is rebalanced. The broker
sorts the consumer ids and hands the partitions out among them in round-robin
order. Offsets are committed per group and per partition, so a new member
carries on where the group stopped. A consumer leaves its group when its
connection ends. Each message arrives as:

```
[partition N] message text
```

If the consumer id is already taken in its group, the broker replies
`Error: Consumer ID '...' already exists in group '...'` and closes the
connection.

## Using it as a library

- `minikafka.circular_buffer.CircularBuffer(capacity)` is a fixed-size ring of
  strings. It provides `push`, `get(index)` (oldest first, `None` when out of
  range), `get_all()`, `len()` and iteration.
- `minikafka.partitions.PartitionManager(total_partitions, capacity)` holds one
  buffer per partition. It provides `get_partition(partition_id)` and
  `total_partitions()`.
- `minikafka.groups.ConsumerGroupManager(partition_count)` handles group
  membership, partition assignment and offsets through `join_group`,
  `leave_group`, `get_assignments`, `commit_offset` and `get_or_init_offset`.
  A duplicate join raises `ConsumerAlreadyInGroupError`.
- `minikafka.messages.parse_message(data)` decodes a producer payload into an
  `IncomingMessage` (`message`, `partition_id`). It raises
  `MessageFormatError` for a bad payload.
- `minikafka.handler.Broker(partitions, partition_size)` holds the shared
  state. Its `handle_client(reader, writer)` method can be passed to
  `asyncio.start_server`. `parse_consumer_request(text)` returns a
  `ConsumerRequest`.
- `minikafka.server.start_server(host, port, stream)` binds, reads the settings
  from `stream` (standard input by default) with `read_settings`, and serves
  until cancelled. Bad settings raise `SettingsError`.

## Limitations

The broker serves a single unnamed topic. Messages, offsets and group
membership are kept only in memory and are lost when the broker stops. Nothing
is written to disk, and there is no replication between brokers.