"""The set of partitions that make up the topic."""

from __future__ import annotations

from .circular_buffer import CircularBuffer


class PartitionManager:
    """Owns one ring buffer per partition, numbered from zero."""

    def __init__(self, total_partitions: int, capacity: int) -> None:
        self.partitions: dict[int, CircularBuffer] = {
            partition_id: CircularBuffer(capacity)
            for partition_id in range(total_partitions)
        }

    def get_partition(self, partition_id: int) -> CircularBuffer | None:
        """Return the buffer of a partition, or None if there is no such partition."""
        return self.partitions.get(partition_id)

    def total_partitions(self) -> int:
        """Return the number of partitions."""
        return len(self.partitions)