"""Consumer groups: membership, partition assignment and committed offsets."""

from __future__ import annotations

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class ConsumerAlreadyInGroupError(Exception):
    """Raised when a consumer id is already a member of the group it joins."""

    def __init__(self, group_id: str, consumer_id: str) -> None:
        super().__init__(
            f"Consumer ID '{consumer_id}' already exists in group '{group_id}'"
        )
        self.group_id = group_id
        self.consumer_id = consumer_id


class ConsumerGroupManager:
    """Tracks groups of consumers sharing the partitions of one topic."""

    def __init__(self, partition_count: int) -> None:
        self.partition_count = partition_count
        self._groups: dict[str, set[str]] = {}
        self._offsets: defaultdict[str, dict[int, int]] = defaultdict(dict)
        self._assignments: dict[str, dict[str, list[int]]] = {}

    def join_group(self, group_id: str, consumer_id: str) -> None:
        """Add a consumer to a group and rebalance the group's partitions."""
        members = self._groups.setdefault(group_id, set())
        if consumer_id in members:
            raise ConsumerAlreadyInGroupError(group_id, consumer_id)
        members.add(consumer_id)
        self._rebalance(group_id)

    def leave_group(self, group_id: str, consumer_id: str) -> None:
        """Remove a consumer; an emptied group is dropped, otherwise rebalanced."""
        members = self._groups.get(group_id)
        if members is None:
            return
        members.discard(consumer_id)
        if members:
            self._rebalance(group_id)
        else:
            del self._groups[group_id]
            self._assignments.pop(group_id, None)

    def _rebalance(self, group_id: str) -> None:
        members = self._groups.get(group_id)
        if not members:
            return
        consumers = sorted(members)
        assignment: dict[str, list[int]] = {}
        for partition_id in range(self.partition_count):
            consumer = consumers[partition_id % len(consumers)]
            assignment.setdefault(consumer, []).append(partition_id)
        self._assignments[group_id] = assignment

        logger.info("Rebalanced group '%s':", group_id)
        for consumer, partitions in assignment.items():
            logger.info("  Consumer %s => Partitions %s", consumer, partitions)

    def get_assignments(self, group_id: str, consumer_id: str) -> list[int]:
        """Return the partitions assigned to a consumer, possibly none."""
        return list(self._assignments.get(group_id, {}).get(consumer_id, []))

    def commit_offset(self, group_id: str, partition_id: int, offset: int) -> None:
        """Record the next offset the group will read from a partition."""
        self._offsets[group_id][partition_id] = offset

    def get_or_init_offset(
        self,
        group_id: str,
        partition_id: int,
        start_from_latest: bool,
        current_len: int,
    ) -> int:
        """Return the committed offset, first setting it to 0 or ``current_len``."""
        initial = current_len if start_from_latest else 0
        return self._offsets[group_id].setdefault(partition_id, initial)