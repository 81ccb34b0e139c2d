"""Read-only views onto the topic metadata a client has loaded."""

from __future__ import annotations

from collections.abc import Iterator

from .state import Broker, ClientState, TopicPartition, TopicPartitions


class Partition:
    """Metadata of one topic partition.

    A partition is "available" when it has a known leader broker; only
    available partitions can be sent messages to or fetched from.
    """

    def __init__(self, state: ClientState, partition: TopicPartition, partition_id: int) -> None:
        self._state = state
        self._partition = partition
        self.id = partition_id

    def leader(self) -> Broker | None:
        """The current leader broker of this partition, if any."""
        return self._partition.broker(self._state)

    def is_available(self) -> bool:
        """Whether this partition currently has a leader."""
        return self.leader() is not None

    def __repr__(self) -> str:
        return f"Partition(id={self.id}, leader={self.leader()!r})"


class Partitions:
    """The partitions of one topic."""

    def __init__(self, state: ClientState, tp: TopicPartitions) -> None:
        self._state = state
        self._tp = tp

    def __len__(self) -> int:
        return len(self._tp)

    def __iter__(self) -> Iterator[Partition]:
        return (Partition(self._state, p, pid) for pid, p in self._tp)

    def partition(self, partition_id: int) -> Partition | None:
        """The partition with the given id, or None."""
        p = self._tp.partition(partition_id)
        return Partition(self._state, p, partition_id) if p is not None else None

    def available_ids(self) -> list[int]:
        """Ids of the partitions that currently have a leader."""
        return [pid for pid, p in self._tp if p.broker(self._state) is not None]

    def __repr__(self) -> str:
        return f"Partitions({list(self)!r})"


class Topic:
    """Metadata of one topic."""

    def __init__(self, state: ClientState, name: str, tp: TopicPartitions) -> None:
        self._state = state
        self.name = name
        self._tp = tp

    def partitions(self) -> Partitions:
        """All partitions of this topic."""
        return Partitions(self._state, self._tp)

    def __repr__(self) -> str:
        return f"Topic(name={self.name!r}, partitions={self.partitions()!r})"


class Topics:
    """A view on all loaded topics."""

    def __init__(self, state: ClientState) -> None:
        self._state = state

    def __len__(self) -> int:
        return self._state.num_topics()

    def __iter__(self) -> Iterator[Topic]:
        return (
            Topic(self._state, name, tp)
            for name, tp in self._state.topic_partitions.items()
        )

    def __contains__(self, topic: object) -> bool:
        return isinstance(topic, str) and self.contains(topic)

    def names(self) -> Iterator[str]:
        """An iterator over the topic names."""
        return self._state.topic_names()

    def contains(self, topic: str) -> bool:
        """Whether the topic is known."""
        return self._state.contains_topic(topic)

    def partitions(self, topic: str) -> Partitions | None:
        """The partitions of the given topic, or None if it is unknown."""
        tp = self._state.partitions_for(topic)
        return Partitions(self._state, tp) if tp is not None else None

    def __repr__(self) -> str:
        return f"Topics({list(self)!r})"