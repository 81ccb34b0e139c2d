"""Client-side bookkeeping of brokers, topic partitions and group coordinators."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

log = logging.getLogger(__name__)

_CORRELATION_MODULUS = 1 << 30


# ------------------------------------------------------------ wire metadata


@dataclass(frozen=True)
class BrokerMetadata:
    """A broker as advertised in a metadata response."""

    node_id: int
    host: str
    port: int


@dataclass(frozen=True)
class PartitionMetadata:
    """A topic partition as advertised in a metadata response."""

    id: int
    leader: int
    error: int = 0
    replicas: Sequence[int] = ()
    isr: Sequence[int] = ()


@dataclass(frozen=True)
class TopicMetadata:
    """A topic and its partitions as advertised in a metadata response."""

    topic: str
    partitions: Sequence[PartitionMetadata] = ()
    error: int = 0


@dataclass(frozen=True)
class MetadataResponse:
    """The decoded content of a metadata response."""

    correlation: int
    brokers: Sequence[BrokerMetadata] = ()
    topics: Sequence[TopicMetadata] = ()


@dataclass(frozen=True)
class GroupCoordinator:
    """The coordinator broker of a consumer group."""

    broker_id: int
    host: str
    port: int
    error: int = 0


# ------------------------------------------------------------ client state


@dataclass
class Broker:
    """A Kafka broker node the client communicates with."""

    node_id: int
    host: str

    @property
    def id(self) -> int:
        """The node id of this broker within the cluster."""
        return self.node_id


@dataclass
class TopicPartition:
    """Metadata of a single topic partition: a reference to its leader."""

    broker_index: int | None = None

    def broker(self, state: ClientState) -> Broker | None:
        """The leader broker of this partition, if known."""
        return state._broker_at(self.broker_index)


@dataclass
class TopicPartitions:
    """The partitions of one topic, indexed by partition id."""

    partitions: list[TopicPartition] = field(default_factory=list)

    @classmethod
    def leaderless(cls, count: int) -> TopicPartitions:
        return cls([TopicPartition() for _ in range(count)])

    def __len__(self) -> int:
        return len(self.partitions)

    def __iter__(self) -> Iterator[tuple[int, TopicPartition]]:
        return enumerate(self.partitions)

    def partition(self, partition_id: int) -> TopicPartition | None:
        """The partition with the given id, or None if there is none."""
        if 0 <= partition_id < len(self.partitions):
            return self.partitions[partition_id]
        return None

    def _resize(self, count: int) -> None:
        if len(self.partitions) > count:
            del self.partitions[count:]
        else:
            self.partitions.extend(
                TopicPartition() for _ in range(count - len(self.partitions))
            )


class ClientState:
    """Known brokers, topic partitions and group coordinators of a client."""

    def __init__(self) -> None:
        self._correlation = 0
        # Brokers are referenced by their position in this list; loading
        # further metadata keeps already known brokers in place.
        self._brokers: list[Broker] = []
        self._topic_partitions: dict[str, TopicPartitions] = {}
        self._group_coordinators: dict[str, int] = {}

    def __repr__(self) -> str:
        return (
            f"ClientState(correlation={self._correlation}, "
            f"brokers={self._brokers!r}, topics={sorted(self._topic_partitions)!r})"
        )

    def _broker_at(self, index: int | None) -> Broker | None:
        if index is None or not 0 <= index < len(self._brokers):
            return None
        return self._brokers[index]

    @property
    def brokers(self) -> tuple[Broker, ...]:
        """All brokers currently known."""
        return tuple(self._brokers)

    @property
    def topic_partitions(self) -> Mapping[str, TopicPartitions]:
        """A read-only view of topic name to its partitions."""
        return MappingProxyType(self._topic_partitions)

    def num_topics(self) -> int:
        """The number of known topics."""
        return len(self._topic_partitions)

    def contains_topic(self, topic: str) -> bool:
        """Whether the topic is known."""
        return topic in self._topic_partitions

    def contains_topic_partition(self, topic: str, partition_id: int) -> bool:
        """Whether the topic is known and has the given partition."""
        tps = self._topic_partitions.get(topic)
        return tps is not None and tps.partition(partition_id) is not None

    def topic_names(self) -> Iterator[str]:
        """An iterator over the names of the known topics."""
        return iter(self._topic_partitions)

    def partitions_for(self, topic: str) -> TopicPartitions | None:
        """The partitions of the topic, or None if it is unknown."""
        return self._topic_partitions.get(topic)

    def next_correlation_id(self) -> int:
        """Advance and return the correlation id, wrapping below 2**30."""
        self._correlation = (self._correlation + 1) % _CORRELATION_MODULUS
        return self._correlation

    def find_broker(self, topic: str, partition_id: int) -> str | None:
        """The host:port of the leader of the topic partition, if known."""
        tps = self._topic_partitions.get(topic)
        if tps is None:
            return None
        tp = tps.partition(partition_id)
        if tp is None:
            return None
        broker = tp.broker(self)
        return broker.host if broker is not None else None

    def clear_metadata(self) -> None:
        """Forget all topics and brokers."""
        self._topic_partitions.clear()
        self._brokers.clear()

    def update_metadata(self, md: MetadataResponse) -> None:
        """Add new and refresh existing metadata from a metadata response."""
        log.debug("updating metadata from: %r", md)
        by_node = self._update_brokers(md)

        for t in md.topics:
            count = len(t.partitions)
            tps = self._topic_partitions.get(t.topic)
            if tps is None:
                tps = self._topic_partitions[t.topic] = TopicPartitions.leaderless(count)
            else:
                tps._resize(count)
            for partition in t.partitions:
                tp = tps.partition(partition.id)
                if tp is None:
                    raise ValueError(
                        f"partition id {partition.id} out of range for topic "
                        f"{t.topic!r} with {count} partitions"
                    )
                tp.broker_index = by_node.get(partition.leader)

    def _update_brokers(self, md: MetadataResponse) -> dict[int, int]:
        """Register the response's brokers; return node id -> broker index."""
        by_node = {b.node_id: i for i, b in enumerate(self._brokers)}
        for meta in md.brokers:
            host = f"{meta.host}:{meta.port}"
            index = by_node.get(meta.node_id)
            if index is None:
                by_node[meta.node_id] = len(self._brokers)
                self._brokers.append(Broker(meta.node_id, host))
            else:
                self._brokers[index].host = host
        return by_node

    def group_coordinator(self, group: str) -> str | None:
        """The host:port of the group's coordinator, if known."""
        broker = self._broker_at(self._group_coordinators.get(group))
        return broker.host if broker is not None else None

    def remove_group_coordinator(self, group: str) -> None:
        """Forget the coordinator of the group, if any."""
        self._group_coordinators.pop(group, None)

    def set_group_coordinator(self, group: str, gc: GroupCoordinator) -> str:
        """Record the group's coordinator and return its host:port."""
        log.debug("registering coordinator for %r: %r", group, gc)
        group_host = f"{gc.host}:{gc.port}"
        index = next(
            (i for i, b in enumerate(self._brokers) if b.node_id == gc.broker_id),
            None,
        )
        if index is None:
            index = len(self._brokers)
            self._brokers.append(Broker(gc.broker_id, group_host))
        elif self._brokers[index].host != group_host:
            log.warning(
                "coordinator host (%s) != broker host (%s) for broker id %d",
                group_host,
                self._brokers[index].host,
                gc.broker_id,
            )
        self._group_coordinators[group] = index
        return self._brokers[index].host