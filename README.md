# kafkawire

Building blocks for talking to a Kafka cluster over its binary wire
protocol. The package has no dependencies outside the standard library.

- `kafkawire.codecs` encodes and decodes the protocol's big-endian
  integers, length-prefixed strings, byte blobs and arrays.
- `kafkawire.state` keeps a client's view of the cluster: known brokers,
  topic partitions with their leaders, group coordinators and the request
  correlation counter.
- `kafkawire.metadata` offers read-only views (`Topics`, `Topic`,
  `Partitions`, `Partition`) over that state.
- `kafkawire.network` opens TCP connections (optionally TLS) to brokers
  and pools one per host, renewing connections that have been idle too
  long.
- `kafkawire.transport` frames requests with a size prefix, reads sized
  responses, and retries operations with a back-off.

## Installation

```
pip install kafkawire
```

## Codecs

```python
import io
from kafkawire.codecs import encode_i32, encode_strings, decode_strings

assert encode_i32(5) == b"\x00\x00\x00\x05"

data = encode_strings(["abc", "defg"])
assert decode_strings(io.BytesIO(data)) == ["abc", "defg"]
```

There are `encode_*` / `decode_*` pairs for `i8`, `i16`, `i32`, `i64`,
`string`, `bytes` and `strings`, plus the generic `encode_array(items,
encoder)` and `decode_array(stream, decoder)`. Decoders read from any
binary stream.

- Integers outside their type's range, strings longer than a signed
  16-bit length allows, and byte blobs or arrays longer than a signed
  32-bit length allows raise `CodecError` (a `ValueError`).
- Reading past the end of the input raises `UnexpectedEOFError` (an
  `EOFError`).
- A non-positive length prefix decodes to an empty string, blob or list.

## Cluster state

```python
from kafkawire.state import (
    BrokerMetadata, ClientState, GroupCoordinator, MetadataResponse,
    PartitionMetadata, TopicMetadata,
)

state = ClientState()
state.update_metadata(MetadataResponse(
    correlation=1,
    brokers=[BrokerMetadata(node_id=1, host="localhost", port=9092)],
    topics=[TopicMetadata(topic="my-topic",
                          partitions=[PartitionMetadata(id=0, leader=1)])],
))
assert state.find_broker("my-topic", 0) == "localhost:9092"
assert state.contains_topic_partition("my-topic", 0)

host = state.set_group_coordinator(
    "my-group", GroupCoordinator(broker_id=1, host="localhost", port=9092))
assert state.group_coordinator("my-group") == host
```

Later metadata updates keep previously known brokers and topics, update
the address of a broker that has moved, and resize a topic's partition
list to the newly reported count. A partition whose leader is not among
the known brokers has no leader. A partition id outside the reported
count raises `ValueError`.

`next_correlation_id()` counts up from 1 and wraps below 2**30.
`clear_metadata()` forgets all topics and brokers.

## Metadata views

```python
from kafkawire.metadata import Topics

topics = Topics(state)
assert "my-topic" in topics
partitions = topics.partitions("my-topic")
assert partitions.available_ids() == [0]
assert partitions.partition(0).leader().host == "localhost:9092"
for topic in topics:
    print(topic.name, [p.id for p in topic.partitions()])
```

`Partition.is_available()` tells whether a partition currently has a
leader.

## Connections

`KafkaConnection.open(conn_id, host, rw_timeout, security)` connects to a
`"host:port"` address; `security` is a `SecurityConfig` wrapping an
`ssl.SSLContext`, and `with_hostname_verification(False)` returns a copy
that skips the hostname check. A connection offers `send(msg)`,
`read_exact(size)` and `shutdown()`, and works as a context manager.

`Connections(rw_timeout, idle_timeout, security=None, connect=None)` keeps
one connection per host. Timeouts are in seconds, and `now` is a
timestamp in seconds such as `time.monotonic()`:

```python
import time
from kafkawire.network import Connections

with Connections(rw_timeout=120, idle_timeout=540) as pool:
    conn = pool.get_conn("localhost:9092", time.monotonic())
```

`get_conn(host, now)` opens a connection on first use and replaces one
that has been idle for at least `idle_timeout`. `get_conn_any(now)`
returns any pooled connection, or `None` if the pool is empty. The
keyword `connect` replaces the function used to open connections.

## Transport

```python
from kafkawire.transport import frame_request, retry_with_backoff

assert frame_request(b"abc") == b"\x00\x00\x00\x03abc"
```

`send_request`, `send_noack`, `read_response_size`, `read_response` and
`send_receive` work on any object with `send(bytes)` and
`read_exact(size)` methods. A negative response size raises `CodecError`.

`retry_with_backoff(operation, is_retryable, max_attempts, backoff)` calls
`operation` up to `max_attempts` times, sleeping `backoff` (seconds or a
`timedelta`) between attempts, and re-raises an error that is not
retryable or that occurs on the last attempt.

## What this package does not do

There is no ready-made client object here: nothing loads metadata from
brokers by itself, and there are no encoders or decoders for particular
protocol requests and responses (metadata, offsets, fetch, produce, group
coordination). These modules supply the codecs, state, connection pool
and framing such a client is built from. There is no command-line tool.

## Running the tests

```
pip install -e .[test]
pytest
```