"""Size-prefixed request/response framing over a broker connection, and retries."""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol, TypeVar

from .codecs import CodecError, decode_i32, encode_i32

log = logging.getLogger(__name__)

T = TypeVar("T")

_SIZE_PREFIX_LEN = 4


class _Connection(Protocol):
    def send(self, msg: bytes) -> int: ...

    def read_exact(self, size: int) -> bytes: ...


def frame_request(payload: bytes) -> bytes:
    """Prefix an encoded request with its size as a big-endian 32-bit integer."""
    data = bytes(payload)
    return encode_i32(len(data)) + data


def send_request(conn: _Connection, payload: bytes) -> int:
    """Send a framed request over `conn`; return the number of bytes sent."""
    frame = frame_request(payload)
    log.debug("sending %d bytes to %r", len(frame), conn)
    return conn.send(frame)


def read_response_size(conn: _Connection) -> int:
    """Read the 32-bit size prefix of the next response."""
    return decode_i32(io.BytesIO(conn.read_exact(_SIZE_PREFIX_LEN)))


def read_response(conn: _Connection) -> bytes:
    """Read one size-prefixed response and return its body."""
    size = read_response_size(conn)
    if size < 0:
        raise CodecError(f"negative response size: {size}")
    body = conn.read_exact(size)
    log.debug("received %d bytes from %r", len(body), conn)
    return body


def send_receive(conn: _Connection, payload: bytes) -> bytes:
    """Send a request and return the body of the broker's response."""
    send_request(conn, payload)
    return read_response(conn)


def send_noack(conn: _Connection, payload: bytes) -> int:
    """Send a request for which no response is expected."""
    return send_request(conn, payload)


def _backoff_seconds(backoff: float | timedelta) -> float:
    if isinstance(backoff, timedelta):
        return backoff.total_seconds()
    return float(backoff)


def retry_with_backoff(
    operation: Callable[[], T],
    is_retryable: Callable[[BaseException], bool],
    max_attempts: int,
    backoff: float | timedelta,
) -> T:
    """Run `operation`, retrying failures that `is_retryable` accepts.

    At most `max_attempts` attempts are made, sleeping `backoff` between
    them.  A non-retryable error, or a retryable one on the last attempt,
    propagates to the caller.
    """
    delay = _backoff_seconds(backoff)
    attempt = 1
    while True:
        try:
            return operation()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= max_attempts:
                raise
            log.debug("attempt %d failed, will retry: %r", attempt, exc)
            attempt += 1
            time.sleep(delay)