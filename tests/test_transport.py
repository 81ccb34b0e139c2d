import io
import socket
from datetime import timedelta
from unittest import mock

import pytest

from kafkawire.codecs import CodecError, UnexpectedEOFError, encode_i32
from kafkawire.network import KafkaConnection
from kafkawire.transport import (
    frame_request,
    read_response,
    read_response_size,
    retry_with_backoff,
    send_noack,
    send_receive,
    send_request,
)


class FakeConn:
    def __init__(self, incoming=b""):
        self.sent = []
        self._incoming = io.BytesIO(incoming)

    def send(self, msg):
        self.sent.append(bytes(msg))
        return len(msg)

    def read_exact(self, size):
        data = self._incoming.read(size)
        if len(data) < size:
            raise UnexpectedEOFError("short read")
        return data


class Retryable(Exception):
    pass


class Fatal(Exception):
    pass


def test_frame_request_prefixes_size():
    assert frame_request(b"test") == bytes([0, 0, 0, 4, 116, 101, 115, 116])


def test_frame_request_empty_payload():
    assert frame_request(b"") == bytes([0, 0, 0, 0])


def test_send_request_sends_framed_payload():
    conn = FakeConn()
    n = send_request(conn, b"abc")
    assert conn.sent == [frame_request(b"abc")]
    assert n == len(frame_request(b"abc"))


def test_send_noack_sends_and_reads_nothing():
    conn = FakeConn(incoming=encode_i32(3) + b"xyz")
    n = send_noack(conn, b"payload")
    assert conn.sent == [frame_request(b"payload")]
    assert n == len(b"payload") + 4
    # the pending response is untouched
    assert read_response(conn) == b"xyz"


def test_read_response_size():
    conn = FakeConn(incoming=bytes([0, 0, 0, 5]))
    assert read_response_size(conn) == 5


def test_read_response_returns_body():
    conn = FakeConn(incoming=frame_request(b"hello") + frame_request(b"world"))
    assert read_response(conn) == b"hello"
    assert read_response(conn) == b"world"


def test_read_response_truncated_body():
    conn = FakeConn(incoming=encode_i32(10) + b"short")
    with pytest.raises(UnexpectedEOFError):
        read_response(conn)


def test_read_response_truncated_size():
    conn = FakeConn(incoming=b"\x00\x00")
    with pytest.raises(UnexpectedEOFError):
        read_response(conn)


def test_read_response_negative_size():
    conn = FakeConn(incoming=encode_i32(-1))
    with pytest.raises(CodecError):
        read_response(conn)


def test_send_receive_round_trip():
    conn = FakeConn(incoming=frame_request(b"response"))
    assert send_receive(conn, b"request") == b"response"
    assert conn.sent == [frame_request(b"request")]


def test_send_receive_over_socket_pair():
    left, right = socket.socketpair()
    with KafkaConnection(0, "localhost:9092", left) as conn:
        right.sendall(frame_request(b"pong"))
        assert send_receive(conn, b"ping") == b"pong"
        received = right.recv(64)
        assert received == frame_request(b"ping")
    right.close()


def test_retry_returns_first_success():
    calls = []

    def op():
        calls.append(1)
        return "done"

    assert retry_with_backoff(op, lambda e: True, 5, 0) == "done"
    assert len(calls) == 1


def test_retry_succeeds_after_retryable_failures():
    calls = []

    def op():
        calls.append(1)
        if len(calls) < 3:
            raise Retryable()
        return len(calls)

    result = retry_with_backoff(op, lambda e: isinstance(e, Retryable), 5, 0)
    assert result == 3
    assert len(calls) == 3


def test_retry_gives_up_after_max_attempts():
    calls = []

    def op():
        calls.append(1)
        raise Retryable()

    with pytest.raises(Retryable):
        retry_with_backoff(op, lambda e: isinstance(e, Retryable), 4, 0)
    assert len(calls) == 4


def test_retry_non_retryable_raises_immediately():
    calls = []

    def op():
        calls.append(1)
        raise Fatal()

    with pytest.raises(Fatal):
        retry_with_backoff(op, lambda e: isinstance(e, Retryable), 10, 0)
    assert len(calls) == 1


def test_retry_single_attempt_does_not_retry():
    calls = []

    def op():
        calls.append(1)
        raise Retryable()

    with pytest.raises(Retryable):
        retry_with_backoff(op, lambda e: True, 1, 0)
    assert len(calls) == 1


def test_retry_sleeps_backoff_between_attempts():
    calls = []

    def op():
        calls.append(1)
        if len(calls) < 3:
            raise Retryable()
        return "ok"

    with mock.patch("kafkawire.transport.time.sleep") as sleep:
        result = retry_with_backoff(
            op, lambda e: True, 5, timedelta(milliseconds=100)
        )
    assert result == "ok"
    assert sleep.call_args_list == [mock.call(0.1), mock.call(0.1)]


def test_retry_hook_sees_each_exception():
    seen = []

    def op():
        raise Retryable(len(seen))

    def is_retryable(exc):
        seen.append(exc.args[0])
        return True

    with pytest.raises(Retryable):
        retry_with_backoff(op, is_retryable, 3, 0)
    assert seen == [0, 1, 2]