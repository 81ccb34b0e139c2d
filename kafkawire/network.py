"""Connections to Kafka brokers and a pool that reuses them per host."""

from __future__ import annotations

import logging
import socket
import ssl
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from .codecs import UnexpectedEOFError

log = logging.getLogger(__name__)

_CONN_ID_MODULUS = 1 << 32


@dataclass(frozen=True)
class SecurityConfig:
    """TLS settings used when connecting to brokers."""

    context: ssl.SSLContext = field(repr=False)
    verify_hostname: bool = True

    def with_hostname_verification(self, verify_hostname: bool) -> SecurityConfig:
        """A copy of this configuration with hostname verification switched on or off."""
        return replace(self, verify_hostname=verify_hostname)


def _split_host(host: str) -> tuple[str, int]:
    name, sep, port = host.rpartition(":")
    if not sep or not name or not port.isdigit():
        raise ValueError(f"expected 'host:port', got {host!r}")
    return name.strip("[]"), int(port)


class KafkaConnection:
    """A stream to a single remote Kafka broker."""

    def __init__(self, conn_id: int, host: str, sock: socket.socket) -> None:
        self._id = conn_id
        self._host = host
        self._sock = sock

    @classmethod
    def open(
        cls,
        conn_id: int,
        host: str,
        rw_timeout: float | None = None,
        security: SecurityConfig | None = None,
    ) -> KafkaConnection:
        """Connect to `host` ("host:port"), optionally over TLS."""
        name, port = _split_host(host)
        sock: socket.socket = socket.create_connection((name, port))
        try:
            if security is not None:
                context = security.context
                if not security.verify_hostname:
                    context.check_hostname = False
                sock = context.wrap_socket(sock, server_hostname=name)
            sock.settimeout(rw_timeout)
        except BaseException:
            sock.close()
            raise
        conn = cls(conn_id, host, sock)
        log.debug("Established: %r", conn)
        return conn

    @property
    def id(self) -> int:
        """A surrogate identifier distinguishing connections in log output."""
        return self._id

    @property
    def host(self) -> str:
        """The "host:port" this connection talks to."""
        return self._host

    @property
    def secured(self) -> bool:
        """Whether the stream is encrypted."""
        return isinstance(self._sock, ssl.SSLSocket)

    def __repr__(self) -> str:
        return (
            f"KafkaConnection(id={self._id}, secured={self.secured}, "
            f"host={self._host!r})"
        )

    def send(self, msg: bytes) -> int:
        """Send all of `msg` and return the number of bytes sent."""
        self._sock.sendall(msg)
        log.debug("Sent %d bytes to: %r", len(msg), self)
        return len(msg)

    def read_exact(self, size: int) -> bytes:
        """Read exactly `size` bytes, raising UnexpectedEOFError if the peer closes first."""
        buf = bytearray()
        while len(buf) < size:
            chunk = self._sock.recv(size - len(buf))
            if not chunk:
                raise UnexpectedEOFError(
                    f"connection closed after {len(buf)} of {size} bytes"
                )
            buf.extend(chunk)
        return bytes(buf)

    def shutdown(self) -> None:
        """Shut the stream down in both directions and release it."""
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
            log.debug("Shut down: %r", self)
        finally:
            self._sock.close()

    def __enter__(self) -> KafkaConnection:
        return self

    def __exit__(self, *exc: object) -> None:
        try:
            self.shutdown()
        except OSError:
            pass


ConnectFactory = Callable[[int, str, "float | None", "SecurityConfig | None"], Any]


@dataclass
class _Pooled:
    last_checkout: float
    item: Any


class Connections:
    """A pool of one connection per host, renewed after an idle timeout."""

    def __init__(
        self,
        rw_timeout: float | None,
        idle_timeout: float,
        security: SecurityConfig | None = None,
        *,
        connect: ConnectFactory | None = None,
    ) -> None:
        self.rw_timeout = rw_timeout
        self.idle_timeout = idle_timeout
        self.security = security
        self._connect: ConnectFactory = connect or KafkaConnection.open
        self._conns: dict[str, _Pooled] = {}
        self._num_conns = 0

    def __len__(self) -> int:
        return len(self._conns)

    def __contains__(self, host: object) -> bool:
        return host in self._conns

    def _next_conn_id(self) -> int:
        conn_id = self._num_conns
        self._num_conns = (self._num_conns + 1) % _CONN_ID_MODULUS
        return conn_id

    def _new_conn(self, host: str) -> Any:
        return self._connect(self._next_conn_id(), host, self.rw_timeout, self.security)

    @staticmethod
    def _quiet_shutdown(conn: Any) -> None:
        try:
            conn.shutdown()
        except OSError as exc:
            log.debug("Failed to shut down %r: %s", conn, exc)

    def get_conn(self, host: str, now: float) -> Any:
        """The connection to `host`, opening or renewing it as needed."""
        pooled = self._conns.get(host)
        if pooled is not None:
            if now - pooled.last_checkout >= self.idle_timeout:
                log.debug("Idle timeout reached: %r", pooled.item)
                new_conn = self._new_conn(host)
                self._quiet_shutdown(pooled.item)
                pooled.item = new_conn
            pooled.last_checkout = now
            return pooled.item
        conn = self._new_conn(host)
        self._conns[host] = _Pooled(now, conn)
        return conn

    def get_conn_any(self, now: float) -> Any | None:
        """Any usable pooled connection, or None if there is none."""
        for host, pooled in self._conns.items():
            if now - pooled.last_checkout >= self.idle_timeout:
                log.debug("Idle timeout reached: %r", pooled.item)
                try:
                    new_conn = self._new_conn(host)
                except OSError as exc:
                    log.warning("Failed to establish connection to %s: %r", host, exc)
                    continue
                self._quiet_shutdown(pooled.item)
                pooled.item = new_conn
            pooled.last_checkout = now
            return pooled.item
        return None

    def close(self) -> None:
        """Shut down and forget all pooled connections."""
        for pooled in self._conns.values():
            self._quiet_shutdown(pooled.item)
        self._conns.clear()

    def __enter__(self) -> Connections:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()