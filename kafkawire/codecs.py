"""Encoding and decoding of the primitive types of the Kafka wire protocol.

All integers are big-endian and signed.  Strings carry a 16-bit length
prefix, byte blobs and arrays a 32-bit one.  A non-positive length on
decoding denotes an empty (or null) value.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Iterable, Sequence
from typing import BinaryIO, TypeVar

T = TypeVar("T")

_I8 = struct.Struct(">b")
_I16 = struct.Struct(">h")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")

_I16_MAX = 2**15 - 1
_I32_MAX = 2**31 - 1


class CodecError(ValueError):
    """A value cannot be represented in, or read from, the wire format."""


class UnexpectedEOFError(EOFError):
    """The input ended before a complete value could be read."""


def _pack(fmt: struct.Struct, value: int) -> bytes:
    try:
        return fmt.pack(value)
    except struct.error as exc:
        raise CodecError(f"value out of range: {value!r}") from exc


def _checked_length(length: int, limit: int) -> int:
    if length > limit:
        raise CodecError(f"length {length} exceeds the maximum of {limit}")
    return length


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        raise UnexpectedEOFError(f"expected {size} bytes, got {len(data or b'')}")
    return data


# ---------------------------------------------------------------- encoding


def encode_i8(value: int) -> bytes:
    """Encode a signed 8-bit integer."""
    return _pack(_I8, value)


def encode_i16(value: int) -> bytes:
    """Encode a signed big-endian 16-bit integer."""
    return _pack(_I16, value)


def encode_i32(value: int) -> bytes:
    """Encode a signed big-endian 32-bit integer."""
    return _pack(_I32, value)


def encode_i64(value: int) -> bytes:
    """Encode a signed big-endian 64-bit integer."""
    return _pack(_I64, value)


def encode_string(value: str) -> bytes:
    """Encode a UTF-8 string with a 16-bit length prefix."""
    raw = value.encode("utf-8")
    length = _checked_length(len(raw), _I16_MAX)
    return _I16.pack(length) + raw


def encode_bytes(value: bytes) -> bytes:
    """Encode a byte blob with a 32-bit length prefix."""
    raw = bytes(value)
    length = _checked_length(len(raw), _I32_MAX)
    return _I32.pack(length) + raw


def encode_array(items: Iterable[T], encoder: Callable[[T], bytes]) -> bytes:
    """Encode a 32-bit element count followed by each item rendered by `encoder`."""
    seq: Sequence[T] = items if isinstance(items, Sequence) else list(items)
    length = _checked_length(len(seq), _I32_MAX)
    return b"".join([_I32.pack(length), *(encoder(item) for item in seq)])


def encode_strings(values: Iterable[str]) -> bytes:
    """Encode an array of strings."""
    return encode_array(values, encode_string)


# ---------------------------------------------------------------- decoding


def decode_i8(stream: BinaryIO) -> int:
    """Read a signed 8-bit integer."""
    return _I8.unpack(_read_exact(stream, _I8.size))[0]


def decode_i16(stream: BinaryIO) -> int:
    """Read a signed big-endian 16-bit integer."""
    return _I16.unpack(_read_exact(stream, _I16.size))[0]


def decode_i32(stream: BinaryIO) -> int:
    """Read a signed big-endian 32-bit integer."""
    return _I32.unpack(_read_exact(stream, _I32.size))[0]


def decode_i64(stream: BinaryIO) -> int:
    """Read a signed big-endian 64-bit integer."""
    return _I64.unpack(_read_exact(stream, _I64.size))[0]


def decode_string(stream: BinaryIO) -> str:
    """Read a length-prefixed UTF-8 string; a non-positive length yields ''."""
    length = decode_i16(stream)
    if length <= 0:
        return ""
    raw = _read_exact(stream, length)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError("string is not valid UTF-8") from exc


def decode_bytes(stream: BinaryIO) -> bytes:
    """Read a length-prefixed byte blob; a non-positive length yields b''."""
    length = decode_i32(stream)
    if length <= 0:
        return b""
    return _read_exact(stream, length)


def decode_array(stream: BinaryIO, decoder: Callable[[BinaryIO], T]) -> list[T]:
    """Read a 32-bit element count and that many elements using `decoder`."""
    length = decode_i32(stream)
    if length <= 0:
        return []
    return [decoder(stream) for _ in range(length)]


def decode_strings(stream: BinaryIO) -> list[str]:
    """Read an array of strings."""
    return decode_array(stream, decode_string)