"""NUL-terminated string and memory helpers over bytes."""

from __future__ import annotations

import re
from itertools import islice
from typing import BinaryIO, Union

ByteString = Union[bytes, bytearray, memoryview, str]

_DIGITS = re.compile(rb"[0-9]*")


def _bytes(s: ByteString) -> bytes:
    if isinstance(s, str):
        return s.encode("utf-8")
    return bytes(s)


def _cstr(s: ByteString) -> bytes:
    """The bytes of s up to, not including, the first NUL."""
    data = _bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def memcmp(a: ByteString, b: ByteString, n: int) -> int:
    """Compare the first n bytes; the difference of the first unequal pair or 0."""
    left, right = _bytes(a), _bytes(b)
    if n < 0 or n > len(left) or n > len(right):
        raise ValueError(f"cannot compare {n} bytes")
    for x, y in zip(left[:n], right[:n]):
        if x != y:
            return x - y
    return 0


def strcmp(p: ByteString, q: ByteString) -> int:
    """Compare two NUL-terminated strings as unsigned bytes."""
    for x, y in zip(_cstr(p) + b"\0", _cstr(q) + b"\0"):
        if x != y:
            return x - y
    return 0


def strncmp(p: ByteString, q: ByteString, n: int) -> int:
    """Compare at most n bytes of two NUL-terminated strings."""
    for x, y in islice(zip(_cstr(p) + b"\0", _cstr(q) + b"\0"), max(n, 0)):
        if x != y or x == 0:
            return x - y
    return 0


def strncpy(src: ByteString, n: int) -> bytes:
    """The n-byte buffer strncpy fills: src cut at n, padded with NULs."""
    if n <= 0:
        return b""
    return _cstr(src)[:n].ljust(n, b"\0")


def safestrcpy(src: ByteString, n: int) -> bytes:
    """Copy at most n-1 bytes of src and always end with a NUL."""
    if n <= 0:
        return b""
    return _cstr(src)[: n - 1] + b"\0"


def atoi(s: ByteString) -> int:
    """Value of the leading decimal digits of s; 0 when there are none."""
    digits = _DIGITS.match(_bytes(s)).group()
    return int(digits) if digits else 0


def gets(stream: BinaryIO, limit: int) -> bytes:
    """Read one line from a binary stream, at most limit-1 bytes.

    Stops after a newline or carriage return, which is kept, or at end of file.
    """
    line = bytearray()
    while len(line) + 1 < limit:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)