"""Small C-library style helpers: atoi, strcmp, memcmp, gets."""

from __future__ import annotations

from typing import IO, AnyStr

from xvtools.fmt import to_int32


def atoi(s: str) -> int:
    """Parse leading decimal digits; no sign or whitespace is accepted."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return to_int32(n)


def _cbytes(s: str | bytes) -> bytes:
    data = s.encode() if isinstance(s, str) else bytes(s)
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def strcmp(a: str | bytes, b: str | bytes) -> int:
    """Compare two strings bytewise; result is the first byte difference."""
    for x, y in zip(_cbytes(a) + b"\0", _cbytes(b) + b"\0"):
        if x == 0 or x != y:
            return x - y
    return 0


def memcmp(a: bytes, b: bytes, n: int) -> int:
    """Compare the first n bytes of a and b."""
    if n > len(a) or n > len(b):
        raise ValueError("memcmp length exceeds buffer")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def gets(stream: IO[AnyStr], limit: int) -> AnyStr:
    """Read up to limit-1 characters, stopping after a newline or carriage return."""
    chunks = []
    while len(chunks) + 1 < limit:
        c = stream.read(1)
        if not c:
            break
        chunks.append(c)
        if c in ("\n", "\r", b"\n", b"\r"):
            break
    return stream.read(0)[:0].join(chunks) if not chunks else chunks[0][:0].join(chunks)