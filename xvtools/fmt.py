"""Minimal printf-style formatting with 32-bit integer semantics.

Understands %d, %u, %x (optionally with l or ll), %p, %s and %%.
Any other conversion is echoed back as-is to draw attention to it.
"""

from __future__ import annotations

import sys
from typing import Any, TextIO

DIGITS = "0123456789ABCDEF"

UINT32_MASK = 0xFFFFFFFF
UINT64_MASK = 0xFFFFFFFFFFFFFFFF

# conversion -> (base, signed)
_INT_SPECS = {
    "d": (10, True),
    "ld": (10, True),
    "lld": (10, True),
    "u": (10, False),
    "lu": (10, False),
    "llu": (10, False),
    "x": (16, False),
    "lx": (16, False),
    "llx": (16, False),
}


def to_int32(value: int) -> int:
    """Reinterpret the low 32 bits of value as a signed integer."""
    value &= UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _format_int(value: int, base: int, signed: bool) -> str:
    xx = to_int32(value)
    negative = signed and xx < 0
    x = -xx if negative else xx & UINT32_MASK
    digits = []
    while True:
        digits.append(DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _format_ptr(value: int) -> str:
    return "0x" + format(value & UINT64_MASK, "016X")


def _format_str(value: Any) -> str:
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def format_string(fmt: str, *args: Any) -> str:
    """Render fmt with args; raises TypeError when arguments run out."""
    remaining = iter(args)

    def take() -> Any:
        try:
            return next(remaining)
        except StopIteration:
            raise TypeError(f"not enough arguments for format {fmt!r}") from None

    out: list[str] = []
    i = 0
    n = len(fmt)
    while i < n:
        c = fmt[i]
        i += 1
        if c != "%":
            out.append(c)
            continue
        if i >= n:
            break
        spec = next(
            (s for s in ("lld", "llu", "llx", "ld", "lu", "lx", "d", "u", "x")
             if fmt.startswith(s, i)),
            None,
        )
        if spec is not None:
            base, signed = _INT_SPECS[spec]
            out.append(_format_int(take(), base, signed))
            i += len(spec)
            continue
        c = fmt[i]
        i += 1
        if c == "p":
            out.append(_format_ptr(take()))
        elif c == "s":
            out.append(_format_str(take()))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
    return "".join(out)


def fprintf(stream: TextIO, fmt: str, *args: Any) -> None:
    """Write the formatted text to stream."""
    stream.write(format_string(fmt, *args))


def printf(fmt: str, *args: Any) -> None:
    """Write the formatted text to standard output."""
    fprintf(sys.stdout, fmt, *args)