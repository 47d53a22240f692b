"""Count lines, words and characters."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import IO

from xvtools.fmt import format_string, printf

CHUNK = 512
# a NUL byte also ends a word
_WHITESPACE = " \r\t\n\v\0"


@dataclass(frozen=True)
class Counts:
    lines: int
    words: int
    chars: int


def count(stream: IO) -> Counts:
    """Count the lines, words and characters (bytes for binary streams) of stream."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(CHUNK):
        if isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk).decode("latin-1")
        chars += len(chunk)
        lines += chunk.count("\n")
        for ch in chunk:
            if ch in _WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return Counts(lines, words, chars)


def _report(stream: IO, name: str) -> bool:
    try:
        counts = count(stream)
    except OSError:
        printf("wc: read error\n")
        return False
    sys.stdout.write(
        format_string("%d %d %d %s\n", counts.lines, counts.words, counts.chars, name)
    )
    return True


def main(argv: Sequence[str] | None = None) -> int:
    """Print counts for each named file, or for standard input."""
    paths = list(sys.argv[1:] if argv is None else argv)
    if not paths:
        return 0 if _report(getattr(sys.stdin, "buffer", sys.stdin), "") else 1
    for path in paths:
        try:
            handle = open(path, "rb")
        except OSError:
            printf("wc: cannot open %s\n", path)
            return 1
        with handle:
            if not _report(handle, path):
                return 1
    return 0