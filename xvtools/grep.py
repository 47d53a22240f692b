"""Line filter with a tiny regular-expression matcher (^ . * $ only)."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TextIO

from xvtools.fmt import fprintf, printf

BUFSIZE = 1024


def match(pattern: str, text: str) -> bool:
    """Return True if pattern matches anywhere in text."""
    if pattern.startswith("^"):
        return _matchhere(pattern[1:], text)
    # the empty suffix is tried too, so patterns like "x*" match empty text
    return any(_matchhere(pattern, text[start:]) for start in range(len(text) + 1))


def _matchhere(pattern: str, text: str) -> bool:
    if not pattern:
        return True
    if len(pattern) > 1 and pattern[1] == "*":
        return _matchstar(pattern[0], pattern[2:], text)
    if pattern == "$":
        return text == ""
    if text and pattern[0] in (".", text[0]):
        return _matchhere(pattern[1:], text[1:])
    return False


def _matchstar(c: str, pattern: str, text: str) -> bool:
    while True:
        if _matchhere(pattern, text):
            return True
        if not text or not (text[0] == c or c == "."):
            return False
        text = text[1:]


def grep(pattern: str, stream: TextIO, out: TextIO) -> None:
    """Write to out every newline-terminated line of stream that matches pattern.

    A final line without a newline is never printed, and a line that fills
    the whole buffer without a newline ends the search.
    """
    pending = ""
    while True:
        room = BUFSIZE - 1 - len(pending)
        if room <= 0:
            break
        chunk = stream.read(room)
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Run grep on the files named after the pattern, or on standard input."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        fprintf(sys.stderr, "usage: grep pattern [file ...]\n")
        return 1
    pattern, *paths = args
    if not paths:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for path in paths:
        try:
            handle = open(path, encoding="utf-8", errors="replace", newline="")
        except OSError:
            printf("grep: cannot open %s\n", path)
            return 1
        with handle:
            grep(pattern, handle, sys.stdout)
    return 0