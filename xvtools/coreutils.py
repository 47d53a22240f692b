"""Small file utilities: cat, echo, ln, rm and mkdir."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Sequence
from typing import IO

from xvtools.fmt import fprintf

CHUNK = 512


def cat(stream: IO, out: IO) -> int:
    """Copy stream to out and return the number of units copied.

    Raises OSError whose strerror is "cat: read error" or "cat: write error".
    """
    total = 0
    while True:
        try:
            chunk = stream.read(CHUNK)
        except OSError as exc:
            raise OSError(exc.errno or errno.EIO, "cat: read error") from exc
        if not chunk:
            return total
        try:
            written = out.write(chunk)
        except OSError as exc:
            raise OSError(exc.errno or errno.EIO, "cat: write error") from exc
        if written is not None and written != len(chunk):
            raise OSError(errno.EIO, "cat: write error")
        total += len(chunk)


def echo(args: Sequence[str]) -> str:
    """The words joined by spaces and ended by a newline; nothing for no words."""
    return " ".join(args) + "\n" if args else ""


def _binary(stream: IO) -> IO:
    return getattr(stream, "buffer", stream)


def _args(argv: Sequence[str] | None) -> list[str]:
    return list(sys.argv[1:] if argv is None else argv)


def main_cat(argv: Sequence[str] | None = None) -> int:
    """Concatenate the named files, or standard input, to standard output."""
    paths = _args(argv)
    sys.stdout.flush()
    out = _binary(sys.stdout)
    try:
        if not paths:
            cat(_binary(sys.stdin), out)
            return 0
        for path in paths:
            try:
                handle = open(path, "rb")
            except OSError:
                fprintf(sys.stderr, "cat: cannot open %s\n", path)
                return 1
            with handle:
                cat(handle, out)
        return 0
    except OSError as exc:
        fprintf(sys.stderr, "%s\n", exc.strerror)
        return 1
    finally:
        out.flush()


def main_echo(argv: Sequence[str] | None = None) -> int:
    """Print the arguments."""
    sys.stdout.write(echo(_args(argv)))
    return 0


def main_ln(argv: Sequence[str] | None = None) -> int:
    """Make a hard link: ln old new."""
    args = _args(argv)
    if len(args) != 2:
        fprintf(sys.stderr, "Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        fprintf(sys.stderr, "link %s %s: failed\n", old, new)
    return 0


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.unlink(path)


def main_rm(argv: Sequence[str] | None = None) -> int:
    """Remove files and empty directories, stopping at the first failure."""
    paths = _args(argv)
    if not paths:
        fprintf(sys.stderr, "Usage: rm files...\n")
        return 1
    for path in paths:
        try:
            _remove(path)
        except OSError:
            fprintf(sys.stderr, "rm: %s failed to delete\n", path)
            break
    return 0


def main_mkdir(argv: Sequence[str] | None = None) -> int:
    """Create directories, stopping at the first failure."""
    paths = _args(argv)
    if not paths:
        fprintf(sys.stderr, "Usage: mkdir files...\n")
        return 1
    for path in paths:
        try:
            os.mkdir(path)
        except OSError:
            fprintf(sys.stderr, "mkdir: %s failed to create\n", path)
            break
    return 0