"""List files with their type, inode number and size."""

from __future__ import annotations

import enum
import os
import stat
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO

from xvtools.fmt import format_string, fprintf

DIRSIZ = 14
BUFSIZE = 512


class FileType(enum.IntEnum):
    DIR = 1
    FILE = 2
    DEVICE = 3


@dataclass(frozen=True)
class StatInfo:
    dev: int
    ino: int
    type: FileType
    nlink: int
    size: int


def _stat(path: str) -> StatInfo:
    st = os.stat(path)
    if stat.S_ISDIR(st.st_mode):
        kind = FileType.DIR
    elif stat.S_ISREG(st.st_mode):
        kind = FileType.FILE
    else:
        kind = FileType.DEVICE
    return StatInfo(
        dev=st.st_dev, ino=st.st_ino, type=kind, nlink=st.st_nlink, size=st.st_size
    )


def fmtname(path: str) -> str:
    """The last path component, blank-padded to DIRSIZ unless already that long."""
    name = path.rsplit("/", 1)[-1]
    return name if len(name) >= DIRSIZ else name.ljust(DIRSIZ)


def _line(path: str, info: StatInfo) -> str:
    return format_string(
        "%s %d %d %d\n", fmtname(path), int(info.type), info.ino, info.size
    )


def ls(path: str, out: TextIO | None = None) -> None:
    """Describe path, or each entry of it if it is a directory."""
    out = sys.stdout if out is None else out
    try:
        info = _stat(path)
    except OSError:
        fprintf(sys.stderr, "ls: cannot open %s\n", path)
        return
    if info.type is not FileType.DIR:
        out.write(_line(path, info))
        return
    if len(path) + 1 + DIRSIZ + 1 > BUFSIZE:
        out.write("ls: path too long\n")
        return
    try:
        names = sorted(os.listdir(path))
    except OSError:
        fprintf(sys.stderr, "ls: cannot open %s\n", path)
        return
    for name in (".", "..", *names):
        full = f"{path}/{name}"
        try:
            entry = _stat(full)
        except OSError:
            fprintf(out, "ls: cannot stat %s\n", full)
            continue
        out.write(_line(full, entry))


def main(argv: Sequence[str] | None = None) -> int:
    """List each named path, or the current directory."""
    paths = list(sys.argv[1:] if argv is None else argv)
    for path in paths or ["."]:
        ls(path, sys.stdout)
    return 0