"""Fixed-width tables of child processes and trap reports."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from xvtools.fmt import format_string, to_int32


class ProcState(enum.IntEnum):
    UNUSED = 0
    USED = 1
    SLEEPING = 2
    RUNNABLE = 3
    RUNNING = 4
    ZOMBIE = 5

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    ProcState.UNUSED: "unused",
    ProcState.USED: "used",
    ProcState.SLEEPING: "sleep ",
    ProcState.RUNNABLE: "runble",
    ProcState.RUNNING: "run   ",
    ProcState.ZOMBIE: "zombie",
}


@dataclass(frozen=True)
class ProcInfo:
    name: str
    pid: int
    ppid: int
    state: ProcState


@dataclass(frozen=True)
class TrapReport:
    pname: str
    pid: int
    scause: int
    sepc: int
    stval: int
    parents: tuple[int, ...] = ()


def _decimal_width(n: int) -> int:
    n = to_int32(n)
    width = 0
    while n > 0:
        n //= 10
        width += 1
    return width


def pad_str(text: str, width: int) -> str:
    """Text followed by spaces up to width."""
    return text + " " * (width - len(text))


def pad_int(n: int, width: int) -> str:
    """Decimal n padded by the count of its digits; zero and negatives count as none."""
    return format_string("%d", n) + " " * (width - _decimal_width(n))


def pad_hex(n: int, width: int) -> str:
    """Hex form '0x..d' padded by the decimal digit count of n."""
    return format_string("0x%xd", n) + " " * (width - _decimal_width(n) - 2)


def format_children(processes: Iterable[ProcInfo]) -> str:
    """Table of child processes with a count line and a header."""
    procs = list(processes)
    lines = [
        format_string("child processes count = %d\n", len(procs)),
        "PID      PPID     STATE    NAME\n",
    ]
    for child in procs:
        lines.append(
            pad_int(child.pid, 9)
            + pad_int(child.ppid, 9)
            + pad_str(ProcState(child.state).label, 9)
            + pad_str(child.name, 9)
            + "\n"
        )
    return "".join(lines)


def format_reports(reports: Iterable[TrapReport]) -> str:
    """Table of trap reports with a count line and a header."""
    items = list(reports)
    lines = [
        format_string("number of exceptions: %d\n", len(items)),
        "PID      PNAME    "
        + pad_str("scause", 21)
        + pad_str("sepc", 21)
        + pad_str("stval", 21)
        + "\n",
    ]
    for r in items:
        lines.append(
            pad_int(r.pid, 9)
            + pad_str(r.pname, 9)
            + pad_hex(r.scause, 21)
            + pad_hex(r.sepc, 21)
            + pad_hex(r.stval, 21)
            + "\n"
        )
    return "".join(lines)