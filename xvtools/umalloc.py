"""First-fit free-list allocator over an sbrk-style break."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

HEADER_SIZE = 16
MIN_UNITS = 4096


@dataclass(slots=True)
class _Header:
    ptr: int
    size: int


class Allocator:
    """Manage memory obtained from sbrk(nbytes) -> old break, or -1/None on failure.

    Addresses are plain integers; block sizes are counted in header units.
    """

    def __init__(self, sbrk: Callable[[int], int | None]) -> None:
        self._sbrk = sbrk
        self._base = -HEADER_SIZE
        self._headers: dict[int, _Header] = {}
        self._freep: int | None = None

    def _h(self, addr: int) -> _Header:
        return self._headers[addr]

    def _end(self, addr: int) -> int:
        return addr + self._h(addr).size * HEADER_SIZE

    def free(self, addr: int) -> None:
        """Return a block previously handed out by malloc."""
        bp = addr - HEADER_SIZE
        if self._freep is None or bp not in self._headers or bp == self._base:
            raise ValueError(f"address {addr:#x} was not allocated")
        p = self._freep
        while not (p < bp < self._h(p).ptr):
            nxt = self._h(p).ptr
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        block, prev = self._h(bp), self._h(p)
        if self._end(bp) == prev.ptr:
            absorbed = self._headers.pop(prev.ptr)
            block.size += absorbed.size
            block.ptr = absorbed.ptr
        else:
            block.ptr = prev.ptr
        if self._end(p) == bp:
            prev.size += block.size
            prev.ptr = block.ptr
            del self._headers[bp]
        else:
            prev.ptr = bp
        self._freep = p

    def _morecore(self, nunits: int) -> int | None:
        nunits = max(nunits, MIN_UNITS)
        addr = self._sbrk(nunits * HEADER_SIZE)
        if addr is None or addr == -1:
            return None
        self._headers[addr] = _Header(ptr=addr, size=nunits)
        self.free(addr + HEADER_SIZE)
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address; raises MemoryError when sbrk fails."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._headers[self._base] = _Header(ptr=self._base, size=0)
            self._freep = self._base
        prevp = self._freep
        p = self._h(prevp).ptr
        while True:
            hdr = self._h(p)
            if hdr.size >= nunits:
                if hdr.size == nunits:
                    self._h(prevp).ptr = hdr.ptr
                else:
                    hdr.size -= nunits
                    p += hdr.size * HEADER_SIZE
                    self._headers[p] = _Header(ptr=0, size=nunits)
                self._freep = prevp
                return p + HEADER_SIZE
            if p == self._freep:
                grown = self._morecore(nunits)
                if grown is None:
                    raise MemoryError(f"cannot allocate {nbytes} bytes")
                p = grown
            prevp, p = p, self._h(p).ptr