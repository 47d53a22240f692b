"""Sv39 three-level page tables over a simulated physical memory."""

from __future__ import annotations

import enum

PGSIZE = 4096
PGSHIFT = 12
PXMASK = 0x1FF
PTE_SIZE = 8
ENTRIES_PER_TABLE = PGSIZE // PTE_SIZE
# one bit less than the maximum Sv39 allows, avoiding sign extension
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)
KERNBASE = 0x80000000
UINT64_MASK = 0xFFFFFFFFFFFFFFFF


class Pte(enum.IntFlag):
    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


class KernelPanic(RuntimeError):
    """An unrecoverable inconsistency in the page tables or their callers."""


class OutOfMemory(MemoryError):
    """No physical page was available."""


class BadAddress(ValueError):
    """A user virtual address that is unmapped, not accessible or out of range."""


def pgroundup(a: int) -> int:
    """Round a up to a multiple of the page size."""
    return (a + PGSIZE - 1) & ~(PGSIZE - 1)


def pgrounddown(a: int) -> int:
    """Round a down to a multiple of the page size."""
    return a & ~(PGSIZE - 1)


def _px(level: int, va: int) -> int:
    return (va >> (PGSHIFT + 9 * level)) & PXMASK


def _pa2pte(pa: int) -> int:
    return (pa >> 12) << 10


def _pte2pa(pte: int) -> int:
    return (pte >> 10) << 12


def _pte_flags(pte: int) -> int:
    return pte & 0x3FF


class PhysicalMemory:
    """A contiguous range of page frames starting at KERNBASE."""

    def __init__(self, npages: int) -> None:
        if npages < 0:
            raise ValueError("npages must not be negative")
        self.base = KERNBASE
        self.npages = npages
        self._data = bytearray(npages * PGSIZE)
        # popped from the end, so the lowest frame comes out first
        self._free = [self.base + i * PGSIZE for i in reversed(range(npages))]
        self._allocated: set[int] = set()

    @property
    def free_count(self) -> int:
        return len(self._free)

    def kalloc(self) -> int:
        """Take one page frame and return its physical address."""
        if not self._free:
            raise OutOfMemory("out of physical pages")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page frame obtained from kalloc."""
        if pa % PGSIZE != 0 or pa not in self._allocated:
            raise KernelPanic("kfree")
        self._allocated.remove(pa)
        self._free.append(pa)

    def _offset(self, pa: int, n: int) -> int:
        off = pa - self.base
        if off < 0 or n < 0 or off + n > len(self._data):
            raise KernelPanic(f"physical address {pa:#x} out of range")
        return off

    def read(self, pa: int, n: int) -> bytes:
        off = self._offset(pa, n)
        return bytes(self._data[off:off + n])

    def write(self, pa: int, data: bytes) -> None:
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data


class PageTable:
    """A user page table whose pages live in a PhysicalMemory."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.root = memory.kalloc()
        memory.write(self.root, bytes(PGSIZE))

    def _get(self, addr: int) -> int:
        return int.from_bytes(self.memory.read(addr, PTE_SIZE), "little")

    def _set(self, addr: int, pte: int) -> None:
        self.memory.write(addr, (pte & UINT64_MASK).to_bytes(PTE_SIZE, "little"))

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the PTE for va, or None if a level is missing.

        With alloc, missing page-table pages are created; None then means
        that no physical page was left.
        """
        va &= UINT64_MASK
        if va >= MAXVA:
            raise KernelPanic("walk")
        table = self.root
        for level in (2, 1):
            addr = table + _px(level, va) * PTE_SIZE
            pte = self._get(addr)
            if pte & Pte.V:
                table = _pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                table = self.memory.kalloc()
            except OutOfMemory:
                return None
            self.memory.write(table, bytes(PGSIZE))
            self._set(addr, _pa2pte(table) | Pte.V)
        return table + _px(0, va) * PTE_SIZE

    def walkaddr(self, va: int) -> int | None:
        """Physical page address of a user-accessible va, or None."""
        va &= UINT64_MASK
        if va >= MAXVA:
            return None
        addr = self.walk(va, False)
        if addr is None:
            return None
        pte = self._get(addr)
        if not pte & Pte.V or not pte & Pte.U:
            return None
        return _pte2pa(pte)

    def mappages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map [va, va+size) to physical pages from pa; raises OutOfMemory."""
        if va % PGSIZE != 0:
            raise KernelPanic("mappages: va not aligned")
        if size % PGSIZE != 0:
            raise KernelPanic("mappages: size not aligned")
        if size == 0:
            raise KernelPanic("mappages: size")
        last = va + size - PGSIZE
        a = va
        while True:
            addr = self.walk(a, True)
            if addr is None:
                raise OutOfMemory("no page for page-table page")
            if self._get(addr) & Pte.V:
                raise KernelPanic("mappages: remap")
            self._set(addr, _pa2pte(pa) | int(perm) | Pte.V)
            if a == last:
                return
            a += PGSIZE
            pa += PGSIZE

    def unmap(self, va: int, npages: int, do_free: bool) -> None:
        """Remove npages existing leaf mappings from va, optionally freeing them."""
        if va % PGSIZE != 0:
            raise KernelPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a, False)
            if addr is None:
                raise KernelPanic("uvmunmap: walk")
            pte = self._get(addr)
            if not pte & Pte.V:
                raise KernelPanic("uvmunmap: not mapped")
            if _pte_flags(pte) == Pte.V:
                raise KernelPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.kfree(_pte2pa(pte))
            self._set(addr, 0)

    def first(self, src: bytes) -> None:
        """Load src, smaller than a page, at virtual address 0."""
        if len(src) >= PGSIZE:
            raise KernelPanic("uvmfirst: more than a page")
        mem = self.memory.kalloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.mappages(0, PGSIZE, mem, Pte.W | Pte.R | Pte.X | Pte.U)
        self.memory.write(mem, bytes(src))

    def grow(self, oldsz: int, newsz: int, xperm: int = 0) -> int:
        """Allocate zeroed user pages from oldsz up to newsz and return newsz.

        On failure the pages added by this call are released and
        OutOfMemory is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = pgroundup(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self.memory.kalloc()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.mappages(a, PGSIZE, mem, Pte.R | Pte.U | int(xperm))
            except OutOfMemory:
                self.memory.kfree(mem)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz: int, newsz: int) -> int:
        """Free user pages to bring the size from oldsz down to newsz."""
        if newsz >= oldsz:
            return oldsz
        if pgroundup(newsz) < pgroundup(oldsz):
            npages = (pgroundup(oldsz) - pgroundup(newsz)) // PGSIZE
            self.unmap(pgroundup(newsz), npages, True)
        return newsz

    def _freewalk(self, table: int) -> None:
        for i in range(ENTRIES_PER_TABLE):
            addr = table + i * PTE_SIZE
            pte = self._get(addr)
            if pte & Pte.V and not pte & (Pte.R | Pte.W | Pte.X):
                self._freewalk(_pte2pa(pte))
                self._set(addr, 0)
            elif pte & Pte.V:
                raise KernelPanic("freewalk: leaf")
        self.memory.kfree(table)

    def free(self, sz: int) -> None:
        """Free the user pages below sz, then every page-table page."""
        if sz > 0:
            self.unmap(0, pgroundup(sz) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_to(self, other: PageTable, sz: int) -> None:
        """Copy the mappings and memory below sz into other.

        On failure the pages copied so far are freed and OutOfMemory is raised.
        """
        i = 0
        try:
            for i in range(0, sz, PGSIZE):
                addr = self.walk(i, False)
                if addr is None:
                    raise KernelPanic("uvmcopy: pte should exist")
                pte = self._get(addr)
                if not pte & Pte.V:
                    raise KernelPanic("uvmcopy: page not present")
                pa = _pte2pa(pte)
                mem = self.memory.kalloc()
                other.memory.write(mem, self.memory.read(pa, PGSIZE))
                try:
                    other.mappages(i, PGSIZE, mem, _pte_flags(pte))
                except OutOfMemory:
                    other.memory.kfree(mem)
                    raise
        except OutOfMemory:
            other.unmap(0, i // PGSIZE, True)
            raise

    def clear_user(self, va: int) -> None:
        """Make the page at va inaccessible to user mode."""
        addr = self.walk(va, False)
        if addr is None:
            raise KernelPanic("uvmclear")
        self._set(addr, self._get(addr) & ~int(Pte.U))

    def copyout(self, dstva: int, data: bytes) -> None:
        """Copy data to user virtual address dstva."""
        view = memoryview(bytes(data))
        while view:
            va0 = pgrounddown(dstva)
            if va0 >= MAXVA or va0 < 0:
                raise BadAddress(f"bad user address {dstva:#x}")
            addr = self.walk(va0, False)
            pte = 0 if addr is None else self._get(addr)
            if not (pte & Pte.V and pte & Pte.U and pte & Pte.W):
                raise BadAddress(f"bad user address {dstva:#x}")
            n = min(PGSIZE - (dstva - va0), len(view))
            self.memory.write(_pte2pa(pte) + (dstva - va0), bytes(view[:n]))
            view = view[n:]
            dstva = va0 + PGSIZE

    def copyin(self, srcva: int, n: int) -> bytes:
        """Read n bytes from user virtual address srcva."""
        out = bytearray()
        while n > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"bad user address {srcva:#x}")
            chunk = min(PGSIZE - (srcva - va0), n)
            out += self.memory.read(pa0 + (srcva - va0), chunk)
            n -= chunk
            srcva = va0 + PGSIZE
        return bytes(out)

    def copyinstr(self, srcva: int, limit: int) -> bytes:
        """Read a NUL-terminated string of at most limit bytes; NUL excluded."""
        out = bytearray()
        while limit > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"bad user address {srcva:#x}")
            n = min(PGSIZE - (srcva - va0), limit)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            end = chunk.find(b"\0")
            if end >= 0:
                out += chunk[:end]
                return bytes(out)
            out += chunk
            limit -= n
            srcva = va0 + PGSIZE
        raise BadAddress("string not terminated within limit")