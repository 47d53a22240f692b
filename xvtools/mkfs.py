"""Build a file-system image holding a root directory and a set of files.

Disk layout:
[ boot block | super block | log | inode blocks | free bit map | data blocks ]
"""

from __future__ import annotations

import struct
import sys
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import IO

from xvtools.fmt import fprintf, printf
from xvtools.ls import DIRSIZ, FileType

NINODES = 200
NDIRECT = 12

_SUPERBLOCK = struct.Struct("<8I")
_DINODE_HEAD = struct.Struct("<hhhhI")
_DIRENT = struct.Struct(f"<H{DIRSIZ}s")
DIRENT_SIZE = _DIRENT.size


@dataclass(frozen=True)
class Geometry:
    """Sizes that fix the layout of an image."""

    bsize: int = 1024
    fssize: int = 2000
    nlog: int = 30
    ninodes: int = NINODES
    ndirect: int = NDIRECT
    magic: int = 0x10203040
    rootino: int = 1

    def __post_init__(self) -> None:
        if self.bsize <= 0 or self.bsize % self.dinode_size != 0:
            raise ValueError("block size must be a multiple of the inode size")
        if self.bsize % DIRENT_SIZE != 0:
            raise ValueError("block size must be a multiple of the entry size")
        if self.nmeta >= self.fssize:
            raise ValueError("no room for data blocks")

    @property
    def dinode_size(self) -> int:
        return _DINODE_HEAD.size + 4 * (self.ndirect + 1)

    @property
    def ipb(self) -> int:
        """Inodes per block."""
        return self.bsize // self.dinode_size

    @property
    def bpb(self) -> int:
        """Bitmap bits per block."""
        return self.bsize * 8

    @property
    def nindirect(self) -> int:
        return self.bsize // 4

    @property
    def maxfile(self) -> int:
        return self.ndirect + self.nindirect

    @property
    def nbitmap(self) -> int:
        return self.fssize // self.bpb + 1

    @property
    def ninodeblocks(self) -> int:
        return self.ninodes // self.ipb + 1

    @property
    def nmeta(self) -> int:
        return 2 + self.nlog + self.ninodeblocks + self.nbitmap

    @property
    def nblocks(self) -> int:
        return self.fssize - self.nmeta


@dataclass(frozen=True)
class Superblock:
    magic: int
    size: int
    nblocks: int
    ninodes: int
    nlog: int
    logstart: int
    inodestart: int
    bmapstart: int

    def pack(self) -> bytes:
        try:
            return _SUPERBLOCK.pack(
                self.magic, self.size, self.nblocks, self.ninodes,
                self.nlog, self.logstart, self.inodestart, self.bmapstart,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def unpack(cls, data: bytes) -> Superblock:
        """Decode a superblock from the start of data."""
        if len(data) < _SUPERBLOCK.size:
            raise ValueError(f"superblock needs {_SUPERBLOCK.size} bytes")
        return cls(*_SUPERBLOCK.unpack_from(bytes(data)))


@dataclass
class DiskInode:
    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=lambda: [0] * (NDIRECT + 1))

    def pack(self) -> bytes:
        try:
            return _DINODE_HEAD.pack(
                int(self.type), self.major, self.minor, self.nlink, self.size
            ) + struct.pack(f"<{len(self.addrs)}I", *self.addrs)
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def unpack(cls, data: bytes) -> DiskInode:
        data = bytes(data)
        rest = len(data) - _DINODE_HEAD.size
        if rest < 4 or rest % 4 != 0:
            raise ValueError(f"bad inode size {len(data)}")
        kind, major, minor, nlink, size = _DINODE_HEAD.unpack_from(data)
        addrs = list(struct.unpack_from(f"<{rest // 4}I", data, _DINODE_HEAD.size))
        return cls(kind, major, minor, nlink, size, addrs)


@dataclass(frozen=True)
class Dirent:
    inum: int
    name: str

    def pack(self) -> bytes:
        raw = self.name.encode()
        if len(raw) > DIRSIZ:
            raise ValueError(f"name longer than {DIRSIZ} bytes: {self.name!r}")
        try:
            return _DIRENT.pack(self.inum, raw)
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def unpack(cls, data: bytes) -> Dirent:
        if len(data) != DIRENT_SIZE:
            raise ValueError(f"directory entry needs {DIRENT_SIZE} bytes")
        inum, raw = _DIRENT.unpack(bytes(data))
        return cls(inum, raw.split(b"\0", 1)[0].decode(errors="replace"))


class FsBuilder:
    """Writes a fresh image to a seekable binary stream.

    The constructor zeroes the image, writes the superblock and creates
    the root directory with its "." and ".." entries.
    """

    def __init__(self, image: IO[bytes], geometry: Geometry | None = None) -> None:
        self.image = image
        self.geometry = geom = Geometry() if geometry is None else geometry
        self.sb = Superblock(
            magic=geom.magic,
            size=geom.fssize,
            nblocks=geom.nblocks,
            ninodes=geom.ninodes,
            nlog=geom.nlog,
            logstart=2,
            inodestart=2 + geom.nlog,
            bmapstart=2 + geom.nlog + geom.ninodeblocks,
        )
        self.freeinode = 1
        self.freeblock = geom.nmeta

        zeroes = bytes(geom.bsize)
        for sec in range(geom.fssize):
            self._wsect(sec, zeroes)
        self._wsect(1, self.sb.pack().ljust(geom.bsize, b"\0"))

        self.rootino = self.ialloc(FileType.DIR)
        if self.rootino != geom.rootino:
            raise ValueError("root inode was not the first allocated")
        self.iappend(self.rootino, Dirent(self.rootino, ".").pack())
        self.iappend(self.rootino, Dirent(self.rootino, "..").pack())

    def _wsect(self, sec: int, data: bytes) -> None:
        bsize = self.geometry.bsize
        if len(data) != bsize:
            raise ValueError(f"sector data must be {bsize} bytes")
        self.image.seek(sec * bsize)
        if self.image.write(data) != bsize:
            raise OSError(5, "write")

    def _rsect(self, sec: int) -> bytes:
        bsize = self.geometry.bsize
        self.image.seek(sec * bsize)
        data = self.image.read(bsize)
        if len(data) != bsize:
            raise OSError(5, "read")
        return data

    def _iblock(self, inum: int) -> int:
        return inum // self.geometry.ipb + self.sb.inodestart

    def _islot(self, inum: int) -> slice:
        size = self.geometry.dinode_size
        start = (inum % self.geometry.ipb) * size
        return slice(start, start + size)

    def rinode(self, inum: int) -> DiskInode:
        return DiskInode.unpack(self._rsect(self._iblock(inum))[self._islot(inum)])

    def winode(self, inum: int, dinode: DiskInode) -> None:
        raw = dinode.pack()
        if len(raw) != self.geometry.dinode_size:
            raise ValueError("inode has the wrong number of block addresses")
        bn = self._iblock(inum)
        block = bytearray(self._rsect(bn))
        block[self._islot(inum)] = raw
        self._wsect(bn, bytes(block))

    def ialloc(self, type: int) -> int:
        """Allocate the next inode with the given type and return its number."""
        inum = self.freeinode
        self.freeinode += 1
        self.winode(
            inum,
            DiskInode(type=int(type), nlink=1, size=0,
                      addrs=[0] * (self.geometry.ndirect + 1)),
        )
        return inum

    def _take_block(self) -> int:
        bn = self.freeblock
        self.freeblock += 1
        return bn

    def iappend(self, inum: int, data: bytes) -> None:
        """Append data to the end of inode inum, allocating blocks as needed."""
        geom = self.geometry
        nd = geom.ndirect
        din = self.rinode(inum)
        off = din.size
        view = memoryview(bytes(data))
        while view:
            fbn = off // geom.bsize
            if fbn >= geom.maxfile:
                raise ValueError("file too large")
            if fbn < nd:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._take_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[nd] == 0:
                    din.addrs[nd] = self._take_block()
                indirect = list(
                    struct.unpack(f"<{geom.nindirect}I", self._rsect(din.addrs[nd]))
                )
                if indirect[fbn - nd] == 0:
                    indirect[fbn - nd] = self._take_block()
                    self._wsect(din.addrs[nd], struct.pack(f"<{geom.nindirect}I", *indirect))
                x = indirect[fbn - nd]
            n1 = min(len(view), (fbn + 1) * geom.bsize - off)
            block = bytearray(self._rsect(x))
            start = off - fbn * geom.bsize
            block[start:start + n1] = view[:n1]
            self._wsect(x, bytes(block))
            view = view[n1:]
            off += n1
        din.size = off
        self.winode(inum, din)

    def balloc(self, used: int) -> None:
        """Mark the first used blocks as allocated in the bitmap."""
        printf("balloc: first %d blocks have been allocated\n", used)
        if used >= self.geometry.bpb:
            raise ValueError("too many blocks for one bitmap block")
        bitmap = bytearray(self.geometry.bsize)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        printf("balloc: write bitmap block at sector %d\n", self.sb.bmapstart)
        self._wsect(self.sb.bmapstart, bytes(bitmap))

    def add_file(self, name: str, data: bytes) -> int:
        """Add a file to the root directory and return its inode number.

        A leading "user/" and then a leading "_" are dropped from the name.
        """
        shortname = name[5:] if name.startswith("user/") else name
        if "/" in shortname:
            raise ValueError(f"name must not contain '/': {name!r}")
        if shortname.startswith("_"):
            shortname = shortname[1:]
        if len(shortname.encode()) > DIRSIZ:
            raise ValueError(f"name longer than {DIRSIZ} bytes: {shortname!r}")
        inum = self.ialloc(FileType.FILE)
        self.iappend(self.rootino, Dirent(inum, shortname).pack())
        self.iappend(inum, data)
        return inum

    def build(self, files: Iterable[tuple[str, bytes]]) -> Superblock:
        """Add every (name, data) pair, then finish the root and the bitmap."""
        for name, data in files:
            self.add_file(name, data)
        din = self.rinode(self.rootino)
        bsize = self.geometry.bsize
        din.size = (din.size // bsize + 1) * bsize
        self.winode(self.rootino, din)
        self.balloc(self.freeblock)
        return self.sb


def _read_files(paths: Sequence[str]) -> Iterator[tuple[str, bytes]]:
    for path in paths:
        with open(path, "rb") as handle:
            yield path, handle.read()


def _perror(what: str, exc: OSError) -> None:
    fprintf(sys.stderr, "%s: %s\n", what, exc.strerror or str(exc))


def main(argv: Sequence[str] | None = None) -> int:
    """mkfs fs.img files...: write an image holding the named files."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        fprintf(sys.stderr, "Usage: mkfs fs.img files...\n")
        return 1
    image_path, *paths = args
    geom = Geometry()
    try:
        image = open(image_path, "w+b")
    except OSError as exc:
        _perror(image_path, exc)
        return 1
    with image:
        printf(
            "nmeta %d (boot, super, log blocks %u inode blocks %u, "
            "bitmap blocks %u) blocks %d total %d\n",
            geom.nmeta, geom.nlog, geom.ninodeblocks, geom.nbitmap,
            geom.nblocks, geom.fssize,
        )
        try:
            FsBuilder(image, geom).build(_read_files(paths))
        except OSError as exc:
            _perror(str(exc.filename or "mkfs"), exc)
            return 1
        except ValueError as exc:
            fprintf(sys.stderr, "mkfs: %s\n", str(exc))
            return 1
    return 0