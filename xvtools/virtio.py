"""Virtio MMIO register layout, ring structures and block-request records."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import ClassVar

# number of descriptors; must be a power of two
NUM = 8

VIRTIO0 = 0x10001000
VIRTIO_MAGIC = 0x74726976
VIRTIO_VENDOR = 0x554D4551


class MmioReg(enum.IntEnum):
    MAGIC_VALUE = 0x000
    VERSION = 0x004
    DEVICE_ID = 0x008
    VENDOR_ID = 0x00C
    DEVICE_FEATURES = 0x010
    DRIVER_FEATURES = 0x020
    QUEUE_SEL = 0x030
    QUEUE_NUM_MAX = 0x034
    QUEUE_NUM = 0x038
    QUEUE_READY = 0x044
    QUEUE_NOTIFY = 0x050
    INTERRUPT_STATUS = 0x060
    INTERRUPT_ACK = 0x064
    STATUS = 0x070
    QUEUE_DESC_LOW = 0x080
    QUEUE_DESC_HIGH = 0x084
    DRIVER_DESC_LOW = 0x090
    DRIVER_DESC_HIGH = 0x094
    DEVICE_DESC_LOW = 0x0A0
    DEVICE_DESC_HIGH = 0x0A4


class ConfigStatus(enum.IntFlag):
    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


class FeatureBit(enum.IntEnum):
    BLK_RO = 5
    BLK_SCSI = 7
    BLK_CONFIG_WCE = 11
    BLK_MQ = 12
    ANY_LAYOUT = 27
    RING_INDIRECT_DESC = 28
    RING_EVENT_IDX = 29


class DescFlags(enum.IntFlag):
    NEXT = 1
    WRITE = 2


class BlkReqType(enum.IntEnum):
    IN = 0
    OUT = 1


def _pack(layout: struct.Struct, *values: int) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout: struct.Struct, data: bytes, name: str) -> tuple[int, ...]:
    if len(data) != layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack(bytes(data))


def _check_ring(ring: tuple[int, ...]) -> None:
    if len(ring) != NUM:
        raise ValueError(f"ring must have {NUM} entries, got {len(ring)}")


@dataclass(frozen=True)
class VirtqDesc:
    addr: int = 0
    len: int = 0
    flags: int = 0
    next: int = 0

    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<QIHH")

    def pack(self) -> bytes:
        return _pack(self.LAYOUT, self.addr, self.len, int(self.flags), self.next)

    @classmethod
    def unpack(cls, data: bytes) -> VirtqDesc:
        addr, length, flags, nxt = _unpack(cls.LAYOUT, data, "virtq_desc")
        return cls(addr, length, DescFlags(flags), nxt)


@dataclass(frozen=True)
class VirtqAvail:
    flags: int = 0
    idx: int = 0
    ring: tuple[int, ...] = (0,) * NUM
    unused: int = 0

    LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<HH{NUM}HH")

    def pack(self) -> bytes:
        _check_ring(tuple(self.ring))
        return _pack(self.LAYOUT, self.flags, self.idx, *self.ring, self.unused)

    @classmethod
    def unpack(cls, data: bytes) -> VirtqAvail:
        values = _unpack(cls.LAYOUT, data, "virtq_avail")
        return cls(values[0], values[1], tuple(values[2:2 + NUM]), values[-1])


@dataclass(frozen=True)
class VirtqUsedElem:
    id: int = 0
    len: int = 0

    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<II")

    def pack(self) -> bytes:
        return _pack(self.LAYOUT, self.id, self.len)

    @classmethod
    def unpack(cls, data: bytes) -> VirtqUsedElem:
        return cls(*_unpack(cls.LAYOUT, data, "virtq_used_elem"))


@dataclass(frozen=True)
class VirtqUsed:
    flags: int = 0
    idx: int = 0
    ring: tuple[VirtqUsedElem, ...] = (VirtqUsedElem(),) * NUM

    HEADER: ClassVar[struct.Struct] = struct.Struct("<HH")
    SIZE: ClassVar[int] = HEADER.size + NUM * VirtqUsedElem.LAYOUT.size

    def pack(self) -> bytes:
        _check_ring(tuple(self.ring))
        head = _pack(self.HEADER, self.flags, self.idx)
        return head + b"".join(elem.pack() for elem in self.ring)

    @classmethod
    def unpack(cls, data: bytes) -> VirtqUsed:
        if len(data) != cls.SIZE:
            raise ValueError(f"virtq_used needs {cls.SIZE} bytes, got {len(data)}")
        flags, idx = cls.HEADER.unpack_from(data)
        step = VirtqUsedElem.LAYOUT.size
        start = cls.HEADER.size
        ring = tuple(
            VirtqUsedElem.unpack(data[off:off + step])
            for off in range(start, cls.SIZE, step)
        )
        return cls(flags, idx, ring)


@dataclass(frozen=True)
class BlkRequest:
    type: int = BlkReqType.IN
    reserved: int = 0
    sector: int = 0

    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IIQ")

    def pack(self) -> bytes:
        return _pack(self.LAYOUT, int(self.type), self.reserved, self.sector)

    @classmethod
    def unpack(cls, data: bytes) -> BlkRequest:
        kind, reserved, sector = _unpack(cls.LAYOUT, data, "virtio_blk_req")
        return cls(BlkReqType(kind), reserved, sector)


@dataclass(eq=False)
class Buf:
    """A cached disk block."""

    valid: bool = False  # has data been read from disk?
    disk: bool = False  # does the disk own the buffer?
    dev: int = 0
    blockno: int = 0
    refcnt: int = 0
    data: bytearray = field(default_factory=bytearray)