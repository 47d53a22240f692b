import pytest

from xvtools.virtio import (
    NUM,
    BlkReqType,
    BlkRequest,
    Buf,
    DescFlags,
    VirtqAvail,
    VirtqDesc,
    VirtqUsed,
    VirtqUsedElem,
)


def test_desc_layout_and_round_trip():
    desc = VirtqDesc(addr=0x80001000, len=512, flags=DescFlags.NEXT | DescFlags.WRITE, next=2)
    data = desc.pack()
    assert len(data) == 16
    assert data[:8] == (0x80001000).to_bytes(8, "little")
    assert VirtqDesc.unpack(data) == desc


def test_desc_unpack_wrong_length():
    with pytest.raises(ValueError):
        VirtqDesc.unpack(b"\0" * 15)


def test_desc_pack_out_of_range():
    with pytest.raises(ValueError):
        VirtqDesc(next=1 << 16).pack()


def test_avail_round_trip():
    avail = VirtqAvail(flags=0, idx=3, ring=tuple(range(NUM)))
    assert VirtqAvail.unpack(avail.pack()) == avail


def test_avail_ring_must_have_num_entries():
    with pytest.raises(ValueError):
        VirtqAvail(ring=(1, 2)).pack()


def test_used_elem_layout():
    elem = VirtqUsedElem(id=5, len=1024)
    data = elem.pack()
    assert len(data) == 8
    assert VirtqUsedElem.unpack(data) == elem


def test_used_round_trip():
    ring = tuple(VirtqUsedElem(id=i, len=i * 2) for i in range(NUM))
    used = VirtqUsed(flags=0, idx=7, ring=ring)
    data = used.pack()
    assert len(data) == VirtqUsed.SIZE
    assert VirtqUsed.unpack(data) == used


def test_used_unpack_wrong_length():
    with pytest.raises(ValueError):
        VirtqUsed.unpack(b"\0" * 4)


def test_blk_request_round_trip():
    req = BlkRequest(type=BlkReqType.OUT, reserved=0, sector=42)
    data = req.pack()
    assert len(data) == 16
    assert data[:4] == (1).to_bytes(4, "little")
    assert BlkRequest.unpack(data) == req


def test_blk_request_bad_type():
    data = BlkRequest(type=7).pack()
    with pytest.raises(ValueError):
        BlkRequest.unpack(data)


def test_buf_defaults_and_independent_data():
    a = Buf(dev=1, blockno=9)
    b = Buf()
    a.data.extend(b"abc")
    assert b.data == bytearray()
    assert (a.valid, a.disk, a.refcnt, a.blockno) == (False, False, 0, 9)