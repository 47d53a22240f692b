import io
import struct

import pytest

from xvtools.ls import FileType
from xvtools.mkfs import (
    DIRENT_SIZE,
    DiskInode,
    Dirent,
    FsBuilder,
    Geometry,
    Superblock,
    main,
)

SMALL = Geometry(bsize=64, fssize=200, nlog=3, ninodes=10)


def new_builder(geom=SMALL):
    img = io.BytesIO()
    return img, FsBuilder(img, geom)


def block(img, geom, n):
    raw = img.getvalue()
    return raw[n * geom.bsize:(n + 1) * geom.bsize]


def file_blocks(img, geom, din):
    nd = geom.ndirect
    nblocks = -(-din.size // geom.bsize)
    addrs = list(din.addrs[:nd])
    if nblocks > nd:
        addrs += struct.unpack(
            f"<{geom.nindirect}I", block(img, geom, din.addrs[nd])
        )
    return addrs[:nblocks]


def read_file(img, geom, din):
    data = b"".join(block(img, geom, b) for b in file_blocks(img, geom, din))
    return data[:din.size]


def entries(img, geom, din):
    data = read_file(img, geom, din)
    out = []
    for off in range(0, len(data), DIRENT_SIZE):
        ent = Dirent.unpack(data[off:off + DIRENT_SIZE])
        if ent.inum:
            out.append(ent)
    return out


def test_dirent_wire_format():
    assert Dirent(1, ".").pack() == b"\x01\x00." + bytes(13)


def test_dirent_round_trip():
    ent = Dirent(7, "12345678901234")
    assert Dirent.unpack(ent.pack()) == ent


def test_dirent_name_too_long():
    with pytest.raises(ValueError):
        Dirent(1, "123456789012345").pack()


def test_dirent_unpack_wrong_size():
    with pytest.raises(ValueError):
        Dirent.unpack(b"\x00" * 3)


def test_dinode_round_trip():
    din = DiskInode(type=2, nlink=1, size=99, addrs=list(range(13)))
    raw = din.pack()
    assert len(raw) == Geometry().dinode_size
    assert DiskInode.unpack(raw) == din


def test_superblock_round_trip_from_block():
    sb = Superblock(1, 2, 3, 4, 5, 6, 7, 8)
    assert Superblock.unpack(sb.pack() + bytes(40)) == sb


def test_superblock_short_data():
    with pytest.raises(ValueError):
        Superblock.unpack(b"\x00" * 8)


def test_geometry_rejects_bad_block_size():
    with pytest.raises(ValueError):
        Geometry(bsize=100)


def test_geometry_rejects_no_data_room():
    with pytest.raises(ValueError):
        Geometry(bsize=64, fssize=10, nlog=3, ninodes=10)


def test_geometry_layout_adds_up():
    g = Geometry()
    assert g.nmeta + g.nblocks == g.fssize
    assert g.maxfile == g.ndirect + g.nindirect


def test_init_writes_image_and_superblock():
    img, b = new_builder()
    assert len(img.getvalue()) == SMALL.fssize * SMALL.bsize
    sb = Superblock.unpack(block(img, SMALL, 1))
    assert sb == b.sb
    assert sb.magic == 0x10203040
    assert sb.inodestart == 2 + SMALL.nlog


def test_root_directory_entries():
    img, b = new_builder()
    root = b.rinode(b.rootino)
    assert root.type == FileType.DIR
    assert root.nlink == 1
    assert [(e.inum, e.name) for e in entries(img, SMALL, root)] == [
        (1, "."), (1, ".."),
    ]


def test_ialloc_sequential():
    _, b = new_builder()
    first = b.ialloc(FileType.FILE)
    second = b.ialloc(FileType.FILE)
    assert second == first + 1
    assert b.rinode(first).type == FileType.FILE
    assert b.rinode(first).size == 0


def test_winode_rinode_round_trip():
    _, b = new_builder()
    inum = b.ialloc(FileType.FILE)
    din = DiskInode(type=2, nlink=3, size=5, addrs=[0] * (SMALL.ndirect + 1))
    b.winode(inum, din)
    assert b.rinode(inum) == din


def test_iappend_round_trip_with_indirect_blocks():
    img, b = new_builder()
    inum = b.ialloc(FileType.FILE)
    data = bytes(range(256)) * 5
    b.iappend(inum, data[:100])
    b.iappend(inum, data[100:])
    din = b.rinode(inum)
    assert din.size == len(data)
    assert din.addrs[SMALL.ndirect] != 0
    assert read_file(img, SMALL, din) == data
    blocks = file_blocks(img, SMALL, din)
    assert len(set(blocks)) == len(blocks)
    assert all(SMALL.nmeta <= bn < b.freeblock for bn in blocks)


def test_iappend_past_maxfile():
    _, b = new_builder()
    inum = b.ialloc(FileType.FILE)
    with pytest.raises(ValueError):
        b.iappend(inum, bytes(SMALL.maxfile * SMALL.bsize + 1))


def test_add_file_strips_prefixes():
    img, b = new_builder()
    inum = b.add_file("user/_cat", b"meow")
    root = b.rinode(b.rootino)
    names = {e.name: e.inum for e in entries(img, SMALL, root)}
    assert names["cat"] == inum
    assert read_file(img, SMALL, b.rinode(inum)) == b"meow"


def test_add_file_rejects_slash_and_long_names():
    _, b = new_builder()
    with pytest.raises(ValueError):
        b.add_file("a/b", b"")
    with pytest.raises(ValueError):
        b.add_file("_123456789012345", b"")


def test_build_rounds_root_and_marks_bitmap():
    img, b = new_builder()
    sb = b.build([("_echo", b"hi"), ("README.md", b"text")])
    root = b.rinode(b.rootino)
    assert root.size % SMALL.bsize == 0
    assert root.size > 4 * DIRENT_SIZE - 1
    bitmap = block(img, SMALL, sb.bmapstart)
    used = b.freeblock
    assert all(bitmap[i // 8] >> (i % 8) & 1 for i in range(used))
    assert not bitmap[used // 8] >> (used % 8) & 1


def test_balloc_too_many():
    _, b = new_builder()
    with pytest.raises(ValueError):
        b.balloc(SMALL.bpb)


def test_main_usage(capsys):
    assert main([]) == 1
    assert "Usage: mkfs fs.img files..." in capsys.readouterr().err


def test_main_builds_image(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "_hello").write_bytes(b"hello world")
    assert main(["fs.img", "_hello"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("nmeta ")
    geom = Geometry()
    img = io.BytesIO((tmp_path / "fs.img").read_bytes())
    assert len(img.getvalue()) == geom.fssize * geom.bsize
    sb = Superblock.unpack(block(img, geom, 1))
    raw = block(img, geom, sb.inodestart)
    root = DiskInode.unpack(raw[geom.dinode_size:2 * geom.dinode_size])
    names = {e.name: e.inum for e in entries(img, geom, root)}
    inum = names["hello"]
    slot = inum % geom.ipb
    iblock = block(img, geom, inum // geom.ipb + sb.inodestart)
    din = DiskInode.unpack(iblock[slot * geom.dinode_size:(slot + 1) * geom.dinode_size])
    assert read_file(img, geom, din) == b"hello world"


def test_main_missing_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["fs.img", "nosuchfile"]) == 1
    assert "nosuchfile:" in capsys.readouterr().err