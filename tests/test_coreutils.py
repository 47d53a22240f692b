import io
import os

import pytest

from xvtools.coreutils import (
    cat,
    echo,
    main_cat,
    main_echo,
    main_ln,
    main_mkdir,
    main_rm,
)


def test_cat_copies_everything():
    data = bytes(range(256)) * 5
    out = io.BytesIO()
    assert cat(io.BytesIO(data), out) == len(data)
    assert out.getvalue() == data


def test_cat_works_on_text():
    out = io.StringIO()
    cat(io.StringIO("line\n" * 200), out)
    assert out.getvalue() == "line\n" * 200


class _ShortWriter:
    def write(self, chunk):
        return 0


def test_cat_short_write_is_error():
    with pytest.raises(OSError) as info:
        cat(io.BytesIO(b"data"), _ShortWriter())
    assert info.value.strerror == "cat: write error"


def test_echo_joins_words():
    assert echo(["hello", "world"]) == "hello world\n"


def test_echo_without_words_prints_nothing():
    assert echo([]) == ""


def test_main_echo(capsys):
    assert main_echo(["a", "b"]) == 0
    assert capsys.readouterr().out == echo(["a", "b"])


def test_main_cat_concatenates(tmp_path, capsysbinary):
    first, second = tmp_path / "a", tmp_path / "b"
    first.write_bytes(b"first\n")
    second.write_bytes(b"second\n")
    assert main_cat([str(first), str(second)]) == 0
    assert capsysbinary.readouterr().out == b"first\nsecond\n"


def test_main_cat_stdin(monkeypatch, capsysbinary):
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"piped\n")))
    assert main_cat([]) == 0
    assert capsysbinary.readouterr().out == b"piped\n"


def test_main_cat_missing_file(tmp_path, capsysbinary):
    missing = str(tmp_path / "x")
    assert main_cat([missing]) == 1
    assert capsysbinary.readouterr().err == f"cat: cannot open {missing}\n".encode()


def test_main_ln_usage(capsys):
    assert main_ln(["only"]) == 1
    assert capsys.readouterr().err == "Usage: ln old new\n"


def test_main_ln_links(tmp_path):
    old, new = tmp_path / "old", tmp_path / "new"
    old.write_text("x")
    assert main_ln([str(old), str(new)]) == 0
    assert os.path.samefile(old, new)


def test_main_ln_failure_still_exits_zero(tmp_path, capsys):
    old, new = str(tmp_path / "missing"), str(tmp_path / "new")
    assert main_ln([old, new]) == 0
    assert capsys.readouterr().err == f"link {old} {new}: failed\n"


def test_main_rm_usage(capsys):
    assert main_rm([]) == 1
    assert capsys.readouterr().err == "Usage: rm files...\n"


def test_main_rm_removes_files_and_empty_dirs(tmp_path):
    f = tmp_path / "f"
    f.write_text("x")
    d = tmp_path / "d"
    d.mkdir()
    assert main_rm([str(f), str(d)]) == 0
    assert sorted(os.listdir(tmp_path)) == []


def test_main_rm_stops_at_first_failure(tmp_path, capsys):
    missing = str(tmp_path / "missing")
    keep = tmp_path / "keep"
    keep.write_text("x")
    assert main_rm([missing, str(keep)]) == 0
    assert keep.exists()
    assert capsys.readouterr().err == f"rm: {missing} failed to delete\n"


def test_main_mkdir_usage(capsys):
    assert main_mkdir([]) == 1
    assert capsys.readouterr().err == "Usage: mkdir files...\n"


def test_main_mkdir_creates(tmp_path):
    names = [str(tmp_path / "one"), str(tmp_path / "two")]
    assert main_mkdir(names) == 0
    assert all(os.path.isdir(n) for n in names)


def test_main_mkdir_stops_at_first_failure(tmp_path, capsys):
    existing = tmp_path / "exists"
    existing.mkdir()
    later = tmp_path / "later"
    assert main_mkdir([str(existing), str(later)]) == 0
    assert not later.exists()
    assert capsys.readouterr().err == f"mkdir: {existing} failed to create\n"