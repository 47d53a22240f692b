import io

import pytest

from xvtools.wc import Counts, count, main

TEXTS = [
    "",
    "hello world\nfoo\n",
    "  leading and trailing  ",
    "tabs\tand\rreturns\vvertical\n\n",
    "x" * 511 + "y" * 10,
    "word " * 300,
]


@pytest.mark.parametrize("text", TEXTS)
def test_counts_match_string_facts(text):
    c = count(io.StringIO(text))
    assert c.chars == len(text)
    assert c.lines == text.count("\n")
    assert c.words == len(text.split())


@pytest.mark.parametrize("text", TEXTS)
def test_bytes_and_text_agree(text):
    assert count(io.BytesIO(text.encode())) == count(io.StringIO(text))


def test_nul_separates_words():
    assert count(io.StringIO("a\0b")).words == 2


def test_counts_is_value_object():
    assert count(io.StringIO("a b\n")) == Counts(lines=1, words=2, chars=4)


def test_main_on_file(tmp_path, capsys):
    data = b"one two\nthree\n"
    path = tmp_path / "f"
    path.write_bytes(data)
    c = count(io.BytesIO(data))
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == f"{c.lines} {c.words} {c.chars} {path}\n"


def test_main_on_stdin_uses_empty_name(monkeypatch, capsys):
    data = b"alpha beta\n"
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))
    c = count(io.BytesIO(data))
    assert main([]) == 0
    assert capsys.readouterr().out == f"{c.lines} {c.words} {c.chars} \n"


def test_main_reports_missing_file(tmp_path, capsys):
    missing = str(tmp_path / "absent")
    assert main([missing]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"