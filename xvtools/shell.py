"""Command-line parser for a small shell: pipes, lists, background jobs,
redirections and parenthesised blocks."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Union

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"

_LEXEME_RE = re.compile(r">>|[<|>&;()]|[^ \t\r\n\v<|>&;()]+")


class ShellSyntaxError(ValueError):
    """A command line that cannot be parsed; leftover holds unparsed text."""

    def __init__(self, message: str, leftover: str | None = None) -> None:
        super().__init__(message)
        self.leftover = leftover


class RedirMode(enum.Enum):
    READ = "<"
    WRITE = ">"
    APPEND = ">>"

    @property
    def fd(self) -> int:
        return 0 if self is RedirMode.READ else 1


@dataclass
class ExecCmd:
    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    cmd: Command
    file: str
    mode: RedirMode
    fd: int


@dataclass
class PipeCmd:
    left: Command
    right: Command


@dataclass
class ListCmd:
    left: Command
    right: Command


@dataclass
class BackCmd:
    cmd: Command


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


def _scan(line: str) -> list[tuple[str, int]]:
    line = line.split("\0", 1)[0]
    return [(m.group(), m.start()) for m in _LEXEME_RE.finditer(line)]


def tokenize(line: str) -> list[str]:
    """Split a command line into words and operators."""
    return [text for text, _ in _scan(line)]


def _is_word(lexeme: str) -> bool:
    return lexeme[0] not in SYMBOLS


class _Parser:
    def __init__(self, line: str) -> None:
        self.lexemes = _scan(line)
        self.pos = 0

    def peek(self, kinds: str) -> bool:
        return self.pos < len(self.lexemes) and self.lexemes[self.pos][0][0] in kinds

    def take(self) -> str | None:
        if self.pos >= len(self.lexemes):
            return None
        lexeme = self.lexemes[self.pos][0]
        self.pos += 1
        return lexeme

    def line(self) -> Command:
        cmd = self.pipe()
        while self.peek("&"):
            self.take()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.take()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.peek("|"):
            self.take()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            mode = RedirMode(self.take())
            target = self.take()
            if target is None or not _is_word(target):
                raise ShellSyntaxError("missing file for redirection")
            cmd = RedirCmd(cmd, target, mode, mode.fd)
        return cmd

    def block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.take()
        cmd = self.line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.take()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.peek("("):
            return self.block()
        node = ExecCmd()
        cmd = self.redirs(node)
        while not self.peek("|)&;"):
            lexeme = self.take()
            if lexeme is None:
                break
            if not _is_word(lexeme):
                raise ShellSyntaxError("syntax")
            node.argv.append(lexeme)
            if len(node.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            cmd = self.redirs(cmd)
        return cmd


def parse(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(line)
    cmd = parser.line()
    if parser.pos < len(parser.lexemes):
        leftover = line[parser.lexemes[parser.pos][1]:]
        raise ShellSyntaxError("syntax", leftover)
    return cmd