"""Command-line parsing for the shell: tokens and a command tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

O_RDONLY = 0x000
O_WRONLY = 0x001
O_RDWR = 0x002
O_CREATE = 0x200

MAXARGS = 10
"""Size of an argument vector; a command holds at most MAXARGS - 1 words."""

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"

WORD = "word"
_REDIRECTS = frozenset({"<", ">", ">>"})


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass(frozen=True)
class ExecCmd:
    """Run a program with arguments; argv[0] names the program."""

    argv: tuple[str, ...] = ()


@dataclass(frozen=True)
class RedirCmd:
    """Run cmd with file opened in the given mode on descriptor fd."""

    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass(frozen=True)
class PipeCmd:
    """Connect the output of left to the input of right."""

    left: "Command"
    right: "Command"


@dataclass(frozen=True)
class ListCmd:
    """Run left, wait for it, then run right."""

    left: "Command"
    right: "Command"


@dataclass(frozen=True)
class BackCmd:
    """Run cmd in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


def _scan(text: str) -> Iterator[tuple[str, str, int]]:
    end = len(text)
    i = 0
    while True:
        while i < end and text[i] in WHITESPACE:
            i += 1
        if i >= end:
            return
        c = text[i]
        if text.startswith(">>", i):
            yield ">>", ">>", i
            i += 2
        elif c in SYMBOLS:
            yield c, c, i
            i += 1
        else:
            j = i
            while j < end and text[j] not in WHITESPACE and text[j] not in SYMBOLS:
                j += 1
            yield WORD, text[i:j], i
            i = j


def _truncate(text: str) -> str:
    return text.split("\0", 1)[0]


def tokenize(text: str) -> list[tuple[str, str]]:
    """Split a command line into (kind, text) pairs.

    kind is one of the symbols "|", "(", ")", ";", "&", "<", ">", ">>",
    or "word" for anything else. Input ends at the first NUL.
    """
    return [(kind, value) for kind, value, _ in _scan(_truncate(text))]


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = list(_scan(text))
        self._pos = 0

    def _peek(self, kinds) -> bool:
        return self._pos < len(self._tokens) and self._tokens[self._pos][0] in kinds

    def _next(self) -> tuple[str, str, int] | None:
        if self._pos >= len(self._tokens):
            return None
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def leftover(self) -> str | None:
        if self._pos >= len(self._tokens):
            return None
        return self._text[self._tokens[self._pos][2]:]

    def line(self) -> Command:
        cmd = self.pipe()
        while self._peek("&"):
            self._next()
            cmd = BackCmd(cmd)
        if self._peek(";"):
            self._next()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self._peek("|"):
            self._next()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def _redirections(self) -> Iterator[tuple[str, int, int]]:
        while self._peek(_REDIRECTS):
            kind = self._next()[0]
            target = self._next()
            if target is None or target[0] != WORD:
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                yield target[1], O_RDONLY, 0
            else:
                yield target[1], O_WRONLY | O_CREATE, 1

    @staticmethod
    def _wrap(cmd: Command, redirs: list[tuple[str, int, int]]) -> Command:
        for file, mode, fd in redirs:
            cmd = RedirCmd(cmd, file, mode, fd)
        return cmd

    def block(self) -> Command:
        self._next()
        cmd = self.line()
        if not self._peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self._next()
        return self._wrap(cmd, list(self._redirections()))

    def exec(self) -> Command:
        if self._peek("("):
            return self.block()
        argv: list[str] = []
        redirs = list(self._redirections())
        while not self._peek("|)&;"):
            token = self._next()
            if token is None:
                break
            if token[0] != WORD:
                raise ShellSyntaxError("syntax")
            argv.append(token[1])
            if len(argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            redirs.extend(self._redirections())
        return self._wrap(ExecCmd(tuple(argv)), redirs)


def parse_command(text: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(_truncate(text))
    cmd = parser.line()
    rest = parser.leftover()
    if rest is not None:
        raise ShellSyntaxError(f"leftovers: {rest}")
    return cmd