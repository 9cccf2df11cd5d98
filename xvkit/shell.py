"""Parser for the shell's command language.

The grammar covers simple commands with arguments, ``<``, ``>`` and
``>>`` redirections, ``|`` pipelines, ``;`` sequences, ``&`` background
jobs and ``( ... )`` blocks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10


class ShellSyntaxError(ValueError):
    """The command line cannot be parsed."""


class OpenMode(enum.IntFlag):
    """Flags passed to ``open``."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


@dataclass
class ExecCmd:
    """Run a program with arguments; ``argv[0]`` names the program."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` reopened on ``file``."""

    cmd: "Command"
    file: str
    mode: OpenMode
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run ``left`` to completion, then ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]

_REDIRECTIONS = {
    "<": (OpenMode.RDONLY, 0),
    ">": (OpenMode.WRONLY | OpenMode.CREATE | OpenMode.TRUNC, 1),
    "+": (OpenMode.WRONLY | OpenMode.CREATE, 1),
}


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text.split("\0", 1)[0]
        self.pos = 0

    def _skip_space(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        self._skip_space()
        return self.pos < len(self.text) and self.text[self.pos] in toks

    def at_end(self) -> bool:
        self._skip_space()
        return self.pos >= len(self.text)

    def next_token(self) -> tuple[str, str]:
        """Return ``(kind, text)``; kind is "" at end, "a" for a word, "+" for ``>>``."""
        self._skip_space()
        text, start = self.text, self.pos
        if start >= len(text):
            return "", ""
        c = text[start]
        if c in "|();&<":
            kind, end = c, start + 1
        elif c == ">":
            if text.startswith(">>", start):
                kind, end = "+", start + 2
            else:
                kind, end = ">", start + 1
        else:
            kind, end = "a", start
            while end < len(text) and text[end] not in WHITESPACE and text[end] not in SYMBOLS:
                end += 1
        self.pos = end
        self._skip_space()
        return kind, text[start:end]

    def parse_line(self) -> Command:
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.next_token()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.next_token()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        cmd = self.parse_exec()
        if self.peek("|"):
            self.next_token()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            kind, _ = self.next_token()
            word_kind, word = self.next_token()
            if word_kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            mode, fd = _REDIRECTIONS[kind]
            cmd = RedirCmd(cmd, word, mode, fd)
        return cmd

    def parse_block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.next_token()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.next_token()
        return self.parse_redirs(cmd)

    def parse_exec(self) -> Command:
        if self.peek("("):
            return self.parse_block()
        exec_cmd = ExecCmd()
        ret = self.parse_redirs(exec_cmd)
        while not self.peek("|)&;"):
            kind, word = self.next_token()
            if kind == "":
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(word)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.parse_redirs(ret)
        return ret


def parse_command(text: str) -> Command:
    """Parse one command line into a command tree."""
    parser = _Parser(text)
    cmd = parser.parse_line()
    if not parser.at_end():
        raise ShellSyntaxError(f"leftovers: {parser.text[parser.pos:]}")
    return cmd