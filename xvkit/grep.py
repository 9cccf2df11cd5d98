"""A minimal grep supporting the ``^ . * $`` operators."""

from __future__ import annotations

import sys
from typing import Sequence, TextIO

_BUFSIZE = 1024


def match(re: str, text: str) -> bool:
    """Does ``re`` match anywhere in ``text``?"""
    if re.startswith("^"):
        return _match_here(re[1:], text)
    return any(_match_here(re, text[i:]) for i in range(len(text) + 1))


def _match_here(re: str, text: str) -> bool:
    if not re:
        return True
    if len(re) > 1 and re[1] == "*":
        return _match_star(re[0], re[2:], text)
    if re == "$":
        return text == ""
    if text and (re[0] == "." or re[0] == text[0]):
        return _match_here(re[1:], text[1:])
    return False


def _match_star(c: str, re: str, text: str) -> bool:
    i = 0
    while True:
        if _match_here(re, text[i:]):
            return True
        if i < len(text) and (text[i] == c or c == "."):
            i += 1
        else:
            return False


def grep(pattern: str, stream: TextIO, out: TextIO) -> None:
    """Write each newline-terminated line of ``stream`` that matches ``pattern``.

    A final line without a newline is not examined, and input stops
    being read once a single line fills the whole buffer.
    """
    pending = ""
    while True:
        room = _BUFSIZE - 1 - len(pending)
        if room <= 0:
            break
        chunk = stream.read(room)
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: ``grep pattern [file ...]``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, *paths = args
    if not paths:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for path in paths:
        try:
            stream = open(path, encoding="latin-1", newline="")
        except OSError:
            sys.stdout.write(f"grep: cannot open {path}\n")
            return 1
        with stream:
            grep(pattern, stream, sys.stdout)
    return 0