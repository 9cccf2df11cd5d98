"""Small user commands: cat, echo, wc, ln, rm, mkdir, ls, kill and friends."""

from __future__ import annotations

import os
import signal
import stat
import sys
import threading
import time
from typing import BinaryIO, Sequence, TextIO

from xvkit.fmt import render
from xvkit.mkfs import DIRSIZ, InodeType
from xvkit.ulib import atoi

_CHUNK = 512
_WORD_SEPARATORS = b" \r\t\n\v\0"
TICK_SECONDS = 0.1


def _args(argv: Sequence[str] | None) -> list[str]:
    return sys.argv[1:] if argv is None else list(argv)


def cat(stream: BinaryIO, out: BinaryIO) -> None:
    """Copy ``stream`` to ``out``."""
    while chunk := stream.read(_CHUNK):
        out.write(chunk)


def wc(stream: BinaryIO, name: str, out: TextIO) -> tuple[int, int, int]:
    """Count lines, words and bytes of ``stream``, report them and return them."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(_CHUNK):
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _WORD_SEPARATORS:
                inword = False
            elif not inword:
                words += 1
                inword = True
    out.write(f"{lines} {words} {chars} {name}\n")
    return lines, words, chars


def fmtname(path: str) -> str:
    """Last path component, blank-padded to the directory name width."""
    name = path[path.rfind("/") + 1:]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _inode_type(st: os.stat_result) -> int:
    if stat.S_ISDIR(st.st_mode):
        return InodeType.DIR
    if stat.S_ISREG(st.st_mode):
        return InodeType.FILE
    return InodeType.DEVICE


def ls(path: str, out: TextIO) -> None:
    """List a file, or every entry of a directory."""
    try:
        st = os.stat(path)
        kind = _inode_type(st)
        entries = [".", ".."] + sorted(os.listdir(path)) if kind == InodeType.DIR else []
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    if kind != InodeType.DIR:
        out.write(render("%s %d %d %l\n", fmtname(path), kind, st.st_ino, st.st_size))
        return
    if len(path) + 1 + DIRSIZ + 1 > 512:
        out.write("ls: path too long\n")
        return
    for name in entries:
        full = f"{path}/{name}"
        try:
            est = os.stat(full)
        except OSError:
            out.write(f"ls: cannot stat {full}\n")
            continue
        out.write(render("%s %d %d %d\n", fmtname(full), _inode_type(est), est.st_ino, est.st_size))


def cat_main(argv: Sequence[str] | None = None) -> int:
    """``cat [file ...]``."""
    args = _args(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            cat(sys.stdin.buffer, out)
            return 0
        for path in args:
            try:
                stream = open(path, "rb")
            except OSError:
                sys.stderr.write(f"cat: cannot open {path}\n")
                return 1
            with stream:
                cat(stream, out)
    except OSError:
        sys.stderr.write("cat: read error\n")
        return 1
    finally:
        out.flush()
    return 0


def echo_main(argv: Sequence[str] | None = None) -> int:
    """``echo [word ...]``."""
    args = _args(argv)
    if args:
        sys.stdout.write(" ".join(args) + "\n")
    return 0


def wc_main(argv: Sequence[str] | None = None) -> int:
    """``wc [file ...]``."""
    args = _args(argv)
    try:
        if not args:
            wc(sys.stdin.buffer, "", sys.stdout)
            return 0
        for path in args:
            try:
                stream = open(path, "rb")
            except OSError:
                sys.stdout.write(f"wc: cannot open {path}\n")
                return 1
            with stream:
                wc(stream, path, sys.stdout)
    except OSError:
        sys.stdout.write("wc: read error\n")
        return 1
    return 0


def ln_main(argv: Sequence[str] | None = None) -> int:
    """``ln old new``."""
    args = _args(argv)
    if len(args) != 2:
        sys.stderr.write("Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        sys.stderr.write(f"link {old} {new}: failed\n")
    return 0


def _unlink(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.unlink(path)


def rm_main(argv: Sequence[str] | None = None) -> int:
    """``rm file ...``; stops at the first failure."""
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: rm files...\n")
        return 1
    for path in args:
        try:
            _unlink(path)
        except OSError:
            sys.stderr.write(f"rm: {path} failed to delete\n")
            break
    return 0


def mkdir_main(argv: Sequence[str] | None = None) -> int:
    """``mkdir dir ...``; stops at the first failure."""
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: mkdir files...\n")
        return 1
    for path in args:
        try:
            os.mkdir(path)
        except OSError:
            sys.stderr.write(f"mkdir: {path} failed to create\n")
            break
    return 0


def ls_main(argv: Sequence[str] | None = None) -> int:
    """``ls [path ...]``."""
    args = _args(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0


def kill_main(argv: Sequence[str] | None = None) -> int:
    """``kill pid ...``; failures are ignored."""
    args = _args(argv)
    if not args:
        sys.stderr.write("usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        try:
            os.kill(pid, signal.SIGKILL)
        except OSError:
            pass
    return 0


def zombie_main(argv: Sequence[str] | None = None) -> int:
    """Start a child task that finishes before its parent, then wait for it."""
    child = threading.Thread(target=lambda: None, daemon=True)
    child.start()
    time.sleep(5 * TICK_SECONDS)
    child.join()
    return 0


def parent_main(argv: Sequence[str] | None = None) -> int:
    """Report the parent process id."""
    sys.stdout.write(f"Yo soy tu padre - dijo el proceso {os.getppid()}\n")
    return 0