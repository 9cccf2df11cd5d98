"""Several concurrent writers each fill and re-read their own file."""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path
from typing import Sequence, TextIO

_DATA = b"a" * 512
_ROUNDS = 20


def stress(directory: str | os.PathLike[str], workers: int, out: TextIO) -> list[Path]:
    """Run ``workers`` writers at once in ``directory``; return the files written."""
    if workers < 1:
        raise ValueError("workers must be at least 1")
    base = Path(directory)
    lock = threading.Lock()

    def say(text: str) -> None:
        with lock:
            out.write(text)

    say("stressfs starting\n")
    paths = [base / ("stressfs" + chr(ord("0") + i)) for i in range(workers)]

    def work(i: int) -> None:
        say(f"write {i}\n")
        with open(paths[i], "wb") as f:
            for _ in range(_ROUNDS):
                f.write(_DATA)
        say("read\n")
        with open(paths[i], "rb") as f:
            for _ in range(_ROUNDS):
                f.read(len(_DATA))

    threads = [threading.Thread(target=work, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return paths


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: run five writers in the current directory."""
    stress(os.getcwd(), 5, sys.stdout)
    return 0