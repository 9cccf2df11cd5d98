"""Small C-style string helpers used by the user programs."""

from __future__ import annotations

from typing import TextIO, Union

_Text = Union[str, bytes]


def atoi(s: str) -> int:
    """Value of the leading decimal digits of ``s`` (no sign, no spaces), as a 32-bit int."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    n &= (1 << 32) - 1
    return n - (1 << 32) if n & (1 << 31) else n


def gets(stream: TextIO, max: int) -> str:
    """Read at most ``max - 1`` characters, stopping after a newline or carriage return."""
    out: list[str] = []
    while len(out) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        out.append(c)
        if c in "\n\r":
            break
    return "".join(out)


def _cstring(s: _Text) -> bytes:
    data = s.encode() if isinstance(s, str) else bytes(s)
    return data.split(b"\0", 1)[0]


def strcmp(p: _Text, q: _Text) -> int:
    """Difference of the first differing bytes, or 0 if the strings are equal."""
    a, b = _cstring(p), _cstring(q)
    for x, y in zip(a, b):
        if x != y:
            return x - y
    tail_a = a[len(b)] if len(a) > len(b) else 0
    tail_b = b[len(a)] if len(b) > len(a) else 0
    return tail_a - tail_b